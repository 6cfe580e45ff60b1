import logging
from typing import Dict

from sqlalchemy.orm import Session

from sunflow.worker import celery_app
from sunflow.db.session import SessionLocal
from sunflow.services.email_retry import email_retry_service

logger = logging.getLogger(__name__)

@celery_app.task(name="tasks.processar_fila_emails")
def task_processar_fila_emails() -> Dict[str, int]:
    """Reenvia os e-mails da fila cujo próximo horário de tentativa já passou."""
    db: Session = SessionLocal()
    try:
        resultado = email_retry_service.processar_fila(db)
        db.commit()
        if resultado["processados"]:
            logger.info(f"Fila de e-mails: {resultado}")
        return resultado
    except Exception as e:
        db.rollback()
        logger.error(f"Erro na tarefa processar_fila_emails: {e}", exc_info=True)
        raise
    finally:
        db.close()
