import logging
from typing import Dict

from sqlalchemy.orm import Session

from sunflow.worker import celery_app
from sunflow.db.session import SessionLocal
from sunflow.services.lembrete import enviar_lembretes

logger = logging.getLogger(__name__)

@celery_app.task(name="tasks.enviar_lembretes_os")
def task_enviar_lembretes_os() -> Dict[str, int]:
    """Lembretes das OS de amanhã, com link de confirmação de presença."""
    logger.info("Iniciando tarefa: lembretes de OS")
    db: Session = SessionLocal()
    try:
        resultado = enviar_lembretes(db)
        db.commit()
        logger.info(f"Tarefa concluída: lembretes de OS {resultado}")
        return resultado
    except Exception as e:
        db.rollback()
        logger.error(f"Erro na tarefa enviar_lembretes_os: {e}", exc_info=True)
        raise
    finally:
        db.close()
