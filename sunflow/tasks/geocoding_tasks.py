import logging

from sqlalchemy.orm import Session

from sunflow.worker import celery_app
from sunflow.db.session import SessionLocal
from sunflow.services.geocodificacao import geocodificar_pendentes, LOTE_GEOCODIFICACAO

logger = logging.getLogger(__name__)

@celery_app.task(name="tasks.geocodificar_pendentes")
def task_geocodificar_pendentes(limite: int = LOTE_GEOCODIFICACAO) -> dict:
    logger.info(f"Iniciando tarefa: geocodificação de até {limite} tickets")
    db: Session = SessionLocal()
    try:
        resultado = geocodificar_pendentes(db, limite=limite)
        db.commit()
        return resultado
    except Exception as e:
        db.rollback()
        logger.error(f"Erro na tarefa geocodificar_pendentes: {e}", exc_info=True)
        raise
    finally:
        db.close()
