import logging
from celery import Celery
from celery.schedules import crontab

from sunflow.core.config import settings
from sunflow.core.logging_config import setup_logging

# o worker também precisa de logging antes de registrar as tarefas
setup_logging()
logger = logging.getLogger(__name__)
logger.info("Configurando o worker Celery...")

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["sunflow.tasks.lembrete_tasks", "sunflow.tasks.email_tasks", "sunflow.tasks.geocoding_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # crontab do beat no fuso da operação
    timezone=settings.TIMEZONE,
    enable_utc=True,
)

celery_app.conf.beat_schedule = {
    "lembretes-os-diarios": {
        "task": "tasks.enviar_lembretes_os",
        "schedule": crontab(hour=settings.REMINDER_HOUR, minute=0),
    },
    "fila-emails": {
        "task": "tasks.processar_fila_emails",
        "schedule": crontab(),
    },
    "geocodificacao-pendentes": {
        "task": "tasks.geocodificar_pendentes",
        "schedule": crontab(minute="*/10"),
    },
}

logger.info(f"Worker Celery configurado. Broker: {settings.CELERY_BROKER_URL}")

# celery -A sunflow.worker worker --beat --loglevel=info
