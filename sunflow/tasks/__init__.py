# Importa as tarefas para que o Celery as registre
from .lembrete_tasks import task_enviar_lembretes_os
from .email_tasks import task_processar_fila_emails
from .geocoding_tasks import task_geocodificar_pendentes

__all__ = [
    "task_enviar_lembretes_os",
    "task_processar_fila_emails",
    "task_geocodificar_pendentes",
]
