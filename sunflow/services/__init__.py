"""
Camada de serviços.

Cada módulo concentra a lógica de negócio e o acesso ao banco de uma
entidade. Os serviços nunca fazem commit: a transação pertence à rota
ou à tarefa que os chama.
"""

from .usuario import usuario_service
from .papel import papel_service
from .permissao import permissao_service
from .cliente import cliente_service
from .prestador import prestador_service
from .tecnico import tecnico_service
from .equipamento import equipamento_service
from .insumo import insumo_service
from .ticket import ticket_service
from .ordem_servico import ordem_servico_service
from .rme import rme_service
from .rota import rota_service
from .notificacao import notificacao_service
from .email_retry import email_retry_service
from .audit_log import audit_log_service
from .dashboard import dashboard_service

__all__ = [
    "usuario_service",
    "papel_service",
    "permissao_service",
    "cliente_service",
    "prestador_service",
    "tecnico_service",
    "equipamento_service",
    "insumo_service",
    "ticket_service",
    "ordem_servico_service",
    "rme_service",
    "rota_service",
    "notificacao_service",
    "email_retry_service",
    "audit_log_service",
    "dashboard_service",
]
