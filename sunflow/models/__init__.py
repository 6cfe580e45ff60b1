from .aprovacao import Aprovacao
from .audit_log import AuditLog
from .cache_geocodificacao import CacheGeocodificacao
from .cliente import Cliente
from .email_retry import EmailRetry
from .equipamento import Equipamento
from .insumo import Insumo
from .movimentacao_insumo import MovimentacaoInsumo
from .notificacao import Notificacao
from .ordem_servico import OrdemServico
from .papel import Papel
from .papel_permissao import PapelPermissao
from .permissao import Permissao
from .presenca_tentativa import PresencaTentativa
from .presenca_token import PresencaToken
from .prestador import Prestador
from .rme_checklist_item import RMEChecklistItem
from .rme_relatorio import RMERelatorio
from .rota_otimizada import RotaOtimizada
from .sequencia_documento import SequenciaDocumento
from .status_historico import StatusHistorico
from .tecnico import Tecnico
from .ticket import Ticket
from .usuario import Usuario


__all__ = [
    "Aprovacao",
    "AuditLog",
    "CacheGeocodificacao",
    "Cliente",
    "EmailRetry",
    "Equipamento",
    "Insumo",
    "MovimentacaoInsumo",
    "Notificacao",
    "OrdemServico",
    "Papel",
    "PapelPermissao",
    "Permissao",
    "PresencaTentativa",
    "PresencaToken",
    "Prestador",
    "RMEChecklistItem",
    "RMERelatorio",
    "RotaOtimizada",
    "SequenciaDocumento",
    "StatusHistorico",
    "Tecnico",
    "Ticket",
    "Usuario",
]
