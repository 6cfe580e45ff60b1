from enum import Enum

class TicketStatusEnum(str, Enum):
    """Ciclo de vida de um ticket."""
    ABERTO = "aberto"
    AGUARDANDO_APROVACAO = "aguardando_aprovacao"
    APROVADO = "aprovado"
    REJEITADO = "rejeitado"
    ORDEM_SERVICO_GERADA = "ordem_servico_gerada"
    EM_EXECUCAO = "em_execucao"
    AGUARDANDO_RME = "aguardando_rme"
    CONCLUIDO = "concluido"
    CANCELADO = "cancelado"

class PrioridadeEnum(str, Enum):
    BAIXA = "baixa"
    MEDIA = "media"
    ALTA = "alta"
    CRITICA = "critica"

class StatusAprovacaoTicketEnum(str, Enum):
    APROVADO = "aprovado"
    REJEITADO = "rejeitado"

class TipoEquipamentoEnum(str, Enum):
    PAINEL_SOLAR = "painel_solar"
    INVERSOR = "inversor"
    CONTROLADOR_CARGA = "controlador_carga"
    BATERIA = "bateria"
    CABEAMENTO = "cabeamento"
    ESTRUTURA = "estrutura"
    MONITORAMENTO = "monitoramento"
    OUTROS = "outros"

class StatusEquipamentoEnum(str, Enum):
    ATIVO = "ativo"
    MANUTENCAO = "manutencao"
    INATIVO = "inativo"
    DEFEITO = "defeito"

class CategoriaPrestadorEnum(str, Enum):
    TECNICO = "tecnico"
    ELETRICISTA = "eletricista"
    ENGENHEIRO = "engenheiro"
    AUXILIAR = "auxiliar"
    OUTRO = "outro"

class TipoMovimentacaoEnum(str, Enum):
    ENTRADA = "entrada"
    SAIDA = "saida"
    AJUSTE = "ajuste"

class NivelEstoqueEnum(str, Enum):
    NORMAL = "normal"
    BAIXO = "baixo"
    CRITICO = "critico"

class RMEStatusEnum(str, Enum):
    RASCUNHO = "rascunho"
    CONCLUIDO = "concluido"

class RMEStatusAprovacaoEnum(str, Enum):
    PENDENTE = "pendente"
    APROVADO = "aprovado"
    REJEITADO = "rejeitado"

class MomentoFotoEnum(str, Enum):
    ANTES = "antes"
    DEPOIS = "depois"

class TurnoEnum(str, Enum):
    MANHA = "manha"
    TARDE = "tarde"
    NOITE = "noite"

class TipoServicoRMEEnum(str, Enum):
    LIMPEZA = "limpeza"
    ELETRICA = "eletrica"
    INTERNET = "internet"
    OUTROS = "outros"

class CategoriaChecklistEnum(str, Enum):
    CONEXOES = "conexoes"
    ELETRICA = "eletrica"
    INTERNET = "internet"
    FERRAMENTAS = "ferramentas"
    EPIS = "epis"
    MEDIDAS_PREVENTIVAS = "medidas_preventivas"

class TipoNotificacaoEnum(str, Enum):
    INFO = "info"
    TICKET = "ticket"
    OS = "os"
    RME = "rme"
    ALERTA = "alerta"

class AcaoAuditoriaEnum(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    STATUS = "STATUS"

class TipoEmailEnum(str, Enum):
    CALENDAR_INVITE = "calendar_invite"
    REMINDER = "reminder"

class StatusEmailRetryEnum(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"

class EstadoPresencaEnum(str, Enum):
    CONFIRMADA = "confirmada"
    PENDENTE = "pendente"
    SEM_LEMBRETE = "sem_lembrete"

class MetodoOtimizacaoEnum(str, Enum):
    MAPBOX = "mapbox"
    OSRM = "osrm"
    LOCAL = "local"
