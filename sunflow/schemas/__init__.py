from .common import Msg

# Token e autenticação
from .token import Token, TokenPayload, RefreshToken
from .password import PasswordChange

# Papéis e permissões
from .permissao import Permissao, PermissaoCreate, PermissaoUpdate
from .papel import Papel, PapelCreate, PapelUpdate, PapelSimple

# Usuário
from .usuario import Usuario, UsuarioCreate, UsuarioUpdate, UsuarioSimple, UsuarioMe

# Cadastros
from .cliente import (
    Cliente, ClienteCreate, ClienteUpdate, ClienteSimple,
    ResultadoValidacao, RelatorioImportacao, LinhaImportacao,
)
from .prestador import Prestador, PrestadorCreate, PrestadorUpdate
from .tecnico import Tecnico, TecnicoCreate, TecnicoUpdate, TecnicoEmailUpdate, TecnicoSimple
from .equipamento import Equipamento, EquipamentoCreate, EquipamentoUpdate
from .insumo import Insumo, InsumoCreate, InsumoUpdate, Movimentacao, MovimentacaoCreate

# Tickets
from .ticket import (
    Ticket, TicketCreate, TicketUpdate, TicketSimple,
    TicketStatusUpdate, TicketAprovacaoCreate, TicketTecnicoUpdate,
    StatusHistorico, Aprovacao,
)

# Ordens de serviço e agenda
from .ordem_servico import (
    OrdemServico, OrdemServicoGerada, AgendamentoUpdate,
    ConflitoAgenda, ResultadoConflito, CargaTrabalhoDia, PresencaOS,
)
from .email_retry import EmailRetry

# RME
from .rme import (
    RME, RMECreate, RMEUpdate, RMEAprovar, RMERejeitar, MaterialUtilizado,
    AssinaturasRME, RMEChecklistItem, RMEChecklistItemUpdate, RMEChecklistLote,
)

# Rotas
from .rota import RotaOtimizarRequest, RotaOtimizada, ResultadoRota, ParadaRota

# Notificações, auditoria e painel
from .notificacao import Notificacao, NotificacaoCreateInternal, NotificacaoUpdate, ContagemNaoLidas
from .audit_log import AuditLog, AuditLogCreate
from .dashboard import DashboardData
