import uuid
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict

from .enums import TicketStatusEnum, PrioridadeEnum, StatusAprovacaoTicketEnum, TipoEquipamentoEnum
from .cliente import ClienteSimple
from .tecnico import TecnicoSimple
from .usuario import UsuarioSimple

# ===============================================================
# Schemas de Ticket
# ===============================================================
class TicketBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    titulo: str = Field(..., min_length=3, max_length=255)
    descricao: Optional[str] = None
    cliente_id: uuid.UUID
    endereco_servico: Optional[str] = None
    equipamento_tipo: Optional[TipoEquipamentoEnum] = None
    prioridade: PrioridadeEnum = PrioridadeEnum.MEDIA
    data_vencimento: Optional[date] = None
    tempo_estimado: Optional[Decimal] = Field(None, ge=0, description="Horas estimadas de serviço")
    observacoes: Optional[str] = None

class TicketCreate(TicketBase):
    tecnico_responsavel_id: Optional[uuid.UUID] = None

class TicketUpdate(BaseModel):
    """Atualização de dados. O status muda apenas via /status e /aprovacao."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    titulo: Optional[str] = Field(None, min_length=3, max_length=255)
    descricao: Optional[str] = None
    endereco_servico: Optional[str] = None
    equipamento_tipo: Optional[TipoEquipamentoEnum] = None
    prioridade: Optional[PrioridadeEnum] = None
    data_vencimento: Optional[date] = None
    tempo_estimado: Optional[Decimal] = Field(None, ge=0)
    observacoes: Optional[str] = None
    can_create_rme: Optional[bool] = None

class Ticket(TicketBase):
    id: uuid.UUID
    numero_ticket: str
    status: TicketStatusEnum
    criado_por: Optional[uuid.UUID] = None
    tecnico_responsavel_id: Optional[uuid.UUID] = None
    data_abertura: datetime
    data_inicio_execucao: Optional[datetime] = None
    data_conclusao: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geocoded_at: Optional[datetime] = None
    anexos: List[str] = Field(default_factory=list)
    can_create_rme: bool = False
    created_at: datetime
    updated_at: datetime
    cliente: Optional[ClienteSimple] = None
    tecnico_responsavel: Optional[TecnicoSimple] = None

    model_config = ConfigDict(from_attributes=True)

class TicketSimple(BaseModel):
    id: uuid.UUID
    numero_ticket: str
    titulo: str
    status: TicketStatusEnum
    prioridade: PrioridadeEnum

    model_config = ConfigDict(from_attributes=True)

# ===============================================================
# Ações sobre o ticket
# ===============================================================
class TicketStatusUpdate(BaseModel):
    status: TicketStatusEnum
    observacoes: Optional[str] = None

class TicketAprovacaoCreate(BaseModel):
    status: StatusAprovacaoTicketEnum
    observacoes: Optional[str] = None

class TicketTecnicoUpdate(BaseModel):
    tecnico_id: uuid.UUID

class StatusHistorico(BaseModel):
    id: uuid.UUID
    ticket_id: uuid.UUID
    status_anterior: Optional[TicketStatusEnum] = None
    status_novo: TicketStatusEnum
    observacoes: Optional[str] = None
    created_at: datetime
    usuario: Optional[UsuarioSimple] = None

    model_config = ConfigDict(from_attributes=True)

class Aprovacao(BaseModel):
    id: uuid.UUID
    ticket_id: uuid.UUID
    aprovador_id: Optional[uuid.UUID] = None
    status: StatusAprovacaoTicketEnum
    observacoes: Optional[str] = None
    data_aprovacao: datetime

    model_config = ConfigDict(from_attributes=True)
