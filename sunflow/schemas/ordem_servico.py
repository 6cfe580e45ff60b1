import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime, date, time

from pydantic import BaseModel, Field, ConfigDict, model_validator

from .ticket import TicketSimple
from .tecnico import TecnicoSimple
from .enums import EstadoPresencaEnum

# ===============================================================
# Ordem de serviço
# ===============================================================
class OrdemServico(BaseModel):
    id: uuid.UUID
    numero_os: str
    ticket_id: uuid.UUID
    tecnico_id: Optional[uuid.UUID] = None
    data_emissao: datetime
    data_programada: Optional[date] = None
    hora_inicio: Optional[time] = None
    hora_fim: Optional[time] = None
    duracao_estimada_min: Optional[int] = None
    pdf_url: Optional[str] = None
    qr_code: Optional[str] = None
    calendar_invite_sent_at: Optional[datetime] = None
    calendar_invite_recipients: List[str] = Field(default_factory=list)
    reminder_sent_at: Optional[datetime] = None
    presence_confirmed_at: Optional[datetime] = None
    presence_confirmed_by: Optional[str] = None
    email_error_log: List[Dict[str, Any]] = Field(default_factory=list)
    observacoes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    ticket: Optional[TicketSimple] = None
    tecnico: Optional[TecnicoSimple] = None

    model_config = ConfigDict(from_attributes=True)

class OrdemServicoGerada(BaseModel):
    """Resposta da geração: traz a mensagem quando a OS já existia."""
    msg: str
    ordem_servico: OrdemServico

# ===============================================================
# Agendamento
# ===============================================================
class AgendamentoUpdate(BaseModel):
    data_programada: date
    hora_inicio: time
    hora_fim: time
    duracao_estimada_min: Optional[int] = Field(None, gt=0)
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def check_horarios(self) -> "AgendamentoUpdate":
        if self.hora_fim <= self.hora_inicio:
            raise ValueError("O horário de término deve ser posterior ao horário de início.")
        return self

class ConflitoAgenda(BaseModel):
    os_id: uuid.UUID
    numero_os: str
    hora_inicio: Optional[time] = None
    hora_fim: Optional[time] = None
    ticket_titulo: Optional[str] = None

class ResultadoConflito(BaseModel):
    has_conflict: bool
    conflicts: List[ConflitoAgenda] = Field(default_factory=list)

class CargaTrabalhoDia(BaseModel):
    data: date
    total_os: int
    os_concluidas: int
    os_pendentes: int
    total_minutos: int

class PresencaOS(BaseModel):
    os_id: uuid.UUID
    numero_os: str
    data_programada: Optional[date] = None
    hora_inicio: Optional[time] = None
    tecnico_nome: Optional[str] = None
    reminder_sent_at: Optional[datetime] = None
    presence_confirmed_at: Optional[datetime] = None
    presence_confirmed_by: Optional[str] = None
    estado: EstadoPresencaEnum

class OSCancelar(BaseModel):
    motivo: Optional[str] = None
