import uuid
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

from .enums import TipoNotificacaoEnum


class NotificacaoBase(BaseModel):
    titulo: str = Field(..., max_length=255)
    mensagem: str
    tipo: TipoNotificacaoEnum = TipoNotificacaoEnum.INFO
    link: Optional[str] = Field(None, max_length=500)

class NotificacaoCreateInternal(NotificacaoBase):
    """
    Criação a partir da lógica de negócio (serviços e tarefas). Não exposto na API.
    """
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    usuario_id: uuid.UUID

class NotificacaoUpdate(BaseModel):
    lida: bool

class Notificacao(NotificacaoBase):
    id: uuid.UUID
    usuario_id: uuid.UUID
    lida: bool
    created_at: datetime
    data_leitura: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ContagemNaoLidas(BaseModel):
    nao_lidas: int
