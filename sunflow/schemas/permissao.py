import uuid
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict


class PermissaoBase(BaseModel):
    """Campos base de uma permissão do sistema."""
    nome: str = Field(..., min_length=3, max_length=100, description="Nome-chave da permissão (ex: ver_tickets)")
    descricao: Optional[str] = Field(None, description="O que a permissão autoriza")

class PermissaoCreate(PermissaoBase):
    pass

class PermissaoUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=3, max_length=100)
    descricao: Optional[str] = None

class Permissao(PermissaoBase):
    id: uuid.UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
