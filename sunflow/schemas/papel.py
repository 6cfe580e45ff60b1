import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from .permissao import Permissao

class PapelBase(BaseModel):
    """Campos base de um papel (perfil de acesso)."""
    nome: str = Field(..., min_length=3, max_length=100, description="Nome-chave do papel (ex: admin)")
    descricao: Optional[str] = Field(None, description="Descrição do papel")

class PapelCreate(PapelBase):
    """
    Cria um papel. Pode receber a lista de IDs de permissões a atribuir no mesmo passo.
    """
    permissao_ids: List[uuid.UUID] = Field(default_factory=list, description="IDs das permissões do papel")

class PapelUpdate(BaseModel):
    """
    Atualização parcial. Se 'permissao_ids' for enviado, substitui a lista completa.
    """
    nome: Optional[str] = Field(None, min_length=3, max_length=100)
    descricao: Optional[str] = None
    permissao_ids: Optional[List[uuid.UUID]] = Field(None, description="Lista completa de IDs de permissões")

class Papel(PapelBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    permissoes: List[Permissao] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

class PapelSimple(BaseModel):
    id: uuid.UUID
    nome: str
    descricao: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
