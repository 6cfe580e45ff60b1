import uuid
from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, ConfigDict


class TecnicoBase(BaseModel):
    nome: str = Field(..., min_length=2, max_length=255)
    email: Optional[EmailStr] = Field(None, description="Endereço que recebe os convites de agenda")
    telefone: Optional[str] = Field(None, max_length=30)
    especialidades: List[str] = Field(default_factory=list)
    regiao_atuacao: Optional[str] = Field(None, max_length=120)
    registro_profissional: Optional[str] = Field(None, max_length=60)
    ativo: bool = True
    usuario_id: Optional[uuid.UUID] = None
    prestador_id: Optional[uuid.UUID] = None

class TecnicoCreate(TecnicoBase):
    pass

class TecnicoUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    telefone: Optional[str] = Field(None, max_length=30)
    especialidades: Optional[List[str]] = None
    regiao_atuacao: Optional[str] = Field(None, max_length=120)
    registro_profissional: Optional[str] = Field(None, max_length=60)
    ativo: Optional[bool] = None
    usuario_id: Optional[uuid.UUID] = None
    prestador_id: Optional[uuid.UUID] = None

class TecnicoEmailUpdate(BaseModel):
    email: EmailStr

class Tecnico(TecnicoBase):
    id: uuid.UUID
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TecnicoSimple(BaseModel):
    id: uuid.UUID
    nome: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
