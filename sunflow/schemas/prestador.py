import uuid
from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, ConfigDict

from .enums import CategoriaPrestadorEnum


class PrestadorBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    nome: str = Field(..., min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    telefone: Optional[str] = Field(None, max_length=30)
    cpf: Optional[str] = Field(None, max_length=14)
    categoria: CategoriaPrestadorEnum = CategoriaPrestadorEnum.TECNICO
    especialidades: List[str] = Field(default_factory=list)
    certificacoes: List[str] = Field(default_factory=list)
    endereco: Optional[str] = None
    cidade: Optional[str] = Field(None, max_length=120)
    estado: Optional[str] = Field(None, max_length=2)
    cep: Optional[str] = Field(None, max_length=9)
    ativo: bool = True

class PrestadorCreate(PrestadorBase):
    pass

class PrestadorUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    nome: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    telefone: Optional[str] = Field(None, max_length=30)
    cpf: Optional[str] = Field(None, max_length=14)
    categoria: Optional[CategoriaPrestadorEnum] = None
    especialidades: Optional[List[str]] = None
    certificacoes: Optional[List[str]] = None
    endereco: Optional[str] = None
    cidade: Optional[str] = Field(None, max_length=120)
    estado: Optional[str] = Field(None, max_length=2)
    cep: Optional[str] = Field(None, max_length=9)
    ativo: Optional[bool] = None

class Prestador(PrestadorBase):
    id: uuid.UUID
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
