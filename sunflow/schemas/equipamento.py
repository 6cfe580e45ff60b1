import uuid
from typing import Optional
from datetime import datetime, date

from pydantic import BaseModel, Field, ConfigDict, model_validator

from .enums import TipoEquipamentoEnum, StatusEquipamentoEnum
from .cliente import ClienteSimple


class EquipamentoBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    nome: str = Field(..., min_length=1, max_length=255)
    tipo: TipoEquipamentoEnum
    modelo: Optional[str] = Field(None, max_length=120)
    fabricante: Optional[str] = Field(None, max_length=120)
    numero_serie: Optional[str] = Field(None, max_length=120)
    status: StatusEquipamentoEnum = StatusEquipamentoEnum.ATIVO
    localizacao: Optional[str] = None
    data_instalacao: Optional[date] = None
    garantia_ate: Optional[date] = None
    capacidade: Optional[float] = Field(None, ge=0)
    tensao: Optional[float] = None
    corrente: Optional[float] = None
    cliente_id: Optional[uuid.UUID] = None
    observacoes: Optional[str] = None

class EquipamentoCreate(EquipamentoBase):
    @model_validator(mode="after")
    def check_garantia(self) -> "EquipamentoCreate":
        if self.data_instalacao and self.garantia_ate and self.garantia_ate < self.data_instalacao:
            raise ValueError("A garantia não pode terminar antes da data de instalação.")
        return self

class EquipamentoUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    nome: Optional[str] = Field(None, min_length=1, max_length=255)
    tipo: Optional[TipoEquipamentoEnum] = None
    modelo: Optional[str] = Field(None, max_length=120)
    fabricante: Optional[str] = Field(None, max_length=120)
    numero_serie: Optional[str] = Field(None, max_length=120)
    status: Optional[StatusEquipamentoEnum] = None
    localizacao: Optional[str] = None
    data_instalacao: Optional[date] = None
    garantia_ate: Optional[date] = None
    capacidade: Optional[float] = Field(None, ge=0)
    tensao: Optional[float] = None
    corrente: Optional[float] = None
    cliente_id: Optional[uuid.UUID] = None
    observacoes: Optional[str] = None

class Equipamento(EquipamentoBase):
    id: uuid.UUID
    qr_code_data: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    cliente: Optional[ClienteSimple] = None

    model_config = ConfigDict(from_attributes=True)
