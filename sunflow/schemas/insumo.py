import uuid
from typing import Optional
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict, computed_field

from .enums import TipoMovimentacaoEnum, NivelEstoqueEnum
from .usuario import UsuarioSimple


def calcular_nivel_estoque(quantidade: Decimal, estoque_minimo: Decimal, estoque_critico: Decimal) -> NivelEstoqueEnum:
    """crítico <= estoque_critico, baixo <= estoque_minimo, senão normal."""
    if quantidade <= estoque_critico:
        return NivelEstoqueEnum.CRITICO
    if quantidade <= estoque_minimo:
        return NivelEstoqueEnum.BAIXO
    return NivelEstoqueEnum.NORMAL


class InsumoBase(BaseModel):
    nome: str = Field(..., min_length=1, max_length=255)
    categoria: Optional[str] = Field(None, max_length=100)
    unidade: str = Field("un", max_length=20)
    estoque_minimo: Decimal = Field(Decimal("0"), ge=0)
    estoque_critico: Decimal = Field(Decimal("0"), ge=0)
    preco: Optional[Decimal] = Field(None, ge=0)
    fornecedor: Optional[str] = Field(None, max_length=255)
    localizacao: Optional[str] = None

class InsumoCreate(InsumoBase):
    quantidade: Decimal = Field(Decimal("0"), ge=0, description="Saldo inicial")

class InsumoUpdate(BaseModel):
    """O saldo só muda através de movimentações."""
    nome: Optional[str] = Field(None, min_length=1, max_length=255)
    categoria: Optional[str] = Field(None, max_length=100)
    unidade: Optional[str] = Field(None, max_length=20)
    estoque_minimo: Optional[Decimal] = Field(None, ge=0)
    estoque_critico: Optional[Decimal] = Field(None, ge=0)
    preco: Optional[Decimal] = Field(None, ge=0)
    fornecedor: Optional[str] = Field(None, max_length=255)
    localizacao: Optional[str] = None

class Insumo(InsumoBase):
    id: uuid.UUID
    quantidade: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def nivel_estoque(self) -> NivelEstoqueEnum:
        return calcular_nivel_estoque(self.quantidade, self.estoque_minimo, self.estoque_critico)


class MovimentacaoCreate(BaseModel):
    tipo: TipoMovimentacaoEnum
    quantidade: Decimal = Field(..., ge=0, description="Para 'ajuste', é o novo saldo")
    motivo: Optional[str] = None

class Movimentacao(BaseModel):
    id: uuid.UUID
    insumo_id: uuid.UUID
    tipo: TipoMovimentacaoEnum
    quantidade: Decimal
    saldo_resultante: Decimal
    motivo: Optional[str] = None
    rme_id: Optional[uuid.UUID] = None
    data_movimentacao: datetime
    responsavel: Optional[UsuarioSimple] = None

    model_config = ConfigDict(from_attributes=True)
