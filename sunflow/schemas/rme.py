import re
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime, date, time
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .enums import (
    RMEStatusEnum, RMEStatusAprovacaoEnum, TurnoEnum, TipoServicoRMEEnum, CategoriaChecklistEnum,
)
from .tecnico import TecnicoSimple

# ===============================================================
# Materiais usados no atendimento
# ===============================================================
class MaterialUtilizado(BaseModel):
    insumo_id: Optional[uuid.UUID] = Field(None, description="Quando informado, a aprovação baixa o estoque")
    nome: str = Field(..., min_length=1)
    quantidade: Decimal = Field(..., gt=0)
    unidade: Optional[str] = None

# ===============================================================
# Assinaturas da equipe
# ===============================================================
class AssinaturaRME(BaseModel):
    nome: str = Field(..., min_length=1)
    at: datetime

class AssinaturasRME(BaseModel):
    responsavel: Optional[AssinaturaRME] = None
    gerente_manutencao: Optional[AssinaturaRME] = None
    gerente_projeto: Optional[AssinaturaRME] = None

# ===============================================================
# Checklist
# ===============================================================
class RMEChecklistItem(BaseModel):
    id: uuid.UUID
    categoria: CategoriaChecklistEnum
    item_key: str
    label: str
    checked: bool

    model_config = ConfigDict(from_attributes=True)

class RMEChecklistItemUpdate(BaseModel):
    checked: bool

class RMEChecklistMarcacao(BaseModel):
    id: uuid.UUID
    checked: bool

class RMEChecklistLote(BaseModel):
    itens: List[RMEChecklistMarcacao] = Field(default_factory=list)
    categorias: List[CategoriaChecklistEnum] = Field(
        default_factory=list, description="Marca todos os itens das categorias informadas"
    )

# ===============================================================
# Schemas de RME
# ===============================================================
def _lista_sem_repeticao(valores: Any) -> Any:
    if valores is not None and not isinstance(valores, (list, tuple)):
        return valores
    vistos: List[Any] = []
    for valor in valores or []:
        if isinstance(valor, str):
            valor = re.sub(r"\s+", " ", valor).strip()
        if valor and valor not in vistos:
            vistos.append(valor)
    return vistos

class RMEBase(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    equipamento_id: Optional[uuid.UUID] = None
    data_execucao: date
    dia_semana: Optional[str] = Field(None, max_length=20, description="Padrão: derivado da data de execução")
    nome_usina: Optional[str] = Field(None, max_length=255, description="Padrão: empresa do cliente do ticket")
    colaboracao: List[str] = Field(default_factory=list, description="Nomes de quem acompanhou o atendimento")
    numero_micro: Optional[str] = Field(None, max_length=50)
    numero_inversor: Optional[str] = Field(None, max_length=50)
    tipo_servico: List[TipoServicoRMEEnum] = Field(default_factory=list)
    turno: Optional[TurnoEnum] = None
    hora_inicio: Optional[time] = Field(None, description="Padrão: horário da OS")
    hora_fim: Optional[time] = Field(None, description="Padrão: horário da OS")
    imagens_postadas: bool = False
    qtd_modulos_limpos: int = Field(0, ge=0)
    qtd_string_box: int = Field(0, ge=0)
    condicoes_encontradas: Optional[str] = None
    servicos_executados: str = Field(..., min_length=1)
    testes_realizados: Optional[str] = None
    observacoes_tecnicas: Optional[str] = None
    materiais_utilizados: List[MaterialUtilizado] = Field(default_factory=list)
    medicoes_eletricas: Dict[str, Any] = Field(default_factory=dict)
    assinatura_tecnico: Optional[str] = None
    assinatura_cliente: Optional[str] = None
    nome_cliente_assinatura: Optional[str] = None
    assinaturas: AssinaturasRME = Field(default_factory=AssinaturasRME)
    status: RMEStatusEnum = RMEStatusEnum.RASCUNHO

    @field_validator("colaboracao", "tipo_servico", mode="before")
    @classmethod
    def sem_repeticao(cls, v):
        return _lista_sem_repeticao(v)

    @field_validator("assinaturas", mode="before")
    @classmethod
    def assinaturas_vazias(cls, v):
        return v or {}

class RMECreate(RMEBase):
    ticket_id: uuid.UUID
    ordem_servico_id: uuid.UUID
    tecnico_id: Optional[uuid.UUID] = Field(None, description="Padrão: técnico da OS")

class RMEUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    equipamento_id: Optional[uuid.UUID] = None
    data_execucao: Optional[date] = None
    dia_semana: Optional[str] = Field(None, max_length=20)
    nome_usina: Optional[str] = Field(None, max_length=255)
    colaboracao: Optional[List[str]] = None
    numero_micro: Optional[str] = Field(None, max_length=50)
    numero_inversor: Optional[str] = Field(None, max_length=50)
    tipo_servico: Optional[List[TipoServicoRMEEnum]] = None
    turno: Optional[TurnoEnum] = None
    hora_inicio: Optional[time] = None
    hora_fim: Optional[time] = None
    imagens_postadas: Optional[bool] = None
    qtd_modulos_limpos: Optional[int] = Field(None, ge=0)
    qtd_string_box: Optional[int] = Field(None, ge=0)
    condicoes_encontradas: Optional[str] = None
    servicos_executados: Optional[str] = Field(None, min_length=1)
    testes_realizados: Optional[str] = None
    observacoes_tecnicas: Optional[str] = None
    materiais_utilizados: Optional[List[MaterialUtilizado]] = None
    medicoes_eletricas: Optional[Dict[str, Any]] = None
    assinatura_tecnico: Optional[str] = None
    assinatura_cliente: Optional[str] = None
    nome_cliente_assinatura: Optional[str] = None
    assinaturas: Optional[AssinaturasRME] = None
    status: Optional[RMEStatusEnum] = None

    @field_validator("colaboracao", "tipo_servico", mode="before")
    @classmethod
    def sem_repeticao(cls, v):
        return None if v is None else _lista_sem_repeticao(v)

class RMEAprovar(BaseModel):
    observacoes: Optional[str] = None

class RMERejeitar(BaseModel):
    motivo: str

    @field_validator("motivo")
    @classmethod
    def motivo_nao_vazio(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("O motivo da rejeição é obrigatório.")
        return v.strip()

class RME(RMEBase):
    id: uuid.UUID
    ticket_id: uuid.UUID
    ordem_servico_id: uuid.UUID
    tecnico_id: Optional[uuid.UUID] = None
    data_preenchimento: datetime
    fotos_antes: List[str] = Field(default_factory=list)
    fotos_depois: List[str] = Field(default_factory=list)
    anexos_tecnicos: List[str] = Field(default_factory=list)
    status_aprovacao: RMEStatusAprovacaoEnum
    aprovado_por: Optional[uuid.UUID] = None
    data_aprovacao: Optional[datetime] = None
    observacoes_aprovacao: Optional[str] = None
    pdf_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    tecnico: Optional[TecnicoSimple] = None
    checklist_items: List[RMEChecklistItem] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
