import uuid
from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, ConfigDict

# ===============================================================
# Schemas de Cliente
# ===============================================================
class ClienteBase(BaseModel):
    empresa: str = Field(..., min_length=1, max_length=255, description="Razão social ou nome do cliente")
    cnpj_cpf: str = Field(..., min_length=11, max_length=18, description="CNPJ ou CPF (com ou sem máscara)")
    endereco: Optional[str] = None
    cidade: Optional[str] = Field(None, max_length=120)
    estado: Optional[str] = Field(None, max_length=2, description="UF")
    cep: Optional[str] = Field(None, max_length=9)
    telefone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    usuario_id: Optional[uuid.UUID] = Field(None, description="Usuário do portal vinculado ao cliente")
    observacoes: Optional[str] = None

class ClienteCreate(ClienteBase):
    pass

class ClienteUpdate(BaseModel):
    empresa: Optional[str] = Field(None, min_length=1, max_length=255)
    cnpj_cpf: Optional[str] = Field(None, min_length=11, max_length=18)
    endereco: Optional[str] = None
    cidade: Optional[str] = Field(None, max_length=120)
    estado: Optional[str] = Field(None, max_length=2)
    cep: Optional[str] = Field(None, max_length=9)
    telefone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    usuario_id: Optional[uuid.UUID] = None
    observacoes: Optional[str] = None

class Cliente(ClienteBase):
    id: uuid.UUID
    email: Optional[str] = None
    geocoded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ClienteSimple(BaseModel):
    id: uuid.UUID
    empresa: str
    cnpj_cpf: str
    cidade: Optional[str] = None
    estado: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# ===============================================================
# Validação e importação
# ===============================================================
class ResultadoValidacao(BaseModel):
    """Resultado da validação de um cliente. Erros bloqueiam, avisos não."""
    valido: bool
    erros: List[str] = Field(default_factory=list)
    avisos: List[str] = Field(default_factory=list)
    dados_normalizados: Optional[dict] = None

class LinhaImportacao(BaseModel):
    linha: int
    empresa: Optional[str] = None
    cnpj_cpf: Optional[str] = None
    erros: List[str] = Field(default_factory=list)
    avisos: List[str] = Field(default_factory=list)

class RelatorioImportacao(BaseModel):
    """Relatório da importação de clientes via planilha."""
    total_linhas: int
    validos: int
    invalidos: int
    duplicados: int
    criados: int = 0
    dry_run: bool = False
    linhas_validas: List[LinhaImportacao] = Field(default_factory=list)
    linhas_invalidas: List[LinhaImportacao] = Field(default_factory=list)
    linhas_duplicadas: List[LinhaImportacao] = Field(default_factory=list)
