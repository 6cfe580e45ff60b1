import uuid
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime
from typing import Optional, List

from .papel import PapelSimple

# ===============================================================
# Schemas de Usuario
# ===============================================================
class UsuarioBase(BaseModel):
    """Campos comuns de um usuário."""
    nome_usuario: str = Field(..., min_length=3, max_length=50, description="Nome de usuário único")
    email: Optional[EmailStr] = Field(None, description="Email do usuário")
    nome_completo: Optional[str] = Field(None, max_length=200)
    telefone: Optional[str] = Field(None, max_length=30)

class UsuarioCreate(UsuarioBase):
    """Cria um usuário. Exige senha e papel."""
    password: str = Field(..., min_length=8, description="Senha do novo usuário")
    papel_id: uuid.UUID = Field(..., description="ID do papel atribuído")

class UsuarioUpdate(BaseModel):
    """
    Atualização parcial de um usuário.
    """
    nome_usuario: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    nome_completo: Optional[str] = Field(None, max_length=200)
    telefone: Optional[str] = Field(None, max_length=30)
    password: Optional[str] = Field(None, min_length=8, description="Informe apenas para trocar a senha")
    papel_id: Optional[uuid.UUID] = None
    ativo: Optional[bool] = None
    bloqueado: Optional[bool] = None
    requer_troca_senha: Optional[bool] = None

class Usuario(UsuarioBase):
    """
    Resposta da API. Nunca expõe a senha; inclui o papel aninhado.
    """
    id: uuid.UUID
    papel_id: uuid.UUID
    ativo: bool
    bloqueado: bool
    ultimo_login: Optional[datetime] = None
    requer_troca_senha: bool
    created_at: datetime
    updated_at: datetime
    papel: PapelSimple

    model_config = ConfigDict(from_attributes=True)

class UsuarioMe(Usuario):
    """Usuário atual com a lista de permissões efetivas e o técnico vinculado."""
    permissoes: List[str] = Field(default_factory=list)
    tecnico_id: Optional[uuid.UUID] = None

class UsuarioSimple(BaseModel):
    """Versão reduzida, usada para autoria de registros."""
    id: uuid.UUID
    nome_usuario: str
    nome_completo: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
