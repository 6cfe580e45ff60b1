from typing import Generator, List, Optional, Set, Union
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, selectinload
import logging

from sunflow.core.config import settings
from sunflow.core import permissions as perms
from sunflow.core.security import user_has_permissions
from sunflow.core import security
from sunflow.db.session import SessionLocal

from sunflow.models.usuario import Usuario
from sunflow.models.papel import Papel
from sunflow.models.tecnico import Tecnico

from sunflow.services.usuario import usuario_service
from sunflow.services.tecnico import tecnico_service

logger = logging.getLogger(__name__)


# --- Dependência da sessão de banco de dados ---
def get_db() -> Generator[Session, None, None]:
    """Abre uma sessão por requisição."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# --- Dependência de autenticação ---
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login/access-token"
)

def get_current_user(
    db: Session = Depends(get_db), token: str = Depends(reusable_oauth2)
) -> Usuario:
    """Obtém o usuário atual a partir do token JWT."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não foi possível validar as credenciais",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token_data = security.decode_access_token(token)

    if not token_data or not token_data.sub:
        logger.warning("Token de acesso inválido ou expirado.")
        raise credentials_exception

    user = db.get(
        Usuario,
        token_data.sub,  # sub é o ID do usuário (UUID)
        options=[
            selectinload(Usuario.papel).options(
                selectinload(Papel.permissoes)
            )
        ]
    )

    if not user:
        logger.warning(f"Usuário não encontrado para o ID {token_data.sub} em token válido.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado.")

    if user.papel:
        logger.debug(
            f"get_current_user: '{user.nome_usuario}' (ID: {user.id}) com papel '{user.papel.nome}'. "
            f"Permissões: {{{', '.join(p.nome for p in user.papel.permissoes)}}}"
        )
    else:
        logger.warning(f"get_current_user: '{user.nome_usuario}' (ID: {user.id}) carregado sem papel!")

    return user

def get_current_active_user(
    current_user: Usuario = Depends(get_current_user),
) -> Usuario:
    """Obtém o usuário atual e verifica se está ativo."""
    if not usuario_service.is_active(current_user):
        logger.warning(f"Acesso negado: usuário inativo/bloqueado {current_user.nome_usuario} (ID: {current_user.id}).")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="O usuário está inativo ou bloqueado.")
    return current_user


class PermissionChecker:
    """
    Dependência do FastAPI que verifica permissões.
    O usuário precisa ter PELO MENOS UMA das permissões da lista (lógica OR).
    """
    def __init__(self, required_permissions: Union[str, List[str], Set[str]]):
        if isinstance(required_permissions, str):
            self.required_permissions_set = {required_permissions}
        else:
            self.required_permissions_set = set(required_permissions)

        if not self.required_permissions_set:
            logger.error("PermissionChecker inicializado com um conjunto de permissões vazio.")
            raise ValueError("O conjunto de permissões exigidas não pode ser vazio.")

    def __call__(self, request: Request, current_user: Usuario = Depends(get_current_active_user)):
        logger.debug(f"PermissionChecker: verificando '{current_user.nome_usuario}' em '{request.url.path}'. Exigidas (OR): {self.required_permissions_set}")

        if not current_user.papel:
            logger.error(f"Erro RBAC: usuário '{current_user.nome_usuario}' (ID: {current_user.id}) sem papel.")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Erro interno ao verificar permissões (configuração de papel/permissões).",
            )

        if not user_has_permissions(current_user, self.required_permissions_set):
            logger.warning(
                f"Acesso negado a '{current_user.nome_usuario}'. Papel: '{current_user.papel.nome}'. "
                f"Exigidas (uma de): {self.required_permissions_set}."
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Você não tem permissão para realizar esta ação."
            )

        logger.debug(f"PermissionChecker: acesso concedido a '{current_user.nome_usuario}'.")

def require_admin(current_user: Usuario = Depends(get_current_active_user)) -> Usuario:
    """
    Exige a permissão de administração geral do sistema.
    """
    if not user_has_permissions(current_user, {perms.PERM_ADMINISTRAR_SISTEMA}):
        logger.warning(
            f"Acesso negado: usuário '{current_user.nome_usuario}' "
            f"tentou acessar um recurso de administrador sem a permissão '{perms.PERM_ADMINISTRAR_SISTEMA}'."
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Você não tem as permissões de administrador necessárias para esta ação.",
        )
    return current_user


def is_tecnico_campo(user: Usuario) -> bool:
    return bool(user.papel and user.papel.nome == perms.TECNICO_CAMPO_ROLE_NAME)

def is_cliente(user: Usuario) -> bool:
    return bool(user.papel and user.papel.nome == perms.CLIENTE_ROLE_NAME)


def get_current_tecnico_optional(
    db: Session = Depends(get_db), current_user: Usuario = Depends(get_current_active_user)
) -> Optional[Tecnico]:
    """Técnico vinculado ao usuário atual, se existir."""
    return tecnico_service.get_by_usuario(db, usuario_id=current_user.id)

def get_current_tecnico(
    tecnico: Optional[Tecnico] = Depends(get_current_tecnico_optional),
    current_user: Usuario = Depends(get_current_active_user),
) -> Tecnico:
    if not tecnico:
        logger.warning(f"Usuário '{current_user.nome_usuario}' não possui técnico vinculado.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Nenhum técnico vinculado a este usuário.")
    return tecnico
