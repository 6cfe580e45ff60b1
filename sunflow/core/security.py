from datetime import datetime, timedelta, timezone
from typing import Any, Union, Optional, Set, List, TYPE_CHECKING

from jose import jwt, JWTError
from pydantic import ValidationError
import logging

from sunflow.core.config import settings
from sunflow.schemas.token import TokenPayload

if TYPE_CHECKING:
    from sunflow.models.usuario import Usuario

logger = logging.getLogger(__name__)

ALGORITHM = settings.ALGORITHM

def _create_token(
    subject: Union[str, Any], secret: str, minutes: int, expires_delta: Optional[timedelta], token_type: str
) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=minutes))
    to_encode = {"exp": expire, "sub": str(subject), "type": token_type}
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)

def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Cria um token de acesso JWT."""
    return _create_token(subject, settings.SECRET_KEY, settings.ACCESS_TOKEN_EXPIRE_MINUTES, expires_delta, "access")

def create_refresh_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Cria um token de renovação JWT."""
    return _create_token(subject, settings.REFRESH_TOKEN_SECRET_KEY, settings.REFRESH_TOKEN_EXPIRE_MINUTES, expires_delta, "refresh")

def _decode(token: str, secret: str, token_type: str) -> Optional[TokenPayload]:
    try:
        payload_dict = jwt.decode(token, secret, algorithms=[ALGORITHM])
        if payload_dict.get("type") != token_type:
            logger.warning(f"Token com tipo inesperado: '{payload_dict.get('type')}' (esperado '{token_type}').")
            return None
        return TokenPayload(**payload_dict)
    except (JWTError, ValidationError, KeyError) as e:
        logger.error(f"Erro decodificando token ({token_type}): {e}")
        return None

def decode_access_token(token: str) -> Optional[TokenPayload]:
    return _decode(token, settings.SECRET_KEY, "access")

def decode_refresh_token(token: str) -> Optional[TokenPayload]:
    return _decode(token, settings.REFRESH_TOKEN_SECRET_KEY, "refresh")


def user_has_permissions(user: "Usuario", required_permissions: Union[List[str], Set[str]]) -> bool:
    """
    Verifica se o usuário tem PELO MENOS UMA das permissões exigidas.
    """
    if not user or not user.papel or not user.papel.permissoes:
        logger.warning(f"user_has_permissions: usuário '{user.nome_usuario if user else 'desconhecido'}' sem papel ou permissões carregadas.")
        return False

    user_permissions = {p.nome for p in user.papel.permissoes}
    return not set(required_permissions).isdisjoint(user_permissions)
