import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core import security
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.token import Token, RefreshToken as RefreshTokenSchema
from sunflow.schemas.password import PasswordChange
from sunflow.schemas.usuario import UsuarioMe
from sunflow.services.usuario import usuario_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _par_de_tokens(user: UsuarioModel) -> dict:
    return {
        "access_token": security.create_access_token(subject=user.id),
        "refresh_token": security.create_refresh_token(subject=user.id),
        "token_type": "bearer",
    }


# --- Login ---
@router.post("/login/access-token", response_model=Token)
def login_access_token(
    request: Request,
    db: Session = Depends(deps.get_db),
    form_data: OAuth2PasswordRequestForm = Depends()
) -> Any:
    """
    Login com usuário e senha (formulário OAuth2). Devolve o token de acesso
    e o token de renovação.
    """
    ip_address = request.client.host if request.client else "N/A"
    username_attempt = form_data.username
    logger.info(f"Tentativa de login do usuário '{username_attempt}' a partir do IP {ip_address}")

    user = usuario_service.authenticate(
        db, username=username_attempt, password=form_data.password
    )

    if not user or not usuario_service.is_active(user):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário ou senha incorretos, ou usuário bloqueado.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        usuario_service.handle_successful_login(db, user=user)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Erro ao registrar o login de {user.nome_usuario}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Erro interno do servidor ao processar o login.")

    logger.info(f"Login bem-sucedido do usuário '{username_attempt}'.")
    return _par_de_tokens(user)


@router.post("/refresh-token", response_model=Token, summary="Renova o token de acesso")
def refresh_access_token(
    token_data: RefreshTokenSchema,
    db: Session = Depends(deps.get_db),
):
    """
    Troca um token de renovação válido por um novo par de tokens.
    """
    payload = security.decode_refresh_token(token_data.refresh_token)
    if not payload or not payload.sub:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token de renovação inválido ou expirado")

    user = usuario_service.get(db, id=payload.sub)
    if not user or not usuario_service.is_active(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Usuário não encontrado ou inativo")

    logger.debug(f"Token renovado para '{user.nome_usuario}'.")
    return _par_de_tokens(user)


@router.get("/me", response_model=UsuarioMe, summary="Usuário autenticado")
def read_me(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
):
    tecnico = deps.get_current_tecnico_optional(db=db, current_user=current_user)
    resposta = UsuarioMe.model_validate(current_user)
    resposta.permissoes = sorted(p.nome for p in current_user.papel.permissoes) if current_user.papel else []
    resposta.tecnico_id = tecnico.id if tecnico else None
    return resposta


@router.post(
    "/change-password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Troca a senha do usuário autenticado"
)
def change_password_logged_in(
    *,
    password_data: PasswordChange,
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user)
):
    """
    Informe a senha atual e a nova.
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' solicitou a troca da própria senha.")
    try:
        usuario_service.change_password(db=db, user=current_user, password_data=password_data)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(
            f"Erro ao trocar a senha de '{current_user.nome_usuario}'. Erro: {e}",
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Ocorreu um erro interno ao trocar a senha."
        )
    return None
