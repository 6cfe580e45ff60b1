import logging
from typing import Any, List
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from sunflow.api import deps
from sunflow.core.permissions import PERM_ADMINISTRAR_USUARIOS
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.usuario import Usuario, UsuarioCreate, UsuarioUpdate
from sunflow.services.usuario import usuario_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/",
    response_model=Usuario,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(deps.PermissionChecker(PERM_ADMINISTRAR_USUARIOS))],
    summary="Criar usuário",
    response_description="O usuário criado."
)
def create_usuario(
    *,
    db: Session = Depends(deps.get_db),
    user_in: UsuarioCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user)
) -> Any:
    """
    Cria um novo usuário.
    Exige a permissão: `administrar_usuarios`.
    """
    logger.info(f"Criação do usuário '{user_in.nome_usuario}' solicitada por '{current_user.nome_usuario}'")
    try:
        user = usuario_service.create(db=db, obj_in=user_in)
        db.commit()
        db.refresh(user)
        logger.info(f"Usuário '{user.nome_usuario}' (ID: {user.id}) criado por '{current_user.nome_usuario}'.")
        return user
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando usuário '{user_in.nome_usuario}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o usuário.")


@router.get(
    "/",
    response_model=List[Usuario],
    dependencies=[Depends(deps.PermissionChecker(PERM_ADMINISTRAR_USUARIOS))],
    summary="Listar usuários",
)
def read_usuarios(
    db: Session = Depends(deps.get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
) -> Any:
    return usuario_service.get_multi(db, skip=skip, limit=limit)


@router.get(
    "/{user_id}",
    response_model=Usuario,
    dependencies=[Depends(deps.PermissionChecker(PERM_ADMINISTRAR_USUARIOS))],
    summary="Obter usuário por ID",
)
def read_usuario_by_id(
    user_id: PyUUID,
    db: Session = Depends(deps.get_db),
) -> Any:
    return usuario_service.get_or_404(db=db, id=user_id)


@router.put(
    "/{user_id}",
    response_model=Usuario,
    dependencies=[Depends(deps.PermissionChecker(PERM_ADMINISTRAR_USUARIOS))],
    summary="Atualizar usuário",
)
def update_usuario(
    *,
    db: Session = Depends(deps.get_db),
    user_id: PyUUID,
    user_in: UsuarioUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Atualiza um usuário. Um administrador não altera o próprio papel nem o
    próprio bloqueio por esta rota.
    """
    logger.info(f"'{current_user.nome_usuario}' atualizando o usuário ID: {user_id}")
    user_to_update = usuario_service.get_or_404(db, id=user_id)

    if user_to_update.id == current_user.id:
        update_data = user_in.model_dump(exclude_unset=True)
        if "papel_id" in update_data or "bloqueado" in update_data or "ativo" in update_data:
            logger.warning(f"'{current_user.nome_usuario}' tentou alterar o próprio papel/bloqueio. Negado.")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você não pode alterar o próprio papel ou bloqueio por esta rota.")

    try:
        updated_user = usuario_service.update(db=db, db_obj=user_to_update, obj_in=user_in)
        db.commit()
        db.refresh(updated_user)
        logger.info(f"Usuário '{updated_user.nome_usuario}' (ID: {user_id}) atualizado por '{current_user.nome_usuario}'.")
        return updated_user
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o usuário ID {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o usuário.")


@router.delete(
    "/{user_id}",
    response_model=Msg,
    dependencies=[Depends(deps.PermissionChecker(PERM_ADMINISTRAR_USUARIOS))],
    summary="Excluir usuário",
)
def delete_usuario(
    *,
    db: Session = Depends(deps.get_db),
    user_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Exclui um usuário. Ninguém exclui a própria conta.
    """
    logger.warning(f"'{current_user.nome_usuario}' solicitou a exclusão do usuário ID: {user_id}.")

    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você não pode excluir a própria conta.")

    try:
        user_to_delete = usuario_service.remove(db=db, id=user_id)
        db.commit()
        logger.info(f"Usuário '{user_to_delete.nome_usuario}' (ID: {user_id}) excluído por '{current_user.nome_usuario}'.")
        return {"msg": f"Usuário '{user_to_delete.nome_usuario}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        logger.error(f"Erro de integridade ao excluir o usuário ID: {user_id}. Provavelmente possui registros vinculados.")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Não é possível excluir o usuário porque ele possui registros vinculados."
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o usuário ID {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o usuário.")
