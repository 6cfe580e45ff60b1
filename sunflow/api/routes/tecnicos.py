import logging
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_PRESTADORES, PERM_GERENCIAR_PRESTADORES, PERM_VER_OS
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.tecnico import Tecnico, TecnicoCreate, TecnicoUpdate, TecnicoEmailUpdate
from sunflow.services.tecnico import tecnico_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/",
             response_model=Tecnico,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
             summary="Criar técnico")
def create_tecnico(
    *,
    db: Session = Depends(deps.get_db),
    tecnico_in: TecnicoCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Cadastra um técnico de campo. O vínculo com usuário permite que ele veja
    as próprias OS; o e-mail recebe os convites de agenda.
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' criando o técnico '{tecnico_in.nome}'.")
    try:
        tecnico = tecnico_service.create(db=db, obj_in=tecnico_in)
        db.commit()
        db.refresh(tecnico)
        return tecnico
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando o técnico '{tecnico_in.nome}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o técnico.")


@router.get("/",
            response_model=List[Tecnico],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_PRESTADORES, PERM_VER_OS]))],
            summary="Listar técnicos")
def read_tecnicos(
    db: Session = Depends(deps.get_db),
    ativo: Optional[bool] = Query(None),
    prestador_id: Optional[PyUUID] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    return tecnico_service.get_multi_filtered(db, ativo=ativo, prestador_id=prestador_id, skip=skip, limit=limit)


@router.get("/{tecnico_id}",
            response_model=Tecnico,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_PRESTADORES, PERM_VER_OS]))],
            summary="Obter técnico por ID")
def read_tecnico_by_id(tecnico_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return tecnico_service.get_or_404(db, id=tecnico_id)


@router.put("/{tecnico_id}",
            response_model=Tecnico,
            dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
            summary="Atualizar técnico")
def update_tecnico(
    *,
    db: Session = Depends(deps.get_db),
    tecnico_id: PyUUID,
    tecnico_in: TecnicoUpdate,
) -> Any:
    tecnico = tecnico_service.get_or_404(db, id=tecnico_id)
    try:
        tecnico = tecnico_service.update(db=db, db_obj=tecnico, obj_in=tecnico_in)
        db.commit()
        db.refresh(tecnico)
        return tecnico
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o técnico ID {tecnico_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o técnico.")


@router.put("/{tecnico_id}/email",
            response_model=Tecnico,
            dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
            summary="Atualizar o e-mail de convites do técnico")
def update_tecnico_email(
    *,
    db: Session = Depends(deps.get_db),
    tecnico_id: PyUUID,
    email_in: TecnicoEmailUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.info(f"Usuário '{current_user.nome_usuario}' alterando o e-mail do técnico ID {tecnico_id}.")
    tecnico = tecnico_service.get_or_404(db, id=tecnico_id)
    try:
        tecnico = tecnico_service.update_email(db, db_obj=tecnico, email=email_in.email)
        db.commit()
        db.refresh(tecnico)
        return tecnico
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado alterando o e-mail do técnico ID {tecnico_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o técnico.")


@router.delete("/{tecnico_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
               summary="Excluir técnico")
def delete_tecnico(
    *,
    db: Session = Depends(deps.get_db),
    tecnico_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.warning(f"Usuário '{current_user.nome_usuario}' excluindo o técnico ID {tecnico_id}.")
    try:
        tecnico = tecnico_service.remove(db=db, id=tecnico_id)
        db.commit()
        return {"msg": f"Técnico '{tecnico.nome}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o técnico ID {tecnico_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o técnico.")
