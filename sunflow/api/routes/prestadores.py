import logging
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_PRESTADORES, PERM_GERENCIAR_PRESTADORES
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.enums import CategoriaPrestadorEnum
from sunflow.schemas.prestador import Prestador, PrestadorCreate, PrestadorUpdate
from sunflow.services.prestador import prestador_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/",
             response_model=Prestador,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
             summary="Criar prestador")
def create_prestador(
    *,
    db: Session = Depends(deps.get_db),
    prestador_in: PrestadorCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.info(f"Usuário '{current_user.nome_usuario}' criando o prestador '{prestador_in.nome}'.")
    try:
        prestador = prestador_service.create(db=db, obj_in=prestador_in)
        db.commit()
        db.refresh(prestador)
        return prestador
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando o prestador '{prestador_in.nome}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o prestador.")


@router.get("/",
            response_model=List[Prestador],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_PRESTADORES]))],
            summary="Listar prestadores")
def read_prestadores(
    db: Session = Depends(deps.get_db),
    categoria: Optional[CategoriaPrestadorEnum] = Query(None),
    ativo: Optional[bool] = Query(None),
    busca: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    return prestador_service.get_multi_filtered(
        db, categoria=categoria.value if categoria else None, ativo=ativo, busca=busca, skip=skip, limit=limit
    )


@router.get("/{prestador_id}",
            response_model=Prestador,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_PRESTADORES]))],
            summary="Obter prestador por ID")
def read_prestador_by_id(prestador_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return prestador_service.get_or_404(db, id=prestador_id)


@router.put("/{prestador_id}",
            response_model=Prestador,
            dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
            summary="Atualizar prestador")
def update_prestador(
    *,
    db: Session = Depends(deps.get_db),
    prestador_id: PyUUID,
    prestador_in: PrestadorUpdate,
) -> Any:
    prestador = prestador_service.get_or_404(db, id=prestador_id)
    try:
        prestador = prestador_service.update(db=db, db_obj=prestador, obj_in=prestador_in)
        db.commit()
        db.refresh(prestador)
        return prestador
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o prestador ID {prestador_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o prestador.")


@router.delete("/{prestador_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_PRESTADORES]))],
               summary="Excluir prestador")
def delete_prestador(
    *,
    db: Session = Depends(deps.get_db),
    prestador_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.warning(f"Usuário '{current_user.nome_usuario}' excluindo o prestador ID {prestador_id}.")
    try:
        prestador = prestador_service.remove(db=db, id=prestador_id)
        db.commit()
        return {"msg": f"Prestador '{prestador.nome}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o prestador ID {prestador_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o prestador.")
