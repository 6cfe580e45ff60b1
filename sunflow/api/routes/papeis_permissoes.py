import logging
from typing import Any, List
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_ADMINISTRAR_PAPEIS, PERM_ADMINISTRAR_USUARIOS
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.papel import Papel, PapelCreate, PapelUpdate
from sunflow.schemas.permissao import Permissao as PermissaoSchema
from sunflow.services.papel import papel_service
from sunflow.services.permissao import permissao_service

logger = logging.getLogger(__name__)
router = APIRouter()

# ==============================================================================
# Papéis
# ==============================================================================

@router.post("/papeis/",
             response_model=Papel,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_ADMINISTRAR_PAPEIS]))],
             summary="Criar papel")
def create_papel(
    *,
    db: Session = Depends(deps.get_db),
    papel_in: PapelCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Cria um papel e, opcionalmente, atribui as permissões iniciais.
    """
    logger.info(f"Criação do papel '{papel_in.nome}' solicitada por {current_user.nome_usuario}")
    try:
        papel = papel_service.create(db=db, obj_in=papel_in)
        db.commit()
        db.refresh(papel)
        logger.info(f"Papel '{papel.nome}' (ID: {papel.id}) criado por {current_user.nome_usuario}.")
        return papel
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando o papel '{papel_in.nome}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o papel.")


@router.get("/papeis/",
            response_model=List[Papel],
            dependencies=[Depends(deps.PermissionChecker([PERM_ADMINISTRAR_PAPEIS, PERM_ADMINISTRAR_USUARIOS]))],
            summary="Listar papéis")
def read_papeis(
    db: Session = Depends(deps.get_db),
    skip: int = 0,
    limit: int = 100,
) -> Any:
    return papel_service.get_multi(db, skip=skip, limit=limit)


@router.get("/papeis/{papel_id}",
            response_model=Papel,
            dependencies=[Depends(deps.PermissionChecker([PERM_ADMINISTRAR_PAPEIS, PERM_ADMINISTRAR_USUARIOS]))],
            summary="Obter papel por ID")
def read_papel_by_id(
    papel_id: PyUUID,
    db: Session = Depends(deps.get_db),
) -> Any:
    return papel_service.get_or_404(db, id=papel_id)


@router.put("/papeis/{papel_id}",
            response_model=Papel,
            dependencies=[Depends(deps.PermissionChecker([PERM_ADMINISTRAR_PAPEIS]))],
            summary="Atualizar papel")
def update_papel(
    *,
    db: Session = Depends(deps.get_db),
    papel_id: PyUUID,
    papel_in: PapelUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Atualiza nome/descrição; `permissao_ids` substitui a lista completa de permissões.
    """
    logger.info(f"Atualização do papel ID {papel_id} solicitada por {current_user.nome_usuario}")
    papel = papel_service.get_or_404(db, id=papel_id)
    try:
        papel = papel_service.update(db=db, db_obj=papel, obj_in=papel_in)
        db.commit()
        db.refresh(papel)
        return papel
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o papel ID {papel_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o papel.")


@router.delete("/papeis/{papel_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_ADMINISTRAR_PAPEIS]))],
               summary="Excluir papel")
def delete_papel(
    *,
    db: Session = Depends(deps.get_db),
    papel_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """Só exclui papéis sem usuários."""
    logger.warning(f"Exclusão do papel ID {papel_id} solicitada por {current_user.nome_usuario}")
    try:
        papel = papel_service.remove(db=db, id=papel_id)
        db.commit()
        return {"msg": f"Papel '{papel.nome}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o papel ID {papel_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o papel.")

# ==============================================================================
# Permissões
# ==============================================================================

@router.get("/permissoes/",
            response_model=List[PermissaoSchema],
            dependencies=[Depends(deps.PermissionChecker([PERM_ADMINISTRAR_PAPEIS, PERM_ADMINISTRAR_USUARIOS]))],
            summary="Listar permissões")
def read_permissoes(db: Session = Depends(deps.get_db)) -> Any:
    return permissao_service.get_all_ordered(db)
