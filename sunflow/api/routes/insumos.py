import logging
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_INSUMOS, PERM_GERENCIAR_INSUMOS
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.insumo import Insumo, InsumoCreate, InsumoUpdate, Movimentacao, MovimentacaoCreate
from sunflow.services.insumo import insumo_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/alertas",
            response_model=List[Insumo],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_INSUMOS]))],
            summary="Insumos com estoque baixo ou crítico")
def read_alertas_estoque(db: Session = Depends(deps.get_db)) -> Any:
    return insumo_service.get_alertas(db)


@router.post("/",
             response_model=Insumo,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_INSUMOS]))],
             summary="Criar insumo")
def create_insumo(
    *,
    db: Session = Depends(deps.get_db),
    insumo_in: InsumoCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.info(f"Usuário '{current_user.nome_usuario}' criando o insumo '{insumo_in.nome}'.")
    try:
        insumo = insumo_service.create(db=db, obj_in=insumo_in)
        db.commit()
        db.refresh(insumo)
        return insumo
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando o insumo '{insumo_in.nome}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o insumo.")


@router.get("/",
            response_model=List[Insumo],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_INSUMOS]))],
            summary="Listar insumos")
def read_insumos(
    db: Session = Depends(deps.get_db),
    categoria: Optional[str] = Query(None),
    busca: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    return insumo_service.get_multi_filtered(db, categoria=categoria, busca=busca, skip=skip, limit=limit)


@router.get("/{insumo_id}",
            response_model=Insumo,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_INSUMOS]))],
            summary="Obter insumo por ID")
def read_insumo_by_id(insumo_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return insumo_service.get_or_404(db, id=insumo_id)


@router.put("/{insumo_id}",
            response_model=Insumo,
            dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_INSUMOS]))],
            summary="Atualizar insumo")
def update_insumo(
    *,
    db: Session = Depends(deps.get_db),
    insumo_id: PyUUID,
    insumo_in: InsumoUpdate,
) -> Any:
    """O saldo não é alterado aqui; use as movimentações."""
    insumo = insumo_service.get_or_404(db, id=insumo_id)
    try:
        insumo = insumo_service.update(db=db, db_obj=insumo, obj_in=insumo_in)
        db.commit()
        db.refresh(insumo)
        return insumo
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o insumo ID {insumo_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o insumo.")


@router.delete("/{insumo_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_INSUMOS]))],
               summary="Excluir insumo")
def delete_insumo(
    *,
    db: Session = Depends(deps.get_db),
    insumo_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.warning(f"Usuário '{current_user.nome_usuario}' excluindo o insumo ID {insumo_id}.")
    try:
        insumo = insumo_service.remove(db=db, id=insumo_id)
        db.commit()
        return {"msg": f"Insumo '{insumo.nome}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o insumo ID {insumo_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o insumo.")

# ==============================================================================
# Movimentações
# ==============================================================================

@router.post("/{insumo_id}/movimentacoes",
             response_model=Movimentacao,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_INSUMOS]))],
             summary="Registrar movimentação de estoque")
def create_movimentacao(
    *,
    db: Session = Depends(deps.get_db),
    insumo_id: PyUUID,
    movimentacao_in: MovimentacaoCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    `entrada` soma, `saida` subtrai (saldo insuficiente gera 409) e `ajuste`
    define o novo saldo.
    """
    insumo = insumo_service.get_or_404(db, id=insumo_id)
    logger.info(f"Usuário '{current_user.nome_usuario}' registrando '{movimentacao_in.tipo.value}' em '{insumo.nome}'.")
    try:
        movimentacao = insumo_service.movimentar(db, insumo=insumo, obj_in=movimentacao_in, responsavel_id=current_user.id)
        db.commit()
        db.refresh(movimentacao)
        return movimentacao
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado na movimentação do insumo ID {insumo_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao registrar a movimentação.")


@router.get("/{insumo_id}/movimentacoes",
            response_model=List[Movimentacao],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_INSUMOS]))],
            summary="Histórico de movimentações do insumo")
def read_movimentacoes(
    insumo_id: PyUUID,
    db: Session = Depends(deps.get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    insumo_service.get_or_404(db, id=insumo_id)
    return insumo_service.get_movimentacoes(db, insumo_id=insumo_id, skip=skip, limit=limit)
