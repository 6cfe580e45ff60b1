import logging
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_EQUIPAMENTOS, PERM_GERENCIAR_EQUIPAMENTOS
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.enums import TipoEquipamentoEnum, StatusEquipamentoEnum
from sunflow.schemas.equipamento import Equipamento, EquipamentoCreate, EquipamentoUpdate
from sunflow.services.equipamento import equipamento_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/",
             response_model=Equipamento,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_EQUIPAMENTOS]))],
             summary="Criar equipamento")
def create_equipamento(
    *,
    db: Session = Depends(deps.get_db),
    equipamento_in: EquipamentoCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Cadastra um equipamento. O número de série é único e gera o conteúdo do
    QR code (`EQ-{numero_serie}`).
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' criando o equipamento '{equipamento_in.nome}'.")
    try:
        equipamento = equipamento_service.create(db=db, obj_in=equipamento_in)
        db.commit()
        db.refresh(equipamento)
        return equipamento
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando o equipamento '{equipamento_in.nome}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o equipamento.")


@router.get("/",
            response_model=List[Equipamento],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_EQUIPAMENTOS]))],
            summary="Listar equipamentos")
def read_equipamentos(
    db: Session = Depends(deps.get_db),
    cliente_id: Optional[PyUUID] = Query(None),
    tipo: Optional[TipoEquipamentoEnum] = Query(None),
    status_equipamento: Optional[StatusEquipamentoEnum] = Query(None, alias="status"),
    busca: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    return equipamento_service.get_multi_filtered(
        db,
        cliente_id=cliente_id,
        tipo=tipo.value if tipo else None,
        status_equipamento=status_equipamento.value if status_equipamento else None,
        busca=busca,
        skip=skip,
        limit=limit,
    )


@router.get("/{equipamento_id}",
            response_model=Equipamento,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_EQUIPAMENTOS]))],
            summary="Obter equipamento por ID")
def read_equipamento_by_id(equipamento_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return equipamento_service.get_or_404(db, id=equipamento_id)


@router.put("/{equipamento_id}",
            response_model=Equipamento,
            dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_EQUIPAMENTOS]))],
            summary="Atualizar equipamento")
def update_equipamento(
    *,
    db: Session = Depends(deps.get_db),
    equipamento_id: PyUUID,
    equipamento_in: EquipamentoUpdate,
) -> Any:
    equipamento = equipamento_service.get_or_404(db, id=equipamento_id)
    try:
        equipamento = equipamento_service.update(db=db, db_obj=equipamento, obj_in=equipamento_in)
        db.commit()
        db.refresh(equipamento)
        return equipamento
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o equipamento ID {equipamento_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o equipamento.")


@router.delete("/{equipamento_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_EQUIPAMENTOS]))],
               summary="Excluir equipamento")
def delete_equipamento(
    *,
    db: Session = Depends(deps.get_db),
    equipamento_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.warning(f"Usuário '{current_user.nome_usuario}' excluindo o equipamento ID {equipamento_id}.")
    try:
        equipamento = equipamento_service.remove(db=db, id=equipamento_id)
        db.commit()
        return {"msg": f"Equipamento '{equipamento.nome}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o equipamento ID {equipamento_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o equipamento.")
