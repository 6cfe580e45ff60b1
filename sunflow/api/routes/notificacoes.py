import logging
from typing import Any, List
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.notificacao import Notificacao, NotificacaoUpdate, ContagemNaoLidas
from sunflow.services.notificacao import notificacao_service

logger = logging.getLogger(__name__)
router = APIRouter()

# Cada usuário só enxerga as próprias notificações; não há permissão de papel envolvida.

@router.get("/",
            response_model=List[Notificacao],
            summary="Listar notificações do usuário atual")
def read_notificacoes(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    somente_nao_lidas: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> Any:
    return notificacao_service.get_multi_by_user(
        db, usuario_id=current_user.id, somente_nao_lidas=somente_nao_lidas, skip=skip, limit=limit
    )


@router.get("/nao-lidas/contagem",
            response_model=ContagemNaoLidas,
            summary="Contar notificações não lidas")
def count_notificacoes_nao_lidas(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    return {"nao_lidas": notificacao_service.get_unread_count_by_user(db, usuario_id=current_user.id)}


@router.post("/marcar-todas-lidas",
             response_model=Msg,
             summary="Marcar todas as notificações como lidas")
def mark_all_notificacoes_as_read(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    try:
        affected_rows = notificacao_service.mark_all_as_read_for_user(db, usuario_id=current_user.id)
        if affected_rows > 0:
            db.commit()
        return {"msg": f"{affected_rows} notificação(ões) marcada(s) como lida(s)."}
    except Exception as e:
        db.rollback()
        logger.error(f"Erro marcando notificações de '{current_user.nome_usuario}' como lidas: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno ao marcar as notificações.")


@router.put("/{notificacao_id}",
            response_model=Notificacao,
            summary="Marcar uma notificação como lida ou não lida")
def mark_notificacao(
    *,
    db: Session = Depends(deps.get_db),
    notificacao_id: PyUUID,
    notificacao_in: NotificacaoUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    notificacao = notificacao_service.get(db, id=notificacao_id)
    if not notificacao or notificacao.usuario_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notificação não encontrada.")
    try:
        notificacao = notificacao_service.mark_as(db, db_obj=notificacao, lida=notificacao_in.lida)
        db.commit()
        db.refresh(notificacao)
        return notificacao
    except Exception as e:
        db.rollback()
        logger.error(f"Erro atualizando a notificação {notificacao_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno ao atualizar a notificação.")
