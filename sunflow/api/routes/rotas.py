import logging
from datetime import date
from typing import Any
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_ROTAS, PERM_OTIMIZAR_ROTAS
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.rota import RotaOtimizada, RotaOtimizarRequest, ResultadoRota
from sunflow.services.rota import rota_service
from sunflow.services.tecnico import tecnico_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/otimizar",
             response_model=ResultadoRota,
             dependencies=[Depends(deps.PermissionChecker([PERM_OTIMIZAR_ROTAS]))],
             summary="Otimizar a rota do técnico no dia")
def otimizar_rota(
    *,
    db: Session = Depends(deps.get_db),
    rota_in: RotaOtimizarRequest,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Ordena as visitas do técnico. Tenta o OSRM e, se ele não responder,
    usa o algoritmo local (prioridade + vizinho mais próximo). A rota fica
    gravada por técnico e data.
    """
    tecnico_service.get_or_404(db, id=rota_in.tecnico_id)
    logger.info(f"Usuário '{current_user.nome_usuario}' otimizando rota do técnico {rota_in.tecnico_id} em {rota_in.data}.")
    try:
        rota, paradas, totais = rota_service.otimizar(
            db,
            tecnico_id=rota_in.tecnico_id,
            data_rota=rota_in.data,
            ticket_ids=rota_in.ticket_ids,
            provedor=rota_in.provedor,
        )
        db.commit()
        db.refresh(rota)
        return {
            "rota": rota,
            "paradas": paradas,
            "distancia_total": totais["distancia"],
            "tempo_total": totais["tempo"],
        }
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado otimizando a rota do técnico {rota_in.tecnico_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao otimizar a rota.")


@router.get("/",
            response_model=RotaOtimizada,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_ROTAS]))],
            summary="Rota gravada do técnico no dia")
def read_rota(
    db: Session = Depends(deps.get_db),
    tecnico_id: PyUUID = Query(...),
    data: date = Query(...),
) -> Any:
    rota = rota_service.get_by_tecnico_data(db, tecnico_id=tecnico_id, data_rota=data)
    if not rota:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Nenhuma rota otimizada para este técnico nesta data.")
    return rota
