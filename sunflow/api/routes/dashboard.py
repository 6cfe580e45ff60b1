import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_DASHBOARD
from sunflow.schemas.dashboard import DashboardData
from sunflow.services.dashboard import dashboard_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/",
            response_model=DashboardData,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_DASHBOARD]))],
            summary="Resumo operacional")
def get_dashboard_data(db: Session = Depends(deps.get_db)) -> Any:
    """
    Tickets por status e prioridade, OS agendadas para hoje, RMEs aguardando
    aprovação, insumos em alerta e tickets vencidos.
    """
    try:
        return dashboard_service.get_summary(db)
    except Exception as e:
        logger.error(f"Erro ao montar o painel: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro ao obter os dados do painel.")
