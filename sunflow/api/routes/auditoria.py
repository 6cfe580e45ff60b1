import logging
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_AUDITORIA
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.audit_log import AuditLog as AuditLogSchema
from sunflow.schemas.enums import AcaoAuditoriaEnum
from sunflow.services.audit_log import audit_log_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/",
            response_model=List[AuditLogSchema],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_AUDITORIA]))],
            summary="Consultar registros de auditoria")
def read_audit_logs(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    table_name: Optional[str] = Query(None, description="Tabela afetada"),
    action: Optional[AcaoAuditoriaEnum] = Query(None),
    usuario_id: Optional[PyUUID] = Query(None),
    record_id: Optional[str] = Query(None),
    start_time: Optional[datetime] = Query(None, description="Data/hora mínima (ISO)"),
    end_time: Optional[datetime] = Query(None, description="Data/hora máxima (ISO)"),
) -> Any:
    logger.info(
        f"Usuário '{current_user.nome_usuario}' consultando auditoria: tabela='{table_name}', "
        f"ação='{action}', usuário='{usuario_id}', registro='{record_id}', período='{start_time}-{end_time}'"
    )
    if start_time and end_time and end_time <= start_time:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="A data final deve ser posterior à data inicial do filtro."
        )
    return audit_log_service.get_multi(
        db,
        skip=skip,
        limit=limit,
        table_name=table_name,
        action=action.value if action else None,
        usuario_id=usuario_id,
        record_id=record_id,
        start_time=start_time,
        end_time=end_time,
    )
