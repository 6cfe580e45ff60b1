import logging
from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import datetime

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.models.audit_log import AuditLog as AuditLogModel
from sunflow.schemas.enums import AcaoAuditoriaEnum

logger = logging.getLogger(__name__)

class AuditLogService:
    """
    Grava e consulta o log de auditoria. Os registros são escritos pelos
    próprios serviços junto com a operação auditada (mesma transação).
    """
    model = AuditLogModel

    def registrar(
        self,
        db: Session,
        *,
        table_name: str,
        record_id: Any,
        action: AcaoAuditoriaEnum,
        usuario_id: Optional[UUID] = None,
        old_data: Optional[Dict[str, Any]] = None,
        new_data: Optional[Dict[str, Any]] = None,
        request: Optional[Request] = None,
    ) -> AuditLogModel:
        """NÃO faz commit."""
        entry = self.model(
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            action=action.value,
            old_data=jsonable_encoder(old_data) if old_data is not None else None,
            new_data=jsonable_encoder(new_data) if new_data is not None else None,
            usuario_id=usuario_id,
            ip_address=request.client.host if request and request.client else None,
            user_agent=request.headers.get("user-agent") if request else None,
        )
        db.add(entry)
        logger.debug(f"Auditoria: {action.value} em {table_name} ({record_id}) por {usuario_id}")
        return entry

    def get_multi(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        table_name: Optional[str] = None,
        action: Optional[str] = None,
        usuario_id: Optional[UUID] = None,
        record_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None
    ) -> List[AuditLogModel]:
        """
        Lista registros de auditoria com filtros opcionais, do mais recente ao mais antigo.
        """
        statement = select(self.model)
        if table_name:
            statement = statement.where(self.model.table_name == table_name)
        if action:
            statement = statement.where(self.model.action == action)
        if usuario_id:
            statement = statement.where(self.model.usuario_id == usuario_id)
        if record_id:
            statement = statement.where(self.model.record_id == record_id)
        if start_time:
            statement = statement.where(self.model.created_at >= start_time)
        if end_time:
            statement = statement.where(self.model.created_at <= end_time)
        statement = statement.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

audit_log_service = AuditLogService()
