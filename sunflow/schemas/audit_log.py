import uuid
from typing import Optional, Dict, Any
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

from .enums import AcaoAuditoriaEnum


class AuditLogCreate(BaseModel):
    table_name: str
    record_id: Optional[str] = None
    action: AcaoAuditoriaEnum
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    usuario_id: Optional[uuid.UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

class AuditLog(BaseModel):
    id: uuid.UUID
    table_name: str = Field(..., description="Tabela afetada")
    record_id: Optional[str] = None
    action: AcaoAuditoriaEnum
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    usuario_id: Optional[uuid.UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
