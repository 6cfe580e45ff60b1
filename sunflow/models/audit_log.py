import uuid
from typing import Optional, Dict, Any
from datetime import datetime

from sqlalchemy import String, Text, DateTime, JSON, ForeignKey, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base

class AuditLog(Base):
    """
    Registro de auditoria gravado pelos serviços (mudanças de status, agendamentos,
    aprovações, exclusões).
    """
    __tablename__ = "audit_log"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    table_name: Mapped[str] = mapped_column(String(100), index=True)
    record_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(20), index=True)
    old_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    usuario_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True, index=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self) -> str:
        return f"<AuditLog(tabela='{self.table_name}', acao='{self.action}', registro='{self.record_id}')>"
