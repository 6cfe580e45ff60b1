import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class EmailRetry(Base):
    """
    Fila persistente de reenvio de emails (convites de calendário e lembretes).
    """
    __tablename__ = "email_retry_queue"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email_type: Mapped[str] = mapped_column(String(30), index=True)
    ordem_servico_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ordens_servico.id", ondelete="CASCADE"), nullable=True, index=True
    )
    recipients: Mapped[List[Any]] = mapped_column(JSON, default=list)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    attempt_count: Mapped[int] = mapped_column(Integer, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, default=5)
    next_retry_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_attempt_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<EmailRetry(id={self.id}, tipo='{self.email_type}', status='{self.status}', tentativas={self.attempt_count})>"
