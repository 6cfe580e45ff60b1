import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class PresencaToken(Base):
    """
    Token de uso único enviado no lembrete para o técnico confirmar presença.
    """
    __tablename__ = "presenca_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    ordem_servico_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ordens_servico.id", ondelete="CASCADE"), index=True)
    tecnico_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("tecnicos.id", ondelete="SET NULL"), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<PresencaToken(os_id={self.ordem_servico_id}, expires_at={self.expires_at}, usado={self.used_at is not None})>"
