import uuid
from typing import TYPE_CHECKING, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .ticket import Ticket
    from .usuario import Usuario


class StatusHistorico(Base):
    __tablename__ = "status_historico"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), index=True)
    status_anterior: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    status_novo: Mapped[str] = mapped_column(String(30))
    alterado_por: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="historico")
    usuario: Mapped[Optional["Usuario"]] = relationship("Usuario", lazy="selectin")

    def __repr__(self) -> str:
        return f"<StatusHistorico(ticket_id={self.ticket_id}, '{self.status_anterior}' -> '{self.status_novo}')>"
