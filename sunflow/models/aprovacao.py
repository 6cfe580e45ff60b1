import uuid
from typing import TYPE_CHECKING, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .ticket import Ticket
    from .usuario import Usuario


class Aprovacao(Base):
    """
    Decisão (aprovado/rejeitado) registrada sobre um ticket aguardando aprovação.
    """
    __tablename__ = "aprovacoes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), index=True)
    aprovador_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[str] = mapped_column(String(20))
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    data_aprovacao: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="aprovacoes")
    aprovador: Mapped[Optional["Usuario"]] = relationship("Usuario", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Aprovacao(ticket_id={self.ticket_id}, status='{self.status}')>"
