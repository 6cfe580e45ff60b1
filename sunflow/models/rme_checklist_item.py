import uuid
from typing import TYPE_CHECKING
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, ForeignKey, UniqueConstraint, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .rme_relatorio import RMERelatorio


class RMEChecklistItem(Base):
    """Item de checklist do RME, copiado do catálogo quando o relatório é criado."""
    __tablename__ = "rme_checklist_items"
    __table_args__ = (
        UniqueConstraint("rme_id", "categoria", "item_key", name="uq_rme_checklist_items_rme_categoria_item"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    rme_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("rme_relatorios.id", ondelete="CASCADE"), index=True)
    categoria: Mapped[str] = mapped_column(String(30), index=True)
    item_key: Mapped[str] = mapped_column(String(60))
    label: Mapped[str] = mapped_column(String(255))
    checked: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    rme: Mapped["RMERelatorio"] = relationship("RMERelatorio", back_populates="checklist_items")

    def __repr__(self) -> str:
        return f"<RMEChecklistItem(rme_id={self.rme_id}, '{self.categoria}.{self.item_key}', checked={self.checked})>"
