import uuid
from typing import TYPE_CHECKING, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Text, DateTime, Numeric, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .insumo import Insumo
    from .usuario import Usuario


class MovimentacaoInsumo(Base):
    __tablename__ = "movimentacoes_insumo"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    insumo_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("insumos.id", ondelete="CASCADE"), index=True)
    tipo: Mapped[str] = mapped_column(String(20), index=True)
    quantidade: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    saldo_resultante: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    motivo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responsavel_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    rme_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("rme_relatorios.id", ondelete="SET NULL"), nullable=True, index=True)
    data_movimentacao: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)

    insumo: Mapped["Insumo"] = relationship("Insumo", back_populates="movimentacoes")
    responsavel: Mapped[Optional["Usuario"]] = relationship("Usuario", lazy="selectin")

    def __repr__(self) -> str:
        return f"<MovimentacaoInsumo(id={self.id}, insumo_id={self.insumo_id}, tipo='{self.tipo}', quantidade={self.quantidade})>"
