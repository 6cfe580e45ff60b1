import uuid
from typing import TYPE_CHECKING, List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Text, DateTime, Numeric, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .movimentacao_insumo import MovimentacaoInsumo


class Insumo(Base):
    """
    Material de consumo em estoque (cabos, conectores, produtos de limpeza...).
    """
    __tablename__ = "insumos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(255), index=True)
    categoria: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    unidade: Mapped[str] = mapped_column(String(20), default="un")
    quantidade: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    estoque_minimo: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    estoque_critico: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    preco: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    fornecedor: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    localizacao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    movimentacoes: Mapped[List["MovimentacaoInsumo"]] = relationship(
        "MovimentacaoInsumo",
        back_populates="insumo",
        cascade="all, delete-orphan",
        order_by="MovimentacaoInsumo.data_movimentacao.desc()"
    )

    def __repr__(self) -> str:
        return f"<Insumo(id={self.id}, nome='{self.nome}', quantidade={self.quantidade})>"
