import uuid
from typing import TYPE_CHECKING, Optional
from datetime import datetime, date

from sqlalchemy import String, Text, DateTime, Date, Float, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .cliente import Cliente


class Equipamento(Base):
    """
    Modelo ORM da tabela 'equipamentos' (painéis, inversores, baterias...).
    """
    __tablename__ = "equipamentos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(255), index=True)
    tipo: Mapped[str] = mapped_column(String(30), index=True)
    modelo: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    fabricante: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    numero_serie: Mapped[Optional[str]] = mapped_column(String(120), unique=True, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="ativo", index=True)
    localizacao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    data_instalacao: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    garantia_ate: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    capacidade: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tensao: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    corrente: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cliente_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True, index=True)
    qr_code_data: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    cliente: Mapped[Optional["Cliente"]] = relationship("Cliente", back_populates="equipamentos", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Equipamento(id={self.id}, nome='{self.nome}', tipo='{self.tipo}')>"
