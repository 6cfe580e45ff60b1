import uuid
from typing import TYPE_CHECKING, List, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Float, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .ticket import Ticket
    from .equipamento import Equipamento
    from .usuario import Usuario


class Cliente(Base):
    """
    Modelo ORM da tabela 'clientes'.
    """
    __tablename__ = "clientes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    empresa: Mapped[str] = mapped_column(String(255), index=True)
    cnpj_cpf: Mapped[str] = mapped_column(String(18), unique=True, index=True)
    endereco: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cidade: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    estado: Mapped[Optional[str]] = mapped_column(String(2), nullable=True, index=True)
    cep: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    telefone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    geocoded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    usuario_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True, index=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    usuario: Mapped[Optional["Usuario"]] = relationship("Usuario")
    tickets: Mapped[List["Ticket"]] = relationship("Ticket", back_populates="cliente")
    equipamentos: Mapped[List["Equipamento"]] = relationship("Equipamento", back_populates="cliente")

    def __repr__(self) -> str:
        return f"<Cliente(id={self.id}, empresa='{self.empresa}', cnpj_cpf='{self.cnpj_cpf}')>"
