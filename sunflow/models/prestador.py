import uuid
from typing import TYPE_CHECKING, Any, List, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Boolean, JSON, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .tecnico import Tecnico


class Prestador(Base):
    """
    Prestador de serviço (pessoa ou empresa contratada para atendimentos de campo).
    """
    __tablename__ = "prestadores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(255), index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telefone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    cpf: Mapped[Optional[str]] = mapped_column(String(14), nullable=True, index=True)
    categoria: Mapped[str] = mapped_column(String(30), default="tecnico", index=True)
    especialidades: Mapped[List[Any]] = mapped_column(JSON, default=list)
    certificacoes: Mapped[List[Any]] = mapped_column(JSON, default=list)
    endereco: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cidade: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    estado: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    cep: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tecnicos: Mapped[List["Tecnico"]] = relationship("Tecnico", back_populates="prestador")

    def __repr__(self) -> str:
        return f"<Prestador(id={self.id}, nome='{self.nome}', categoria='{self.categoria}')>"
