import uuid
from typing import TYPE_CHECKING, Any, List, Optional
from datetime import datetime

from sqlalchemy import String, DateTime, Boolean, JSON, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .usuario import Usuario
    from .prestador import Prestador
    from .ordem_servico import OrdemServico


class Tecnico(Base):
    """
    Técnico de campo que recebe ordens de serviço. Pode estar ligado a um
    usuário do sistema e a um prestador.
    """
    __tablename__ = "tecnicos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(255), index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telefone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    especialidades: Mapped[List[Any]] = mapped_column(JSON, default=list)
    regiao_atuacao: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    registro_profissional: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    usuario_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    prestador_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("prestadores.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    usuario: Mapped[Optional["Usuario"]] = relationship("Usuario", back_populates="tecnico")
    prestador: Mapped[Optional["Prestador"]] = relationship("Prestador", back_populates="tecnicos", lazy="selectin")
    ordens_servico: Mapped[List["OrdemServico"]] = relationship("OrdemServico", back_populates="tecnico")

    def __repr__(self) -> str:
        return f"<Tecnico(id={self.id}, nome='{self.nome}')>"
