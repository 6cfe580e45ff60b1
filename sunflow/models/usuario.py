import datetime
import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Boolean, String, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .papel import Papel
    from .notificacao import Notificacao
    from .tecnico import Tecnico


class Usuario(Base):
    """
    Modelo ORM da tabela 'usuarios'.
    """
    __tablename__ = "usuarios"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome_usuario: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    nome_completo: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    hashed_password: Mapped[str] = mapped_column("senha", String)
    papel_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("papeis.id"), index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    telefone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    tentativas_falhas: Mapped[int] = mapped_column(Integer, default=0)
    bloqueado: Mapped[bool] = mapped_column(Boolean, default=False)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    ultimo_login: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    requer_troca_senha: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    papel: Mapped["Papel"] = relationship("Papel", back_populates="usuarios", lazy="selectin")

    notificacoes: Mapped[List["Notificacao"]] = relationship(
        "Notificacao",
        back_populates="usuario",
        cascade="all, delete-orphan"
    )
    tecnico: Mapped[Optional["Tecnico"]] = relationship(
        "Tecnico",
        back_populates="usuario",
        uselist=False,
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Usuario(id={self.id}, nome_usuario='{self.nome_usuario}')>"
