import uuid
from typing import TYPE_CHECKING, List, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base
from .papel_permissao import PapelPermissao

if TYPE_CHECKING:
    from .permissao import Permissao
    from .usuario import Usuario

class Papel(Base):
    __tablename__ = "papeis"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    permissoes: Mapped[List["Permissao"]] = relationship(
        "Permissao",
        secondary=PapelPermissao.__table__,
        back_populates="papeis",
        lazy="selectin"
    )

    usuarios: Mapped[List["Usuario"]] = relationship(
        "Usuario",
        back_populates="papel",
    )

    def __repr__(self) -> str:
        return f"<Papel(id={self.id}, nome='{self.nome}')>"
