import uuid
from typing import TYPE_CHECKING, List, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base
from .papel_permissao import PapelPermissao

if TYPE_CHECKING:
    from .papel import Papel


class Permissao(Base):
    __tablename__ = "permissoes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    nome: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    papeis: Mapped[List["Papel"]] = relationship(
        "Papel",
        secondary=PapelPermissao.__table__,
        back_populates="permissoes",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Permissao(id={self.id}, nome='{self.nome}')>"
