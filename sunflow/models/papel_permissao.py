import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy import ForeignKey, DateTime, func, PrimaryKeyConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class PapelPermissao(Base):
    """
    Tabela de associação 'papeis_permissoes'.
    """
    __tablename__ = "papeis_permissoes"
    __table_args__ = (
        PrimaryKeyConstraint('papel_id', 'permissao_id', name='pk_papeis_permissoes'),
    )

    papel_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("papeis.id", ondelete="CASCADE"), primary_key=True)
    permissao_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("permissoes.id", ondelete="CASCADE"), primary_key=True)
    concedido_por: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    data_concessao: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<PapelPermissao(papel_id={self.papel_id}, permissao_id={self.permissao_id})>"
