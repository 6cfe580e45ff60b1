import uuid
from typing import TYPE_CHECKING, Optional
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Boolean, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .usuario import Usuario


class Notificacao(Base):
    """
    Modelo ORM da tabela 'notificacoes'.
    """
    __tablename__ = "notificacoes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    usuario_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="CASCADE"), index=True)
    titulo: Mapped[str] = mapped_column(String(255))
    mensagem: Mapped[str] = mapped_column(Text)
    tipo: Mapped[str] = mapped_column(String(20), default="info", index=True)
    lida: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    data_leitura: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    usuario: Mapped["Usuario"] = relationship("Usuario", back_populates="notificacoes")

    def __repr__(self) -> str:
        lida_str = "Lida" if self.lida else "Não lida"
        return f"<Notificacao(id={self.id}, usuario_id={self.usuario_id}, tipo='{self.tipo}', estado='{lida_str}')>"
