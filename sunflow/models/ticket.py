import uuid
from typing import TYPE_CHECKING, Any, List, Optional
from datetime import datetime, date
from decimal import Decimal

from sqlalchemy import String, Text, DateTime, Date, Float, Numeric, Boolean, JSON, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .cliente import Cliente
    from .tecnico import Tecnico
    from .usuario import Usuario
    from .status_historico import StatusHistorico
    from .aprovacao import Aprovacao
    from .ordem_servico import OrdemServico


class Ticket(Base):
    """
    Chamado de manutenção aberto para um cliente.
    O ciclo de vida é controlado pelo campo 'status' (ver TicketStatusEnum).
    """
    __tablename__ = "tickets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    numero_ticket: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    titulo: Mapped[str] = mapped_column(String(255))
    descricao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cliente_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("clientes.id", ondelete="RESTRICT"), index=True)
    criado_por: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    endereco_servico: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    equipamento_tipo: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    prioridade: Mapped[str] = mapped_column(String(10), default="media", index=True)
    status: Mapped[str] = mapped_column(String(30), default="aberto", index=True)
    tecnico_responsavel_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tecnicos.id", ondelete="SET NULL"), nullable=True, index=True
    )
    data_abertura: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    data_vencimento: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    data_inicio_execucao: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    data_conclusao: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    tempo_estimado: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 2), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    geocoded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    anexos: Mapped[List[Any]] = mapped_column(JSON, default=list)
    can_create_rme: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    cliente: Mapped["Cliente"] = relationship("Cliente", back_populates="tickets", lazy="selectin")
    tecnico_responsavel: Mapped[Optional["Tecnico"]] = relationship("Tecnico", lazy="selectin")
    criador: Mapped[Optional["Usuario"]] = relationship("Usuario", foreign_keys=[criado_por])
    historico: Mapped[List["StatusHistorico"]] = relationship(
        "StatusHistorico",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="StatusHistorico.created_at"
    )
    aprovacoes: Mapped[List["Aprovacao"]] = relationship(
        "Aprovacao", back_populates="ticket", cascade="all, delete-orphan"
    )
    ordem_servico: Mapped[Optional["OrdemServico"]] = relationship(
        "OrdemServico", back_populates="ticket", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, numero='{self.numero_ticket}', status='{self.status}')>"
