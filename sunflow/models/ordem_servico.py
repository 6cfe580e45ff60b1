import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from datetime import datetime, date, time

from sqlalchemy import String, Text, DateTime, Date, Time, Integer, JSON, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .ticket import Ticket
    from .tecnico import Tecnico
    from .rme_relatorio import RMERelatorio


class OrdemServico(Base):
    """
    Ordem de serviço gerada a partir de um ticket aprovado.
    Guarda o agendamento (data/horários), o estado dos convites de calendário,
    do lembrete e da confirmação de presença do técnico.
    """
    __tablename__ = "ordens_servico"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    numero_os: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    ticket_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), unique=True)
    tecnico_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("tecnicos.id", ondelete="SET NULL"), nullable=True, index=True)
    data_emissao: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    data_programada: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    hora_inicio: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    hora_fim: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    duracao_estimada_min: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pdf_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    qr_code: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    calendar_invite_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    calendar_invite_recipients: Mapped[List[Any]] = mapped_column(JSON, default=list)
    reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    presence_confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    presence_confirmed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email_error_log: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="ordem_servico", lazy="selectin")
    tecnico: Mapped[Optional["Tecnico"]] = relationship("Tecnico", back_populates="ordens_servico", lazy="selectin")
    rme: Mapped[Optional["RMERelatorio"]] = relationship("RMERelatorio", back_populates="ordem_servico", uselist=False)

    def __repr__(self) -> str:
        return f"<OrdemServico(id={self.id}, numero='{self.numero_os}', data={self.data_programada})>"
