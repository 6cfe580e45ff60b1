import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from datetime import datetime, date, time

from sqlalchemy import String, Text, Integer, Boolean, DateTime, Date, Time, JSON, ForeignKey, func, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from sunflow.db.base import Base

if TYPE_CHECKING:
    from .ticket import Ticket
    from .ordem_servico import OrdemServico
    from .tecnico import Tecnico
    from .equipamento import Equipamento
    from .usuario import Usuario
    from .rme_checklist_item import RMEChecklistItem


class RMERelatorio(Base):
    """
    Relatório de Manutenção Executada preenchido pelo técnico após o atendimento.
    """
    __tablename__ = "rme_relatorios"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), index=True)
    ordem_servico_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ordens_servico.id", ondelete="CASCADE"), unique=True)
    tecnico_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("tecnicos.id", ondelete="SET NULL"), nullable=True, index=True)
    equipamento_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("equipamentos.id", ondelete="SET NULL"), nullable=True)
    data_execucao: Mapped[date] = mapped_column(Date)
    data_preenchimento: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    dia_semana: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    nome_usina: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    colaboracao: Mapped[List[str]] = mapped_column(JSON, default=list)
    numero_micro: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    numero_inversor: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tipo_servico: Mapped[List[str]] = mapped_column(JSON, default=list)
    turno: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    hora_inicio: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    hora_fim: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    imagens_postadas: Mapped[bool] = mapped_column(Boolean, default=False)
    qtd_modulos_limpos: Mapped[int] = mapped_column(Integer, default=0)
    qtd_string_box: Mapped[int] = mapped_column(Integer, default=0)
    condicoes_encontradas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    servicos_executados: Mapped[str] = mapped_column(Text)
    testes_realizados: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    observacoes_tecnicas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    materiais_utilizados: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    medicoes_eletricas: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    fotos_antes: Mapped[List[Any]] = mapped_column(JSON, default=list)
    fotos_depois: Mapped[List[Any]] = mapped_column(JSON, default=list)
    anexos_tecnicos: Mapped[List[Any]] = mapped_column(JSON, default=list)
    assinatura_tecnico: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assinatura_cliente: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    nome_cliente_assinatura: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # responsavel, gerente_manutencao e gerente_projeto: {"nome", "at"}
    assinaturas: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="rascunho", index=True)
    status_aprovacao: Mapped[str] = mapped_column(String(20), default="pendente", index=True)
    aprovado_por: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    data_aprovacao: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    observacoes_aprovacao: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pdf_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    ticket: Mapped["Ticket"] = relationship("Ticket", lazy="selectin")
    ordem_servico: Mapped["OrdemServico"] = relationship("OrdemServico", back_populates="rme", lazy="selectin")
    tecnico: Mapped[Optional["Tecnico"]] = relationship("Tecnico", lazy="selectin")
    equipamento: Mapped[Optional["Equipamento"]] = relationship("Equipamento")
    aprovador: Mapped[Optional["Usuario"]] = relationship("Usuario", foreign_keys=[aprovado_por])
    checklist_items: Mapped[List["RMEChecklistItem"]] = relationship(
        "RMEChecklistItem", back_populates="rme", cascade="all, delete-orphan",
        order_by="[RMEChecklistItem.categoria, RMEChecklistItem.item_key]", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<RMERelatorio(id={self.id}, ticket_id={self.ticket_id}, status_aprovacao='{self.status_aprovacao}')>"
