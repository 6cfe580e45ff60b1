import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime, date

from sqlalchemy import String, Float, Date, DateTime, JSON, ForeignKey, UniqueConstraint, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class RotaOtimizada(Base):
    """
    Rota do dia de um técnico, gravada a cada otimização (uma por técnico e data).
    """
    __tablename__ = "rotas_otimizadas"
    __table_args__ = (
        UniqueConstraint("tecnico_id", "data_rota", name="uq_rotas_otimizadas_tecnico_data"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tecnico_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tecnicos.id", ondelete="CASCADE"), index=True)
    data_rota: Mapped[date] = mapped_column(Date, index=True)
    geometry: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    optimization_method: Mapped[str] = mapped_column(String(20))
    distance_km: Mapped[float] = mapped_column(Float, default=0.0)
    duration_minutes: Mapped[float] = mapped_column(Float, default=0.0)
    waypoints_order: Mapped[List[Any]] = mapped_column(JSON, default=list)
    ticket_ids: Mapped[List[Any]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<RotaOtimizada(tecnico_id={self.tecnico_id}, data={self.data_rota}, metodo='{self.optimization_method}')>"
