import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class PresencaTentativa(Base):
    __tablename__ = "presenca_tentativas"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ordem_servico_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    ip_address: Mapped[str] = mapped_column(String(64), index=True)
    sucesso: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"<PresencaTentativa(os_id={self.ordem_servico_id}, ip='{self.ip_address}', sucesso={self.sucesso})>"
