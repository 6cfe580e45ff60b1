import uuid
from typing import Optional
from datetime import datetime

from sqlalchemy import String, Float, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class CacheGeocodificacao(Base):
    """Coordenadas já resolvidas, compartilhadas entre tickets e clientes."""
    __tablename__ = "geocoding_cache"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    endereco_normalizado: Mapped[str] = mapped_column(String(500), unique=True, index=True)
    endereco_original: Mapped[str] = mapped_column(String(500))
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    endereco_formatado: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    provedor: Mapped[str] = mapped_column(String(20))
    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"<CacheGeocodificacao('{self.endereco_normalizado}' -> {self.latitude}, {self.longitude})>"
