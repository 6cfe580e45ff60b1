from datetime import datetime, date, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sunflow.core.config import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def hoje_local() -> date:
    """Data de hoje no fuso da operação (America/Sao_Paulo por padrão)."""
    return datetime.now(LOCAL_TZ).date()


def garantir_utc(valor: Optional[datetime]) -> Optional[datetime]:
    """
    Datas lidas de bancos sem suporte a fuso (SQLite) voltam sem tzinfo;
    os valores são sempre gravados em UTC.
    """
    if valor is None:
        return None
    if valor.tzinfo is None:
        return valor.replace(tzinfo=timezone.utc)
    return valor.astimezone(timezone.utc)
