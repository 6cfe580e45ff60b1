from typing import TypeVar

from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData

from sunflow.core.config import settings

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention, schema=settings.DB_SCHEMA or None)

class Base(DeclarativeBase):
    """
    Classe base de todos os modelos ORM.
    """
    metadata = metadata

ModelType = TypeVar("ModelType", bound=Base)
