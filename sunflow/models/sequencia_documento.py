from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from sunflow.db.base import Base


class SequenciaDocumento(Base):
    """
    Contador anual usado na numeração de tickets (TKT) e ordens de serviço (OS).
    """
    __tablename__ = "sequencias_documento"

    nome: Mapped[str] = mapped_column(String(20), primary_key=True)
    ano: Mapped[int] = mapped_column(Integer, primary_key=True)
    valor: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<SequenciaDocumento(nome='{self.nome}', ano={self.ano}, valor={self.valor})>"
