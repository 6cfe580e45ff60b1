import logging
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.models.prestador import Prestador
from sunflow.schemas.prestador import PrestadorCreate, PrestadorUpdate
from .base_service import BaseService

logger = logging.getLogger(__name__)

class PrestadorService(BaseService[Prestador, PrestadorCreate, PrestadorUpdate]):
    label = "Prestador"

    def get_multi_filtered(
        self,
        db: Session,
        *,
        categoria: Optional[str] = None,
        ativo: Optional[bool] = None,
        busca: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Prestador]:
        statement = select(self.model)
        if categoria:
            statement = statement.where(self.model.categoria == categoria)
        if ativo is not None:
            statement = statement.where(self.model.ativo.is_(ativo))
        if busca:
            statement = statement.where(self.model.nome.ilike(f"%{busca}%"))
        statement = statement.order_by(self.model.nome).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def create(self, db: Session, *, obj_in: PrestadorCreate) -> Prestador:
        data = obj_in.model_dump()
        if data.get("estado"):
            data["estado"] = data["estado"].upper()
        db_obj = self.model(**data)
        db.add(db_obj)
        logger.info(f"Prestador '{db_obj.nome}' ({db_obj.categoria}) preparado para criação.")
        return db_obj

prestador_service = PrestadorService(Prestador)
