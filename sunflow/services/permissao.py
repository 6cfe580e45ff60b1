import logging
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.models.permissao import Permissao
from sunflow.schemas.permissao import PermissaoCreate, PermissaoUpdate
from .base_service import BaseService

logger = logging.getLogger(__name__)

class PermissaoService(BaseService[Permissao, PermissaoCreate, PermissaoUpdate]):
    """
    Serviço de permissões. As permissões são criadas pela carga inicial;
    a API só as lista.
    """
    label = "Permissão"

    def get_by_name(self, db: Session, *, name: str) -> Optional[Permissao]:
        statement = select(self.model).where(self.model.nome == name)
        return db.execute(statement).scalar_one_or_none()

    def get_all_ordered(self, db: Session) -> List[Permissao]:
        statement = select(self.model).order_by(self.model.nome)
        return list(db.execute(statement).scalars().all())

    def ensure(self, db: Session, *, name: str, descricao: Optional[str] = None) -> Permissao:
        """Devolve a permissão com esse nome, criando-a se ainda não existir. NÃO faz commit."""
        permissao = self.get_by_name(db, name=name)
        if permissao:
            return permissao
        permissao = Permissao(nome=name, descricao=descricao)
        db.add(permissao)
        db.flush()
        logger.info(f"Permissão '{name}' criada.")
        return permissao

permissao_service = PermissaoService(Permissao)
