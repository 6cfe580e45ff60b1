import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy import select, update, func as sql_func

from sunflow.core.datas import agora_utc
from sunflow.models.notificacao import Notificacao
from sunflow.schemas.enums import TipoNotificacaoEnum
from sunflow.schemas.notificacao import NotificacaoUpdate, NotificacaoCreateInternal
from .base_service import BaseService

logger = logging.getLogger(__name__)

class NotificacaoService(BaseService[Notificacao, NotificacaoCreateInternal, NotificacaoUpdate]):
    label = "Notificação"

    def notificar(
        self,
        db: Session,
        *,
        usuario_id: Optional[UUID],
        titulo: str,
        mensagem: str,
        tipo: TipoNotificacaoEnum = TipoNotificacaoEnum.INFO,
        link: Optional[str] = None,
    ) -> Optional[Notificacao]:
        """Cria a notificação para o usuário, se houver um. NÃO faz commit."""
        if not usuario_id:
            return None
        obj_in = NotificacaoCreateInternal(usuario_id=usuario_id, titulo=titulo, mensagem=mensagem, tipo=tipo, link=link)
        db_obj = Notificacao(**obj_in.model_dump(), lida=False)
        db.add(db_obj)
        logger.debug(f"Notificação '{titulo}' preparada para o usuário {usuario_id}.")
        return db_obj

    def mark_as(self, db: Session, *, db_obj: Notificacao, lida: bool) -> Notificacao:
        if db_obj.lida == lida:
            return db_obj
        db_obj.lida = lida
        db_obj.data_leitura = agora_utc() if lida else None
        db.add(db_obj)
        logger.info(f"Notificação ID {db_obj.id} marcada como lida={lida}.")
        return db_obj

    def mark_all_as_read_for_user(self, db: Session, *, usuario_id: UUID) -> int:
        statement = (
            update(self.model)
            .where(self.model.usuario_id == usuario_id, self.model.lida.is_(False))
            .values(lida=True, data_leitura=agora_utc())
        )
        affected_rows = db.execute(statement).rowcount
        logger.info(f"{affected_rows} notificação(ões) do usuário {usuario_id} marcadas como lidas.")
        return affected_rows

    def get_multi_by_user(
        self, db: Session, *, usuario_id: UUID, somente_nao_lidas: bool = False, skip: int = 0, limit: int = 50
    ) -> List[Notificacao]:
        statement = select(self.model).where(self.model.usuario_id == usuario_id)
        if somente_nao_lidas:
            statement = statement.where(self.model.lida.is_(False))
        statement = statement.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def get_unread_count_by_user(self, db: Session, *, usuario_id: UUID) -> int:
        statement = select(sql_func.count(self.model.id)).where(
            self.model.usuario_id == usuario_id,
            self.model.lida.is_(False)
        )
        return db.execute(statement).scalar_one_or_none() or 0

notificacao_service = NotificacaoService(Notificacao)
