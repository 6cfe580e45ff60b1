import logging
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.models.tecnico import Tecnico
from sunflow.models.usuario import Usuario
from sunflow.models.prestador import Prestador
from sunflow.schemas.tecnico import TecnicoCreate, TecnicoUpdate
from .base_service import BaseService

logger = logging.getLogger(__name__)

class TecnicoService(BaseService[Tecnico, TecnicoCreate, TecnicoUpdate]):
    label = "Técnico"

    def get_by_usuario(self, db: Session, *, usuario_id: UUID) -> Optional[Tecnico]:
        statement = select(self.model).where(self.model.usuario_id == usuario_id)
        return db.execute(statement).scalar_one_or_none()

    def get_ativo_or_404(self, db: Session, id: UUID) -> Tecnico:
        tecnico = self.get_or_404(db, id=id)
        if not tecnico.ativo:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"O técnico '{tecnico.nome}' está inativo.")
        return tecnico

    def get_multi_filtered(
        self,
        db: Session,
        *,
        ativo: Optional[bool] = None,
        prestador_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Tecnico]:
        statement = select(self.model)
        if ativo is not None:
            statement = statement.where(self.model.ativo.is_(ativo))
        if prestador_id:
            statement = statement.where(self.model.prestador_id == prestador_id)
        statement = statement.order_by(self.model.nome).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def _check_vinculos(self, db: Session, *, usuario_id: Optional[UUID], prestador_id: Optional[UUID], atual_id: Optional[UUID] = None):
        if usuario_id:
            if not db.get(Usuario, usuario_id):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Usuário com ID {usuario_id} não encontrado.")
            existente = self.get_by_usuario(db, usuario_id=usuario_id)
            if existente and existente.id != atual_id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Este usuário já está vinculado a outro técnico.")
        if prestador_id and not db.get(Prestador, prestador_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Prestador com ID {prestador_id} não encontrado.")

    def create(self, db: Session, *, obj_in: TecnicoCreate) -> Tecnico:
        self._check_vinculos(db, usuario_id=obj_in.usuario_id, prestador_id=obj_in.prestador_id)
        db_obj = self.model(**obj_in.model_dump())
        db.add(db_obj)
        logger.info(f"Técnico '{db_obj.nome}' preparado para criação.")
        return db_obj

    def update(self, db: Session, *, db_obj: Tecnico, obj_in: TecnicoUpdate) -> Tecnico:
        update_data = obj_in.model_dump(exclude_unset=True)
        self._check_vinculos(
            db,
            usuario_id=update_data.get("usuario_id"),
            prestador_id=update_data.get("prestador_id"),
            atual_id=db_obj.id,
        )
        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def update_email(self, db: Session, *, db_obj: Tecnico, email: str) -> Tecnico:
        """Endereço que passa a receber os convites de agenda."""
        anterior = db_obj.email
        db_obj.email = email
        db.add(db_obj)
        logger.info(f"E-mail do técnico '{db_obj.nome}' alterado de '{anterior}' para '{email}'.")
        return db_obj

tecnico_service = TecnicoService(Tecnico)
