import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select, or_

from sunflow.models.equipamento import Equipamento
from sunflow.models.cliente import Cliente
from sunflow.schemas.equipamento import EquipamentoCreate, EquipamentoUpdate
from .base_service import BaseService

logger = logging.getLogger(__name__)


def gerar_qr_code_equipamento(numero_serie: Optional[str]) -> Optional[str]:
    return f"EQ-{numero_serie}" if numero_serie else None


class EquipamentoService(BaseService[Equipamento, EquipamentoCreate, EquipamentoUpdate]):
    """
    Equipamentos instalados nos clientes. O conteúdo do QR code acompanha
    o número de série.
    """
    label = "Equipamento"

    def get_by_numero_serie(self, db: Session, *, numero_serie: str) -> Optional[Equipamento]:
        statement = select(self.model).where(self.model.numero_serie == numero_serie)
        return db.execute(statement).scalar_one_or_none()

    def get_multi_filtered(
        self,
        db: Session,
        *,
        cliente_id: Optional[UUID] = None,
        tipo: Optional[str] = None,
        status_equipamento: Optional[str] = None,
        busca: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Equipamento]:
        statement = select(self.model)
        if cliente_id:
            statement = statement.where(self.model.cliente_id == cliente_id)
        if tipo:
            statement = statement.where(self.model.tipo == tipo)
        if status_equipamento:
            statement = statement.where(self.model.status == status_equipamento)
        if busca:
            termo = f"%{busca}%"
            statement = statement.where(or_(
                self.model.nome.ilike(termo),
                self.model.numero_serie.ilike(termo),
                self.model.modelo.ilike(termo),
            ))
        statement = statement.order_by(self.model.nome).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def _check_cliente(self, db: Session, cliente_id: Optional[UUID]):
        if cliente_id and not db.get(Cliente, cliente_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Cliente com ID {cliente_id} não encontrado.")

    def create(self, db: Session, *, obj_in: EquipamentoCreate) -> Equipamento:
        """
        Cria um equipamento validando cliente e número de série.
        NÃO faz db.commit().
        """
        self._check_cliente(db, obj_in.cliente_id)
        if obj_in.numero_serie and self.get_by_numero_serie(db, numero_serie=obj_in.numero_serie):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Já existe um equipamento com o número de série '{obj_in.numero_serie}'."
            )
        data = obj_in.model_dump()
        data["qr_code_data"] = gerar_qr_code_equipamento(obj_in.numero_serie)
        db_obj = self.model(**data)
        db.add(db_obj)
        logger.info(f"Equipamento '{db_obj.nome}' (série {db_obj.numero_serie}) preparado para criação.")
        return db_obj

    def update(self, db: Session, *, db_obj: Equipamento, obj_in: Union[EquipamentoUpdate, Dict[str, Any]]) -> Equipamento:
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)

        if "cliente_id" in update_data:
            self._check_cliente(db, update_data["cliente_id"])

        numero_serie = update_data.get("numero_serie")
        if numero_serie and numero_serie != db_obj.numero_serie:
            existente = self.get_by_numero_serie(db, numero_serie=numero_serie)
            if existente and existente.id != db_obj.id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Número de série '{numero_serie}' já cadastrado.")
        if "numero_serie" in update_data:
            update_data["qr_code_data"] = gerar_qr_code_equipamento(numero_serie)

        instalacao = update_data.get("data_instalacao", db_obj.data_instalacao)
        garantia = update_data.get("garantia_ate", db_obj.garantia_ate)
        if instalacao and garantia and garantia < instalacao:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="A garantia não pode terminar antes da data de instalação."
            )

        return super().update(db, db_obj=db_obj, obj_in=update_data)

equipamento_service = EquipamentoService(Equipamento)
