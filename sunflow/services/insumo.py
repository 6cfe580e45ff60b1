import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select, or_

from sunflow.core.datas import agora_utc
from sunflow.models.insumo import Insumo
from sunflow.models.movimentacao_insumo import MovimentacaoInsumo
from sunflow.schemas.enums import TipoMovimentacaoEnum
from sunflow.schemas.insumo import InsumoCreate, InsumoUpdate, MovimentacaoCreate
from .base_service import BaseService

logger = logging.getLogger(__name__)

class InsumoService(BaseService[Insumo, InsumoCreate, InsumoUpdate]):
    """
    Estoque de insumos. O saldo é alterado somente por movimentações,
    cada uma registrando o saldo resultante.
    """
    label = "Insumo"

    def get_multi_filtered(
        self, db: Session, *, categoria: Optional[str] = None, busca: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Insumo]:
        statement = select(self.model)
        if categoria:
            statement = statement.where(self.model.categoria == categoria)
        if busca:
            statement = statement.where(self.model.nome.ilike(f"%{busca}%"))
        statement = statement.order_by(self.model.nome).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def get_alertas(self, db: Session) -> List[Insumo]:
        """Insumos no nível baixo ou crítico, os críticos primeiro."""
        statement = (
            select(self.model)
            .where(or_(
                self.model.quantidade <= self.model.estoque_minimo,
                self.model.quantidade <= self.model.estoque_critico,
            ))
            .order_by(self.model.quantidade - self.model.estoque_critico, self.model.nome)
        )
        return list(db.execute(statement).scalars().all())

    def create(self, db: Session, *, obj_in: InsumoCreate) -> Insumo:
        if obj_in.estoque_critico > obj_in.estoque_minimo:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="O estoque crítico não pode ser maior que o estoque mínimo."
            )
        db_obj = self.model(**obj_in.model_dump())
        db.add(db_obj)
        logger.info(f"Insumo '{db_obj.nome}' preparado para criação com saldo {db_obj.quantidade}.")
        return db_obj

    def movimentar(
        self,
        db: Session,
        *,
        insumo: Insumo,
        obj_in: MovimentacaoCreate,
        responsavel_id: Optional[UUID] = None,
        rme_id: Optional[UUID] = None,
    ) -> MovimentacaoInsumo:
        """
        Registra uma movimentação e atualiza o saldo.
        - entrada: soma a quantidade
        - saida: subtrai; saldo insuficiente gera 409
        - ajuste: o saldo passa a ser a quantidade informada
        NÃO faz db.commit().
        """
        saldo_atual = Decimal(insumo.quantidade or 0)
        quantidade = Decimal(obj_in.quantidade)

        if obj_in.tipo == TipoMovimentacaoEnum.ENTRADA:
            novo_saldo = saldo_atual + quantidade
        elif obj_in.tipo == TipoMovimentacaoEnum.SAIDA:
            if quantidade > saldo_atual:
                logger.warning(f"Saída de {quantidade} recusada para '{insumo.nome}': saldo {saldo_atual}.")
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Saldo insuficiente de '{insumo.nome}': disponível {saldo_atual} {insumo.unidade}, solicitado {quantidade}."
                )
            novo_saldo = saldo_atual - quantidade
        else:
            novo_saldo = quantidade

        insumo.quantidade = novo_saldo
        db.add(insumo)

        movimentacao = MovimentacaoInsumo(
            insumo_id=insumo.id,
            tipo=obj_in.tipo.value,
            quantidade=quantidade,
            saldo_resultante=novo_saldo,
            motivo=obj_in.motivo,
            responsavel_id=responsavel_id,
            rme_id=rme_id,
            data_movimentacao=agora_utc(),
        )
        db.add(movimentacao)
        logger.info(f"Movimentação '{obj_in.tipo.value}' de {quantidade} em '{insumo.nome}'. Saldo: {saldo_atual} -> {novo_saldo}")
        return movimentacao

    def get_movimentacoes(self, db: Session, *, insumo_id: UUID, skip: int = 0, limit: int = 100) -> List[MovimentacaoInsumo]:
        statement = (
            select(MovimentacaoInsumo)
            .where(MovimentacaoInsumo.insumo_id == insumo_id)
            .order_by(MovimentacaoInsumo.data_movimentacao.desc())
            .offset(skip).limit(limit)
        )
        return list(db.execute(statement).scalars().all())

insumo_service = InsumoService(Insumo)
