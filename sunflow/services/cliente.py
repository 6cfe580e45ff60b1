import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select, or_, func

from sunflow.core.datas import agora_utc
from sunflow.models.cliente import Cliente
from sunflow.models.ticket import Ticket
from sunflow.schemas.cliente import ClienteCreate, ClienteUpdate
from .base_service import BaseService
from .validacao_cliente import validar_cliente, somente_digitos

logger = logging.getLogger(__name__)

class ClienteService(BaseService[Cliente, ClienteCreate, ClienteUpdate]):
    """
    Cadastro de clientes. Todo documento passa pela validação/normalização
    antes de ser gravado.
    """
    label = "Cliente"

    def get_by_documento(self, db: Session, *, documento: str) -> Optional[Cliente]:
        """Busca pelo documento comparando apenas os dígitos."""
        digitos = somente_digitos(documento)
        if not digitos:
            return None
        for cliente in db.execute(select(self.model)).scalars():
            if somente_digitos(cliente.cnpj_cpf) == digitos:
                return cliente
        return None

    def documentos_cadastrados(self, db: Session) -> List[str]:
        return list(db.execute(select(self.model.cnpj_cpf)).scalars().all())

    def get_multi_filtered(
        self,
        db: Session,
        *,
        busca: Optional[str] = None,
        cidade: Optional[str] = None,
        estado: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Cliente]:
        statement = select(self.model)
        if busca:
            termo = f"%{busca}%"
            statement = statement.where(or_(self.model.empresa.ilike(termo), self.model.cnpj_cpf.ilike(termo)))
        if cidade:
            statement = statement.where(func.lower(self.model.cidade) == cidade.lower())
        if estado:
            statement = statement.where(self.model.estado == estado.upper())
        statement = statement.order_by(self.model.empresa).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def _validar(self, dados: Dict[str, Any]) -> Dict[str, Any]:
        resultado = validar_cliente(dados)
        if not resultado.valido:
            logger.warning(f"Dados de cliente inválidos: {resultado.erros}")
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="; ".join(resultado.erros))
        if resultado.avisos:
            logger.info(f"Avisos na validação do cliente '{dados.get('empresa')}': {resultado.avisos}")
        return resultado.dados_normalizados or {}

    def create(self, db: Session, *, obj_in: ClienteCreate) -> Cliente:
        """
        Cria um cliente com documento/UF/CEP normalizados.
        NÃO faz db.commit().
        """
        data = obj_in.model_dump()
        data.update(self._validar(data))

        if self.get_by_documento(db, documento=data["cnpj_cpf"]):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Já existe um cliente com o CNPJ/CPF '{data['cnpj_cpf']}'.")

        if data.get("latitude") is not None and data.get("longitude") is not None:
            data["geocoded_at"] = agora_utc()

        db_obj = self.model(**data)
        db.add(db_obj)
        logger.info(f"Cliente '{db_obj.empresa}' preparado para criação.")
        return db_obj

    def update(self, db: Session, *, db_obj: Cliente, obj_in: Union[ClienteUpdate, Dict[str, Any]]) -> Cliente:
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)

        campos_validados = {"empresa", "cnpj_cpf", "estado", "cep", "endereco", "cidade"}
        if campos_validados & update_data.keys():
            atual = {campo: getattr(db_obj, campo) for campo in campos_validados}
            atual.update({k: v for k, v in update_data.items() if k in campos_validados})
            normalizado = self._validar(atual)
            update_data.update({k: normalizado[k] for k in update_data.keys() & campos_validados})

        if "cnpj_cpf" in update_data:
            existente = self.get_by_documento(db, documento=update_data["cnpj_cpf"])
            if existente and existente.id != db_obj.id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="CNPJ/CPF já cadastrado para outro cliente.")

        if "endereco" in update_data and update_data["endereco"] != db_obj.endereco:
            # Endereço novo invalida a geocodificação anterior
            update_data.setdefault("latitude", None)
            update_data.setdefault("longitude", None)
            update_data["geocoded_at"] = None
        if update_data.get("latitude") is not None and update_data.get("longitude") is not None:
            update_data["geocoded_at"] = agora_utc()

        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def remove(self, db: Session, *, id: Union[UUID, int]) -> Cliente:
        db_obj = self.get_or_404(db, id=id)
        tickets = db.execute(select(func.count(Ticket.id)).where(Ticket.cliente_id == id)).scalar_one()
        if tickets:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Não é possível excluir o cliente '{db_obj.empresa}': existem {tickets} ticket(s) vinculados."
            )
        return super().remove(db, id=id)

cliente_service = ClienteService(Cliente)
