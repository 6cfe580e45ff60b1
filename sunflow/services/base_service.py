import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import BaseModel

from sqlalchemy.orm import Session
from sqlalchemy import func, select

from sunflow.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)

class BaseService(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    # Nome exibido nas mensagens de erro (ex: "Cliente", "Ordem de serviço")
    label: Optional[str] = None

    def __init__(self, model: Type[ModelType]):
        """
        Serviço base com as operações CRUD padrão.
        Os métodos de escrita NÃO fazem commit; o commit é responsabilidade da rota.

        **Parâmetros**

        * `model`: classe do modelo SQLAlchemy
        """
        self.model = model

    @property
    def nome_entidade(self) -> str:
        return self.label or self.model.__name__

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        """Busca um registro pelo ID."""
        return db.get(self.model, id)

    def get_or_404(self, db: Session, id: Any) -> ModelType:
        """Busca um registro pelo ID ou lança 404."""
        db_obj = self.get(db, id=id)
        if not db_obj:
            logger.warning(f"Registro não encontrado em {self.model.__name__} com ID: {id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.nome_entidade} com ID {id} não encontrado."
            )
        return db_obj

    def get_multi(
        self, db: Session, *, skip: int = 0, limit: int = 100
    ) -> List[ModelType]:
        """Lista registros com paginação."""
        statement = select(self.model).offset(skip).limit(limit)
        result = db.execute(statement)
        return list(result.scalars().all())

    def get_count(self, db: Session) -> int:
        count_query = select(func.count()).select_from(self.model)
        count = db.execute(count_query).scalar_one_or_none()
        return count or 0

    def create(self, db: Session, *, obj_in: CreateSchemaType) -> ModelType:
        """
        Cria um novo registro.
        NÃO faz db.commit().
        """
        obj_in_data = obj_in.model_dump()
        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        logger.info(f"Novo registro preparado para criação em {self.model.__name__}")
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """
        Atualiza um registro existente. Só altera os campos enviados.
        NÃO faz db.commit().
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        obj_id = getattr(db_obj, 'id', 'N/A')
        logger.debug(f"Atualizando {self.model.__name__} ID {obj_id} com dados: {update_data}")

        if update_data:
            for field, value in update_data.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)
                else:
                    logger.warning(f"Tentativa de atualizar campo inexistente '{field}' em {self.model.__name__}")
            db.add(db_obj)
            logger.info(f"Registro preparado para atualização em {self.model.__name__} (ID: {obj_id})")
        else:
            logger.info(f"Nenhum dado enviado para atualizar {self.model.__name__} (ID: {obj_id})")

        return db_obj

    def remove(self, db: Session, *, id: Union[UUID, int]) -> ModelType:
        """
        Remove um registro pelo ID.
        NÃO faz db.commit().
        """
        obj = self.get_or_404(db, id=id)
        db.delete(obj)
        logger.warning(f"Registro preparado para exclusão em {self.model.__name__} (ID: {id})")
        return obj
