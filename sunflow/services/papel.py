from typing import List, Optional, Union, Dict, Any
from uuid import UUID
import logging

from sqlalchemy.orm import Session
from sqlalchemy import func, select
from fastapi import HTTPException, status

from sunflow.models.papel import Papel
from sunflow.models.permissao import Permissao
from sunflow.models.usuario import Usuario
from sunflow.schemas.papel import PapelCreate, PapelUpdate
from sunflow.core import permissions as perms
from .base_service import BaseService
from .permissao import permissao_service

logger = logging.getLogger(__name__)

class PapelService(BaseService[Papel, PapelCreate, PapelUpdate]):
    """
    Serviço de papéis e de suas permissões.
    """
    label = "Papel"

    def get_by_name(self, db: Session, *, name: str) -> Optional[Papel]:
        statement = select(self.model).where(self.model.nome == name)
        return db.execute(statement).scalar_one_or_none()

    def _carregar_permissoes(self, db: Session, permissao_ids: List[UUID]) -> List[Permissao]:
        permissoes: List[Permissao] = []
        for permissao_id in permissao_ids:
            permissao = permissao_service.get(db, id=permissao_id)
            if not permissao:
                logger.error(f"Permissão com ID {permissao_id} não encontrada.")
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Permissão com ID {permissao_id} não encontrada.",
                )
            permissoes.append(permissao)
        return permissoes

    def create(self, db: Session, *, obj_in: PapelCreate) -> Papel:
        """
        Cria um papel com as permissões informadas.
        NÃO faz db.commit().
        """
        if self.get_by_name(db, name=obj_in.nome):
            logger.warning(f"Tentativa de criar papel com nome duplicado: {obj_in.nome}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Já existe um papel com o nome '{obj_in.nome}'.",
            )

        db_papel = self.model(**obj_in.model_dump(exclude={"permissao_ids"}))
        db_papel.permissoes = self._carregar_permissoes(db, obj_in.permissao_ids)
        db.add(db_papel)
        logger.info(f"Papel '{db_papel.nome}' preparado para criação com {len(db_papel.permissoes)} permissão(ões).")
        return db_papel

    def update(
        self,
        db: Session,
        *,
        db_obj: Papel,
        obj_in: Union[PapelUpdate, Dict[str, Any]]
    ) -> Papel:
        """
        Atualiza um papel. Se 'permissao_ids' vier, substitui as permissões.
        NÃO faz db.commit().
        """
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)

        if "nome" in update_data and update_data["nome"] != db_obj.nome:
            existente = self.get_by_name(db, name=update_data["nome"])
            if existente and existente.id != db_obj.id:
                logger.warning(f"Conflito de nome ao atualizar papel ID {db_obj.id} para '{update_data['nome']}'.")
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Já existe outro papel com o nome '{update_data['nome']}'.",
                )

        permissao_ids = update_data.pop("permissao_ids", None)
        db_obj = super().update(db, db_obj=db_obj, obj_in=update_data)

        if permissao_ids is not None:
            db_obj.permissoes = self._carregar_permissoes(db, permissao_ids)
            db.add(db_obj)
            logger.info(f"Permissões do papel ID {db_obj.id} substituídas ({len(db_obj.permissoes)} permissões).")
        return db_obj

    def remove(self, db: Session, *, id: Union[UUID, int]) -> Papel:
        """
        Remove um papel sem usuários atribuídos.
        NÃO faz db.commit().
        """
        db_obj = self.get_or_404(db, id=id)
        user_count = db.execute(select(func.count(Usuario.id)).where(Usuario.papel_id == id)).scalar_one()
        if user_count > 0:
            logger.warning(f"Tentativa de excluir papel '{db_obj.nome}' com {user_count} usuário(s).")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Não é possível excluir o papel '{db_obj.nome}': há {user_count} usuário(s) com este papel."
            )
        return super().remove(db, id=id)

    def ensure_with_permissions(self, db: Session, *, name: str, permissoes: List[Permissao], descricao: Optional[str] = None) -> Papel:
        """Cria ou sincroniza um papel com a lista exata de permissões. NÃO faz commit."""
        papel = self.get_by_name(db, name=name)
        if not papel:
            papel = Papel(nome=name, descricao=descricao)
            db.add(papel)
        papel.permissoes = list(permissoes)
        db.flush()
        return papel

papel_service = PapelService(Papel)


def carregar_papeis_padrao(db: Session) -> Dict[str, Papel]:
    """
    Garante as permissões do sistema e os papéis padrão com suas permissões.
    Idempotente. NÃO faz commit.
    """
    permissoes = {nome: permissao_service.ensure(db, name=nome) for nome in perms.TODAS_PERMISSOES}
    return {
        nome_papel: papel_service.ensure_with_permissions(
            db, name=nome_papel, permissoes=[permissoes[p] for p in nomes_permissoes]
        )
        for nome_papel, nomes_permissoes in perms.PERMISSOES_POR_PAPEL.items()
    }
