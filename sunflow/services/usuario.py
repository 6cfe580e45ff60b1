import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy import select
from fastapi import HTTPException, status

from sunflow.core.config import settings
from sunflow.core.datas import agora_utc
from sunflow.core.password import verify_password, get_password_hash
from sunflow.models.usuario import Usuario
from sunflow.models.papel import Papel
from sunflow.schemas.usuario import UsuarioCreate, UsuarioUpdate
from sunflow.schemas.password import PasswordChange

from .base_service import BaseService
from .papel import papel_service

logger = logging.getLogger(__name__)

class UsuarioService(BaseService[Usuario, UsuarioCreate, UsuarioUpdate]):
    """
    Serviço de usuários: senhas, papéis e controle de tentativas de login.
    """
    label = "Usuário"

    def get_by_username(self, db: Session, *, username: str) -> Optional[Usuario]:
        statement = select(self.model).where(self.model.nome_usuario == username)
        return db.execute(statement).scalar_one_or_none()

    def get_by_email(self, db: Session, *, email: str) -> Optional[Usuario]:
        statement = select(self.model).where(self.model.email == email)
        return db.execute(statement).scalar_one_or_none()

    def get_by_papel(self, db: Session, *, papel_nomes: List[str]) -> List[Usuario]:
        """Usuários ativos de um ou mais papéis (usado para notificar a área técnica)."""
        statement = (
            select(self.model)
            .join(Papel, Papel.id == self.model.papel_id)
            .where(Papel.nome.in_(papel_nomes), self.model.ativo.is_(True))
        )
        return list(db.execute(statement).scalars().all())

    def create(self, db: Session, *, obj_in: UsuarioCreate) -> Usuario:
        """
        Cria um usuário com a senha já em hash.
        NÃO faz db.commit().
        """
        if self.get_by_username(db, username=obj_in.nome_usuario):
            logger.warning(f"Tentativa de criar usuário com nome duplicado: {obj_in.nome_usuario}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Já existe um usuário com esse nome de usuário.")

        if obj_in.email and self.get_by_email(db, email=obj_in.email):
            logger.warning(f"Tentativa de criar usuário com email duplicado: {obj_in.email}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Já existe um usuário com esse email.")

        if not papel_service.get(db, id=obj_in.papel_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Papel com ID {obj_in.papel_id} não encontrado.")

        create_data = obj_in.model_dump()
        create_data["hashed_password"] = get_password_hash(create_data.pop("password"))

        db_obj = self.model(**create_data)
        db.add(db_obj)
        logger.info(f"Usuário '{db_obj.nome_usuario}' preparado para criação.")
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: Usuario,
        obj_in: Union[UsuarioUpdate, Dict[str, Any]]
    ) -> Usuario:
        """
        Atualiza um usuário. Trata troca de senha, papel e unicidade de nome/email.
        NÃO faz db.commit().
        """
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        user_id = db_obj.id

        password = update_data.pop("password", None)
        if password:
            update_data["hashed_password"] = get_password_hash(password)
            logger.info(f"Senha alterada para o usuário ID {user_id}.")

        if "papel_id" in update_data:
            if update_data["papel_id"] is None:
                raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="O usuário precisa ter um papel.")
            if update_data["papel_id"] != db_obj.papel_id and not papel_service.get(db, id=update_data["papel_id"]):
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Papel com ID {update_data['papel_id']} não encontrado.")

        if "nome_usuario" in update_data and update_data["nome_usuario"] != db_obj.nome_usuario:
            existente = self.get_by_username(db, username=update_data["nome_usuario"])
            if existente and existente.id != user_id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Nome de usuário já utilizado por outro usuário.")

        if update_data.get("email") and update_data["email"] != db_obj.email:
            existente = self.get_by_email(db, email=update_data["email"])
            if existente and existente.id != user_id:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email já utilizado por outro usuário.")

        if update_data.get("bloqueado") is False:
            update_data["tentativas_falhas"] = 0

        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def authenticate(self, db: Session, *, username: str, password: str) -> Optional[Usuario]:
        """
        Autentica o usuário. Senha errada incrementa as tentativas falhas e,
        ao atingir o limite, bloqueia a conta (gravado imediatamente).
        Usuários bloqueados são devolvidos para a rota responder com a mensagem própria.
        """
        user = self.get_by_username(db, username=username)
        if not user:
            logger.warning(f"Login falhou: usuário '{username}' não encontrado.")
            return None

        if user.bloqueado:
            logger.warning(f"Tentativa de login do usuário bloqueado '{username}'.")
            return user

        if not verify_password(password, user.hashed_password):
            user.tentativas_falhas = (user.tentativas_falhas or 0) + 1
            logger.warning(f"Login falhou: senha incorreta para '{username}' (tentativa {user.tentativas_falhas}).")
            if user.tentativas_falhas >= settings.MAX_FAILED_ATTEMPTS_BEFORE_LOCK:
                user.bloqueado = True
                logger.warning(f"Usuário '{username}' bloqueado após {user.tentativas_falhas} tentativas falhas.")
            db.add(user)
            db.commit()
            return None

        return user

    def is_active(self, user: Usuario) -> bool:
        return bool(user.ativo) and not user.bloqueado

    def handle_successful_login(self, db: Session, *, user: Usuario) -> None:
        """
        Zera as tentativas falhas e registra o último login.
        NÃO faz db.commit().
        """
        user.ultimo_login = agora_utc()
        user.tentativas_falhas = 0
        db.add(user)

    def change_password(self, db: Session, *, user: Usuario, password_data: PasswordChange) -> Usuario:
        """
        Troca a senha do próprio usuário após conferir a senha atual.
        NÃO faz db.commit().
        """
        if not verify_password(password_data.current_password, user.hashed_password):
            logger.warning(f"Troca de senha recusada para '{user.nome_usuario}': senha atual incorreta.")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A senha atual está incorreta.")
        if password_data.current_password == password_data.new_password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A nova senha deve ser diferente da atual.")

        user.hashed_password = get_password_hash(password_data.new_password)
        user.requer_troca_senha = False
        db.add(user)
        logger.info(f"Senha alterada pelo próprio usuário '{user.nome_usuario}'.")
        return user

    def remove(self, db: Session, *, id: Union[UUID, int]) -> Usuario:
        db_obj = self.get_or_404(db, id=id)
        db.delete(db_obj)
        logger.warning(f"Usuário '{db_obj.nome_usuario}' (ID: {id}) preparado para exclusão.")
        return db_obj

usuario_service = UsuarioService(Usuario)
