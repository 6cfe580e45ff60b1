import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.models.notificacao import Notificacao
from sunflow.models.usuario import Usuario
from sunflow.schemas.enums import TipoNotificacaoEnum
from sunflow.services.notificacao import notificacao_service

from tests.utils import auth_headers

pytestmark = pytest.mark.asyncio

URL = f"{settings.API_V1_STR}/notificacoes"


def _notificar(db: Session, usuario: Usuario, titulo: str) -> Notificacao:
    notificacao = notificacao_service.notificar(
        db, usuario_id=usuario.id, titulo=titulo, mensagem="Detalhes da notificação", tipo=TipoNotificacaoEnum.TICKET
    )
    db.commit()
    db.refresh(notificacao)
    return notificacao


async def test_notificar_sem_usuario_nao_cria_nada(db: Session):
    assert notificacao_service.notificar(db, usuario_id=None, titulo="x", mensagem="y") is None


class TestNotificacoesDoUsuario:
    async def test_lista_somente_do_usuario(
        self, client: AsyncClient, admin_token: str, db: Session, admin_user: Usuario, tecnico_user: Usuario
    ):
        _notificar(db, admin_user, "Ticket aprovado")
        _notificar(db, tecnico_user, "Nova OS")
        response = await client.get(f"{URL}/", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_200_OK
        assert [n["titulo"] for n in response.json()] == ["Ticket aprovado"]

    async def test_contagem_e_marcar_todas(self, client: AsyncClient, admin_token: str, db: Session, admin_user: Usuario):
        _notificar(db, admin_user, "Primeira")
        _notificar(db, admin_user, "Segunda")
        contagem = await client.get(f"{URL}/nao-lidas/contagem", headers=auth_headers(admin_token))
        assert contagem.json() == {"nao_lidas": 2}

        response = await client.post(f"{URL}/marcar-todas-lidas", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["msg"].startswith("2 ")

        contagem = await client.get(f"{URL}/nao-lidas/contagem", headers=auth_headers(admin_token))
        assert contagem.json() == {"nao_lidas": 0}

    async def test_marcar_uma(self, client: AsyncClient, admin_token: str, db: Session, admin_user: Usuario):
        notificacao = _notificar(db, admin_user, "Estoque crítico")
        response = await client.put(f"{URL}/{notificacao.id}", headers=auth_headers(admin_token), json={"lida": True})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["lida"] is True

        nao_lidas = await client.get(f"{URL}/", headers=auth_headers(admin_token), params={"somente_nao_lidas": True})
        assert nao_lidas.json() == []

    async def test_notificacao_de_outro_usuario(
        self, client: AsyncClient, admin_token: str, db: Session, tecnico_user: Usuario
    ):
        notificacao = _notificar(db, tecnico_user, "Nova OS")
        response = await client.put(f"{URL}/{notificacao.id}", headers=auth_headers(admin_token), json={"lida": True})
        assert response.status_code == status.HTTP_404_NOT_FOUND
