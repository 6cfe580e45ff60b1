import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.core import permissions as perms
from sunflow.models.tecnico import Tecnico
from sunflow.models.usuario import Usuario

from tests.utils import auth_headers, TEST_ADMIN_PASSWORD, TEST_TECNICO_PASSWORD

pytestmark = pytest.mark.asyncio

MSG_LOGIN_INVALIDO = "Usuário ou senha incorretos, ou usuário bloqueado."


async def test_login_success(client: AsyncClient, admin_user: Usuario):
    """
    Verifica a presença do token de acesso e do token de renovação.
    """
    login_data = {"username": admin_user.nome_usuario, "password": TEST_ADMIN_PASSWORD}
    response = await client.post(f"{settings.API_V1_STR}/auth/login/access-token", data=login_data)

    assert response.status_code == status.HTTP_200_OK
    token = response.json()
    assert "access_token" in token
    assert "refresh_token" in token
    assert token["token_type"] == "bearer"

async def test_login_wrong_password(client: AsyncClient, admin_user: Usuario, db: Session):
    login_data = {"username": admin_user.nome_usuario, "password": "senhaerrada"}
    response = await client.post(f"{settings.API_V1_STR}/auth/login/access-token", data=login_data)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == MSG_LOGIN_INVALIDO

    db.refresh(admin_user)
    assert admin_user.tentativas_falhas == 1

async def test_login_user_not_found(client: AsyncClient):
    login_data = {"username": "usuario_inexistente", "password": "qualquercoisa"}
    response = await client.post(f"{settings.API_V1_STR}/auth/login/access-token", data=login_data)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == MSG_LOGIN_INVALIDO

async def test_login_usuario_bloqueado(client: AsyncClient, admin_user: Usuario, db: Session):
    admin_user.bloqueado = True
    db.add(admin_user)
    db.commit()

    login_data = {"username": admin_user.nome_usuario, "password": TEST_ADMIN_PASSWORD}
    response = await client.post(f"{settings.API_V1_STR}/auth/login/access-token", data=login_data)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestRefreshToken:
    async def test_refresh_token_success(self, client: AsyncClient, admin_user: Usuario):
        login_data = {"username": admin_user.nome_usuario, "password": TEST_ADMIN_PASSWORD}
        login_response = await client.post(f"{settings.API_V1_STR}/auth/login/access-token", data=login_data)
        assert login_response.status_code == status.HTTP_200_OK
        refresh_token = login_response.json()["refresh_token"]

        response = await client.post(f"{settings.API_V1_STR}/auth/refresh-token", json={"refresh_token": refresh_token})
        assert response.status_code == status.HTTP_200_OK
        novos = response.json()
        assert novos["token_type"] == "bearer"

        # o novo token de acesso funciona
        me = await client.get(f"{settings.API_V1_STR}/auth/me", headers=auth_headers(novos["access_token"]))
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["nome_usuario"] == admin_user.nome_usuario

    async def test_refresh_token_invalido(self, client: AsyncClient):
        response = await client.post(f"{settings.API_V1_STR}/auth/refresh-token", json={"refresh_token": "nao.e.um.token"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_access_token_nao_serve_para_renovar(self, client: AsyncClient, admin_token: str):
        response = await client.post(f"{settings.API_V1_STR}/auth/refresh-token", json={"refresh_token": admin_token})
        assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_me_admin_tem_todas_as_permissoes(client: AsyncClient, admin_token: str):
    response = await client.get(f"{settings.API_V1_STR}/auth/me", headers=auth_headers(admin_token))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["papel"]["nome"] == perms.ADMIN_ROLE_NAME
    assert set(data["permissoes"]) == set(perms.TODAS_PERMISSOES)
    assert data["tecnico_id"] is None

async def test_me_tecnico_traz_tecnico_vinculado(client: AsyncClient, tecnico_token: str, tecnico: Tecnico):
    response = await client.get(f"{settings.API_V1_STR}/auth/me", headers=auth_headers(tecnico_token))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["tecnico_id"] == str(tecnico.id)
    assert perms.PERM_PREENCHER_RME in data["permissoes"]
    assert perms.PERM_ADMINISTRAR_USUARIOS not in data["permissoes"]

async def test_me_sem_token(client: AsyncClient):
    response = await client.get(f"{settings.API_V1_STR}/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestChangePassword:
    async def test_change_password_success(self, client: AsyncClient, tecnico_token: str, tecnico_user: Usuario):
        payload = {"current_password": TEST_TECNICO_PASSWORD, "new_password": "NovaSenhaForte456!"}
        response = await client.post(
            f"{settings.API_V1_STR}/auth/change-password", headers=auth_headers(tecnico_token), json=payload
        )
        assert response.status_code == status.HTTP_204_NO_CONTENT

        login_antigo = await client.post(
            f"{settings.API_V1_STR}/auth/login/access-token",
            data={"username": tecnico_user.nome_usuario, "password": TEST_TECNICO_PASSWORD},
        )
        assert login_antigo.status_code == status.HTTP_401_UNAUTHORIZED

        login_novo = await client.post(
            f"{settings.API_V1_STR}/auth/login/access-token",
            data={"username": tecnico_user.nome_usuario, "password": "NovaSenhaForte456!"},
        )
        assert login_novo.status_code == status.HTTP_200_OK

    async def test_change_password_senha_atual_errada(self, client: AsyncClient, tecnico_token: str):
        payload = {"current_password": "SenhaErrada!", "new_password": "NovaSenhaForte456!"}
        response = await client.post(
            f"{settings.API_V1_STR}/auth/change-password", headers=auth_headers(tecnico_token), json=payload
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
