import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.models.ordem_servico import OrdemServico
from sunflow.services.presenca import criar_token, link_confirmacao

pytestmark = pytest.mark.asyncio

URL = f"{settings.API_V1_STR}/presenca/confirmar"


def _token(db: Session, os: OrdemServico, **kwargs) -> str:
    registro = criar_token(db, os=os, **kwargs)
    db.commit()
    return registro.token


class TestConfirmacaoPresenca:
    async def test_parametros_ausentes(self, client: AsyncClient):
        response = await client.get(URL)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "text/html" in response.headers["content-type"]

    async def test_os_id_invalido(self, client: AsyncClient):
        response = await client.get(URL, params={"os_id": "nao-e-uuid", "token": "abc"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_os_inexistente(self, client: AsyncClient):
        response = await client.get(URL, params={"os_id": str(uuid.uuid4()), "token": "abc"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_confirmacao_com_sucesso(self, client: AsyncClient, db: Session, ordem_servico: OrdemServico):
        token = _token(db, ordem_servico)
        response = await client.get(URL, params={"os_id": str(ordem_servico.id), "token": token})
        assert response.status_code == status.HTTP_200_OK
        assert "Presença Confirmada!" in response.text

        db.refresh(ordem_servico)
        assert ordem_servico.presence_confirmed_at is not None
        assert ordem_servico.presence_confirmed_by == "João da Silva"

    async def test_link_reutilizado(self, client: AsyncClient, db: Session, ordem_servico: OrdemServico):
        token = _token(db, ordem_servico)
        params = {"os_id": str(ordem_servico.id), "token": token}
        await client.get(URL, params=params)
        response = await client.get(URL, params=params)
        assert response.status_code == status.HTTP_200_OK
        assert "Presença já confirmada!" in response.text

    async def test_token_expirado(self, client: AsyncClient, db: Session, ordem_servico: OrdemServico):
        token = _token(db, ordem_servico, validade=timedelta(hours=-1))
        response = await client.get(URL, params={"os_id": str(ordem_servico.id), "token": token})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "expirado" in response.text

    async def test_limite_de_tentativas(self, client: AsyncClient, db: Session, ordem_servico: OrdemServico):
        params = {"os_id": str(ordem_servico.id), "token": "token-errado"}
        for _ in range(5):
            response = await client.get(URL, params=params)
            assert response.status_code == status.HTTP_400_BAD_REQUEST

        token = _token(db, ordem_servico)
        response = await client.get(URL, params={"os_id": str(ordem_servico.id), "token": token})
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        db.refresh(ordem_servico)
        assert ordem_servico.presence_confirmed_at is None


async def test_link_confirmacao_aponta_para_endpoint_publico():
    os_id = uuid.uuid4()
    link = link_confirmacao(os_id, "abc")
    assert link.endswith(f"{settings.API_V1_STR}/presenca/confirmar?os_id={os_id}&token=abc")
