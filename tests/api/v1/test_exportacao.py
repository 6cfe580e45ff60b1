from unittest import mock

import pytest
from httpx import AsyncClient
from fastapi import status

from sunflow.core.config import settings
from sunflow.core.datas import hoje_local
from sunflow.models.cliente import Cliente
from sunflow.models.insumo import Insumo

pytestmark = pytest.mark.asyncio

URL = f"{settings.API_V1_STR}/exportacao/"
CHAVE = {"x-api-key": "chave-exportacao-teste"}


class TestAutenticacaoExportacao:
    async def test_sem_chave(self, client: AsyncClient):
        response = await client.get(URL, params={"table": "clientes"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_chave_errada(self, client: AsyncClient):
        response = await client.get(URL, params={"table": "clientes"}, headers={"x-api-key": "outra-chave"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_chave_nao_configurada(self, client: AsyncClient):
        with mock.patch.object(settings, "EXPORT_API_KEY", None):
            response = await client.get(URL, params={"table": "clientes"}, headers=CHAVE)
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR

    async def test_token_de_usuario_nao_basta(self, client: AsyncClient, admin_token: str):
        response = await client.get(URL, params={"table": "clientes"}, headers={"Authorization": f"Bearer {admin_token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestConsultaExportacao:
    async def test_instrucoes_sem_tabela(self, client: AsyncClient):
        response = await client.get(URL, headers=CHAVE)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert "tickets" in data["available_tables"]
        assert "usuarios" not in data["available_tables"]
        assert "x-api-key" in data["usage"]["headers"]

    async def test_tabela_nao_permitida(self, client: AsyncClient):
        response = await client.get(URL, params={"table": "usuarios"}, headers=CHAVE)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_ordenacao_por_coluna_nao_permitida(self, client: AsyncClient):
        response = await client.get(URL, params={"table": "clientes", "order_by": "usuario_id"}, headers=CHAVE)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_data_invalida(self, client: AsyncClient):
        response = await client.get(URL, params={"table": "clientes", "date_from": "31/12/2025"}, headers=CHAVE)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_json(self, client: AsyncClient, cliente: Cliente):
        response = await client.get(URL, params={"table": "clientes", "limit": 50}, headers=CHAVE)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["table"] == "clientes"
        assert data["count"] == 1
        assert data["limit"] == 50
        assert data["offset"] == 0
        linha = data["data"][0]
        assert linha["id"] == str(cliente.id)
        assert linha["cnpj_cpf"] == "11.222.333/0001-81"
        assert linha["latitude"] == pytest.approx(-16.70)
        assert "usuario_id" not in linha

    async def test_ordenacao_e_paginacao(self, client: AsyncClient, insumo: Insumo, db):
        db.add(Insumo(nome="Fusível 15A", unidade="un"))
        db.commit()
        params = {"table": "insumos", "order_by": "nome", "order_dir": "asc"}
        primeira = await client.get(URL, params={**params, "limit": 1}, headers=CHAVE)
        segunda = await client.get(URL, params={**params, "limit": 1, "offset": 1}, headers=CHAVE)
        assert primeira.json()["data"][0]["nome"] == "Conector MC4"
        assert segunda.json()["data"][0]["nome"] == "Fusível 15A"

    async def test_csv(self, client: AsyncClient, cliente: Cliente):
        response = await client.get(URL, params={"table": "clientes", "format": "csv"}, headers=CHAVE)
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/csv")
        esperado = f'clientes_{hoje_local().strftime("%Y%m%d")}.csv'
        assert esperado in response.headers["content-disposition"]
        linhas = response.text.splitlines()
        assert linhas[0].split(",")[:3] == ["id", "empresa", "cnpj_cpf"]
        assert "Usina Solar Cerrado" in linhas[1]

    async def test_csv_vazio(self, client: AsyncClient):
        response = await client.get(URL, params={"table": "prestadores", "format": "csv"}, headers=CHAVE)
        assert response.status_code == status.HTTP_200_OK
        assert response.text == ""
