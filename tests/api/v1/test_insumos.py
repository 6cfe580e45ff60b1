from decimal import Decimal

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.models.insumo import Insumo

from tests.utils import auth_headers

pytestmark = pytest.mark.asyncio

URL = f"{settings.API_V1_STR}/insumos"


async def test_create_insumo_com_nivel(client: AsyncClient, area_tecnica_token: str):
    response = await client.post(
        f"{URL}/",
        headers=auth_headers(area_tecnica_token),
        json={"nome": "Cabo solar 6mm", "unidade": "m", "quantidade": "40", "estoque_minimo": "50", "estoque_critico": "10"},
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    assert response.json()["nivel_estoque"] == "baixo"


async def test_tecnico_nao_gerencia_insumos(client: AsyncClient, tecnico_token: str):
    response = await client.post(f"{URL}/", headers=auth_headers(tecnico_token), json={"nome": "Fusível"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


class TestMovimentacoes:
    async def test_entrada(self, client: AsyncClient, area_tecnica_token: str, db: Session, insumo: Insumo):
        response = await client.post(
            f"{URL}/{insumo.id}/movimentacoes",
            headers=auth_headers(area_tecnica_token),
            json={"tipo": "entrada", "quantidade": "5", "motivo": "Compra NF 1234"},
        )
        assert response.status_code == status.HTTP_201_CREATED, response.text
        assert Decimal(response.json()["saldo_resultante"]) == Decimal("25")
        db.refresh(insumo)
        assert insumo.quantidade == Decimal("25")

    async def test_saida_maior_que_saldo(self, client: AsyncClient, area_tecnica_token: str, db: Session, insumo: Insumo):
        response = await client.post(
            f"{URL}/{insumo.id}/movimentacoes",
            headers=auth_headers(area_tecnica_token),
            json={"tipo": "saida", "quantidade": "21"},
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        db.refresh(insumo)
        assert insumo.quantidade == Decimal("20")

    async def test_ajuste_define_saldo_e_gera_alerta(self, client: AsyncClient, area_tecnica_token: str, insumo: Insumo):
        response = await client.post(
            f"{URL}/{insumo.id}/movimentacoes",
            headers=auth_headers(area_tecnica_token),
            json={"tipo": "ajuste", "quantidade": "2", "motivo": "Inventário"},
        )
        assert response.status_code == status.HTTP_201_CREATED

        alertas = await client.get(f"{URL}/alertas", headers=auth_headers(area_tecnica_token))
        assert alertas.status_code == status.HTTP_200_OK
        assert [(a["nome"], a["nivel_estoque"]) for a in alertas.json()] == [("Conector MC4", "critico")]

    async def test_historico(self, client: AsyncClient, area_tecnica_token: str, tecnico_token: str, insumo: Insumo):
        for tipo, quantidade in (("entrada", "10"), ("saida", "3")):
            await client.post(
                f"{URL}/{insumo.id}/movimentacoes",
                headers=auth_headers(area_tecnica_token),
                json={"tipo": tipo, "quantidade": quantidade},
            )
        response = await client.get(f"{URL}/{insumo.id}/movimentacoes", headers=auth_headers(tecnico_token))
        assert response.status_code == status.HTTP_200_OK
        assert sorted(m["tipo"] for m in response.json()) == ["entrada", "saida"]
        assert all(m["responsavel"]["nome_usuario"] == "area_tecnica" for m in response.json())
