from datetime import time, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.core.datas import hoje_local
from sunflow.models.cliente import Cliente
from sunflow.models.insumo import Insumo
from sunflow.models.ordem_servico import OrdemServico
from sunflow.schemas.enums import TicketStatusEnum, PrioridadeEnum

from tests.utils import auth_headers, criar_ticket

pytestmark = pytest.mark.asyncio

URL = f"{settings.API_V1_STR}/dashboard/"


async def test_dashboard_resumo(
    client: AsyncClient, area_tecnica_token: str, db: Session,
    cliente: Cliente, ordem_servico: OrdemServico, insumo: Insumo,
):
    hoje = hoje_local()
    atrasado = criar_ticket(
        db, cliente=cliente, titulo="Monitoramento offline", prioridade=PrioridadeEnum.ALTA,
        data_vencimento=hoje - timedelta(days=2),
    )
    criar_ticket(
        db, cliente=cliente, titulo="Vencido mas cancelado",
        data_vencimento=hoje - timedelta(days=2), status_ticket=TicketStatusEnum.CANCELADO,
    )
    ordem_servico.data_programada = hoje
    ordem_servico.hora_inicio = time(8, 0)
    ordem_servico.hora_fim = time(9, 0)
    insumo.quantidade = Decimal("1")
    db.commit()

    response = await client.get(URL, headers=auth_headers(area_tecnica_token))
    assert response.status_code == status.HTTP_200_OK, response.text
    data = response.json()

    assert set(data["tickets_por_status"]) == {s.value for s in TicketStatusEnum}
    assert data["tickets_por_status"]["aberto"] == 1
    assert data["tickets_por_status"]["ordem_servico_gerada"] == 1
    assert data["tickets_por_status"]["cancelado"] == 1
    assert data["tickets_por_prioridade"] == {"alta": 1, "media": 1}
    assert data["tickets_abertos"] == 2
    assert data["os_agendadas_hoje"] == 1
    assert data["rme_pendentes_aprovacao"] == 0
    assert data["insumos_em_alerta"] == 1
    assert [t["id"] for t in data["tickets_atrasados"]] == [str(atrasado.id)]


async def test_cliente_sem_acesso_ao_dashboard(client: AsyncClient, cliente_token: str):
    response = await client.get(URL, headers=auth_headers(cliente_token))
    assert response.status_code == status.HTTP_403_FORBIDDEN
