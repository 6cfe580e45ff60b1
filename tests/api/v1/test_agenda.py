import uuid
from datetime import time, timedelta
from unittest import mock

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.core.datas import hoje_local, agora_utc
from sunflow.models.cliente import Cliente
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.tecnico import Tecnico
from sunflow.schemas.enums import TicketStatusEnum

from tests.utils import auth_headers, criar_ticket, criar_os

pytestmark = pytest.mark.asyncio


def _programar(db: Session, os: OrdemServico, dia, inicio: time, fim: time, duracao=None) -> OrdemServico:
    os.data_programada = dia
    os.hora_inicio = inicio
    os.hora_fim = fim
    os.duracao_estimada_min = duracao
    db.add(os)
    db.commit()
    db.refresh(os)
    return os


class TestConflitos:
    async def test_conflito_detectado(
        self, client: AsyncClient, area_tecnica_token: str, db: Session, ordem_servico: OrdemServico, tecnico: Tecnico
    ):
        dia = hoje_local() + timedelta(days=2)
        _programar(db, ordem_servico, dia, time(8, 0), time(10, 0))
        response = await client.get(
            f"{settings.API_V1_STR}/agenda/conflitos",
            headers=auth_headers(area_tecnica_token),
            params={"tecnico_id": str(tecnico.id), "data": dia.isoformat(), "hora_inicio": "09:30", "hora_fim": "10:30"},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["has_conflict"] is True
        assert data["conflicts"][0]["numero_os"] == ordem_servico.numero_os

    async def test_reagendamento_ignora_a_propria_os(
        self, client: AsyncClient, area_tecnica_token: str, db: Session, ordem_servico: OrdemServico, tecnico: Tecnico
    ):
        dia = hoje_local() + timedelta(days=2)
        _programar(db, ordem_servico, dia, time(8, 0), time(10, 0))
        response = await client.get(
            f"{settings.API_V1_STR}/agenda/conflitos",
            headers=auth_headers(area_tecnica_token),
            params={
                "tecnico_id": str(tecnico.id), "data": dia.isoformat(),
                "hora_inicio": "09:00", "hora_fim": "11:00", "excluir_os_id": str(ordem_servico.id),
            },
        )
        assert response.json() == {"has_conflict": False, "conflicts": []}

    async def test_os_cancelada_nao_conflita(
        self, client: AsyncClient, area_tecnica_token: str, db: Session, ordem_servico: OrdemServico, tecnico: Tecnico
    ):
        dia = hoje_local() + timedelta(days=2)
        _programar(db, ordem_servico, dia, time(8, 0), time(10, 0))
        ordem_servico.ticket.status = TicketStatusEnum.CANCELADO.value
        db.commit()
        response = await client.get(
            f"{settings.API_V1_STR}/agenda/conflitos",
            headers=auth_headers(area_tecnica_token),
            params={"tecnico_id": str(tecnico.id), "data": dia.isoformat(), "hora_inicio": "08:00", "hora_fim": "10:00"},
        )
        assert response.json()["has_conflict"] is False


class TestCargaTrabalho:
    async def test_carga_por_dia(
        self, client: AsyncClient, area_tecnica_token: str, db: Session,
        ordem_servico: OrdemServico, cliente: Cliente, tecnico: Tecnico,
    ):
        dia = hoje_local() + timedelta(days=1)
        _programar(db, ordem_servico, dia, time(8, 0), time(10, 0))
        segundo = criar_ticket(db, cliente=cliente, tecnico=tecnico, titulo="Limpeza dos módulos", status_ticket=TicketStatusEnum.APROVADO)
        segunda_os = _programar(db, criar_os(db, ticket=segundo), dia, time(13, 0), time(14, 0), duracao=45)
        segunda_os.ticket.status = TicketStatusEnum.CONCLUIDO.value
        db.commit()

        response = await client.get(
            f"{settings.API_V1_STR}/agenda/carga-trabalho",
            headers=auth_headers(area_tecnica_token),
            params={"tecnico_id": str(tecnico.id), "inicio": hoje_local().isoformat()},
        )
        assert response.status_code == status.HTTP_200_OK
        dias = response.json()
        assert len(dias) == 1
        assert dias[0] == {
            "data": dia.isoformat(),
            "total_os": 2,
            "os_concluidas": 1,
            "os_pendentes": 1,
            "total_minutos": 165,
        }

    async def test_periodo_invertido(self, client: AsyncClient, area_tecnica_token: str, tecnico: Tecnico):
        hoje = hoje_local()
        response = await client.get(
            f"{settings.API_V1_STR}/agenda/carga-trabalho",
            headers=auth_headers(area_tecnica_token),
            params={"tecnico_id": str(tecnico.id), "inicio": hoje.isoformat(), "fim": (hoje - timedelta(days=1)).isoformat()},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_tecnico_inexistente(self, client: AsyncClient, area_tecnica_token: str):
        response = await client.get(
            f"{settings.API_V1_STR}/agenda/carga-trabalho",
            headers=auth_headers(area_tecnica_token),
            params={"tecnico_id": str(uuid.uuid4())},
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestPainelPresenca:
    async def test_estados_de_presenca(
        self, client: AsyncClient, admin_token: str, db: Session,
        ordem_servico: OrdemServico, cliente: Cliente, tecnico: Tecnico,
    ):
        amanha = hoje_local() + timedelta(days=1)
        _programar(db, ordem_servico, amanha, time(8, 0), time(9, 0))
        ordem_servico.reminder_sent_at = agora_utc()
        db.commit()
        segundo = criar_ticket(db, cliente=cliente, tecnico=tecnico, status_ticket=TicketStatusEnum.APROVADO)
        _programar(db, criar_os(db, ticket=segundo), amanha, time(10, 0), time(11, 0))

        response = await client.get(
            f"{settings.API_V1_STR}/agenda/presenca",
            headers=auth_headers(admin_token),
            params={"inicio": amanha.isoformat()},
        )
        assert response.status_code == status.HTTP_200_OK
        estados = [p["estado"] for p in response.json()]
        assert estados == ["pendente", "sem_lembrete"]


class TestFilaEmails:
    async def test_fila_somente_admin(self, client: AsyncClient, area_tecnica_token: str):
        response = await client.get(f"{settings.API_V1_STR}/agenda/fila-emails", headers=auth_headers(area_tecnica_token))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_fila_filtrada_por_status(
        self, client: AsyncClient, admin_token: str, ordem_servico: OrdemServico, resend_mock: mock.MagicMock
    ):
        resend_mock.side_effect = Exception("timeout")
        amanha = hoje_local() + timedelta(days=1)
        await client.put(
            f"{settings.API_V1_STR}/ordens-servico/{ordem_servico.id}/agendamento",
            headers=auth_headers(admin_token),
            json={"data_programada": amanha.isoformat(), "hora_inicio": "08:00", "hora_fim": "09:00"},
        )

        pendentes = await client.get(
            f"{settings.API_V1_STR}/agenda/fila-emails", headers=auth_headers(admin_token), params={"status": "pending"}
        )
        assert pendentes.status_code == status.HTTP_200_OK
        assert len(pendentes.json()) == 1
        assert pendentes.json()[0]["ordem_servico_id"] == str(ordem_servico.id)

        falhos = await client.get(
            f"{settings.API_V1_STR}/agenda/fila-emails", headers=auth_headers(admin_token), params={"status": "failed"}
        )
        assert falhos.json() == []
