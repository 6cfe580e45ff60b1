import uuid

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.core.datas import hoje_local
from sunflow.models.cliente import Cliente
from sunflow.models.tecnico import Tecnico
from sunflow.models.ticket import Ticket
from sunflow.models.usuario import Usuario
from sunflow.schemas.enums import TicketStatusEnum, PrioridadeEnum

from tests.utils import auth_headers, criar_ticket, criar_os

pytestmark = pytest.mark.asyncio


async def test_create_ticket_numeracao_sequencial(client: AsyncClient, admin_token: str, cliente: Cliente):
    ano = hoje_local().year
    numeros = []
    for titulo in ("Inversor desligado", "Limpeza dos módulos"):
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/",
            headers=auth_headers(admin_token),
            json={"titulo": titulo, "cliente_id": str(cliente.id), "prioridade": "alta"},
        )
        assert response.status_code == status.HTTP_201_CREATED, response.text
        data = response.json()
        assert data["status"] == TicketStatusEnum.ABERTO.value
        assert data["cliente"]["empresa"] == cliente.empresa
        numeros.append(data["numero_ticket"])

    assert numeros == [f"TKT-{ano}-00001", f"TKT-{ano}-00002"]

async def test_create_ticket_cliente_inexistente(client: AsyncClient, admin_token: str):
    response = await client.post(
        f"{settings.API_V1_STR}/tickets/",
        headers=auth_headers(admin_token),
        json={"titulo": "Sem cliente", "cliente_id": str(uuid.uuid4())},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND

async def test_create_ticket_registra_historico(client: AsyncClient, admin_token: str, cliente: Cliente):
    response = await client.post(
        f"{settings.API_V1_STR}/tickets/",
        headers=auth_headers(admin_token),
        json={"titulo": "String sem geração", "cliente_id": str(cliente.id)},
    )
    ticket_id = response.json()["id"]

    historico = await client.get(f"{settings.API_V1_STR}/tickets/{ticket_id}/historico", headers=auth_headers(admin_token))
    assert historico.status_code == status.HTTP_200_OK
    entradas = historico.json()
    assert len(entradas) == 1
    assert entradas[0]["status_anterior"] is None
    assert entradas[0]["status_novo"] == TicketStatusEnum.ABERTO.value


class TestTransicoesStatus:
    async def test_transicao_valida(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente)
        response = await client.patch(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/status",
            headers=auth_headers(admin_token),
            json={"status": "aguardando_aprovacao", "observacoes": "Orçamento enviado"},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == TicketStatusEnum.AGUARDANDO_APROVACAO.value

        historico = await client.get(f"{settings.API_V1_STR}/tickets/{ticket.id}/historico", headers=auth_headers(admin_token))
        assert [h["status_novo"] for h in historico.json()][-1] == TicketStatusEnum.AGUARDANDO_APROVACAO.value

    async def test_transicao_invalida_retorna_409(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente)
        response = await client.patch(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/status",
            headers=auth_headers(admin_token),
            json={"status": "concluido"},
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"].startswith("Transição de status inválida")

        db.refresh(ticket)
        assert ticket.status == TicketStatusEnum.ABERTO.value

    async def test_ticket_cancelado_e_terminal(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.CANCELADO)
        response = await client.patch(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/status",
            headers=auth_headers(admin_token),
            json={"status": "aberto"},
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_mudanca_de_status_notifica_criador(
        self, client: AsyncClient, admin_token: str, db: Session, cliente_do_portal: Cliente, cliente_user: Usuario, cliente_token: str
    ):
        ticket = criar_ticket(db, cliente=cliente_do_portal, criado_por=cliente_user)
        await client.patch(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/status",
            headers=auth_headers(admin_token),
            json={"status": "aguardando_aprovacao"},
        )
        contagem = await client.get(f"{settings.API_V1_STR}/notificacoes/nao-lidas/contagem", headers=auth_headers(cliente_token))
        assert contagem.json()["nao_lidas"] == 1


class TestAprovacao:
    async def test_aprovar_ticket(self, client: AsyncClient, area_tecnica_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.AGUARDANDO_APROVACAO)
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/aprovacao",
            headers=auth_headers(area_tecnica_token),
            json={"status": "aprovado"},
        )
        assert response.status_code == status.HTTP_201_CREATED, response.text
        assert response.json()["status"] == "aprovado"

        db.refresh(ticket)
        assert ticket.status == TicketStatusEnum.APROVADO.value

    async def test_rejeitar_sem_observacoes_retorna_422(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.AGUARDANDO_APROVACAO)
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/aprovacao",
            headers=auth_headers(admin_token),
            json={"status": "rejeitado", "observacoes": "   "},
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        db.refresh(ticket)
        assert ticket.status == TicketStatusEnum.AGUARDANDO_APROVACAO.value

    async def test_rejeitar_com_observacoes(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.AGUARDANDO_APROVACAO)
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/aprovacao",
            headers=auth_headers(admin_token),
            json={"status": "rejeitado", "observacoes": "Fora do escopo do contrato"},
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["observacoes"] == "Fora do escopo do contrato"
        db.refresh(ticket)
        assert ticket.status == TicketStatusEnum.REJEITADO.value

    async def test_aprovar_ticket_que_nao_aguarda_aprovacao(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente)
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/aprovacao",
            headers=auth_headers(admin_token),
            json={"status": "aprovado"},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_tecnico_nao_aprova(self, client: AsyncClient, tecnico_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.AGUARDANDO_APROVACAO)
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/aprovacao",
            headers=auth_headers(tecnico_token),
            json={"status": "aprovado"},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestExclusao:
    async def test_excluir_ticket_aberto(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente)
        response = await client.delete(f"{settings.API_V1_STR}/tickets/{ticket.id}", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_200_OK
        assert ticket.numero_ticket in response.json()["msg"]

        response = await client.get(f"{settings.API_V1_STR}/tickets/{ticket.id}", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_excluir_ticket_em_execucao(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.EM_EXECUCAO)
        response = await client.delete(f"{settings.API_V1_STR}/tickets/{ticket.id}", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_excluir_ticket_com_ordem_servico(
        self, client: AsyncClient, admin_token: str, db: Session, ticket_aprovado: Ticket
    ):
        criar_os(db, ticket=ticket_aprovado)
        ticket_aprovado.status = TicketStatusEnum.CANCELADO.value
        db.add(ticket_aprovado)
        db.commit()

        response = await client.delete(f"{settings.API_V1_STR}/tickets/{ticket_aprovado.id}", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "ordem de serviço" in response.json()["detail"]


class TestAtribuicaoTecnico:
    async def test_atribuir_tecnico(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente, tecnico: Tecnico):
        ticket = criar_ticket(db, cliente=cliente)
        response = await client.put(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/tecnico",
            headers=auth_headers(admin_token),
            json={"tecnico_id": str(tecnico.id)},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["tecnico_responsavel_id"] == str(tecnico.id)
        assert response.json()["tecnico_responsavel"]["nome"] == tecnico.nome

    async def test_atribuir_tecnico_a_ticket_concluido(
        self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente, tecnico: Tecnico
    ):
        ticket = criar_ticket(db, cliente=cliente, status_ticket=TicketStatusEnum.CONCLUIDO)
        response = await client.put(
            f"{settings.API_V1_STR}/tickets/{ticket.id}/tecnico",
            headers=auth_headers(admin_token),
            json={"tecnico_id": str(tecnico.id)},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestEscopoDeAcesso:
    async def test_cliente_ve_apenas_os_proprios_tickets(
        self, client: AsyncClient, cliente_token: str, db: Session, cliente: Cliente, cliente_do_portal: Cliente
    ):
        proprio = criar_ticket(db, cliente=cliente_do_portal, titulo="Meu ticket")
        alheio = criar_ticket(db, cliente=cliente, titulo="Ticket de outra empresa")

        response = await client.get(f"{settings.API_V1_STR}/tickets/", headers=auth_headers(cliente_token))
        assert response.status_code == status.HTTP_200_OK
        assert [t["id"] for t in response.json()] == [str(proprio.id)]

        response = await client.get(f"{settings.API_V1_STR}/tickets/{alheio.id}", headers=auth_headers(cliente_token))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_cliente_nao_abre_ticket_para_outra_empresa(
        self, client: AsyncClient, cliente_token: str, cliente: Cliente, cliente_do_portal: Cliente
    ):
        response = await client.post(
            f"{settings.API_V1_STR}/tickets/",
            headers=auth_headers(cliente_token),
            json={"titulo": "Pedido indevido", "cliente_id": str(cliente.id)},
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(
            f"{settings.API_V1_STR}/tickets/",
            headers=auth_headers(cliente_token),
            json={"titulo": "Pedido da minha fazenda", "cliente_id": str(cliente_do_portal.id)},
        )
        assert response.status_code == status.HTTP_201_CREATED

    async def test_tecnico_lista_apenas_tickets_atribuidos(
        self, client: AsyncClient, tecnico_token: str, db: Session, cliente: Cliente, tecnico: Tecnico, outro_tecnico: Tecnico
    ):
        meu = criar_ticket(db, cliente=cliente, tecnico=tecnico, prioridade=PrioridadeEnum.ALTA)
        outro = criar_ticket(db, cliente=cliente, tecnico=outro_tecnico)

        response = await client.get(f"{settings.API_V1_STR}/tickets/", headers=auth_headers(tecnico_token))
        assert [t["id"] for t in response.json()] == [str(meu.id)]

        response = await client.get(f"{settings.API_V1_STR}/tickets/{outro.id}", headers=auth_headers(tecnico_token))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_filtro_por_status(self, client: AsyncClient, admin_token: str, db: Session, cliente: Cliente):
        criar_ticket(db, cliente=cliente, titulo="Aberto")
        aprovado = criar_ticket(db, cliente=cliente, titulo="Aprovado", status_ticket=TicketStatusEnum.APROVADO)

        response = await client.get(
            f"{settings.API_V1_STR}/tickets/", headers=auth_headers(admin_token), params={"status": "aprovado"}
        )
        assert [t["id"] for t in response.json()] == [str(aprovado.id)]
