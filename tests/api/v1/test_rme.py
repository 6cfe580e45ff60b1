import uuid
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
from sunflow.models.tecnico import Tecnico
from sunflow.models.ticket import Ticket
from sunflow.schemas.enums import TicketStatusEnum
from sunflow.services.rme import dia_da_semana
from sunflow.services.rme_checklist import CATALOGO_CHECKLIST

from tests.utils import auth_headers, criar_ticket, criar_os

pytestmark = pytest.mark.asyncio


@pytest.fixture(scope="function")
def os_em_execucao(db: Session, ordem_servico: OrdemServico) -> OrdemServico:
    ordem_servico.ticket.status = TicketStatusEnum.EM_EXECUCAO.value
    db.commit()
    db.refresh(ordem_servico)
    return ordem_servico


def _rme_payload(os: OrdemServico, insumo: Insumo = None, **extra) -> dict:
    materiais = []
    if insumo is not None:
        materiais.append({"insumo_id": str(insumo.id), "nome": insumo.nome, "quantidade": "2", "unidade": insumo.unidade})
    materiais.append({"nome": "Abraçadeira", "quantidade": "10"})
    return {
        "ticket_id": str(os.ticket_id),
        "ordem_servico_id": str(os.id),
        "data_execucao": hoje_local().isoformat(),
        "servicos_executados": "Substituição de conectores MC4 oxidados na string 3.",
        "materiais_utilizados": materiais,
        **extra,
    }


async def _criar_rme(client: AsyncClient, token: str, payload: dict) -> dict:
    response = await client.post(f"{settings.API_V1_STR}/rme/", headers=auth_headers(token), json=payload)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


class TestPreenchimento:
    async def test_rascunho_nao_muda_o_ticket(
        self, client: AsyncClient, tecnico_token: str, db: Session, os_em_execucao: OrdemServico, tecnico: Tecnico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao))
        assert rme["status"] == "rascunho"
        assert rme["status_aprovacao"] == "pendente"
        assert rme["tecnico_id"] == str(tecnico.id)
        db.refresh(os_em_execucao.ticket)
        assert os_em_execucao.ticket.status == TicketStatusEnum.EM_EXECUCAO.value

    async def test_rme_concluido_envia_para_aprovacao(
        self, client: AsyncClient, tecnico_token: str, db: Session, os_em_execucao: OrdemServico
    ):
        await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        db.refresh(os_em_execucao.ticket)
        assert os_em_execucao.ticket.status == TicketStatusEnum.AGUARDANDO_RME.value

    async def test_rme_duplicado(self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico):
        payload = _rme_payload(os_em_execucao)
        await _criar_rme(client, tecnico_token, payload)
        response = await client.post(f"{settings.API_V1_STR}/rme/", headers=auth_headers(tecnico_token), json=payload)
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_ticket_fora_de_execucao(self, client: AsyncClient, tecnico_token: str, ordem_servico: OrdemServico):
        response = await client.post(
            f"{settings.API_V1_STR}/rme/", headers=auth_headers(tecnico_token), json=_rme_payload(ordem_servico)
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_os_de_outro_ticket(
        self, client: AsyncClient, tecnico_token: str, db: Session,
        os_em_execucao: OrdemServico, cliente: Cliente, tecnico: Tecnico,
    ):
        outro = criar_ticket(db, cliente=cliente, tecnico=tecnico, status_ticket=TicketStatusEnum.APROVADO)
        outra_os = criar_os(db, ticket=outro)
        payload = _rme_payload(os_em_execucao)
        payload["ordem_servico_id"] = str(outra_os.id)
        response = await client.post(f"{settings.API_V1_STR}/rme/", headers=auth_headers(tecnico_token), json=payload)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_area_tecnica_nao_preenche(self, client: AsyncClient, area_tecnica_token: str, os_em_execucao: OrdemServico):
        response = await client.post(
            f"{settings.API_V1_STR}/rme/", headers=auth_headers(area_tecnica_token), json=_rme_payload(os_em_execucao)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestAprovacaoRME:
    async def test_aprovar_baixa_estoque_e_conclui_ticket(
        self, client: AsyncClient, tecnico_token: str, area_tecnica_token: str, db: Session,
        os_em_execucao: OrdemServico, insumo: Insumo,
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, insumo, status="concluido"))
        response = await client.post(
            f"{settings.API_V1_STR}/rme/{rme['id']}/aprovar",
            headers=auth_headers(area_tecnica_token),
            json={"observacoes": "Serviço conferido"},
        )
        assert response.status_code == status.HTTP_200_OK, response.text
        assert response.json()["status_aprovacao"] == "aprovado"

        db.refresh(insumo)
        assert insumo.quantidade == Decimal("18")
        db.refresh(os_em_execucao.ticket)
        assert os_em_execucao.ticket.status == TicketStatusEnum.CONCLUIDO.value

        movimentacoes = await client.get(
            f"{settings.API_V1_STR}/insumos/{insumo.id}/movimentacoes", headers=auth_headers(area_tecnica_token)
        )
        assert movimentacoes.json()[0]["rme_id"] == rme["id"]

    async def test_aprovar_duas_vezes(
        self, client: AsyncClient, tecnico_token: str, admin_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        url = f"{settings.API_V1_STR}/rme/{rme['id']}/aprovar"
        assert (await client.post(url, headers=auth_headers(admin_token))).status_code == status.HTTP_200_OK
        response = await client.post(url, headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_estoque_insuficiente_impede_aprovacao(
        self, client: AsyncClient, tecnico_token: str, admin_token: str, db: Session,
        os_em_execucao: OrdemServico, insumo: Insumo,
    ):
        payload = _rme_payload(os_em_execucao, insumo, status="concluido")
        payload["materiais_utilizados"][0]["quantidade"] = "50"
        rme = await _criar_rme(client, tecnico_token, payload)
        response = await client.post(f"{settings.API_V1_STR}/rme/{rme['id']}/aprovar", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_409_CONFLICT
        db.refresh(insumo)
        assert insumo.quantidade == Decimal("20")

    async def test_rejeitar_volta_para_execucao(
        self, client: AsyncClient, tecnico_token: str, area_tecnica_token: str, db: Session, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        response = await client.post(
            f"{settings.API_V1_STR}/rme/{rme['id']}/rejeitar",
            headers=auth_headers(area_tecnica_token),
            json={"motivo": "Faltam as medições de tensão das strings"},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status_aprovacao"] == "rejeitado"
        db.refresh(os_em_execucao.ticket)
        assert os_em_execucao.ticket.status == TicketStatusEnum.EM_EXECUCAO.value

        # a correção devolve o RME para a fila de aprovação
        response = await client.put(
            f"{settings.API_V1_STR}/rme/{rme['id']}",
            headers=auth_headers(tecnico_token),
            json={"medicoes_eletricas": {"string_3_vdc": 612.4}},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status_aprovacao"] == "pendente"

    async def test_rejeitar_sem_motivo(
        self, client: AsyncClient, tecnico_token: str, admin_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        response = await client.post(
            f"{settings.API_V1_STR}/rme/{rme['id']}/rejeitar", headers=auth_headers(admin_token), json={"motivo": "  "}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_rme_aprovado_nao_pode_ser_editado(
        self, client: AsyncClient, tecnico_token: str, admin_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        await client.post(f"{settings.API_V1_STR}/rme/{rme['id']}/aprovar", headers=auth_headers(admin_token))
        response = await client.put(
            f"{settings.API_V1_STR}/rme/{rme['id']}",
            headers=auth_headers(tecnico_token),
            json={"observacoes_tecnicas": "ajuste"},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_tecnico_nao_aprova(self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        response = await client.post(f"{settings.API_V1_STR}/rme/{rme['id']}/aprovar", headers=auth_headers(tecnico_token))
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestAssistenteRME:
    async def test_campos_do_assistente(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        payload = _rme_payload(
            os_em_execucao,
            turno="manha",
            tipo_servico=["limpeza", "limpeza", "eletrica"],
            colaboracao=["  Carlos  Lima ", "Carlos Lima", "Ana"],
            hora_inicio="07:30",
            hora_fim="11:45",
            numero_inversor="INV-02",
            qtd_modulos_limpos=120,
            imagens_postadas=True,
            assinaturas={"responsavel": {"nome": "João da Silva", "at": "2026-10-18T14:00:00Z"}},
        )
        rme = await _criar_rme(client, tecnico_token, payload)

        assert rme["dia_semana"] == dia_da_semana(hoje_local())
        assert rme["nome_usina"] == "Usina Solar Cerrado"
        assert rme["tipo_servico"] == ["limpeza", "eletrica"]
        assert rme["colaboracao"] == ["Carlos Lima", "Ana"]
        assert rme["hora_inicio"] == "07:30:00"
        assert rme["qtd_modulos_limpos"] == 120
        assert rme["assinaturas"]["responsavel"]["nome"] == "João da Silva"
        assert rme["assinaturas"]["gerente_projeto"] is None

    async def test_checklist_populado_do_catalogo(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao))
        itens = rme["checklist_items"]
        assert len(itens) == sum(len(v) for v in CATALOGO_CHECKLIST.values())
        assert {i["categoria"] for i in itens} == set(CATALOGO_CHECKLIST)
        assert not any(i["checked"] for i in itens)

    async def test_marcar_item(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao))
        item = next(i for i in rme["checklist_items"] if i["item_key"] == "luvas_isolantes")
        url = f"{settings.API_V1_STR}/rme/{rme['id']}/checklist"

        response = await client.patch(f"{url}/{item['id']}", headers=auth_headers(tecnico_token), json={"checked": True})
        assert response.status_code == status.HTTP_200_OK, response.text
        assert response.json()["checked"] is True

        checklist = (await client.get(url, headers=auth_headers(tecnico_token))).json()
        marcados = [i["item_key"] for i in checklist if i["checked"]]
        assert marcados == ["luvas_isolantes"]

    async def test_lote_marca_categorias_e_respeita_itens(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao))
        escada = next(i for i in rme["checklist_items"] if i["item_key"] == "escada")
        response = await client.put(
            f"{settings.API_V1_STR}/rme/{rme['id']}/checklist",
            headers=auth_headers(tecnico_token),
            json={"categorias": ["ferramentas", "epis"], "itens": [{"id": escada["id"], "checked": False}]},
        )
        assert response.status_code == status.HTTP_200_OK, response.text
        por_chave = {i["item_key"]: i for i in response.json()}
        assert por_chave["multimetro"]["checked"] is True
        assert por_chave["capacete"]["checked"] is True
        assert por_chave["escada"]["checked"] is False
        assert por_chave["desenergizacao"]["checked"] is False

    async def test_item_inexistente(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao))
        response = await client.patch(
            f"{settings.API_V1_STR}/rme/{rme['id']}/checklist/{uuid.uuid4()}",
            headers=auth_headers(tecnico_token),
            json={"checked": True},
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_checklist_de_rme_aprovado_nao_muda(
        self, client: AsyncClient, tecnico_token: str, admin_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao, status="concluido"))
        await client.post(f"{settings.API_V1_STR}/rme/{rme['id']}/aprovar", headers=auth_headers(admin_token))
        response = await client.put(
            f"{settings.API_V1_STR}/rme/{rme['id']}/checklist",
            headers=auth_headers(tecnico_token),
            json={"categorias": ["epis"]},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_quantidade_negativa(self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico):
        response = await client.post(
            f"{settings.API_V1_STR}/rme/",
            headers=auth_headers(tecnico_token),
            json=_rme_payload(os_em_execucao, qtd_string_box=-1),
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_mudar_data_recalcula_dia_da_semana(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(os_em_execucao))
        response = await client.put(
            f"{settings.API_V1_STR}/rme/{rme['id']}",
            headers=auth_headers(tecnico_token),
            json={"data_execucao": "2026-10-18"},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["dia_semana"] == "Domingo"

    async def test_pdf_com_checklist_e_assinaturas(
        self, client: AsyncClient, tecnico_token: str, os_em_execucao: OrdemServico
    ):
        rme = await _criar_rme(client, tecnico_token, _rme_payload(
            os_em_execucao, turno="tarde", tipo_servico=["internet"],
            assinaturas={"gerente_manutencao": {"nome": "Paula Reis", "at": "2026-10-18T17:30:00Z"}},
        ))
        await client.put(
            f"{settings.API_V1_STR}/rme/{rme['id']}/checklist",
            headers=auth_headers(tecnico_token),
            json={"categorias": ["internet"]},
        )
        response = await client.get(f"{settings.API_V1_STR}/rme/{rme['id']}/pdf", headers=auth_headers(tecnico_token))
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
