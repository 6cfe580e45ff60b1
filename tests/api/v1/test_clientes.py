from io import BytesIO

import pandas as pd
import pytest
from httpx import AsyncClient
from fastapi import status

from sunflow.core.config import settings
from sunflow.models.cliente import Cliente

from tests.utils import auth_headers

pytestmark = pytest.mark.asyncio

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _planilha(linhas, colunas=("Empresa", "CNPJ/CPF", "Endereço", "Cidade", "Estado", "CEP")) -> bytes:
    output = BytesIO()
    pd.DataFrame(linhas, columns=list(colunas)).to_excel(output, index=False, engine="openpyxl")
    return output.getvalue()


async def test_create_cliente_formata_documento(client: AsyncClient, area_tecnica_token: str):
    payload = {
        "empresa": "Solar Vale do Araguaia",
        "cnpj_cpf": "11222333000181",
        "cidade": "Rio Verde",
        "estado": "go",
        "cep": "75900000",
    }
    response = await client.post(f"{settings.API_V1_STR}/clientes/", headers=auth_headers(area_tecnica_token), json=payload)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    data = response.json()
    assert data["cnpj_cpf"] == "11.222.333/0001-81"
    assert data["estado"] == "GO"
    assert data["cep"] == "75900-000"

async def test_create_cliente_cpf(client: AsyncClient, admin_token: str):
    payload = {"empresa": "Sítio Boa Vista", "cnpj_cpf": "98765432100", "estado": "MG"}
    response = await client.post(f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), json=payload)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["cnpj_cpf"] == "987.654.321-00"

async def test_create_cliente_uf_invalida(client: AsyncClient, admin_token: str):
    payload = {"empresa": "Usina Fantasma", "cnpj_cpf": "11.444.777/0001-61", "estado": "XX"}
    response = await client.post(f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert "Estado" in response.json()["detail"]

async def test_create_cliente_documento_invalido(client: AsyncClient, admin_token: str):
    payload = {"empresa": "Documento Curto", "cnpj_cpf": "123456789012"}
    response = await client.post(f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

async def test_create_cliente_documento_duplicado(client: AsyncClient, admin_token: str, cliente: Cliente):
    # mesmo CNPJ do fixture, sem máscara
    payload = {"empresa": "Outra Razão Social", "cnpj_cpf": "11222333000181", "estado": "GO"}
    response = await client.post(f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), json=payload)
    assert response.status_code == status.HTTP_409_CONFLICT

async def test_create_cliente_tecnico_sem_permissao(client: AsyncClient, tecnico_token: str):
    payload = {"empresa": "Sem Permissão", "cnpj_cpf": "11444777000161"}
    response = await client.post(f"{settings.API_V1_STR}/clientes/", headers=auth_headers(tecnico_token), json=payload)
    assert response.status_code == status.HTTP_403_FORBIDDEN

async def test_list_clientes_busca_por_empresa(client: AsyncClient, admin_token: str, cliente: Cliente, cliente_do_portal: Cliente):
    response = await client.get(
        f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), params={"busca": "Cerrado"}
    )
    assert response.status_code == status.HTTP_200_OK
    nomes = [c["empresa"] for c in response.json()]
    assert nomes == ["Usina Solar Cerrado"]


class TestImportacaoClientes:
    async def test_download_modelo(self, client: AsyncClient, admin_token: str):
        response = await client.get(f"{settings.API_V1_STR}/clientes/modelo-importacao", headers=auth_headers(admin_token))
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith(XLSX_MEDIA_TYPE)
        df = pd.read_excel(BytesIO(response.content), engine="openpyxl")
        assert list(df.columns) == ["Empresa", "CNPJ/CPF", "Endereço", "Cidade", "Estado", "CEP"]

    async def test_importar_planilha(self, client: AsyncClient, admin_token: str, cliente: Cliente):
        conteudo = _planilha([
            ["Solar Norte", "11444777000161", "Av. Goiás, 10", "Goiânia", "go", "74000000"],
            ["Solar Repetida", "11.444.777/0001-61", None, "Goiânia", "GO", None],
            ["Já Cadastrada", "11.222.333/0001-81", None, "Goiânia", "GO", None],
            ["Estado Errado", "98765432100", None, "Cuiabá", "ZZ", None],
        ])
        response = await client.post(
            f"{settings.API_V1_STR}/clientes/importar",
            headers=auth_headers(admin_token),
            files={"file": ("clientes.xlsx", conteudo, XLSX_MEDIA_TYPE)},
        )
        assert response.status_code == status.HTTP_200_OK, response.text
        relatorio = response.json()
        assert relatorio["total_linhas"] == 4
        assert relatorio["validos"] == 1
        assert relatorio["criados"] == 1
        assert relatorio["duplicados"] == 2
        assert relatorio["invalidos"] == 1
        assert relatorio["linhas_validas"][0]["cnpj_cpf"] == "11.444.777/0001-61"
        assert relatorio["linhas_invalidas"][0]["linha"] == 5

        lista = await client.get(
            f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), params={"busca": "Solar Norte"}
        )
        assert len(lista.json()) == 1

    async def test_importar_dry_run_nao_grava(self, client: AsyncClient, admin_token: str):
        conteudo = _planilha([["Solar Sul", "11444777000161", None, "Goiânia", "GO", None]])
        response = await client.post(
            f"{settings.API_V1_STR}/clientes/importar",
            headers=auth_headers(admin_token),
            params={"dry_run": True},
            files={"file": ("clientes.xlsx", conteudo, XLSX_MEDIA_TYPE)},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["criados"] == 0
        assert response.json()["dry_run"] is True

        lista = await client.get(
            f"{settings.API_V1_STR}/clientes/", headers=auth_headers(admin_token), params={"busca": "Solar Sul"}
        )
        assert lista.json() == []

    async def test_importar_arquivo_nao_excel(self, client: AsyncClient, admin_token: str):
        response = await client.post(
            f"{settings.API_V1_STR}/clientes/importar",
            headers=auth_headers(admin_token),
            files={"file": ("clientes.csv", b"empresa,cnpj\n", "text/csv")},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
