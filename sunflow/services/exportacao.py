"""
Exportação de dados para integrações externas (planilhas, BI).

Só as tabelas e colunas listadas em TABELAS_PERMITIDAS podem ser lidas.
"""
import csv
import json
import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from io import StringIO
from typing import Any, Dict, List, Optional, Type
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.datas import LOCAL_TZ
from sunflow.db.base import Base
from sunflow.models.cliente import Cliente
from sunflow.models.equipamento import Equipamento
from sunflow.models.insumo import Insumo
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.prestador import Prestador
from sunflow.models.rme_relatorio import RMERelatorio
from sunflow.models.ticket import Ticket

logger = logging.getLogger(__name__)

LIMITE_PADRAO = 1000
LIMITE_MAXIMO = 10000

TABELAS_PERMITIDAS: Dict[str, List[str]] = {
    "tickets": [
        "id", "numero_ticket", "titulo", "descricao", "status", "prioridade",
        "equipamento_tipo", "endereco_servico", "data_abertura", "data_vencimento",
        "data_conclusao", "tempo_estimado", "latitude", "longitude", "created_at", "updated_at",
    ],
    "ordens_servico": [
        "id", "numero_os", "ticket_id", "tecnico_id", "data_emissao", "data_programada",
        "hora_inicio", "hora_fim", "duracao_estimada_min", "observacoes",
        "presence_confirmed_at", "created_at", "updated_at",
    ],
    "rme_relatorios": [
        "id", "ticket_id", "ordem_servico_id", "tecnico_id", "data_execucao", "data_preenchimento",
        "status", "status_aprovacao", "servicos_executados", "condicoes_encontradas",
        "materiais_utilizados", "nome_usina", "turno", "tipo_servico", "qtd_modulos_limpos", "qtd_string_box",
        "created_at", "updated_at",
    ],
    "clientes": [
        "id", "empresa", "cnpj_cpf", "endereco", "cidade", "estado", "cep",
        "latitude", "longitude", "created_at", "updated_at",
    ],
    "prestadores": [
        "id", "nome", "email", "telefone", "categoria", "cidade", "estado",
        "ativo", "especialidades", "created_at", "updated_at",
    ],
    "equipamentos": [
        "id", "nome", "tipo", "modelo", "fabricante", "numero_serie",
        "status", "localizacao", "data_instalacao", "created_at", "updated_at",
    ],
    "insumos": [
        "id", "nome", "categoria", "unidade", "quantidade", "estoque_minimo",
        "estoque_critico", "preco", "fornecedor", "created_at", "updated_at",
    ],
}

MODELOS: Dict[str, Type[Base]] = {
    "tickets": Ticket,
    "ordens_servico": OrdemServico,
    "rme_relatorios": RMERelatorio,
    "clientes": Cliente,
    "prestadores": Prestador,
    "equipamentos": Equipamento,
    "insumos": Insumo,
}


def instrucoes_uso(endpoint: str) -> Dict[str, Any]:
    tabelas = list(TABELAS_PERMITIDAS)
    return {
        "available_tables": tabelas,
        "usage": {
            "endpoint": endpoint,
            "parameters": {
                "table": "Obrigatório. Uma de: " + ", ".join(tabelas),
                "format": "Opcional. 'json' (padrão) ou 'csv'",
                "limit": f"Opcional. Máximo de linhas (padrão: {LIMITE_PADRAO}, máximo: {LIMITE_MAXIMO})",
                "offset": "Opcional. Pula N linhas (paginação)",
                "order_by": "Opcional. Coluna de ordenação (padrão: created_at)",
                "order_dir": "Opcional. 'asc' ou 'desc' (padrão: desc)",
                "status": "Opcional. Filtra pela coluna status",
                "date_from": "Opcional. created_at >= data (AAAA-MM-DD)",
                "date_to": "Opcional. created_at <= data (AAAA-MM-DD)",
                "updated_from": "Opcional. updated_at >= data (AAAA-MM-DD ou data/hora ISO)",
                "updated_to": "Opcional. updated_at <= data (AAAA-MM-DD ou data/hora ISO)",
            },
            "headers": {"x-api-key": "Obrigatório. Chave de acesso da API"},
        },
    }


def _para_utc(valor: datetime) -> datetime:
    if valor.tzinfo is None:
        valor = valor.replace(tzinfo=LOCAL_TZ)
    return valor.astimezone(timezone.utc)


def interpretar_limite(valor: str, *, fim_do_dia: bool) -> datetime:
    """
    Converte 'AAAA-MM-DD' ou data/hora ISO em instante UTC. Datas simples
    valem o início (ou o fim) do dia no fuso da operação.
    """
    try:
        if "T" in valor:
            return _para_utc(datetime.fromisoformat(valor))
        dia = date.fromisoformat(valor)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Data inválida: '{valor}'.")
    return _para_utc(datetime.combine(dia, time.max if fim_do_dia else time.min))


def _serializar(valor: Any) -> Any:
    if isinstance(valor, (datetime, date, time)):
        return valor.isoformat()
    if isinstance(valor, Decimal):
        return float(valor)
    if isinstance(valor, UUID):
        return str(valor)
    if isinstance(valor, Enum):
        return valor.value
    return valor


def consultar(
    db: Session,
    *,
    tabela: str,
    limit: int = LIMITE_PADRAO,
    offset: int = 0,
    order_by: str = "created_at",
    order_dir: str = "desc",
    status_filtro: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    updated_from: Optional[str] = None,
    updated_to: Optional[str] = None,
) -> List[Dict[str, Any]]:
    if tabela not in TABELAS_PERMITIDAS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Tabela '{tabela}' não encontrada ou não permitida. Disponíveis: {', '.join(TABELAS_PERMITIDAS)}",
        )
    colunas_permitidas = TABELAS_PERMITIDAS[tabela]
    if order_by not in colunas_permitidas:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Coluna de ordenação '{order_by}' não permitida para '{tabela}'.",
        )

    modelo = MODELOS[tabela]
    colunas = modelo.__table__.c
    limit = max(1, min(limit, LIMITE_MAXIMO))
    offset = max(0, offset)

    statement = select(*[colunas[c] for c in colunas_permitidas])
    if status_filtro and "status" in colunas_permitidas:
        statement = statement.where(colunas["status"] == status_filtro)
    if date_from:
        statement = statement.where(colunas["created_at"] >= interpretar_limite(date_from, fim_do_dia=False))
    if date_to:
        statement = statement.where(colunas["created_at"] <= interpretar_limite(date_to, fim_do_dia=True))
    if updated_from:
        statement = statement.where(colunas["updated_at"] >= interpretar_limite(updated_from, fim_do_dia=False))
    if updated_to:
        statement = statement.where(colunas["updated_at"] <= interpretar_limite(updated_to, fim_do_dia=True))

    ordem = colunas[order_by].asc() if order_dir == "asc" else colunas[order_by].desc()
    statement = statement.order_by(ordem).offset(offset).limit(limit)

    linhas = db.execute(statement).mappings().all()
    logger.info(f"Exportação de '{tabela}': {len(linhas)} linha(s) (offset {offset}, limite {limit})")
    return [{k: _serializar(v) for k, v in linha.items()} for linha in linhas]


def _valor_csv(valor: Any) -> Any:
    if valor is None:
        return ""
    if isinstance(valor, (dict, list)):
        return json.dumps(valor, ensure_ascii=False)
    if isinstance(valor, bool):
        return "true" if valor else "false"
    return valor


def converter_para_csv(linhas: List[Dict[str, Any]]) -> str:
    """
    Cabeçalho pelas chaves da primeira linha, linhas terminadas em CRLF.
    Lista vazia gera texto vazio.
    """
    if not linhas:
        return ""
    cabecalho = list(linhas[0].keys())
    output = StringIO()
    writer = csv.writer(output, lineterminator="\r\n")
    writer.writerow(cabecalho)
    for linha in linhas:
        writer.writerow([_valor_csv(linha.get(c)) for c in cabecalho])
    return output.getvalue()


def nome_arquivo_csv(tabela: str, hoje: date) -> str:
    return f"{tabela}_{hoje.strftime('%Y%m%d')}.csv"
