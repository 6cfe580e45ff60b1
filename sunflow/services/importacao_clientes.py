import logging
import re
from io import BytesIO
from typing import Any, Dict, List, Tuple

import pandas as pd
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from sunflow.models.cliente import Cliente
from sunflow.schemas.cliente import RelatorioImportacao, LinhaImportacao
from .cliente import cliente_service
from .validacao_cliente import validar_lote

logger = logging.getLogger(__name__)

# Cabeçalho da planilha (normalizado) -> campo do cadastro
HEADER_MAPPING = {
    "empresa": "empresa",
    "razao_social": "empresa",
    "razão_social": "empresa",
    "nome": "empresa",
    "cnpj": "cnpj_cpf",
    "cpf": "cnpj_cpf",
    "cnpj_cpf": "cnpj_cpf",
    "cnpj/cpf": "cnpj_cpf",
    "documento": "cnpj_cpf",
    "endereco": "endereco",
    "endereço": "endereco",
    "rua": "endereco",
    "logradouro": "endereco",
    "cidade": "cidade",
    "municipio": "cidade",
    "município": "cidade",
    "estado": "estado",
    "uf": "estado",
    "cep": "cep",
    "codigo_postal": "cep",
    "código_postal": "cep",
}

TEMPLATE_HEADERS = ["Empresa", "CNPJ/CPF", "Endereço", "Cidade", "Estado", "CEP"]
TEMPLATE_EXEMPLOS = [
    ["Empresa Exemplo Ltda", "00.000.000/0001-00", "Av. T9, 1001", "Goiânia", "GO", "74215-025"],
    ["João da Silva", "000.000.000-00", "Rua das Flores, 123", "São Paulo", "SP", "01310-100"],
]


def normalizar_cabecalho(header: Any) -> str:
    chave = re.sub(r"\s+", "_", str(header or "").strip().lower())
    return HEADER_MAPPING.get(chave, chave)


def ler_planilha(conteudo: bytes) -> List[Dict[str, Any]]:
    """
    Lê a primeira aba do .xlsx: a primeira linha é o cabeçalho, linhas
    totalmente vazias são ignoradas.
    """
    try:
        df = pd.read_excel(BytesIO(conteudo), header=None, dtype=str, engine="openpyxl")
    except Exception as e:
        logger.warning(f"Falha ao ler planilha de clientes: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Erro ao ler arquivo: {e}")

    df = df.dropna(how="all")
    if len(df.index) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Arquivo deve ter cabeçalho e pelo menos uma linha de dados",
        )

    headers = [normalizar_cabecalho(h) for h in df.iloc[0].tolist()]
    linhas: List[Dict[str, Any]] = []
    for _, row in df.iloc[1:].iterrows():
        linha = {}
        for header, valor in zip(headers, row.tolist()):
            linha[header] = None if pd.isna(valor) else str(valor).strip()
        linhas.append(linha)
    return linhas


def _linha(numero: int, dados: Dict[str, Any], erros: List[str], avisos: List[str]) -> LinhaImportacao:
    return LinhaImportacao(
        linha=numero, empresa=dados.get("empresa"), cnpj_cpf=dados.get("cnpj_cpf"), erros=erros, avisos=avisos
    )


def importar_clientes(db: Session, *, conteudo: bytes, dry_run: bool = False) -> Tuple[RelatorioImportacao, List[Cliente]]:
    """
    Valida as linhas da planilha e, fora do modo dry_run, cria os clientes válidos.
    NÃO faz db.commit().
    """
    linhas = ler_planilha(conteudo)
    resultados = validar_lote(linhas, cliente_service.documentos_cadastrados(db))

    validas: List[LinhaImportacao] = []
    invalidas: List[LinhaImportacao] = []
    duplicadas: List[LinhaImportacao] = []
    criados: List[Cliente] = []

    for indice, (dados, resultado) in enumerate(zip(linhas, resultados)):
        # +2: linha 1 é o cabeçalho e a planilha começa em 1
        numero = indice + 2
        normalizado = resultado.dados_normalizados or {}
        item = _linha(numero, normalizado, resultado.erros, resultado.avisos)
        if resultado.valido:
            validas.append(item)
            if not dry_run:
                cliente = Cliente(**{k: v for k, v in normalizado.items()})
                db.add(cliente)
                criados.append(cliente)
        elif any("duplicado" in e or "já cadastrado" in e for e in resultado.erros):
            duplicadas.append(item)
        else:
            invalidas.append(item)

    if criados:
        db.flush()

    relatorio = RelatorioImportacao(
        total_linhas=len(linhas),
        validos=len(validas),
        invalidos=len(invalidas),
        duplicados=len(duplicadas),
        criados=len(criados),
        dry_run=dry_run,
        linhas_validas=validas,
        linhas_invalidas=invalidas,
        linhas_duplicadas=duplicadas,
    )
    logger.info(
        f"Importação de clientes: {relatorio.total_linhas} linhas, {relatorio.validos} válidas, "
        f"{relatorio.invalidos} inválidas, {relatorio.duplicados} duplicadas, {relatorio.criados} criadas (dry_run={dry_run})"
    )
    return relatorio, criados


def gerar_modelo_importacao() -> bytes:
    """Planilha modelo com os cabeçalhos esperados e linhas de exemplo."""
    df = pd.DataFrame(TEMPLATE_EXEMPLOS, columns=TEMPLATE_HEADERS)
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Clientes", index=False)
        sheet = writer.sheets["Clientes"]
        for coluna, largura in zip("ABCDEF", (30, 20, 40, 20, 8, 12)):
            sheet.column_dimensions[coluna].width = largura
    output.seek(0)
    return output.getvalue()
