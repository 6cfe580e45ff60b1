"""
Validação e normalização de dados de clientes (cadastro manual e importação).

Erros impedem o cadastro; avisos apenas sinalizam dados suspeitos.
"""
import re
from typing import Any, Dict, Iterable, List, Optional

from sunflow.schemas.cliente import ResultadoValidacao

ESTADOS_BR = {
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA",
    "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI", "RJ", "RN",
    "RS", "RO", "RR", "SC", "SP", "SE", "TO",
}

CAMPOS_CLIENTE = ("empresa", "cnpj_cpf", "endereco", "cidade", "estado", "cep")


def somente_digitos(valor: Optional[Any]) -> str:
    return re.sub(r"\D", "", str(valor or ""))


def formatar_cnpj(valor: str) -> str:
    d = somente_digitos(valor)
    if len(d) != 14:
        return valor
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"


def formatar_cpf(valor: str) -> str:
    d = somente_digitos(valor)
    if len(d) != 11:
        return valor
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def formatar_cep(valor: str) -> str:
    d = somente_digitos(valor)
    if len(d) != 8:
        return valor
    return f"{d[:5]}-{d[5:]}"


def _texto(valor: Optional[Any]) -> Optional[str]:
    if valor is None:
        return None
    texto = str(valor).strip()
    return texto or None


def validar_cliente(dados: Dict[str, Any]) -> ResultadoValidacao:
    """
    Valida um cliente e devolve os dados normalizados
    (documento e CEP formatados, UF em maiúsculas).
    """
    erros: List[str] = []
    avisos: List[str] = []

    normalizado = {campo: _texto(dados.get(campo)) for campo in CAMPOS_CLIENTE}

    if not normalizado["empresa"]:
        erros.append('Campo "Empresa" é obrigatório')

    documento = normalizado["cnpj_cpf"]
    if not documento:
        erros.append('Campo "CNPJ/CPF" é obrigatório')
    else:
        digitos = somente_digitos(documento)
        if len(digitos) == 14:
            normalizado["cnpj_cpf"] = formatar_cnpj(documento)
        elif len(digitos) == 11:
            normalizado["cnpj_cpf"] = formatar_cpf(documento)
        else:
            erros.append("CNPJ/CPF inválido (CNPJ: 14 dígitos, CPF: 11 dígitos)")

    estado = normalizado["estado"]
    if estado:
        if estado.upper() not in ESTADOS_BR:
            erros.append(f'Estado "{estado}" inválido (use sigla: SP, RJ, GO, etc.)')
        else:
            normalizado["estado"] = estado.upper()

    cep = normalizado["cep"]
    if cep:
        if len(somente_digitos(cep)) != 8:
            avisos.append("CEP com formato inválido (esperado: 8 dígitos)")
        else:
            normalizado["cep"] = formatar_cep(cep)

    return ResultadoValidacao(valido=not erros, erros=erros, avisos=avisos, dados_normalizados=normalizado)


def validar_lote(linhas: List[Dict[str, Any]], documentos_existentes: Iterable[str] = ()) -> List[ResultadoValidacao]:
    """
    Valida um lote. Além das regras individuais, marca documentos repetidos no
    próprio lote e documentos já cadastrados (comparação só pelos dígitos).
    """
    existentes = {somente_digitos(d) for d in documentos_existentes}
    vistos = set()
    resultados: List[ResultadoValidacao] = []

    for linha in linhas:
        resultado = validar_cliente(linha)
        doc = somente_digitos(linha.get("cnpj_cpf"))
        if doc:
            if doc in vistos:
                resultado.erros.append("CNPJ/CPF duplicado neste arquivo")
                resultado.valido = False
            else:
                vistos.add(doc)
            if doc in existentes:
                resultado.erros.append("CNPJ/CPF já cadastrado no sistema")
                resultado.valido = False
        resultados.append(resultado)

    return resultados
