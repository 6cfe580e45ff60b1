from sunflow.services.validacao_cliente import (
    validar_cliente, validar_lote, formatar_cnpj, formatar_cpf, formatar_cep, somente_digitos,
)


def test_formatadores():
    assert formatar_cnpj("11222333000181") == "11.222.333/0001-81"
    assert formatar_cpf("98765432100") == "987.654.321-00"
    assert formatar_cep("75900000") == "75900-000"
    assert formatar_cep("759") == "759"
    assert somente_digitos(None) == ""


def test_cliente_valido_normalizado():
    resultado = validar_cliente({
        "empresa": "  Usina Rio Verde ",
        "cnpj_cpf": "11222333000181",
        "estado": "go",
        "cep": "75900000",
        "cidade": "Rio Verde",
    })
    assert resultado.valido
    assert resultado.erros == []
    assert resultado.dados_normalizados["empresa"] == "Usina Rio Verde"
    assert resultado.dados_normalizados["cnpj_cpf"] == "11.222.333/0001-81"
    assert resultado.dados_normalizados["estado"] == "GO"
    assert resultado.dados_normalizados["cep"] == "75900-000"
    assert resultado.dados_normalizados["endereco"] is None


def test_campos_obrigatorios():
    resultado = validar_cliente({"empresa": "   ", "cnpj_cpf": None})
    assert not resultado.valido
    assert 'Campo "Empresa" é obrigatório' in resultado.erros
    assert 'Campo "CNPJ/CPF" é obrigatório' in resultado.erros


def test_documento_e_estado_invalidos():
    resultado = validar_cliente({"empresa": "X", "cnpj_cpf": "123", "estado": "XX"})
    assert not resultado.valido
    assert "CNPJ/CPF inválido (CNPJ: 14 dígitos, CPF: 11 dígitos)" in resultado.erros
    assert 'Estado "XX" inválido (use sigla: SP, RJ, GO, etc.)' in resultado.erros


def test_cep_invalido_e_apenas_aviso():
    resultado = validar_cliente({"empresa": "X", "cnpj_cpf": "98765432100", "cep": "7590"})
    assert resultado.valido
    assert resultado.avisos == ["CEP com formato inválido (esperado: 8 dígitos)"]
    assert resultado.dados_normalizados["cep"] == "7590"


def test_lote_com_duplicados():
    linhas = [
        {"empresa": "A", "cnpj_cpf": "11.222.333/0001-81"},
        {"empresa": "B", "cnpj_cpf": "11222333000181"},
        {"empresa": "C", "cnpj_cpf": "987.654.321-00"},
        {"empresa": "D", "cnpj_cpf": "12345678909"},
    ]
    resultados = validar_lote(linhas, documentos_existentes=["98765432100"])
    assert [r.valido for r in resultados] == [True, False, False, True]
    assert resultados[1].erros == ["CNPJ/CPF duplicado neste arquivo"]
    assert resultados[2].erros == ["CNPJ/CPF já cadastrado no sistema"]
