from datetime import date

import pytest

from almoxarifado.adapters.parsers import (
    normalizar_linhas,
    parse_unidades_por_pacote,
    to_date,
    to_int,
    to_tipo,
)
from almoxarifado.domain.errors import ValidationError
from almoxarifado.domain.models import LinhaSolicitacao, TipoMovimentacao


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("12", 12),
        ("10 un/cx", 10),
        ("Armário 3", 1),
        ("0", 1),
        ("-4", 1),
        ("", 1),
        (None, 1),
        (24, 24),
    ],
)
def test_parse_unidades_por_pacote(txt, esperado):
    assert parse_unidades_por_pacote(txt) == esperado


@pytest.mark.parametrize("val,esperado", [("5", 5), (7, 7), (3.0, 3), ("2,0", 2), (" 10 ", 10)])
def test_to_int_aceita(val, esperado):
    assert to_int(val, "quantidade") == esperado


@pytest.mark.parametrize("val", [None, True, "abc", 2.5, "nan", "inf", -1])
def test_to_int_rejeita(val):
    with pytest.raises(ValidationError):
        to_int(val, "quantidade")


def test_to_int_minimo():
    with pytest.raises(ValidationError) as exc:
        to_int(0, "quantidade", minimo=1)
    assert exc.value.data["campo"] == "quantidade"


def test_to_date_formatos():
    assert to_date("2025-03-01") == date(2025, 3, 1)
    assert to_date("01/03/2025") == date(2025, 3, 1)
    assert to_date("2025-03-01 00:00:00") == date(2025, 3, 1)
    assert to_date("") is None
    assert to_date(None) is None
    with pytest.raises(ValidationError):
        to_date("amanhã")


def test_to_tipo():
    assert to_tipo("saída") is TipoMovimentacao.SAIDA
    assert to_tipo(" Entrada ") is TipoMovimentacao.ENTRADA
    assert to_tipo(TipoMovimentacao.SAIDA) is TipoMovimentacao.SAIDA
    with pytest.raises(ValidationError):
        to_tipo("transferencia")


def test_normalizar_linhas_variantes_de_chave():
    bruto = '[{"item": "Lápis", "quantity": 3}, {"name": "Caderno"}, {"nome": " Cola ", "quantidade": "2"}]'
    linhas = normalizar_linhas(bruto)
    assert linhas == [
        LinhaSolicitacao("Lápis", 3),
        LinhaSolicitacao("Caderno", 1),  # quantidade ausente vale 1
        LinhaSolicitacao("Cola", 2),
    ]


def test_normalizar_linhas_aceita_dict_e_dataclass():
    assert normalizar_linhas({"itemName": "Giz", "qtd": 4}) == [LinhaSolicitacao("Giz", 4)]
    assert normalizar_linhas([LinhaSolicitacao("Giz", 4)]) == [LinhaSolicitacao("Giz", 4)]


@pytest.mark.parametrize(
    "bruto",
    [
        None,
        "[]",
        "não é json",
        [{"nome": "  ", "quantidade": 1}],
        [{"nome": "Lápis", "quantidade": 0}],
        [{"nome": "Lápis", "quantidade": 1.5}],
        ["Lápis"],
        "5",
        "\"Lápis\"",
        "null",
        7,
    ],
)
def test_normalizar_linhas_invalidas(bruto):
    with pytest.raises(ValidationError):
        normalizar_linhas(bruto)
