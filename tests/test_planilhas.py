"""
Testes dos loaders XLSX e dos casos de uso de importação.
"""

from datetime import date

import pandas as pd
import pytest

from almoxarifado.adapters.planilhas import (
    _normalize_columns,
    load_itens_from_xlsx,
    load_movimentos_from_xlsx,
)
from almoxarifado.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from almoxarifado.usecases.cadastro_itens import criar_item
from almoxarifado.usecases.importar_planilhas import run_importar_itens, run_movimentacao_planilha


def _xlsx(tmp_path, nome, dados):
    path = tmp_path / nome
    pd.DataFrame(dados).to_excel(path, index=False)
    return str(path)


def test_normalize_columns_sinonimos():
    df = pd.DataFrame(columns=["Descrição", "Qtde", "Data de Validade", "Estoque Mínimo", "Localização", "Cód"])
    assert list(_normalize_columns(df).columns) == [
        "nome", "quantidade", "data_validade", "estoque_minimo", "localizacao", "codigo",
    ]


def test_load_itens_from_xlsx(tmp_path):
    path = _xlsx(tmp_path, "itens.xlsx", {
        "Nome": ["Lápis HB", "Gaze", None],
        "Categoria": ["Material Escolar", "Medicamentos", None],
        "Quantidade": ["50", "3", None],
        "Validade": [None, "10/01/2025", None],
        "Localização": ["12 un/cx", None, None],
    })
    rows = load_itens_from_xlsx(path)
    assert len(rows) == 2  # linha vazia descartada
    assert rows[0]["nome"] == "Lápis HB"
    assert rows[0]["quantidade"] == "50"
    assert rows[0]["data_validade"] is None
    assert rows[0]["localizacao"] == "12 un/cx"
    assert rows[1]["data_validade"] == "2025-01-10"
    assert "marca" not in rows[0]


def test_load_movimentos_from_xlsx(tmp_path):
    path = _xlsx(tmp_path, "movs.xlsx", {
        "ID": ["1", None],
        "Produto": [None, "Gaze"],
        "Qtd": ["2", "5"],
        "Obs": ["sala 3", None],
    })
    rows = load_movimentos_from_xlsx(path)
    assert rows == [
        {"item_id": "1", "codigo": None, "nome": None, "quantidade": "2", "motivo": None, "observacoes": "sala 3"},
        {"item_id": None, "codigo": None, "nome": "Gaze", "quantidade": "5", "motivo": None, "observacoes": None},
    ]


def test_run_importar_itens(store, tmp_path):
    path = _xlsx(tmp_path, "itens.xlsx", {
        "Nome": ["Lápis HB", "Gaze", "Sem categoria"],
        "Categoria": ["Material Escolar", "Medicamentos", None],
        "Quantidade": ["50", "3", "1"],
        "Validade": [None, "2025-01-10", None],
        "Localização": ["12 un/cx", None, None],
    })
    res = run_importar_itens(store, path)

    assert [it.nome for it in res["criados"]] == ["Lápis HB", "Gaze"]
    assert res["criados"][0].unidades_por_pacote == 12
    assert res["criados"][1].data_validade == date(2025, 1, 10)
    assert len(res["erros"]) == 1
    assert res["erros"][0]["linha"] == 4
    assert isinstance(res["erros"][0]["erro"], ValidationError)
    assert len(store.list_movements()) == 2


def test_run_movimentacao_planilha_saida(store, tmp_path):
    lapis = criar_item(store, {"nome": "Lápis", "categoria": "Material Escolar", "quantidade": 10, "codigo": "LAP"})
    criar_item(store, {"nome": "Gaze", "categoria": "Medicamentos", "quantidade": 4})
    path = _xlsx(tmp_path, "saidas.xlsx", {
        "ID": [str(lapis.id), None, None, None, "999"],
        "Código": [None, "LAP", "NAO-EXISTE", None, None],
        "Nome": [None, None, None, "Gaze", None],
        "Quantidade": ["3", "2", "1", "6", "1"],
    })
    res = run_movimentacao_planilha(store, path, "saida", motivo="Feira de ciências")

    assert store.get_stock_record(lapis.id).quantidade == 5  # 3 + 2 somados
    assert [m.quantidade for m in res["movimentacoes"]] == [5]
    assert res["alocacoes"][0].atendido == 4
    assert res["alocacoes"][0].aviso.falta == 2

    tipos = sorted(type(e["erro"]).__name__ for e in res["erros"])
    assert tipos == ["NotFoundError", "NotFoundError"]


def test_run_movimentacao_planilha_entrada_exige_id(store, tmp_path):
    path = _xlsx(tmp_path, "entradas.xlsx", {"Nome": ["Gaze"], "Quantidade": ["6"]})
    res = run_movimentacao_planilha(store, path, "entrada")
    assert res["movimentacoes"] == []
    assert isinstance(res["erros"][0]["erro"], ValidationError)


def test_run_movimentacao_planilha_saida_insuficiente(store, tmp_path):
    item = criar_item(store, {"nome": "Cola", "categoria": "Material Escolar", "quantidade": 1})
    path = _xlsx(tmp_path, "s.xlsx", {"ID": [str(item.id)], "Quantidade": ["2"]})
    res = run_movimentacao_planilha(store, path, "saida")
    assert isinstance(res["erros"][0]["erro"], InsufficientStockError)
    assert store.get_stock_record(item.id).quantidade == 1


def test_arquivo_inexistente(store, tmp_path):
    with pytest.raises(FileNotFoundError):
        run_importar_itens(store, str(tmp_path / "nao_existe.xlsx"))
