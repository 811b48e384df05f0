import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from almoxarifado.adapters.cli import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> str:
    db_path = str(tmp_path / "almoxarifado_test.sqlite")
    result = runner.invoke(app, ["migrate", "--db", db_path])
    assert result.exit_code == 0, result.output
    return db_path


def _ok(args):
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    return result


def test_cli_params_show_defaults(db):
    result = _ok(["params", "show", "--db", db, "--json"])
    data = json.loads(result.stdout)
    assert data["janela_vencimento_dias"] == "30"
    assert data["fator_critico"] == "0.5"


def test_cli_params_set_and_get(db):
    _ok(["params", "set", "--db", db, "--janela-vencimento-dias", "15", "--fator-critico", "0.4"])
    assert _ok(["params", "get", "janela_vencimento_dias", "--db", db]).stdout.strip() == "15"
    assert _ok(["params", "get", "inexistente", "--db", db]).stdout.strip() == "(None)"

    result = runner.invoke(app, ["params", "set", "--db", db])
    assert result.exit_code == 1


def test_cli_item_add_list_update(db):
    _ok(["item", "add", "--db", db, "--nome", "Gaze", "--categoria", "Medicamentos",
         "--quantidade", "5", "--validade", "2025-03-01", "--minimo", "2"])
    _ok(["item", "add", "--db", db, "--nome", "Gaze", "--categoria", "Medicamentos",
         "--quantidade", "3", "--validade", "10/01/2025", "--localizacao", "10 un/pct"])

    itens = json.loads(_ok(["item", "list", "--db", db, "--json"]).stdout)
    assert [(i["nome"], i["quantidade"]) for i in itens] == [("Gaze", 5), ("Gaze", 3)]
    assert itens[1]["data_validade"] == "2025-01-10"
    assert itens[1]["unidades_por_pacote"] == 10

    _ok(["item", "update", "1", "--db", db, "--quantidade", "8", "--marca", "Cremer"])
    item = json.loads(_ok(["item", "list", "--db", db, "--json"]).stdout)[0]
    assert item["quantidade"] == 8
    assert item["marca"] == "Cremer"


def test_cli_item_add_invalido(db):
    result = runner.invoke(app, ["item", "add", "--db", db, "--nome", "Boneca", "--categoria", "Brinquedos"])
    assert result.exit_code == 1
    assert "categoria" in result.output


def test_cli_saida_fifo_e_estorno(db):
    _ok(["item", "add", "--db", db, "--nome", "Gaze", "--categoria", "Medicamentos",
         "--quantidade", "5", "--validade", "2025-03-01"])
    _ok(["item", "add", "--db", db, "--nome", "Gaze", "--categoria", "Medicamentos",
         "--quantidade", "3", "--validade", "2025-01-10"])
    _ok(["item", "add", "--db", db, "--nome", "Gaze", "--categoria", "Medicamentos", "--quantidade", "10"])

    _ok(["saida", "6", "--nome", "Gaze", "--db", db])
    itens = json.loads(_ok(["item", "list", "--db", db, "--json"]).stdout)
    assert [i["quantidade"] for i in itens] == [2, 0, 10]

    hist = json.loads(_ok(["historico", "--db", db, "--tipo", "saida", "--json"]).stdout)
    assert hist["total"] == 2
    ultima_saida = hist["registros"][0]["id"]

    _ok(["estornar", str(ultima_saida), "--db", db])
    result = runner.invoke(app, ["estornar", str(ultima_saida), "--db", db])
    assert result.exit_code == 1


def test_cli_saida_insuficiente(db):
    _ok(["item", "add", "--db", db, "--nome", "Cola", "--categoria", "Material Escolar", "--quantidade", "1"])
    result = runner.invoke(app, ["saida", "2", "--item", "1", "--db", db])
    assert result.exit_code == 1
    itens = json.loads(_ok(["item", "list", "--db", db, "--json"]).stdout)
    assert itens[0]["quantidade"] == 1


def test_cli_saida_exige_item_ou_nome(db):
    result = runner.invoke(app, ["saida", "2", "--db", db])
    assert result.exit_code == 2


def test_cli_fluxo_solicitacao(db):
    _ok(["usuario", "add", "--db", db, "--nome", "Maria", "--papel", "professor"])
    _ok(["item", "add", "--db", db, "--nome", "Lápis", "--categoria", "Material Escolar", "--quantidade", "20"])
    _ok(["solicitacao", "submit", "--db", db, "--solicitante", "1", "--item", "Lápis:4"])

    fila = json.loads(_ok(["solicitacao", "fila", "coordenacao", "--db", db, "--json"]).stdout)
    assert len(fila) == 1
    assert fila[0]["solicitante_nome"] == "Maria"

    result = runner.invoke(app, ["solicitacao", "atender", "1", "--db", db])
    assert result.exit_code == 1

    _ok(["solicitacao", "coordenar", "1", "--aprovar", "--db", db])
    res = json.loads(_ok(["solicitacao", "atender", "1", "--db", db, "--json"]).stdout)
    assert res["status"] == "confirmado"
    assert res["linhas"] == [{"item": "Lápis", "solicitado": 4, "atendido": 4, "erro": None}]

    hist = json.loads(_ok(["historico", "--db", db, "--busca", "maria", "--json"]).stdout)
    assert hist["registros"][0]["motivo"] == "Solicitação professor - Maria"


def test_cli_solicitacao_editar_e_rejeitar(db):
    _ok(["solicitacao", "submit", "--db", db, "--papel", "coordenacao",
         "--linhas", '[{"nome": "Papel", "quantidade": 2}]'])
    fila = json.loads(_ok(["solicitacao", "fila", "estoque", "--db", db, "--json"]).stdout)
    assert fila[0]["solicitacao"]["linhas"] == [{"nome": "Papel", "quantidade": 2}]

    _ok(["solicitacao", "editar", "1", "--db", db, "--item", "Papel:5", "--item", "Cola"])
    fila = json.loads(_ok(["solicitacao", "fila", "estoque", "--db", db, "--json"]).stdout)
    assert fila[0]["solicitacao"]["linhas"] == [{"nome": "Papel", "quantidade": 5}, {"nome": "Cola", "quantidade": 1}]

    _ok(["solicitacao", "rejeitar", "1", "--db", db])
    assert json.loads(_ok(["solicitacao", "fila", "estoque", "--db", db, "--json"]).stdout) == []


def test_cli_alertas_e_vencimentos(db):
    _ok(["item", "add", "--db", db, "--nome", " Gloves ", "--categoria", "Higiene",
         "--quantidade", "2", "--minimo", "10"])
    _ok(["item", "add", "--db", db, "--nome", "gloves", "--categoria", "Higiene",
         "--quantidade", "3", "--minimo", "4"])
    _ok(["item", "add", "--db", db, "--nome", "Sabão", "--categoria", "Higiene",
         "--quantidade", "30", "--minimo", "4"])

    alertas = json.loads(_ok(["alertas", "--db", db, "--json"]).stdout)
    assert alertas == [{
        "nome": "Gloves", "categoria": "Higiene", "quantidade_total": 5,
        "estoque_minimo": 10, "status": "critico", "variantes": 2,
    }]
    assert len(json.loads(_ok(["alertas", "--todos", "--db", db, "--json"]).stdout)) == 2

    assert json.loads(_ok(["vencimentos", "--db", db, "--json"]).stdout) == []


def test_cli_item_delete(db):
    _ok(["item", "add", "--db", db, "--nome", "Cola", "--categoria", "Material Escolar"])
    _ok(["item", "delete", "1", "--yes", "--db", db])
    assert json.loads(_ok(["item", "list", "--db", db, "--json"]).stdout) == []
    result = runner.invoke(app, ["item", "delete", "1", "--yes", "--db", db])
    assert result.exit_code == 1


def test_cli_solicitacao_linhas_escalares(db):
    result = runner.invoke(app, ["solicitacao", "submit", "--db", db, "--papel", "coordenacao", "--linhas", "5"])
    assert result.exit_code == 1
    assert "lista" in result.output
    assert json.loads(_ok(["solicitacao", "fila", "estoque", "--db", db, "--json"]).stdout) == []
