import threading
from datetime import date

import pytest

from almoxarifado.domain.errors import InvalidStateError, NotFoundError, ValidationError
from almoxarifado.domain.models import (
    LinhaSolicitacao,
    StatusCoordenacao,
    StatusSolicitacao,
    TipoMovimentacao,
    Usuario,
)
from almoxarifado.usecases.solicitacoes import (
    atender_solicitacao,
    decidir_coordenacao,
    editar_linhas,
    exige_coordenacao,
    fila_coordenacao,
    fila_estoque,
    rejeitar_solicitacao,
    submeter_solicitacao,
)


@pytest.fixture
def professora(store):
    return store.insert_user(Usuario(nome="Maria Lima", email="maria@escola.br", papel="professor"))


def test_exige_coordenacao_por_papel():
    assert exige_coordenacao("professor") is True
    assert exige_coordenacao(" Professor ") is True
    assert exige_coordenacao("coordenacao") is False
    assert exige_coordenacao(None) is False


def test_submeter_professor_fica_pendente_na_coordenacao(store, professora):
    sol = submeter_solicitacao(store, professora.id, '[{"item": "Lápis", "quantity": 3}]', observacoes="Turma 5A")
    assert sol.id is not None
    assert sol.status == StatusSolicitacao.PENDENTE
    assert sol.status_coordenacao == StatusCoordenacao.PENDENTE
    assert sol.linhas == [LinhaSolicitacao("Lápis", 3)]
    assert sol.criado_em is not None
    assert store.get_request(sol.id) == sol


def test_submeter_coordenacao_ja_aprovada(store):
    sol = submeter_solicitacao(store, None, [{"nome": "Papel A4"}], exige_coordenacao=False)
    assert sol.status_coordenacao == StatusCoordenacao.APROVADO
    assert sol.linhas[0].quantidade == 1


def test_submeter_linhas_invalidas(store):
    with pytest.raises(ValidationError):
        submeter_solicitacao(store, 1, [])
    assert store.list_requests() == []


def test_fluxo_completo(store, professora, novo_item):
    novo_item("Lápis", quantidade=5, categoria="Material Escolar", data_validade=date(2030, 1, 1))
    novo_item("Lápis", quantidade=10, categoria="Material Escolar")
    sol = submeter_solicitacao(store, professora.id, [{"nome": "Lápis", "quantidade": 8}], observacoes="Prova")

    assert [r["solicitacao"].id for r in fila_coordenacao(store)] == [sol.id]
    assert fila_coordenacao(store)[0]["solicitante_nome"] == "Maria Lima"
    assert fila_estoque(store) == []

    aprovada = decidir_coordenacao(store, sol.id, aprovar=True, ator_id=2)
    assert aprovada.status_coordenacao == StatusCoordenacao.APROVADO
    assert aprovada.aprovado_por == 2
    assert aprovada.coordenacao_decidida_em is not None
    assert [r["solicitacao"].id for r in fila_estoque(store)] == [sol.id]

    res = atender_solicitacao(store, sol.id, ator_id=3)
    assert res.solicitacao.status == StatusSolicitacao.CONFIRMADO
    assert res.solicitacao.confirmado_por == 3
    assert res.solicitacao.confirmado_em is not None
    assert res.avisos == []
    assert res.erros == []
    assert res.linhas[0].atendido == 8

    movs = store.list_movements(tipo=TipoMovimentacao.SAIDA)
    assert sorted(m.quantidade for m in movs) == [3, 5]
    assert {m.motivo for m in movs} == {"Solicitação professor - Maria Lima"}
    assert {m.observacoes for m in movs} == {"Prova"}
    assert fila_estoque(store) == []


def test_atender_duas_vezes(store, novo_item):
    item = novo_item("Cola", quantidade=10)
    sol = submeter_solicitacao(store, None, [{"nome": "Cola", "quantidade": 2}], exige_coordenacao=False)
    atender_solicitacao(store, sol.id)
    with pytest.raises(InvalidStateError):
        atender_solicitacao(store, sol.id)
    assert store.get_stock_record(item.id).quantidade == 8
    assert len(store.list_movements()) == 1


def test_atender_concorrente_confirma_uma_vez(store, novo_item):
    item = novo_item("Cola", quantidade=10)
    sol = submeter_solicitacao(store, None, [{"nome": "Cola", "quantidade": 3}], exige_coordenacao=False)

    # as duas threads leem a solicitação pendente antes de qualquer uma confirmar
    barreira = threading.Barrier(2, timeout=5)
    original = store.get_request

    def get_sincronizado(solicitacao_id):
        lida = original(solicitacao_id)
        barreira.wait()
        return lida

    store.get_request = get_sincronizado
    resultados, falhas = [], []

    def atender():
        try:
            resultados.append(atender_solicitacao(store, sol.id, ator_id=3))
        except InvalidStateError as e:
            falhas.append(e)

    threads = [threading.Thread(target=atender) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    store.get_request = original
    assert len(resultados) == 1
    assert len(falhas) == 1
    assert store.get_stock_record(item.id).quantidade == 7
    assert len(store.list_movements(tipo=TipoMovimentacao.SAIDA)) == 1
    assert store.get_request(sol.id).status == StatusSolicitacao.CONFIRMADO


def test_atender_usa_linhas_do_momento_da_confirmacao(store, novo_item):
    item = novo_item("Cola", quantidade=10)
    sol = submeter_solicitacao(store, None, [{"nome": "Cola", "quantidade": 1}], exige_coordenacao=False)
    original = store.get_request

    def editada_depois_da_leitura(solicitacao_id):
        lida = original(solicitacao_id)
        store.get_request = original
        editar_linhas(store, solicitacao_id, [{"nome": "Cola", "quantidade": 4}])
        return lida

    store.get_request = editada_depois_da_leitura
    res = atender_solicitacao(store, sol.id)

    assert res.linhas[0].atendido == 4
    assert store.get_stock_record(item.id).quantidade == 6


def test_atender_com_coordenacao_pendente(store, novo_item):
    item = novo_item("Cola", quantidade=10)
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola", "quantidade": 2}])
    with pytest.raises(InvalidStateError):
        atender_solicitacao(store, sol.id)
    assert store.get_stock_record(item.id).quantidade == 10
    assert store.get_request(sol.id).status == StatusSolicitacao.PENDENTE


def test_atender_parcial_e_com_erros(store, novo_item):
    novo_item("Tesoura", quantidade=2, categoria="Material Escolar")
    novo_item("Giz", quantidade=10, categoria="Material Escolar")
    sol = submeter_solicitacao(
        store, None,
        [{"nome": "Tesoura", "quantidade": 5}, {"nome": "Cartolina", "quantidade": 1}, {"nome": "Giz", "quantidade": 4}],
        exige_coordenacao=False,
    )
    res = atender_solicitacao(store, sol.id)

    assert res.solicitacao.status == StatusSolicitacao.CONFIRMADO
    assert [r.atendido for r in res.linhas] == [2, 0, 4]
    assert [(a.nome, a.falta) for a in res.avisos] == [("Tesoura", 3), ("Cartolina", 1)]
    assert res.linhas[0].alocacao.debitos[0].movimentacao.motivo == "Solicitação coordenação - Usuário não identificado"


def test_erro_em_uma_linha_nao_interrompe_as_demais(store, novo_item):
    novo_item("Giz", quantidade=10, categoria="Material Escolar")
    sol = submeter_solicitacao(store, None, [{"nome": "Giz", "quantidade": 1}, {"nome": "Giz", "quantidade": 2}],
                               exige_coordenacao=False)
    original = store.list_stock_records
    chamadas = []

    def falha_na_primeira(**kw):
        chamadas.append(kw)
        if len(chamadas) == 1:
            raise NotFoundError("item", "Giz")
        return original(**kw)

    store.list_stock_records = falha_na_primeira
    res = atender_solicitacao(store, sol.id)

    assert isinstance(res.linhas[0].erro, NotFoundError)
    assert res.linhas[1].atendido == 2
    assert len(res.erros) == 1
    assert res.solicitacao.status == StatusSolicitacao.CONFIRMADO


def test_coordenacao_rejeita_encerra(store, novo_item):
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola"}])
    rejeitada = decidir_coordenacao(store, sol.id, aprovar=False, ator_id=9)
    assert rejeitada.status_coordenacao == StatusCoordenacao.REJEITADO
    assert rejeitada.status == StatusSolicitacao.REJEITADO
    assert rejeitada.rejeitado_por == 9

    with pytest.raises(InvalidStateError):
        decidir_coordenacao(store, sol.id, aprovar=True)
    with pytest.raises(InvalidStateError):
        atender_solicitacao(store, sol.id)
    assert fila_coordenacao(store) == []


def test_decisao_da_coordenacao_e_unica(store):
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola"}])
    decidir_coordenacao(store, sol.id, aprovar=True)
    with pytest.raises(InvalidStateError):
        decidir_coordenacao(store, sol.id, aprovar=False)


def test_coordenacao_nao_decide_solicitacao_propria(store):
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola"}], exige_coordenacao=False)
    with pytest.raises(InvalidStateError):
        decidir_coordenacao(store, sol.id, aprovar=True)


def test_rejeitar_pelo_estoque(store):
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola"}], exige_coordenacao=False)
    rejeitada = rejeitar_solicitacao(store, sol.id, ator_id=4)
    assert rejeitada.status == StatusSolicitacao.REJEITADO
    assert rejeitada.rejeitado_em is not None
    assert rejeitada.rejeitado_por == 4
    with pytest.raises(InvalidStateError):
        rejeitar_solicitacao(store, sol.id)
    assert store.list_movements() == []


def test_editar_linhas(store):
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola", "quantidade": 1}], observacoes="antes")
    editada = editar_linhas(store, sol.id, [{"name": "Papel", "quantity": 20}, {"nome": "Cola", "quantidade": 2}])
    assert editada.linhas == [LinhaSolicitacao("Papel", 20), LinhaSolicitacao("Cola", 2)]
    assert editada.observacoes == "antes"
    assert store.get_request(sol.id).linhas == editada.linhas

    editada = editar_linhas(store, sol.id, [{"nome": "Cola"}], observacoes="depois")
    assert editada.observacoes == "depois"


def test_editar_linhas_confirmada(store, novo_item):
    novo_item("Cola", quantidade=5)
    sol = submeter_solicitacao(store, 1, [{"nome": "Cola"}], exige_coordenacao=False)
    atender_solicitacao(store, sol.id)
    with pytest.raises(InvalidStateError):
        editar_linhas(store, sol.id, [{"nome": "Cola", "quantidade": 3}])


def test_solicitacao_inexistente(store):
    with pytest.raises(NotFoundError):
        atender_solicitacao(store, 77)
