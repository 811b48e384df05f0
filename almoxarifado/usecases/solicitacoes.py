# almoxarifado/usecases/solicitacoes.py
"""
UC: Fluxo de solicitações de materiais.

Estados (``status`` / ``status_coordenacao``):

    submeter ──> pendente / pendente ──coordenação aprova──> pendente / aprovado
                     │                                            │
                     │ coordenação rejeita                        │ atender
                     v                                            v
               rejeitado / rejeitado                   confirmado / aprovado

    Solicitações da própria coordenação nascem com ``status_coordenacao``
    aprovado. ``rejeitar`` vale enquanto ``status`` for pendente.

Toda transição é gravada com ``store.transition_request`` (compare-and-set
sobre o estado lido), então duas chamadas concorrentes não passam pela
mesma transição. Atender primeiro confirma a solicitação e só depois aloca;
a alocação não é atômica: cada linha é alocada por FIFO de forma
independente e os resultados (débitos, avisos de falta, erros) são agregados.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from almoxarifado.adapters.parsers import normalizar_linhas
from almoxarifado.config import DEFAULTS
from almoxarifado.domain.errors import EstoqueError, InvalidStateError
from almoxarifado.domain.models import (
    ResultadoAtendimento,
    ResultadoLinha,
    Solicitacao,
    StatusCoordenacao,
    StatusSolicitacao,
)
from almoxarifado.infra.logger import log_solicitacao, log_transaction
from almoxarifado.infra.store import EstoqueStore
from almoxarifado.usecases.alocacao_fifo import alocar_fifo


def exige_coordenacao(papel: Optional[str]) -> bool:
    """Papéis cujas solicitações passam pela coordenação."""
    return (papel or "").strip().lower() in DEFAULTS.papeis_com_coordenacao


def _estado_invalido(sol: Solicitacao, operacao: str) -> InvalidStateError:
    log_solicitacao(operacao, sol.id, level="warning", status=sol.status.value,
                    status_coordenacao=sol.status_coordenacao.value, motivo="estado_invalido")
    return InvalidStateError(
        f"Não é possível {operacao} a solicitação no estado atual",
        solicitacao_id=sol.id,
        status=sol.status.value,
        status_coordenacao=sol.status_coordenacao.value,
    )


# -------------------------
# Criação e edição
# -------------------------

def submeter_solicitacao(
    store: EstoqueStore,
    solicitante_id: Optional[int],
    linhas: Any,
    observacoes: Optional[str] = None,
    exige_coordenacao: bool = True,
) -> Solicitacao:
    """Cria uma solicitação pendente com as linhas normalizadas."""
    sol = Solicitacao(
        solicitante_id=solicitante_id,
        linhas=normalizar_linhas(linhas),
        observacoes=observacoes,
        status=StatusSolicitacao.PENDENTE,
        status_coordenacao=StatusCoordenacao.PENDENTE if exige_coordenacao else StatusCoordenacao.APROVADO,
        exige_coordenacao=exige_coordenacao,
    )
    salvo = store.insert_request(sol)
    log_solicitacao("submit", salvo.id, solicitante_id=solicitante_id, linhas=len(salvo.linhas),
                    exige_coordenacao=exige_coordenacao)
    return salvo


def editar_linhas(
    store: EstoqueStore,
    solicitacao_id: int,
    linhas: Any,
    observacoes: Optional[str] = None,
) -> Solicitacao:
    """Substitui as linhas (e opcionalmente as observações) de uma solicitação pendente."""
    sol = store.get_request(solicitacao_id)
    if sol.status != StatusSolicitacao.PENDENTE:
        raise _estado_invalido(sol, "editar")
    parcial: Dict[str, Any] = {"linhas": normalizar_linhas(linhas)}
    if observacoes is not None:
        parcial["observacoes"] = observacoes
    salvo = store.transition_request(solicitacao_id, {"status": StatusSolicitacao.PENDENTE}, parcial)
    log_solicitacao("editar", solicitacao_id, linhas=len(salvo.linhas))
    return salvo


# -------------------------
# Transições
# -------------------------

def decidir_coordenacao(
    store: EstoqueStore,
    solicitacao_id: int,
    aprovar: bool,
    ator_id: Optional[int] = None,
) -> Solicitacao:
    """Decisão única da coordenação; rejeitar encerra a solicitação."""
    sol = store.get_request(solicitacao_id)
    if sol.status != StatusSolicitacao.PENDENTE or sol.status_coordenacao != StatusCoordenacao.PENDENTE:
        raise _estado_invalido(sol, "decidir")

    agora = datetime.now()
    parcial: Dict[str, Any] = {
        "status_coordenacao": StatusCoordenacao.APROVADO if aprovar else StatusCoordenacao.REJEITADO,
        "aprovado_por": ator_id,
        "coordenacao_decidida_em": agora,
    }
    if not aprovar:
        parcial.update(status=StatusSolicitacao.REJEITADO, rejeitado_em=agora, rejeitado_por=ator_id)
    salvo = store.transition_request(
        solicitacao_id,
        {"status": StatusSolicitacao.PENDENTE, "status_coordenacao": StatusCoordenacao.PENDENTE},
        parcial,
    )
    log_solicitacao("coordenacao", solicitacao_id, aprovado=aprovar, ator_id=ator_id)
    return salvo


def rejeitar_solicitacao(store: EstoqueStore, solicitacao_id: int, ator_id: Optional[int] = None) -> Solicitacao:
    sol = store.get_request(solicitacao_id)
    if sol.status != StatusSolicitacao.PENDENTE:
        raise _estado_invalido(sol, "rejeitar")
    salvo = store.transition_request(solicitacao_id, {"status": StatusSolicitacao.PENDENTE}, {
        "status": StatusSolicitacao.REJEITADO,
        "rejeitado_em": datetime.now(),
        "rejeitado_por": ator_id,
    })
    log_solicitacao("rejeitar", solicitacao_id, ator_id=ator_id)
    return salvo


def atender_solicitacao(store: EstoqueStore, solicitacao_id: int, ator_id: Optional[int] = None) -> ResultadoAtendimento:
    """Baixa os itens da solicitação no estoque (FIFO por linha) e a confirma.

    Raises:
        InvalidStateError: coordenação não aprovada ou solicitação já
            confirmada/rejeitada, inclusive por outra chamada concorrente.
            Nada é debitado nesse caso.
    """
    sol = store.get_request(solicitacao_id)
    if sol.status != StatusSolicitacao.PENDENTE or sol.status_coordenacao != StatusCoordenacao.APROVADO:
        raise _estado_invalido(sol, "atender")
    confirmado = store.transition_request(
        solicitacao_id,
        {"status": StatusSolicitacao.PENDENTE, "status_coordenacao": StatusCoordenacao.APROVADO},
        {"status": StatusSolicitacao.CONFIRMADO, "confirmado_em": datetime.now(), "confirmado_por": ator_id},
    )

    tipo = "professor" if sol.exige_coordenacao else "coordenação"
    motivo = f"Solicitação {tipo} - {store.resolve_actor_display_name(sol.solicitante_id)}"

    resultados: List[ResultadoLinha] = []
    for linha in confirmado.linhas:
        try:
            alocacao = alocar_fifo(store, linha.nome, linha.quantidade, motivo=motivo,
                                   observacoes=confirmado.observacoes, ator_id=ator_id)
            resultados.append(ResultadoLinha(linha=linha, alocacao=alocacao))
        except EstoqueError as e:
            log_solicitacao("atender_linha", solicitacao_id, level="error", nome=linha.nome, erro=e.message)
            resultados.append(ResultadoLinha(linha=linha, erro=e))

    resultado = ResultadoAtendimento(solicitacao=confirmado, linhas=resultados)

    for aviso in resultado.avisos:
        log_solicitacao("atendimento_parcial", solicitacao_id, level="warning",
                        nome=aviso.nome, solicitado=aviso.solicitado, atendido=aviso.atendido)
    log_solicitacao("atender", solicitacao_id, ator_id=ator_id, linhas=len(resultados),
                    avisos=len(resultado.avisos), erros=len(resultado.erros))
    log_transaction("atender_solicitacao", {"solicitacao_id": solicitacao_id},
                    result={"linhas": len(resultados), "erros": len(resultado.erros)})
    return resultado


# -------------------------
# Filas
# -------------------------

def _com_nome(store: EstoqueStore, sols: List[Solicitacao]) -> List[Dict[str, Any]]:
    nomes: Dict[Any, str] = {}
    out = []
    for s in sols:
        if s.solicitante_id not in nomes:
            nomes[s.solicitante_id] = store.resolve_actor_display_name(s.solicitante_id)
        out.append({"solicitacao": s, "solicitante_nome": nomes[s.solicitante_id]})
    return out


def fila_coordenacao(store: EstoqueStore) -> List[Dict[str, Any]]:
    """Solicitações aguardando a coordenação (mais recentes primeiro)."""
    return _com_nome(store, store.list_requests(status=StatusSolicitacao.PENDENTE,
                                                status_coordenacao=StatusCoordenacao.PENDENTE))


def fila_estoque(store: EstoqueStore) -> List[Dict[str, Any]]:
    """Solicitações aprovadas aguardando atendimento (mais recentes primeiro)."""
    return _com_nome(store, store.list_requests(status=StatusSolicitacao.PENDENTE,
                                                status_coordenacao=StatusCoordenacao.APROVADO))
