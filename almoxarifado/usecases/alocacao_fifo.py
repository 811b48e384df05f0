# almoxarifado/usecases/alocacao_fifo.py
"""
UC: Saída por nome com alocação FIFO por validade.

Fluxo:
1) busca os registros com o mesmo nome (exato, sem espaços nas pontas)
   e quantidade > 0;
2) ordena pela validade (sem validade por último, empate pelo id);
3) debita ``min(restante, disponível)`` de cada registro até zerar o
   restante ou acabar a lista.

Cada débito é atômico; a alocação como um todo não é. O que não puder ser
atendido vira um ``AvisoAtendimentoParcial`` no resultado, sem exceção.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

from almoxarifado.adapters.parsers import to_int
from almoxarifado.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from almoxarifado.domain.models import (
    AvisoAtendimentoParcial,
    Debito,
    ItemEstoque,
    ResultadoAlocacao,
    TipoMovimentacao,
)
from almoxarifado.domain.policies import chave_fifo
from almoxarifado.infra.logger import log_saida, log_system_event
from almoxarifado.infra.store import EstoqueStore
from almoxarifado.usecases.movimentar_estoque import alterar_quantidade

MOTIVO_PADRAO = "Saída FIFO"


def ordenar_fifo(itens: Iterable[ItemEstoque]) -> List[ItemEstoque]:
    return sorted(itens, key=lambda it: chave_fifo(it.data_validade, it.id))


def planejar_alocacao(itens: Iterable[ItemEstoque], quantidade: int) -> List[Tuple[int, int]]:
    """Plano FIFO puro: lista de ``(item_id, quantidade)`` sem tocar no store.

    A soma do plano é no máximo ``quantidade``; registros sem saldo são
    ignorados.
    """
    restante = quantidade
    plano: List[Tuple[int, int]] = []
    for it in ordenar_fifo(itens):
        if restante <= 0:
            break
        if it.quantidade <= 0:
            continue
        q = min(restante, it.quantidade)
        plano.append((it.id, q))
        restante -= q
    return plano


def alocar_fifo(
    store: EstoqueStore,
    nome: str,
    quantidade: Any,
    motivo: Optional[str] = None,
    observacoes: Optional[str] = None,
    ator_id: Optional[int] = None,
) -> ResultadoAlocacao:
    """Executa a saída FIFO de ``quantidade`` unidades do item ``nome``.

    Raises:
        ValidationError: nome vazio ou quantidade <= 0 (antes de qualquer busca).
    """
    nome = (nome or "").strip()
    if not nome:
        raise ValidationError("Nome do item é obrigatório")
    solicitado = to_int(quantidade, "quantidade", minimo=1)

    resultado = ResultadoAlocacao(nome=nome, solicitado=solicitado)
    restante = solicitado
    candidatos = ordenar_fifo(store.list_stock_records(nome=nome, somente_disponiveis=True))

    for it in candidatos:
        if restante <= 0:
            break
        q = min(restante, it.quantidade)
        try:
            mov = alterar_quantidade(
                store, it.id, q, TipoMovimentacao.SAIDA,
                motivo=motivo or MOTIVO_PADRAO, observacoes=observacoes, ator_id=ator_id,
            )
        except InsufficientStockError as e:
            # Saldo consumido por outra operação desde a leitura
            log_saida("fifo_skip", it.id, q, disponivel=e.disponivel)
            continue
        except NotFoundError:
            # Registro excluído depois da busca
            log_saida("fifo_skip", it.id, q, motivo="item_excluido")
            continue
        resultado.debitos.append(Debito(item_id=it.id, quantidade=q, movimentacao=mov))
        restante -= q
        log_saida("fifo", it.id, q, nome=nome, validade=it.data_validade)

    if restante > 0:
        resultado.aviso = AvisoAtendimentoParcial(nome=nome, solicitado=solicitado, atendido=solicitado - restante)
        log_system_event(
            "atendimento_parcial",
            {"nome": nome, "solicitado": solicitado, "atendido": solicitado - restante, "falta": restante},
            level="warning",
        )
    return resultado
