# almoxarifado/usecases/movimentar_estoque.py
"""
UC: Movimentar estoque (entradas, saídas, lote, estorno e histórico).

- alterar_quantidade(): única porta de alteração de quantidade; grava a
  movimentação na mesma transação (``store.apply_quantity_change``).
- movimentar_lote(): vários pares (item_id, quantidade) de uma vez; cada
  par é uma alteração atômica própria, falhas são coletadas.
- estornar_movimentacao(): devolve ao estoque a quantidade de uma saída.
- historico_movimentacoes(): listagem paginada e enriquecida.

Obs.:
- ``quantidade`` é sempre a magnitude (> 0); ``tipo`` dá a direção.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from almoxarifado.adapters.parsers import to_int, to_tipo
from almoxarifado.domain.errors import EstoqueError, InvalidStateError, ValidationError
from almoxarifado.domain.models import ItemEstoque, Movimentacao, TipoMovimentacao
from almoxarifado.domain.policies import normalizar_nome
from almoxarifado.infra.logger import log_entrada, log_saida, log_system_event, log_transaction
from almoxarifado.infra.store import EstoqueStore

MOTIVO_ESTORNO = "Estorno da movimentação #{id}"
ITEM_REMOVIDO = "Item removido"


def alterar_quantidade(
    store: EstoqueStore,
    item_id: int,
    quantidade: Any,
    tipo: Union[str, TipoMovimentacao],
    motivo: Optional[str] = None,
    observacoes: Optional[str] = None,
    ator_id: Optional[int] = None,
    estorno_de: Optional[int] = None,
) -> Movimentacao:
    """Aplica uma entrada/saída em um item e registra a movimentação.

    Raises:
        ValidationError: quantidade não inteira ou <= 0, tipo inválido.
        NotFoundError: item inexistente.
        InsufficientStockError: a saída deixaria a quantidade negativa.
        InvalidStateError: ``estorno_de`` aponta para uma saída já estornada.
    """
    dados = {"item_id": item_id, "quantidade": quantidade, "tipo": str(tipo), "motivo": motivo}
    try:
        t = to_tipo(tipo)
        qtd = to_int(quantidade, "quantidade", minimo=1)
        delta = qtd if t is TipoMovimentacao.ENTRADA else -qtd
        mov = Movimentacao(
            item_id=item_id,
            tipo=t,
            quantidade=qtd,
            motivo=motivo,
            observacoes=observacoes,
            ator_id=ator_id,
            estorno_de=estorno_de,
        )
        salvo = store.apply_quantity_change(item_id, delta, mov)
    except EstoqueError as e:
        log_transaction("alterar_quantidade", dados, error=e.message)
        raise

    log_fn = log_entrada if t is TipoMovimentacao.ENTRADA else log_saida
    log_fn("movimento", item_id, qtd, mov_id=salvo.id, motivo=motivo, ator_id=ator_id)
    log_transaction("alterar_quantidade", dados, result=salvo.id)
    return salvo


# -------------------------
# Lote
# -------------------------

def _pares(itens: Iterable[Any]) -> List[Tuple[Any, Any]]:
    pares = []
    for raw in itens:
        if isinstance(raw, dict):
            pares.append((raw.get("item_id", raw.get("id")), raw.get("quantidade")))
        else:
            item_id, qtd = raw
            pares.append((item_id, qtd))
    return pares


def movimentar_lote(
    store: EstoqueStore,
    itens: Iterable[Any],
    tipo: Union[str, TipoMovimentacao],
    motivo: Optional[str] = None,
    observacoes: Optional[str] = None,
    ator_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Movimenta vários itens; ids repetidos têm as quantidades somadas.

    Cada item é uma alteração atômica independente: um erro em um item não
    desfaz os anteriores nem interrompe os seguintes.

    Returns:
        ``{"movimentacoes": [...], "erros": [{"item_id", "quantidade", "erro"}]}``
    """
    t = to_tipo(tipo)
    log_system_event("movimentar_lote_start", {"tipo": t.value})

    somados: Dict[Any, int] = {}
    erros: List[Dict[str, Any]] = []
    for item_id, qtd in _pares(itens):
        try:
            q = to_int(qtd, "quantidade", minimo=1)
        except ValidationError as e:
            erros.append({"item_id": item_id, "quantidade": qtd, "erro": e})
            continue
        somados[item_id] = somados.get(item_id, 0) + q

    movimentacoes: List[Movimentacao] = []
    for item_id, q in somados.items():
        try:
            movimentacoes.append(
                alterar_quantidade(store, item_id, q, t, motivo=motivo, observacoes=observacoes, ator_id=ator_id)
            )
        except EstoqueError as e:
            erros.append({"item_id": item_id, "quantidade": q, "erro": e})

    log_system_event(
        "movimentar_lote_done",
        {"tipo": t.value, "ok": len(movimentacoes), "erros": len(erros)},
        level="warning" if erros else "info",
    )
    return {"movimentacoes": movimentacoes, "erros": erros}


# -------------------------
# Estorno
# -------------------------

def estornar_movimentacao(store: EstoqueStore, movimentacao_id: int, ator_id: Optional[int] = None) -> Movimentacao:
    """Cria a entrada que compensa uma saída; a saída original não muda.

    O store recusa um segundo estorno da mesma saída na própria transação do
    crédito, então chamadas concorrentes gravam no máximo um estorno.
    """
    original = store.get_movement(movimentacao_id)
    if original.tipo != TipoMovimentacao.SAIDA:
        raise ValidationError("Só é possível estornar saídas", movimentacao_id=movimentacao_id)
    if store.list_movements(estorno_de=movimentacao_id):
        raise InvalidStateError("Movimentação já estornada", movimentacao_id=movimentacao_id)

    mov = alterar_quantidade(
        store,
        original.item_id,
        original.quantidade,
        TipoMovimentacao.ENTRADA,
        motivo=MOTIVO_ESTORNO.format(id=movimentacao_id),
        observacoes=original.motivo,
        ator_id=ator_id,
        estorno_de=movimentacao_id,
    )
    log_entrada("estorno", original.item_id, original.quantidade, estorno_de=movimentacao_id, mov_id=mov.id)
    return mov


# -------------------------
# Histórico
# -------------------------

def _casa_busca(termo: str, mov: Movimentacao, item: Optional[ItemEstoque]) -> bool:
    campos = [mov.motivo]
    if item is not None:
        campos += [item.nome, item.marca, item.codigo]
    return any(termo in normalizar_nome(c) for c in campos if c)


def historico_movimentacoes(
    store: EstoqueStore,
    busca: Optional[str] = None,
    tipo: Optional[Union[str, TipoMovimentacao]] = None,
    periodo_dias: Optional[int] = None,
    pagina: int = 1,
    por_pagina: int = 20,
) -> Dict[str, Any]:
    """Histórico de movimentações, do mais recente para o mais antigo.

    Args:
        busca: Texto procurado em nome/marca/código do item e no motivo.
        tipo: ``entrada`` ou ``saida`` (None = ambos).
        periodo_dias: Apenas os últimos N dias (None = tudo).
        pagina: Página (1-based).
        por_pagina: Registros por página.

    Returns:
        ``{"total", "pagina", "por_pagina", "paginas", "registros"}``; cada
        registro é um dicionário com o nome do item, o nome do responsável
        e ``unidades_totais`` (quantidade × unidades por pacote).
    """
    pagina = to_int(pagina, "pagina", minimo=1)
    por_pagina = to_int(por_pagina, "por_pagina", minimo=1)
    desde = None
    if periodo_dias is not None:
        desde = datetime.now() - timedelta(days=to_int(periodo_dias, "periodo_dias", minimo=0))

    movs = store.list_movements(tipo=to_tipo(tipo) if tipo else None, desde=desde)
    itens = {it.id: it for it in store.list_stock_records()}

    termo = normalizar_nome(busca)
    if termo:
        movs = [m for m in movs if _casa_busca(termo, m, itens.get(m.item_id))]

    total = len(movs)
    inicio = (pagina - 1) * por_pagina
    nomes: Dict[Any, str] = {}
    registros = []
    for m in movs[inicio:inicio + por_pagina]:
        item = itens.get(m.item_id)
        if m.ator_id not in nomes:
            nomes[m.ator_id] = store.resolve_actor_display_name(m.ator_id)
        upp = item.unidades_por_pacote if item else 1
        registros.append({
            "id": m.id,
            "item_id": m.item_id,
            "item_nome": item.nome if item else ITEM_REMOVIDO,
            "marca": item.marca if item else None,
            "tipo": m.tipo.value,
            "quantidade": m.quantidade,
            "unidades_totais": m.quantidade * upp,
            "motivo": m.motivo,
            "observacoes": m.observacoes,
            "ator_id": m.ator_id,
            "ator_nome": nomes[m.ator_id],
            "estorno_de": m.estorno_de,
            "criado_em": m.criado_em,
        })

    return {
        "total": total,
        "pagina": pagina,
        "por_pagina": por_pagina,
        "paginas": max(1, math.ceil(total / por_pagina)),
        "registros": registros,
    }
