"""
Políticas de classificação e ordenação para o almoxarifado.

Este módulo contém funções puras que encapsulam regras de negócio:
normalização do nome usado para agrupar variantes de um mesmo item,
classificação de status de alerta e a ordem FIFO por validade usada pela
alocação de saídas.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional, Tuple

_WS_RE = re.compile(r"\s+")


def normalizar_nome(nome: Optional[str]) -> str:
    """Normaliza um nome de item para agrupamento.

    Converte para minúsculas, remove espaços nas pontas e colapsa
    espaços internos. ``" Luvas  Látex "`` e ``"luvas látex"`` resultam
    na mesma chave.
    """
    if nome is None:
        return ""
    return _WS_RE.sub(" ", str(nome).strip().lower())


def status_alerta(quantidade_total: Any, estoque_minimo: Any, fator_critico: float = 0.5) -> str:
    """Classifica o status de um grupo de itens.

    Regras:
        - ``quantidade_total <= fator_critico * estoque_minimo`` → ``'critico'``
        - ``quantidade_total <= estoque_minimo`` → ``'baixo'``
        - caso contrário → ``'ok'``

    Args:
        quantidade_total: Soma das quantidades do grupo.
        estoque_minimo: Mínimo do grupo (o maior entre as variantes).
        fator_critico: Fração do mínimo abaixo da qual o grupo é crítico.

    Returns:
        ``'critico'``, ``'baixo'`` ou ``'ok'``.
    """
    total = float(quantidade_total or 0)
    minimo = float(estoque_minimo or 0)
    if total <= fator_critico * minimo:
        return "critico"
    if total <= minimo:
        return "baixo"
    return "ok"


def chave_fifo(data_validade: Optional[date], item_id: Any) -> Tuple[int, date, Any]:
    """Chave de ordenação FIFO por validade.

    Itens com validade vêm antes dos sem validade (tratados como
    "nunca vencem"); empates são resolvidos pelo id do registro.
    """
    if data_validade is None:
        return (1, date.max, item_id if item_id is not None else 0)
    return (0, data_validade, item_id if item_id is not None else 0)
