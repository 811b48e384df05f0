# almoxarifado/usecases/alertas.py
"""
UC: Alertas de estoque (estoque baixo e vencimentos próximos).

Funções puras sobre a lista atual de itens; nada é persistido. Itens com o
mesmo nome normalizado (lotes, marcas e validades diferentes) formam um
único grupo de alerta.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from almoxarifado.config import DEFAULTS
from almoxarifado.domain.models import AlertaEstoque, ItemEstoque, StatusAlerta
from almoxarifado.domain.policies import status_alerta


def calcular_alertas(itens: Iterable[ItemEstoque], fator_critico: Optional[float] = None) -> List[AlertaEstoque]:
    """Agrupa por nome normalizado e classifica cada grupo.

    Nome e categoria de exibição vêm do primeiro item do grupo; o total é a
    soma das quantidades e o mínimo é o maior mínimo entre as variantes.
    A ordem dos grupos segue a primeira aparição de cada nome.
    """
    fator = DEFAULTS.fator_critico if fator_critico is None else fator_critico
    grupos: Dict[str, List[ItemEstoque]] = {}
    for it in itens:
        grupos.setdefault(it.nome_normalizado, []).append(it)

    alertas = []
    for membros in grupos.values():
        primeiro = membros[0]
        total = sum(m.quantidade for m in membros)
        minimo = max(m.estoque_minimo for m in membros)
        alertas.append(AlertaEstoque(
            nome_exibicao=primeiro.nome.strip(),
            categoria=primeiro.categoria,
            quantidade_total=total,
            estoque_minimo=minimo,
            status=StatusAlerta(status_alerta(total, minimo, fator)),
            itens=membros,
        ))
    return alertas


def itens_estoque_baixo(itens: Iterable[ItemEstoque], fator_critico: Optional[float] = None) -> List[AlertaEstoque]:
    """Grupos em estado ``baixo`` ou ``critico``."""
    return [a for a in calcular_alertas(itens, fator_critico) if a.status != StatusAlerta.OK]


def itens_vencendo(
    itens: Iterable[ItemEstoque],
    janela_dias: Optional[int] = None,
    hoje: Optional[date] = None,
) -> List[ItemEstoque]:
    """Itens com saldo cuja validade cai em ``[hoje, hoje + janela_dias]``."""
    janela = DEFAULTS.janela_vencimento_dias if janela_dias is None else janela_dias
    hoje = hoje or date.today()
    limite = hoje + timedelta(days=janela)
    vencendo = [
        it for it in itens
        if it.quantidade > 0 and it.data_validade is not None and hoje <= it.data_validade <= limite
    ]
    return sorted(vencendo, key=lambda it: (it.data_validade, it.id or 0))
