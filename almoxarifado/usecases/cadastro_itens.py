# almoxarifado/usecases/cadastro_itens.py
"""
UC: Cadastro de itens (criar, atualizar, excluir).

Regras:
- ``nome`` e ``categoria`` obrigatórios; categoria e unidade de medida
  precisam estar entre as configuradas em ``DEFAULTS``.
- Campos numéricos são convertidos para int (>= 0; unidades por pacote >= 1).
- O campo texto legado ``localizacao`` é aceito e interpretado como
  unidades por pacote quando ``unidades_por_pacote`` não é informado.
- A coluna de quantidade só muda junto com uma movimentação: quantidade
  inicial vira uma entrada "Cadastro inicial" e mudanças na edição viram
  um "Ajuste de inventário".
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from almoxarifado.adapters.parsers import parse_unidades_por_pacote, to_date, to_int
from almoxarifado.config import DEFAULTS
from almoxarifado.domain.errors import EstoqueError, ValidationError
from almoxarifado.domain.models import ItemEstoque, TipoMovimentacao
from almoxarifado.domain.policies import normalizar_nome
from almoxarifado.infra.logger import log_system_event, log_transaction
from almoxarifado.infra.store import CAMPOS_ITEM_EDITAVEIS, EstoqueStore
from almoxarifado.usecases.movimentar_estoque import alterar_quantidade

MOTIVO_CADASTRO = "Cadastro inicial"
MOTIVO_AJUSTE = "Ajuste de inventário"


def _normalize_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _escolha(valor: Any, opcoes, campo: str) -> str:
    """Casa ``valor`` com uma das opções, ignorando caixa e espaços."""
    chave = normalizar_nome(valor)
    for op in opcoes:
        if normalizar_nome(op) == chave:
            return op
    raise ValidationError(f"{campo} inválido(a)", campo=campo, valor=valor, opcoes=", ".join(opcoes))


def _validar(dados: Dict[str, Any], parcial: bool) -> Dict[str, Any]:
    desconhecidos = set(dados) - set(CAMPOS_ITEM_EDITAVEIS) - {"localizacao"}
    if desconhecidos:
        raise ValidationError("Campos desconhecidos", campos=", ".join(sorted(desconhecidos)))

    limpo: Dict[str, Any] = {}

    for campo in ("nome", "categoria"):
        if campo in dados or not parcial:
            valor = _normalize_str(dados.get(campo))
            if valor is None:
                raise ValidationError(f"{campo} é obrigatório", campo=campo)
            limpo[campo] = valor
    if "categoria" in limpo:
        limpo["categoria"] = _escolha(limpo["categoria"], DEFAULTS.categorias, "categoria")

    if "unidade_medida" in dados or not parcial:
        um = _normalize_str(dados.get("unidade_medida")) or "unidade"
        limpo["unidade_medida"] = _escolha(um, DEFAULTS.unidades_medida, "unidade_medida")

    for campo in ("quantidade", "estoque_minimo"):
        if campo in dados:
            valor = dados[campo]
            limpo[campo] = 0 if valor is None or valor == "" else to_int(valor, campo, minimo=0)
        elif not parcial:
            limpo[campo] = 0

    if dados.get("unidades_por_pacote") not in (None, ""):
        limpo["unidades_por_pacote"] = to_int(dados["unidades_por_pacote"], "unidades_por_pacote", minimo=1)
    elif "localizacao" in dados:
        limpo["unidades_por_pacote"] = parse_unidades_por_pacote(dados["localizacao"])
    elif "unidades_por_pacote" in dados or not parcial:
        limpo["unidades_por_pacote"] = 1

    if "data_validade" in dados:
        limpo["data_validade"] = to_date(dados["data_validade"])

    for campo in ("marca", "codigo", "subcategoria"):
        if campo in dados:
            limpo[campo] = _normalize_str(dados[campo])

    return limpo


def criar_item(store: EstoqueStore, dados: Dict[str, Any], ator_id: Optional[int] = None) -> ItemEstoque:
    """Valida e cadastra um item; quantidade inicial entra como movimentação."""
    log_system_event("criar_item_start", {"nome": dados.get("nome")})
    try:
        limpo = _validar(dados, parcial=False)
        quantidade_inicial = limpo.pop("quantidade")
        item = store.insert_stock_record(ItemEstoque(quantidade=0, **limpo))
        if quantidade_inicial > 0:
            alterar_quantidade(
                store, item.id, quantidade_inicial, TipoMovimentacao.ENTRADA,
                motivo=MOTIVO_CADASTRO, ator_id=ator_id,
            )
            item = store.get_stock_record(item.id)
    except EstoqueError as e:
        log_transaction("criar_item", {"nome": dados.get("nome")}, error=e.message)
        raise

    log_transaction("criar_item", {"nome": item.nome}, result=item.id)
    return item


def atualizar_item(
    store: EstoqueStore,
    item_id: int,
    parcial: Dict[str, Any],
    ator_id: Optional[int] = None,
) -> ItemEstoque:
    """Atualiza campos de um item.

    Mudança de ``quantidade`` é aplicada como ajuste de inventário (entrada
    ou saída da diferença) pela mesma via atômica das movimentações.
    """
    try:
        atual = store.get_stock_record(item_id)
        limpo = _validar(parcial, parcial=True)
        nova_qtd = limpo.pop("quantidade", None)

        if limpo:
            atual = store.update_stock_record(item_id, limpo)

        if nova_qtd is not None and nova_qtd != atual.quantidade:
            diff = nova_qtd - atual.quantidade
            alterar_quantidade(
                store, item_id, abs(diff),
                TipoMovimentacao.ENTRADA if diff > 0 else TipoMovimentacao.SAIDA,
                motivo=MOTIVO_AJUSTE, ator_id=ator_id,
            )
            atual = store.get_stock_record(item_id)
    except EstoqueError as e:
        log_transaction("atualizar_item", {"item_id": item_id, "campos": sorted(parcial)}, error=e.message)
        raise

    log_transaction("atualizar_item", {"item_id": item_id, "campos": sorted(parcial)}, result="success")
    return atual


def excluir_item(store: EstoqueStore, item_id: int) -> None:
    """Exclusão definitiva; o histórico de movimentações é preservado."""
    try:
        item = store.get_stock_record(item_id)
        store.delete_stock_record(item_id)
    except EstoqueError as e:
        log_transaction("excluir_item", {"item_id": item_id}, error=e.message)
        raise
    log_system_event("item_excluido", {"item_id": item_id, "nome": item.nome}, level="warning")
    log_transaction("excluir_item", {"item_id": item_id}, result="success")
