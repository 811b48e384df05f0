"""
Utilidades de parsing para valores vindos de formulários e planilhas.

Este módulo interpreta os formatos "livres" que chegam das bordas do
sistema e os converte para os tipos canônicos do domínio:

- linhas de solicitação gravadas com variações históricas de chaves
  (``item``/``name``/``nome``, ``quantidade``/``quantity``);
- o antigo campo texto de localização, reaproveitado como
  "unidades por pacote" (ex.: ``"12 un/cx"`` → 12);
- inteiros não negativos e datas ISO.
"""

from __future__ import annotations

import json
import math
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Union

from almoxarifado.domain.errors import ValidationError
from almoxarifado.domain.models import LinhaSolicitacao, TipoMovimentacao

_INT_RE = re.compile(r"^\s*[-+]?\d+")

_NOME_KEYS = ("nome", "name", "item", "itemName")
_QTD_KEYS = ("quantidade", "quantity", "qtd", "quantidade_solicitada")


def parse_unidades_por_pacote(txt: Any) -> int:
    """Extrai a quantidade de unidades por pacote de um texto livre.

    O número inicial do texto é usado; textos sem número inicial ou com
    valor menor que 1 resultam em 1.

    Exemplos:
        "12"         → 12
        "10 un/cx"   → 10
        "Armário 3"  → 1
        None         → 1
    """
    if txt is None:
        return 1
    if isinstance(txt, bool):
        return 1
    if isinstance(txt, int):
        return txt if txt >= 1 else 1
    m = _INT_RE.match(str(txt))
    if not m:
        return 1
    val = int(m.group(0))
    return val if val >= 1 else 1


def to_int(val: Any, campo: str, minimo: int = 0) -> int:
    """Converte ``val`` para inteiro >= ``minimo`` ou lança ValidationError."""
    if val is None or isinstance(val, bool):
        raise ValidationError(f"{campo} é obrigatório", campo=campo)
    try:
        f = float(str(val).strip().replace(",", "."))
    except ValueError:
        raise ValidationError(f"{campo} deve ser numérico", campo=campo, valor=val) from None
    if not math.isfinite(f) or f != int(f):
        raise ValidationError(f"{campo} deve ser inteiro", campo=campo, valor=val)
    i = int(f)
    if i < minimo:
        raise ValidationError(f"{campo} deve ser >= {minimo}", campo=campo, valor=val)
    return i


def to_date(val: Any) -> Optional[date]:
    """Converte para ``date`` (aceita date, datetime, ISO ou DD/MM/AAAA)."""
    if val is None:
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = str(val).strip()
    if not s:
        return None
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y"):
        try:
            return datetime.strptime(s[:10] if fmt == "%Y-%m-%d" else s, fmt).date()
        except ValueError:
            continue
    raise ValidationError("Data inválida", valor=val)


def to_tipo(val: Any) -> TipoMovimentacao:
    """Converte ``"entrada"``/``"saida"``/``"saída"`` (ou o enum) para ``TipoMovimentacao``."""
    s = str(getattr(val, "value", val)).strip().lower().replace("í", "i")
    try:
        return TipoMovimentacao(s)
    except ValueError:
        raise ValidationError("Tipo de movimentação inválido", tipo=val) from None


def _first_key(raw: dict, keys: Iterable[str]) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None and v != "":
            return v
    return None


def normalizar_linhas(bruto: Union[str, Iterable[Any], None]) -> List[LinhaSolicitacao]:
    """Normaliza as linhas de uma solicitação para ``LinhaSolicitacao``.

    Aceita uma string JSON ou uma lista de dicionários/``LinhaSolicitacao``.
    Quantidade ausente vale 1 (comportamento herdado dos formulários
    antigos); nome em branco ou quantidade não positiva são rejeitados.

    Raises:
        ValidationError: se a estrutura ou algum valor for inválido.
    """
    if bruto is None:
        raise ValidationError("A solicitação deve ter ao menos um item")
    if isinstance(bruto, str):
        try:
            bruto = json.loads(bruto)
        except json.JSONDecodeError:
            raise ValidationError("Itens da solicitação em formato inválido") from None
    if isinstance(bruto, dict):
        bruto = [bruto]
    if isinstance(bruto, (str, bytes)) or not isinstance(bruto, Iterable):
        raise ValidationError("Itens da solicitação devem ser uma lista", valor=bruto)

    linhas: List[LinhaSolicitacao] = []
    for pos, raw in enumerate(bruto, start=1):
        if isinstance(raw, LinhaSolicitacao):
            nome, qtd = raw.nome, raw.quantidade
        elif isinstance(raw, dict):
            nome = _first_key(raw, _NOME_KEYS)
            qtd = _first_key(raw, _QTD_KEYS)
            if qtd is None:
                qtd = 1
        else:
            raise ValidationError("Linha de solicitação inválida", linha=pos)
        nome = str(nome).strip() if nome is not None else ""
        if not nome:
            raise ValidationError("Nome do item é obrigatório", linha=pos)
        linhas.append(LinhaSolicitacao(nome=nome, quantidade=to_int(qtd, f"quantidade (linha {pos})", minimo=1)))

    if not linhas:
        raise ValidationError("A solicitação deve ter ao menos um item")
    return linhas
