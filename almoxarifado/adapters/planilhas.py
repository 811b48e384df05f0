# almoxarifado/adapters/planilhas.py
"""
Loaders para planilhas (XLSX) de ITENS e de MOVIMENTAÇÕES.

Essas funções:
- leem planilhas XLSX usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- retornam listas de dicionários com as chaves esperadas pelos casos de uso.

Observações:
- Não validam regras de negócio: quantidades seguem como texto e são
  convertidas/validadas em ``cadastro_itens`` e ``movimentar_estoque``.
- Datas são normalizadas para ISO (YYYY-MM-DD) quando possível.
- Linhas totalmente vazias são descartadas.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import pandas as pd
import re


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key):
    """Valor da linha ou None para ausentes/NA/texto vazio."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return val


def _to_date_iso(val: Any) -> Optional[str]:
    """Converte valor para data ISO (YYYY-MM-DD) se possível."""
    if val is None:
        return None
    if isinstance(val, pd.Timestamp):
        return val.date().isoformat()
    s = str(val).strip()
    if not s:
        return None
    # ISO primeiro; dayfirst só para formatos brasileiros
    d = pd.to_datetime(s, format="ISO8601", errors="coerce")
    if pd.isna(d):
        d = pd.to_datetime(s, dayfirst=True, errors="coerce")
    if pd.isna(d):
        return None
    return d.date().isoformat()


_ALIASES = {
    "id": "item_id",
    "item id": "item_id",
    "id item": "item_id",

    "nome": "nome",
    "item": "nome",
    "produto": "nome",
    "descricao": "nome",

    "categoria": "categoria",
    "subcategoria": "subcategoria",
    "marca": "marca",

    "codigo": "codigo",
    "cod": "codigo",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",

    "estoque minimo": "estoque_minimo",
    "minimo": "estoque_minimo",
    "qtd minima": "estoque_minimo",
    "quantidade minima": "estoque_minimo",

    "validade": "data_validade",
    "data validade": "data_validade",
    "data de validade": "data_validade",
    "vencimento": "data_validade",

    "unidades por pacote": "unidades_por_pacote",
    "un pacote": "unidades_por_pacote",
    "localizacao": "localizacao",
    "local": "localizacao",

    "unidade": "unidade_medida",
    "unidade medida": "unidade_medida",
    "unidade de medida": "unidade_medida",

    "motivo": "motivo",
    "observacoes": "observacoes",
    "observacao": "observacoes",
    "obs": "observacoes",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key.replace(" ", "_"))
    return df.rename(columns=new_cols)


def _read(path: str) -> pd.DataFrame:
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)
    return df.dropna(how="all")


# ---------------------------
# loaders públicos (XLSX)
# ---------------------------

_CAMPOS_ITEM = (
    "nome", "categoria", "subcategoria", "marca", "codigo", "quantidade",
    "estoque_minimo", "unidades_por_pacote", "localizacao", "unidade_medida",
)


def load_itens_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de ITENS e retorna dicionários aceitos por ``criar_item``.

    Só as colunas presentes na planilha viram chaves; ``data_validade`` é
    convertida para ISO.
    """
    df = _read(path)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        rec: Dict[str, Any] = {}
        for campo in _CAMPOS_ITEM:
            if campo in df.columns:
                rec[campo] = _safe_get(row, campo)
        if "data_validade" in df.columns:
            rec["data_validade"] = _to_date_iso(_safe_get(row, "data_validade"))
        out.append(rec)
    return out


def load_movimentos_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de MOVIMENTAÇÕES.

    Campos de saída (chaves do dict por linha):
      - item_id: str | None
      - codigo: str | None
      - nome: str | None
      - quantidade: str | None  (validada no caso de uso)
      - motivo: str | None
      - observacoes: str | None
    """
    df = _read(path)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        out.append({
            "item_id": _safe_get(row, "item_id"),
            "codigo": _safe_get(row, "codigo"),
            "nome": _safe_get(row, "nome"),
            "quantidade": _safe_get(row, "quantidade"),
            "motivo": _safe_get(row, "motivo"),
            "observacoes": _safe_get(row, "observacoes"),
        })
    return out
