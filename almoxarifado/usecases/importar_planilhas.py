# almoxarifado/usecases/importar_planilhas.py
"""
UC: Importar planilhas XLSX.
- run_importar_itens(store, path): cadastra um item por linha.
- run_movimentacao_planilha(store, path, tipo): movimenta em lote.

Obs.:
- Erros de uma linha não interrompem as demais; cada erro volta com o
  número da linha da planilha (cabeçalho = linha 1).
- Na movimentação, a linha é resolvida por ``item_id``, depois por
  ``codigo``; saídas só com ``nome`` usam a alocação FIFO.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from almoxarifado.adapters.parsers import to_int, to_tipo
from almoxarifado.adapters.planilhas import load_itens_from_xlsx, load_movimentos_from_xlsx
from almoxarifado.domain.errors import EstoqueError, NotFoundError, ValidationError
from almoxarifado.domain.models import TipoMovimentacao
from almoxarifado.infra.logger import log_file_operation, log_system_event, log_transaction, print_system
from almoxarifado.infra.store import EstoqueStore
from almoxarifado.usecases.alocacao_fifo import alocar_fifo
from almoxarifado.usecases.cadastro_itens import criar_item
from almoxarifado.usecases.movimentar_estoque import movimentar_lote


def _linha(pos: int) -> int:
    return pos + 2


def run_importar_itens(store: EstoqueStore, path: str, ator_id: Optional[int] = None) -> Dict[str, Any]:
    """Lê um XLSX de itens e cadastra cada linha."""
    log_system_event("importar_itens_start", {"file_path": path})
    try:
        rows: List[Dict[str, Any]] = load_itens_from_xlsx(path)
    except Exception as e:
        log_transaction("importar_itens", {"file": path}, error=str(e))
        raise
    log_file_operation("import", path, rows_processed=len(rows))

    criados, erros = [], []
    for pos, row in enumerate(rows):
        try:
            criados.append(criar_item(store, row, ator_id=ator_id))
        except EstoqueError as e:
            erros.append({"linha": _linha(pos), "erro": e})

    result = {"arquivo": path, "criados": criados, "erros": erros}
    print_system(f">> {len(criados)} itens importados, {len(erros)} com erro.")
    log_transaction("importar_itens", {"file": path, "rows_count": len(rows)},
                    result={"criados": len(criados), "erros": len(erros)})
    return result


def _resolver_item_id(store: EstoqueStore, row: Dict[str, Any]) -> Optional[int]:
    if row.get("item_id") is not None:
        return to_int(row["item_id"], "item_id", minimo=1)
    codigo = row.get("codigo")
    if codigo is not None:
        codigo = str(codigo).strip()
        for it in store.list_stock_records():
            if it.codigo == codigo:
                return it.id
        raise NotFoundError("item com código", codigo)
    return None


def run_movimentacao_planilha(
    store: EstoqueStore,
    path: str,
    tipo: Union[str, TipoMovimentacao],
    motivo: Optional[str] = None,
    ator_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Lê um XLSX de movimentações e aplica todas as linhas de uma vez."""
    t = to_tipo(tipo)
    log_system_event("movimentacao_planilha_start", {"file_path": path, "tipo": t.value})
    try:
        rows = load_movimentos_from_xlsx(path)
    except Exception as e:
        log_transaction("movimentacao_planilha", {"file": path}, error=str(e))
        raise
    log_file_operation("import", path, rows_processed=len(rows))

    pares, erros, alocacoes = [], [], []
    for pos, row in enumerate(rows):
        try:
            item_id = _resolver_item_id(store, row)
            if item_id is not None:
                pares.append((item_id, row.get("quantidade")))
            elif row.get("nome") and t is TipoMovimentacao.SAIDA:
                alocacoes.append(alocar_fifo(store, row["nome"], row.get("quantidade"),
                                             motivo=row.get("motivo") or motivo,
                                             observacoes=row.get("observacoes"), ator_id=ator_id))
            else:
                raise ValidationError("Informe item_id ou código do item")
        except EstoqueError as e:
            erros.append({"linha": _linha(pos), "erro": e})

    lote = movimentar_lote(store, pares, t, motivo=motivo, ator_id=ator_id)
    erros.extend({"item_id": e["item_id"], "erro": e["erro"]} for e in lote["erros"])

    result = {
        "arquivo": path,
        "movimentacoes": lote["movimentacoes"],
        "alocacoes": alocacoes,
        "erros": erros,
    }
    log_transaction("movimentacao_planilha", {"file": path, "rows_count": len(rows)},
                    result={"movimentacoes": len(lote["movimentacoes"]), "alocacoes": len(alocacoes),
                            "erros": len(erros)})
    return result
