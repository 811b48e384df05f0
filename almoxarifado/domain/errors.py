"""
Exceções do almoxarifado.

Todas as falhas de regra de negócio derivam de ``EstoqueError``, que
carrega uma mensagem legível e um dicionário ``data`` com o contexto
estruturado (útil para APIs e para os logs de transação).

Uso:
    try:
        alterar_quantidade(store, item_id, 10, TipoMovimentacao.SAIDA)
    except InsufficientStockError as e:
        print(f"Só tem {e.disponivel} disponível")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class EstoqueError(Exception):
    """Erro base com mensagem e dados de contexto."""

    default_message = "Erro no estoque"

    def __init__(self, message: Optional[str] = None, **data: Any):
        self.message = message or self.default_message
        self.data: Dict[str, Any] = data
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        """Serializa para dicionário."""
        return {
            "erro": type(self).__name__,
            "mensagem": self.message,
            "dados": {k: (str(v) if not isinstance(v, (int, float, str, type(None))) else v)
                      for k, v in self.data.items()},
        }


class ValidationError(EstoqueError):
    """Entrada malformada; rejeitada antes de qualquer alteração."""

    default_message = "Dados inválidos"


class InsufficientStockError(EstoqueError):
    """Uma saída deixaria a quantidade do item negativa."""

    default_message = "Quantidade insuficiente em estoque"

    @property
    def item_id(self) -> Any:
        return self.data.get("item_id")

    @property
    def disponivel(self) -> int:
        return int(self.data.get("disponivel") or 0)

    @property
    def solicitado(self) -> int:
        return int(self.data.get("solicitado") or 0)


class InvalidStateError(EstoqueError):
    """Transição de estado não permitida a partir do estado atual."""

    default_message = "Operação não permitida no estado atual"


class NotFoundError(EstoqueError):
    """Registro referenciado não existe."""

    default_message = "Registro não encontrado"

    def __init__(self, entidade: str, id: Any, message: Optional[str] = None):
        super().__init__(message or f"{entidade} {id} não encontrado(a)", entidade=entidade, id=id)


class StoreError(EstoqueError):
    """Falha do armazenamento subjacente (indisponível ou operação recusada)."""

    default_message = "Falha no armazenamento de dados"
