"""
Protocolo de acesso a dados consumido pelos casos de uso.

Os casos de uso recebem um ``EstoqueStore`` já construído; a escolha da
implementação (``SQLiteStore`` ou ``MemoryStore``) acontece na composição
(CLI, testes, aplicação web).

Contrato comum:
- chamadas síncronas; falhas de transporte/motor viram ``StoreError``;
- ids inexistentes viram ``NotFoundError`` nos métodos ``get_*``/``update_*``;
- objetos retornados são cópias: alterá-los não altera o armazenamento;
- ``apply_quantity_change`` é a única primitiva que altera quantidade e
  grava a movimentação, ambas na mesma transação.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from almoxarifado.domain.models import (
    ItemEstoque,
    Movimentacao,
    Solicitacao,
    StatusCoordenacao,
    StatusSolicitacao,
    TipoMovimentacao,
    Usuario,
)


# Campos de ItemEstoque que ``update_stock_record`` aceita
CAMPOS_ITEM_EDITAVEIS = (
    "nome", "categoria", "subcategoria", "marca", "quantidade", "estoque_minimo",
    "data_validade", "unidades_por_pacote", "codigo", "unidade_medida",
)

# Campos de Solicitacao que ``update_request`` aceita
CAMPOS_SOLICITACAO_EDITAVEIS = (
    "linhas", "observacoes", "status", "status_coordenacao", "confirmado_em",
    "confirmado_por", "aprovado_por", "coordenacao_decidida_em", "rejeitado_em",
    "rejeitado_por",
)

# Campos que ``transition_request`` aceita como estado esperado
CAMPOS_SOLICITACAO_ESTADO = ("status", "status_coordenacao")


@runtime_checkable
class EstoqueStore(Protocol):
    """Interface de persistência do almoxarifado."""

    # --- itens ---
    def list_stock_records(self, nome: Optional[str] = None, somente_disponiveis: bool = False) -> List[ItemEstoque]:
        """Lista itens, opcionalmente com ``nome`` exato e ``quantidade > 0``, em ordem de id."""
        ...

    def get_stock_record(self, item_id: int) -> ItemEstoque:
        ...

    def insert_stock_record(self, item: ItemEstoque) -> ItemEstoque:
        ...

    def update_stock_record(self, item_id: int, parcial: Dict[str, Any]) -> ItemEstoque:
        ...

    def delete_stock_record(self, item_id: int) -> None:
        ...

    # --- movimentações ---
    def insert_movement(self, mov: Movimentacao) -> Movimentacao:
        ...

    def get_movement(self, mov_id: int) -> Movimentacao:
        ...

    def list_movements(
        self,
        item_id: Optional[int] = None,
        tipo: Optional[TipoMovimentacao] = None,
        desde: Optional[datetime] = None,
        estorno_de: Optional[int] = None,
    ) -> List[Movimentacao]:
        """Lista movimentações da mais recente para a mais antiga."""
        ...

    def apply_quantity_change(self, item_id: int, delta: int, mov: Movimentacao) -> Movimentacao:
        """Soma ``delta`` à quantidade e grava ``mov`` atomicamente.

        Raises:
            NotFoundError: item inexistente.
            InsufficientStockError: o resultado seria negativo (nada é gravado).
            InvalidStateError: ``mov.estorno_de`` já tem estorno gravado.
        """
        ...

    # --- solicitações ---
    def list_requests(
        self,
        status: Optional[StatusSolicitacao] = None,
        status_coordenacao: Optional[StatusCoordenacao] = None,
        solicitante_id: Optional[int] = None,
    ) -> List[Solicitacao]:
        """Lista solicitações da mais recente para a mais antiga."""
        ...

    def get_request(self, solicitacao_id: int) -> Solicitacao:
        ...

    def insert_request(self, sol: Solicitacao) -> Solicitacao:
        ...

    def update_request(self, solicitacao_id: int, parcial: Dict[str, Any]) -> Solicitacao:
        ...

    def transition_request(
        self, solicitacao_id: int, esperado: Dict[str, Any], parcial: Dict[str, Any]
    ) -> Solicitacao:
        """Aplica ``parcial`` só se o estado atual ainda for ``esperado`` (compare-and-set).

        Raises:
            NotFoundError: solicitação inexistente.
            InvalidStateError: o estado mudou desde a leitura (nada é gravado).
        """
        ...

    # --- usuários ---
    def insert_user(self, usuario: Usuario) -> Usuario:
        ...

    def resolve_actor_display_name(self, ator_id: Optional[int]) -> str:
        """Nome (ou e-mail) do usuário; nunca lança: falha vira placeholder."""
        ...
