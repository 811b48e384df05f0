# almoxarifado/infra/memoria.py
"""
Implementação em memória do ``EstoqueStore`` (testes e protótipos).

Um único lock protege todos os dicionários, então ``apply_quantity_change``
e ``transition_request`` são atômicos em relação a outras threads do mesmo
processo.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .store import CAMPOS_ITEM_EDITAVEIS, CAMPOS_SOLICITACAO_EDITAVEIS, CAMPOS_SOLICITACAO_ESTADO
from almoxarifado.config import DEFAULTS
from almoxarifado.domain.errors import InsufficientStockError, InvalidStateError, NotFoundError, ValidationError
from almoxarifado.domain.models import (
    ItemEstoque,
    Movimentacao,
    Solicitacao,
    StatusCoordenacao,
    StatusSolicitacao,
    TipoMovimentacao,
    Usuario,
)


def _checar_campos(parcial: Dict[str, Any], permitidos) -> None:
    desconhecidos = set(parcial) - set(permitidos)
    if desconhecidos:
        raise ValidationError("Campos não editáveis", campos=sorted(desconhecidos))


class MemoryStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._itens: Dict[int, ItemEstoque] = {}
        self._movs: Dict[int, Movimentacao] = {}
        self._sols: Dict[int, Solicitacao] = {}
        self._usuarios: Dict[int, Usuario] = {}
        self._seq = {"item": 0, "mov": 0, "sol": 0, "usuario": 0}

    def _next_id(self, chave: str) -> int:
        self._seq[chave] += 1
        return self._seq[chave]

    # -------------------------
    # Itens
    # -------------------------

    def list_stock_records(self, nome: Optional[str] = None, somente_disponiveis: bool = False) -> List[ItemEstoque]:
        with self._lock:
            out = []
            for item_id in sorted(self._itens):
                it = self._itens[item_id]
                if nome is not None and it.nome != nome:
                    continue
                if somente_disponiveis and it.quantidade <= 0:
                    continue
                out.append(copy.deepcopy(it))
            return out

    def get_stock_record(self, item_id: int) -> ItemEstoque:
        with self._lock:
            if item_id not in self._itens:
                raise NotFoundError("item", item_id)
            return copy.deepcopy(self._itens[item_id])

    def insert_stock_record(self, item: ItemEstoque) -> ItemEstoque:
        with self._lock:
            novo = copy.deepcopy(item)
            novo.id = self._next_id("item")
            novo.criado_em = novo.atualizado_em = datetime.now()
            self._itens[novo.id] = novo
            return copy.deepcopy(novo)

    def update_stock_record(self, item_id: int, parcial: Dict[str, Any]) -> ItemEstoque:
        _checar_campos(parcial, CAMPOS_ITEM_EDITAVEIS)
        with self._lock:
            if item_id not in self._itens:
                raise NotFoundError("item", item_id)
            it = self._itens[item_id]
            for k, v in parcial.items():
                setattr(it, k, v)
            it.atualizado_em = datetime.now()
            return copy.deepcopy(it)

    def delete_stock_record(self, item_id: int) -> None:
        with self._lock:
            if self._itens.pop(item_id, None) is None:
                raise NotFoundError("item", item_id)

    # -------------------------
    # Movimentações
    # -------------------------

    def _insert_mov(self, mov: Movimentacao, quando: datetime) -> Movimentacao:
        novo = copy.deepcopy(mov)
        novo.id = self._next_id("mov")
        novo.criado_em = quando
        self._movs[novo.id] = novo
        return copy.deepcopy(novo)

    def insert_movement(self, mov: Movimentacao) -> Movimentacao:
        with self._lock:
            return self._insert_mov(mov, mov.criado_em or datetime.now())

    def get_movement(self, mov_id: int) -> Movimentacao:
        with self._lock:
            if mov_id not in self._movs:
                raise NotFoundError("movimentação", mov_id)
            return copy.deepcopy(self._movs[mov_id])

    def list_movements(
        self,
        item_id: Optional[int] = None,
        tipo: Optional[TipoMovimentacao] = None,
        desde: Optional[datetime] = None,
        estorno_de: Optional[int] = None,
    ) -> List[Movimentacao]:
        with self._lock:
            out = []
            for mov_id in sorted(self._movs, reverse=True):
                m = self._movs[mov_id]
                if item_id is not None and m.item_id != item_id:
                    continue
                if tipo is not None and m.tipo != TipoMovimentacao(tipo):
                    continue
                if desde is not None and (m.criado_em is None or m.criado_em < desde):
                    continue
                if estorno_de is not None and m.estorno_de != estorno_de:
                    continue
                out.append(copy.deepcopy(m))
            return out

    def apply_quantity_change(self, item_id: int, delta: int, mov: Movimentacao) -> Movimentacao:
        with self._lock:
            it = self._itens.get(item_id)
            if mov.estorno_de is not None:
                ja = next((m for m in self._movs.values() if m.estorno_de == mov.estorno_de), None)
                if ja is not None:
                    raise InvalidStateError("Movimentação já estornada", movimentacao_id=mov.estorno_de,
                                            estorno_id=ja.id)
            if it is None:
                raise NotFoundError("item", item_id)
            if it.quantidade + delta < 0:
                raise InsufficientStockError(item_id=item_id, disponivel=it.quantidade, solicitado=-delta)
            now = datetime.now()
            it.quantidade += delta
            it.atualizado_em = now
            return self._insert_mov(mov, now)

    # -------------------------
    # Solicitações
    # -------------------------

    def list_requests(
        self,
        status: Optional[StatusSolicitacao] = None,
        status_coordenacao: Optional[StatusCoordenacao] = None,
        solicitante_id: Optional[int] = None,
    ) -> List[Solicitacao]:
        with self._lock:
            out = []
            for sol_id in sorted(self._sols, reverse=True):
                s = self._sols[sol_id]
                if status is not None and s.status != StatusSolicitacao(status):
                    continue
                if status_coordenacao is not None and s.status_coordenacao != StatusCoordenacao(status_coordenacao):
                    continue
                if solicitante_id is not None and s.solicitante_id != solicitante_id:
                    continue
                out.append(copy.deepcopy(s))
            return out

    def get_request(self, solicitacao_id: int) -> Solicitacao:
        with self._lock:
            if solicitacao_id not in self._sols:
                raise NotFoundError("solicitação", solicitacao_id)
            return copy.deepcopy(self._sols[solicitacao_id])

    def insert_request(self, sol: Solicitacao) -> Solicitacao:
        with self._lock:
            novo = copy.deepcopy(sol)
            novo.id = self._next_id("sol")
            novo.criado_em = novo.criado_em or datetime.now()
            self._sols[novo.id] = novo
            return copy.deepcopy(novo)

    def update_request(self, solicitacao_id: int, parcial: Dict[str, Any]) -> Solicitacao:
        _checar_campos(parcial, CAMPOS_SOLICITACAO_EDITAVEIS)
        with self._lock:
            if solicitacao_id not in self._sols:
                raise NotFoundError("solicitação", solicitacao_id)
            s = self._sols[solicitacao_id]
            for k, v in parcial.items():
                setattr(s, k, copy.deepcopy(v))
            return copy.deepcopy(s)

    def transition_request(
        self, solicitacao_id: int, esperado: Dict[str, Any], parcial: Dict[str, Any]
    ) -> Solicitacao:
        _checar_campos(esperado, CAMPOS_SOLICITACAO_ESTADO)
        _checar_campos(parcial, CAMPOS_SOLICITACAO_EDITAVEIS)
        if not esperado or not parcial:
            raise ValidationError("Transição sem estado esperado ou sem alterações")
        with self._lock:
            if solicitacao_id not in self._sols:
                raise NotFoundError("solicitação", solicitacao_id)
            s = self._sols[solicitacao_id]
            if any(getattr(s, k) != v for k, v in esperado.items()):
                raise InvalidStateError(
                    "Solicitação mudou de estado",
                    solicitacao_id=solicitacao_id,
                    status=s.status.value,
                    status_coordenacao=s.status_coordenacao.value,
                )
            for k, v in parcial.items():
                setattr(s, k, copy.deepcopy(v))
            return copy.deepcopy(s)

    # -------------------------
    # Usuários
    # -------------------------

    def insert_user(self, usuario: Usuario) -> Usuario:
        with self._lock:
            novo = copy.deepcopy(usuario)
            novo.id = self._next_id("usuario")
            self._usuarios[novo.id] = novo
            return copy.deepcopy(novo)

    def resolve_actor_display_name(self, ator_id: Optional[int]) -> str:
        u = self._usuarios.get(ator_id) if ator_id is not None else None
        if u is None:
            return DEFAULTS.nome_placeholder
        return u.nome or u.email or DEFAULTS.nome_placeholder
