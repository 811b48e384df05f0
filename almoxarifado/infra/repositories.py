# almoxarifado/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- ParamsRepo
- UsuarioRepo
- ItemRepo
- MovimentacaoRepo
- SolicitacaoRepo
- SQLiteStore  (implementação de ``EstoqueStore`` que compõe os repositórios)
"""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .db import connect
from .logger import log_database_operation
from .migrations import apply_migrations
from .store import CAMPOS_ITEM_EDITAVEIS, CAMPOS_SOLICITACAO_EDITAVEIS, CAMPOS_SOLICITACAO_ESTADO
from almoxarifado.adapters.parsers import normalizar_linhas
from almoxarifado.config import DEFAULTS
from almoxarifado.domain.errors import (
    EstoqueError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from almoxarifado.domain.models import (
    ItemEstoque,
    LinhaSolicitacao,
    Movimentacao,
    Solicitacao,
    StatusCoordenacao,
    StatusSolicitacao,
    TipoMovimentacao,
    Usuario,
)


# -------------------------
# Helpers
# -------------------------

def _to_db(val: Any) -> Any:
    """Converte valores do domínio para colunas SQLite."""
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return val


def _dt(val: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(val) if val else None


def _d(val: Optional[str]) -> Optional[date]:
    return date.fromisoformat(val[:10]) if val else None


def _linhas_json(linhas: Iterable[LinhaSolicitacao]) -> str:
    return json.dumps([{"nome": l.nome, "quantidade": l.quantidade} for l in linhas], ensure_ascii=False)


def _set_clause(parcial: Dict[str, Any], permitidos: Tuple[str, ...]) -> Tuple[str, Dict[str, Any]]:
    desconhecidos = set(parcial) - set(permitidos)
    if desconhecidos:
        raise ValidationError("Campos não editáveis", campos=sorted(desconhecidos))
    sets = ", ".join(f"{k} = :{k}" for k in parcial)
    return sets, {k: _to_db(v) for k, v in parcial.items()}


# -------------------------
# Params
# -------------------------

class ParamsRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        with connect(self.db_path) as c:
            c.executemany(
                """
                INSERT INTO params (chave, valor)
                VALUES (?, ?)
                ON CONFLICT(chave) DO UPDATE SET valor=excluded.valor
                """,
                list(items),
            )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT valor FROM params WHERE chave = ?", (key,)).fetchone()
            return row[0] if row else default

    def get_int(self, key: str, default: int) -> int:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return int(float(v))
        except ValueError:
            return default

    def get_float(self, key: str, default: float) -> float:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return float(v)
        except ValueError:
            return default


# -------------------------
# Usuário
# -------------------------

class UsuarioRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def insert(self, usuario: Usuario) -> Usuario:
        with connect(self.db_path) as c:
            cur = c.execute(
                "INSERT INTO usuario (nome, email, papel) VALUES (?, ?, ?)",
                (usuario.nome, usuario.email, usuario.papel),
            )
            new_id = cur.lastrowid
        log_database_operation("usuario", "INSERT", 1, id=new_id)
        return Usuario(id=new_id, nome=usuario.nome, email=usuario.email, papel=usuario.papel)

    def get(self, usuario_id: int) -> Optional[Usuario]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT id, nome, email, papel FROM usuario WHERE id = ?", (usuario_id,)).fetchone()
        if row is None:
            return None
        return Usuario(id=row["id"], nome=row["nome"], email=row["email"], papel=row["papel"])


# -------------------------
# Item de estoque
# -------------------------

_ITEM_SELECT = """
    SELECT id, nome, categoria, subcategoria, marca, quantidade, estoque_minimo,
           data_validade, unidades_por_pacote, codigo, unidade_medida,
           criado_em, atualizado_em
    FROM item_estoque
"""


def _row_to_item(row) -> ItemEstoque:
    return ItemEstoque(
        id=row["id"],
        nome=row["nome"],
        categoria=row["categoria"],
        subcategoria=row["subcategoria"],
        marca=row["marca"],
        quantidade=int(row["quantidade"]),
        estoque_minimo=int(row["estoque_minimo"]),
        data_validade=_d(row["data_validade"]),
        unidades_por_pacote=int(row["unidades_por_pacote"]),
        codigo=row["codigo"],
        unidade_medida=row["unidade_medida"],
        criado_em=_dt(row["criado_em"]),
        atualizado_em=_dt(row["atualizado_em"]),
    )


class ItemRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @staticmethod
    def _fetch(c, item_id: int) -> ItemEstoque:
        row = c.execute(_ITEM_SELECT + " WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            raise NotFoundError("item", item_id)
        return _row_to_item(row)

    def get_all(self, nome: Optional[str] = None, somente_disponiveis: bool = False) -> List[ItemEstoque]:
        where, args = [], []
        if nome is not None:
            where.append("nome = ?")
            args.append(nome)
        if somente_disponiveis:
            where.append("quantidade > 0")
        sql = _ITEM_SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY id"
        with connect(self.db_path) as c:
            rows = c.execute(sql, args).fetchall()
        return [_row_to_item(r) for r in rows]

    def get(self, item_id: int) -> ItemEstoque:
        with connect(self.db_path) as c:
            return self._fetch(c, item_id)

    def insert(self, item: ItemEstoque) -> ItemEstoque:
        now = datetime.now()
        payload = {
            "nome": item.nome,
            "categoria": item.categoria,
            "subcategoria": item.subcategoria,
            "marca": item.marca,
            "quantidade": item.quantidade,
            "estoque_minimo": item.estoque_minimo,
            "data_validade": _to_db(item.data_validade),
            "unidades_por_pacote": item.unidades_por_pacote,
            "codigo": item.codigo,
            "unidade_medida": item.unidade_medida,
            "criado_em": now.isoformat(),
            "atualizado_em": now.isoformat(),
        }
        with connect(self.db_path) as c:
            cur = c.execute(
                """
                INSERT INTO item_estoque
                    (nome, categoria, subcategoria, marca, quantidade, estoque_minimo,
                     data_validade, unidades_por_pacote, codigo, unidade_medida,
                     criado_em, atualizado_em)
                VALUES
                    (:nome, :categoria, :subcategoria, :marca, :quantidade, :estoque_minimo,
                     :data_validade, :unidades_por_pacote, :codigo, :unidade_medida,
                     :criado_em, :atualizado_em)
                """,
                payload,
            )
            salvo = self._fetch(c, cur.lastrowid)
        log_database_operation("item_estoque", "INSERT", 1, id=salvo.id, nome=salvo.nome)
        return salvo

    def update(self, item_id: int, parcial: Dict[str, Any]) -> ItemEstoque:
        sets, args = _set_clause(parcial, CAMPOS_ITEM_EDITAVEIS)
        args["atualizado_em"] = datetime.now().isoformat()
        args["id"] = item_id
        sql = "UPDATE item_estoque SET " + (sets + ", " if sets else "") + "atualizado_em = :atualizado_em WHERE id = :id"
        with connect(self.db_path) as c:
            cur = c.execute(sql, args)
            if cur.rowcount == 0:
                raise NotFoundError("item", item_id)
            salvo = self._fetch(c, item_id)
        log_database_operation("item_estoque", "UPDATE", 1, id=item_id, campos=sorted(parcial))
        return salvo

    def delete(self, item_id: int) -> None:
        with connect(self.db_path) as c:
            cur = c.execute("DELETE FROM item_estoque WHERE id = ?", (item_id,))
            if cur.rowcount == 0:
                raise NotFoundError("item", item_id)
        log_database_operation("item_estoque", "DELETE", 1, id=item_id)


# -------------------------
# Movimentações
# -------------------------

_MOV_SELECT = """
    SELECT id, item_id, tipo, quantidade, motivo, observacoes, ator_id, estorno_de, criado_em
    FROM movimentacao
"""


def _row_to_mov(row) -> Movimentacao:
    return Movimentacao(
        id=row["id"],
        item_id=row["item_id"],
        tipo=TipoMovimentacao(row["tipo"]),
        quantidade=int(row["quantidade"]),
        motivo=row["motivo"],
        observacoes=row["observacoes"],
        ator_id=row["ator_id"],
        estorno_de=row["estorno_de"],
        criado_em=_dt(row["criado_em"]),
    )


class MovimentacaoRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @staticmethod
    def _insert(c, mov: Movimentacao, quando: datetime) -> Movimentacao:
        cur = c.execute(
            """
            INSERT INTO movimentacao
                (item_id, tipo, quantidade, motivo, observacoes, ator_id, estorno_de, criado_em)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                mov.item_id,
                _to_db(mov.tipo),
                mov.quantidade,
                mov.motivo,
                mov.observacoes,
                mov.ator_id,
                mov.estorno_de,
                quando.isoformat(),
            ),
        )
        row = c.execute(_MOV_SELECT + " WHERE id = ?", (cur.lastrowid,)).fetchone()
        return _row_to_mov(row)

    def insert(self, mov: Movimentacao) -> Movimentacao:
        with connect(self.db_path) as c:
            salvo = self._insert(c, mov, mov.criado_em or datetime.now())
        log_database_operation("movimentacao", "INSERT", 1, id=salvo.id)
        return salvo

    def get(self, mov_id: int) -> Movimentacao:
        with connect(self.db_path) as c:
            row = c.execute(_MOV_SELECT + " WHERE id = ?", (mov_id,)).fetchone()
        if row is None:
            raise NotFoundError("movimentação", mov_id)
        return _row_to_mov(row)

    def get_all(
        self,
        item_id: Optional[int] = None,
        tipo: Optional[TipoMovimentacao] = None,
        desde: Optional[datetime] = None,
        estorno_de: Optional[int] = None,
    ) -> List[Movimentacao]:
        where, args = [], []
        if item_id is not None:
            where.append("item_id = ?")
            args.append(item_id)
        if tipo is not None:
            where.append("tipo = ?")
            args.append(_to_db(TipoMovimentacao(tipo)))
        if desde is not None:
            where.append("criado_em >= ?")
            args.append(desde.isoformat())
        if estorno_de is not None:
            where.append("estorno_de = ?")
            args.append(estorno_de)
        sql = _MOV_SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY id DESC"
        with connect(self.db_path) as c:
            rows = c.execute(sql, args).fetchall()
        return [_row_to_mov(r) for r in rows]

    def apply_quantity_change(self, item_id: int, delta: int, mov: Movimentacao) -> Movimentacao:
        """Update condicional + insert da movimentação na mesma transação."""
        now = datetime.now()
        with connect(self.db_path, immediate=True) as c:
            if mov.estorno_de is not None:
                ja = c.execute("SELECT id FROM movimentacao WHERE estorno_de = ?", (mov.estorno_de,)).fetchone()
                if ja is not None:
                    raise InvalidStateError("Movimentação já estornada", movimentacao_id=mov.estorno_de,
                                            estorno_id=ja["id"])
            cur = c.execute(
                """
                UPDATE item_estoque
                   SET quantidade = quantidade + ?, atualizado_em = ?
                 WHERE id = ? AND quantidade + ? >= 0
                """,
                (delta, now.isoformat(), item_id, delta),
            )
            if cur.rowcount == 0:
                row = c.execute("SELECT quantidade FROM item_estoque WHERE id = ?", (item_id,)).fetchone()
                if row is None:
                    raise NotFoundError("item", item_id)
                raise InsufficientStockError(item_id=item_id, disponivel=int(row[0]), solicitado=-delta)
            salvo = self._insert(c, mov, now)
        log_database_operation("item_estoque", "UPDATE_QUANTIDADE", 1, id=item_id, delta=delta, mov_id=salvo.id)
        return salvo


# -------------------------
# Solicitações
# -------------------------

_SOL_SELECT = """
    SELECT id, solicitante_id, linhas, observacoes, status, status_coordenacao,
           exige_coordenacao, criado_em, confirmado_em, confirmado_por, aprovado_por,
           coordenacao_decidida_em, rejeitado_em, rejeitado_por
    FROM solicitacao
"""


def _row_to_sol(row) -> Solicitacao:
    return Solicitacao(
        id=row["id"],
        solicitante_id=row["solicitante_id"],
        linhas=normalizar_linhas(row["linhas"]),
        observacoes=row["observacoes"],
        status=StatusSolicitacao(row["status"]),
        status_coordenacao=StatusCoordenacao(row["status_coordenacao"]),
        exige_coordenacao=bool(row["exige_coordenacao"]),
        criado_em=_dt(row["criado_em"]),
        confirmado_em=_dt(row["confirmado_em"]),
        confirmado_por=row["confirmado_por"],
        aprovado_por=row["aprovado_por"],
        coordenacao_decidida_em=_dt(row["coordenacao_decidida_em"]),
        rejeitado_em=_dt(row["rejeitado_em"]),
        rejeitado_por=row["rejeitado_por"],
    )


class SolicitacaoRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @staticmethod
    def _fetch(c, sol_id: int) -> Solicitacao:
        row = c.execute(_SOL_SELECT + " WHERE id = ?", (sol_id,)).fetchone()
        if row is None:
            raise NotFoundError("solicitação", sol_id)
        return _row_to_sol(row)

    def insert(self, sol: Solicitacao) -> Solicitacao:
        with connect(self.db_path) as c:
            cur = c.execute(
                """
                INSERT INTO solicitacao
                    (solicitante_id, linhas, observacoes, status, status_coordenacao,
                     exige_coordenacao, criado_em)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sol.solicitante_id,
                    _linhas_json(sol.linhas),
                    sol.observacoes,
                    _to_db(sol.status),
                    _to_db(sol.status_coordenacao),
                    int(sol.exige_coordenacao),
                    (sol.criado_em or datetime.now()).isoformat(),
                ),
            )
            salvo = self._fetch(c, cur.lastrowid)
        log_database_operation("solicitacao", "INSERT", 1, id=salvo.id)
        return salvo

    def get(self, sol_id: int) -> Solicitacao:
        with connect(self.db_path) as c:
            return self._fetch(c, sol_id)

    def get_all(
        self,
        status: Optional[StatusSolicitacao] = None,
        status_coordenacao: Optional[StatusCoordenacao] = None,
        solicitante_id: Optional[int] = None,
    ) -> List[Solicitacao]:
        where, args = [], []
        if status is not None:
            where.append("status = ?")
            args.append(_to_db(StatusSolicitacao(status)))
        if status_coordenacao is not None:
            where.append("status_coordenacao = ?")
            args.append(_to_db(StatusCoordenacao(status_coordenacao)))
        if solicitante_id is not None:
            where.append("solicitante_id = ?")
            args.append(solicitante_id)
        sql = _SOL_SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY id DESC"
        with connect(self.db_path) as c:
            rows = c.execute(sql, args).fetchall()
        return [_row_to_sol(r) for r in rows]

    def update(self, sol_id: int, parcial: Dict[str, Any]) -> Solicitacao:
        parcial = dict(parcial)
        if "linhas" in parcial:
            parcial["linhas"] = _linhas_json(parcial["linhas"])
        sets, args = _set_clause(parcial, CAMPOS_SOLICITACAO_EDITAVEIS)
        if not sets:
            return self.get(sol_id)
        args["id"] = sol_id
        with connect(self.db_path) as c:
            cur = c.execute(f"UPDATE solicitacao SET {sets} WHERE id = :id", args)
            if cur.rowcount == 0:
                raise NotFoundError("solicitação", sol_id)
            salvo = self._fetch(c, sol_id)
        log_database_operation("solicitacao", "UPDATE", 1, id=sol_id, campos=sorted(parcial))
        return salvo

    def transition(self, sol_id: int, esperado: Dict[str, Any], parcial: Dict[str, Any]) -> Solicitacao:
        """UPDATE condicionado ao estado esperado; ``rowcount`` 0 indica corrida perdida."""
        desconhecidos = set(esperado) - set(CAMPOS_SOLICITACAO_ESTADO)
        if desconhecidos:
            raise ValidationError("Campos de estado inválidos", campos=sorted(desconhecidos))
        sets, args = _set_clause(parcial, CAMPOS_SOLICITACAO_EDITAVEIS)
        if not esperado or not sets:
            raise ValidationError("Transição sem estado esperado ou sem alterações")
        where = " AND ".join(f"{k} = :esperado_{k}" for k in esperado)
        args.update({f"esperado_{k}": _to_db(v) for k, v in esperado.items()})
        args["id"] = sol_id
        with connect(self.db_path) as c:
            cur = c.execute(f"UPDATE solicitacao SET {sets} WHERE id = :id AND {where}", args)
            if cur.rowcount == 0:
                atual = self._fetch(c, sol_id)
                raise InvalidStateError(
                    "Solicitação mudou de estado",
                    solicitacao_id=sol_id,
                    status=atual.status.value,
                    status_coordenacao=atual.status_coordenacao.value,
                )
            salvo = self._fetch(c, sol_id)
        log_database_operation("solicitacao", "TRANSITION", 1, id=sol_id, campos=sorted(parcial))
        return salvo


# -------------------------
# Store composto
# -------------------------

class SQLiteStore:
    """``EstoqueStore`` sobre um arquivo SQLite (migrações aplicadas na criação)."""

    def __init__(self, db_path: str, migrate: bool = True):
        self.db_path = str(db_path)
        if migrate:
            apply_migrations(self.db_path)
        self.params = ParamsRepo(self.db_path)
        self.usuarios = UsuarioRepo(self.db_path)
        self.itens = ItemRepo(self.db_path)
        self.movimentacoes = MovimentacaoRepo(self.db_path)
        self.solicitacoes = SolicitacaoRepo(self.db_path)

    # --- itens ---
    def list_stock_records(self, nome=None, somente_disponiveis=False):
        return self.itens.get_all(nome=nome, somente_disponiveis=somente_disponiveis)

    def get_stock_record(self, item_id):
        return self.itens.get(item_id)

    def insert_stock_record(self, item):
        return self.itens.insert(item)

    def update_stock_record(self, item_id, parcial):
        return self.itens.update(item_id, parcial)

    def delete_stock_record(self, item_id):
        self.itens.delete(item_id)

    # --- movimentações ---
    def insert_movement(self, mov):
        return self.movimentacoes.insert(mov)

    def get_movement(self, mov_id):
        return self.movimentacoes.get(mov_id)

    def list_movements(self, item_id=None, tipo=None, desde=None, estorno_de=None):
        return self.movimentacoes.get_all(item_id=item_id, tipo=tipo, desde=desde, estorno_de=estorno_de)

    def apply_quantity_change(self, item_id, delta, mov):
        return self.movimentacoes.apply_quantity_change(item_id, delta, mov)

    # --- solicitações ---
    def list_requests(self, status=None, status_coordenacao=None, solicitante_id=None):
        return self.solicitacoes.get_all(status=status, status_coordenacao=status_coordenacao,
                                         solicitante_id=solicitante_id)

    def get_request(self, solicitacao_id):
        return self.solicitacoes.get(solicitacao_id)

    def insert_request(self, sol):
        return self.solicitacoes.insert(sol)

    def update_request(self, solicitacao_id, parcial):
        return self.solicitacoes.update(solicitacao_id, parcial)

    def transition_request(self, solicitacao_id, esperado, parcial):
        return self.solicitacoes.transition(solicitacao_id, esperado, parcial)

    # --- usuários ---
    def insert_user(self, usuario):
        return self.usuarios.insert(usuario)

    def resolve_actor_display_name(self, ator_id):
        if ator_id is None:
            return DEFAULTS.nome_placeholder
        try:
            usuario = self.usuarios.get(ator_id)
        except EstoqueError:
            return DEFAULTS.nome_placeholder
        if usuario is None:
            return DEFAULTS.nome_placeholder
        return usuario.nome or usuario.email or DEFAULTS.nome_placeholder
