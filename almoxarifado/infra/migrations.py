# almoxarifado/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (params, usuario, item_estoque, movimentacao, solicitacao)
V2: índices e coluna de vínculo de estorno em movimentacao
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Parâmetros K/V
    """
    CREATE TABLE IF NOT EXISTS params (
        chave TEXT PRIMARY KEY,
        valor TEXT
    );
    """,
    # Usuários (apenas para exibição de nomes e papel)
    """
    CREATE TABLE IF NOT EXISTS usuario (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nome TEXT,
        email TEXT,
        papel TEXT NOT NULL DEFAULT 'professor'
    );
    """,
    # Registros físicos de estoque (lote/marca/validade)
    """
    CREATE TABLE IF NOT EXISTS item_estoque (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nome TEXT NOT NULL,
        categoria TEXT NOT NULL,
        subcategoria TEXT,
        marca TEXT,
        quantidade INTEGER NOT NULL DEFAULT 0 CHECK (quantidade >= 0),
        estoque_minimo INTEGER NOT NULL DEFAULT 0 CHECK (estoque_minimo >= 0),
        data_validade TEXT,
        unidades_por_pacote INTEGER NOT NULL DEFAULT 1 CHECK (unidades_por_pacote >= 1),
        codigo TEXT,
        unidade_medida TEXT NOT NULL DEFAULT 'unidade',
        criado_em TEXT,
        atualizado_em TEXT
    );
    """,
    # Movimentações (append-only). Sem FK para item: exclusão de item
    # mantém o histórico com item_id órfão.
    """
    CREATE TABLE IF NOT EXISTS movimentacao (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        item_id INTEGER NOT NULL,
        tipo TEXT NOT NULL CHECK (tipo IN ('entrada', 'saida')),
        quantidade INTEGER NOT NULL CHECK (quantidade > 0),
        motivo TEXT,
        observacoes TEXT,
        ator_id INTEGER,
        criado_em TEXT
    );
    """,
    # Solicitações (linhas em JSON)
    """
    CREATE TABLE IF NOT EXISTS solicitacao (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        solicitante_id INTEGER,
        linhas TEXT NOT NULL,
        observacoes TEXT,
        status TEXT NOT NULL DEFAULT 'pendente',
        status_coordenacao TEXT NOT NULL DEFAULT 'pendente',
        exige_coordenacao INTEGER NOT NULL DEFAULT 1,
        criado_em TEXT,
        confirmado_em TEXT,
        confirmado_por INTEGER,
        aprovado_por INTEGER,
        coordenacao_decidida_em TEXT,
        rejeitado_em TEXT,
        rejeitado_por INTEGER
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    _ensure_column(conn, "movimentacao", "estorno_de", "estorno_de INTEGER")
    conn.executescript(
        """
        CREATE INDEX IF NOT EXISTS idx_item_nome          ON item_estoque(nome);
        CREATE INDEX IF NOT EXISTS idx_mov_item           ON movimentacao(item_id);
        CREATE INDEX IF NOT EXISTS idx_mov_criado         ON movimentacao(criado_em);
        CREATE INDEX IF NOT EXISTS idx_mov_estorno        ON movimentacao(estorno_de);
        CREATE INDEX IF NOT EXISTS idx_sol_status         ON solicitacao(status, status_coordenacao);
        """
    )


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
