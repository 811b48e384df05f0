# almoxarifado/infra/db.py
"""
Utilidades de conexão SQLite.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from almoxarifado.domain.errors import StoreError


@contextmanager
def connect(db_path: str, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    - erros do sqlite3 convertidos em StoreError
    - ``immediate=True``: abre a transação com BEGIN IMMEDIATE (trava de
      escrita desde a primeira leitura)
    """
    try:
        conn = sqlite3.connect(db_path, timeout=10)
    except sqlite3.Error as e:
        raise StoreError(f"Não foi possível abrir o banco: {e}", db_path=db_path) from e
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        if immediate:
            conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreError(str(e), db_path=db_path) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
