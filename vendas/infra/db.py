# vendas/infra/db.py
"""
Utilidades de conexão SQLite.

Valores monetários são gravados como TEXT (Decimal serializado) para não
perder centavos em conversões de ponto flutuante.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterator

from vendas.domain.erros import ErroArmazenamento

sqlite3.register_adapter(Decimal, str)
sqlite3.register_adapter(date, lambda d: d.isoformat())


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    - erros do sqlite3 convertidos em ErroArmazenamento
    """
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as e:
        raise ErroArmazenamento(f"não foi possível abrir {db_path}: {e}") from e
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise ErroArmazenamento(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
