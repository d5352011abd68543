# vendas/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (cliente, produto, venda, itens, pagamentos, parcelas)
V2: colunas de promoção no produto e data de pagamento da parcela
V3: período da campanha promocional (promo_inicio, promo_fim)
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS cliente (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nome TEXT NOT NULL,
        telefone TEXT,
        email TEXT
    );
    """,
    # Valores monetários em TEXT (Decimal serializado)
    """
    CREATE TABLE IF NOT EXISTS produto (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        nome TEXT NOT NULL,
        preco_original TEXT NOT NULL,
        custo TEXT DEFAULT '0',
        estoque INTEGER DEFAULT 0  -- 0 = sem controle de estoque
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS venda (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cliente_id INTEGER NOT NULL,
        data_venda TEXT NOT NULL,
        subtotal TEXT NOT NULL,
        total_com_juros TEXT NOT NULL,
        FOREIGN KEY (cliente_id) REFERENCES cliente(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS venda_item (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        venda_id INTEGER NOT NULL,
        produto_id INTEGER NOT NULL,
        quantidade INTEGER NOT NULL,
        preco_unitario TEXT NOT NULL,
        custo_unitario TEXT DEFAULT '0',
        baixou_estoque INTEGER DEFAULT 0,
        FOREIGN KEY (venda_id) REFERENCES venda(id) ON DELETE CASCADE,
        FOREIGN KEY (produto_id) REFERENCES produto(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS venda_pagamento (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        venda_id INTEGER NOT NULL,
        slot INTEGER NOT NULL,
        metodo TEXT NOT NULL,
        valor_base TEXT NOT NULL,
        taxa_juros TEXT DEFAULT '0',
        parcelas INTEGER DEFAULT 1,
        total TEXT NOT NULL,
        FOREIGN KEY (venda_id) REFERENCES venda(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS parcela (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        pagamento_id INTEGER NOT NULL,
        numero INTEGER NOT NULL,
        valor TEXT NOT NULL,
        vencimento TEXT NOT NULL,
        pago INTEGER DEFAULT 0,
        FOREIGN KEY (pagamento_id) REFERENCES venda_pagamento(id) ON DELETE CASCADE
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
    # produto: preços de campanha
    _ensure_column(conn, "produto", "preco_atual", "preco_atual TEXT")
    _ensure_column(conn, "produto", "preco_promo", "preco_promo TEXT")
    # parcela: quando foi paga (base do lucro realizado no mês)
    _ensure_column(conn, "parcela", "data_pagamento", "data_pagamento TEXT")
    conn.execute("CREATE INDEX IF NOT EXISTS ix_venda_data ON venda(data_venda);")
    conn.execute("CREATE INDEX IF NOT EXISTS ix_parcela_pagamento ON parcela(pagamento_id);")


def _apply_v3(conn) -> None:
    # produto: vigência da campanha (ISO date; NULL = sem limite)
    _ensure_column(conn, "produto", "promo_inicio", "promo_inicio TEXT")
    _ensure_column(conn, "produto", "promo_fim", "promo_fim TEXT")


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

        if ver < 3:
            _apply_v3(conn)
            conn.execute("PRAGMA user_version = 3;")
            ver = 3
