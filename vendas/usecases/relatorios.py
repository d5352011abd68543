# vendas/usecases/relatorios.py
"""
Relatórios do dashboard.

- resumo_dashboard: contagens gerais, recebíveis (pendentes e atrasados),
  produtos com estoque baixo e lucro realizado no mês.
- relatorio_parcelas_pendentes: parcelas em aberto, atrasadas primeiro.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from vendas.config import DB_PATH, DEFAULTS
from vendas.infra.db import connect
from vendas.infra.migrations import apply_migrations
from vendas.infra.repositories import LucroRepo, ParcelaRepo, ProdutoRepo
from vendas.infra.logger import log_system_event


def _conta(db_path: str, tabela: str) -> int:
    with connect(db_path) as c:
        return int(c.execute(f"SELECT COUNT(*) FROM {tabela}").fetchone()[0])


def resumo_dashboard(db_path: str = DB_PATH, hoje: Optional[date] = None) -> Dict[str, Any]:
    apply_migrations(db_path)
    ref = hoje or date.today()
    recebiveis = ParcelaRepo(db_path).resumo_recebiveis(ref)
    estoque_baixo = ProdutoRepo(db_path).estoque_baixo(DEFAULTS.limite_estoque_baixo)
    out = {
        "total_clientes": _conta(db_path, "cliente"),
        "total_produtos": _conta(db_path, "produto"),
        "total_vendas": _conta(db_path, "venda"),
        "parcelas_pendentes": recebiveis["pendentes"],
        "parcelas_atrasadas": recebiveis["atrasadas"],
        "produtos_estoque_baixo": len(estoque_baixo),
        "lucro_mes": LucroRepo(db_path).lucro_mes(ref.strftime("%Y-%m")),
    }
    log_system_event("resumo_dashboard", {"db": db_path})
    return out


def relatorio_parcelas_pendentes(db_path: str = DB_PATH, hoje: Optional[date] = None) -> List[Dict[str, Any]]:
    apply_migrations(db_path)
    rows = ParcelaRepo(db_path).pendentes(hoje)
    return sorted(rows, key=lambda r: (not r["atrasada"], r["vencimento"], r["id"]))
