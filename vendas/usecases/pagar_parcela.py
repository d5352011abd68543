# vendas/usecases/pagar_parcela.py
"""
UC: dar baixa em uma PARCELA.

A baixa bem-sucedida emite ``ParcelaPaga``, que dispara o recálculo do
lucro mensal. Falhas do repositório são registradas e propagadas.
"""

from __future__ import annotations

from typing import Callable, Optional

from vendas.domain.erros import ErroArmazenamento
from vendas.domain.models import ParcelaPaga
from vendas.domain.portas import RepositorioParcelas
from vendas.infra.logger import log_database_operation, log_transaction


def run_pagar_parcela(
    parcela_id: int,
    repo: RepositorioParcelas,
    notificar: Optional[Callable[[object], None]] = None,
) -> None:
    try:
        repo.marca_paga(parcela_id)
    except ErroArmazenamento as e:
        log_transaction("pagar_parcela", {"parcela_id": parcela_id}, error=str(e))
        raise
    log_database_operation("parcela", "UPDATE", 1, parcela_id=parcela_id, pago=1)
    log_transaction("pagar_parcela", {"parcela_id": parcela_id}, result="success")
    if notificar is not None:
        notificar(ParcelaPaga(parcela_id))
