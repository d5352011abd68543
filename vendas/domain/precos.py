"""
Políticas de preço e de situação de pagamento.

Funções usadas pelo catálogo (preço efetivo com promoção), pelo cadastro
de produtos (margem de lucro) e pela listagem de vendas (status).

Uma promoção (campanha) vale entre ``promo_inicio`` e ``promo_fim``,
inclusive; limite ausente significa período aberto daquele lado.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Tuple

from vendas.domain.moeda import arredonda


def _to_dec(val: Any) -> Optional[Decimal]:
    if val is None:
        return None
    try:
        return Decimal(str(val))
    except (InvalidOperation, ValueError):
        return None


def _to_date(val: Any) -> Optional[date]:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    try:
        return date.fromisoformat(str(val)[:10])
    except ValueError:
        return None


def situacao_promocao(produto: Mapping[str, Any], hoje: Optional[date] = None) -> Optional[str]:
    """``'ativa'``, ``'agendada'`` ou ``'encerrada'``; None se não há preço promocional."""
    promo = _to_dec(produto.get("preco_promo"))
    if promo is None or promo <= 0:
        return None
    ref = hoje or date.today()
    inicio = _to_date(produto.get("promo_inicio"))
    fim = _to_date(produto.get("promo_fim"))
    if inicio is not None and ref < inicio:
        return "agendada"
    if fim is not None and ref > fim:
        return "encerrada"
    return "ativa"


def preco_efetivo(produto: Mapping[str, Any], hoje: Optional[date] = None) -> Decimal:
    """Preço praticado para o produto na data ``hoje`` (padrão: hoje).

    Prioridade: ``preco_promo`` (se a campanha estiver ativa) >
    ``preco_atual`` > ``preco_original``. Valores nulos ou zerados são
    ignorados.

    Args:
        produto: Dicionário com as colunas de preço do produto.
        hoje: Data de referência para a vigência da promoção.

    Returns:
        O primeiro preço positivo encontrado, ou ``Decimal("0")``.
    """
    chaves = ["preco_atual", "preco_original"]
    if situacao_promocao(produto, hoje) == "ativa":
        chaves.insert(0, "preco_promo")
    for chave in chaves:
        v = _to_dec(produto.get(chave))
        if v is not None and v > 0:
            return v
    return Decimal("0")


def em_promocao(produto: Mapping[str, Any], hoje: Optional[date] = None) -> bool:
    if situacao_promocao(produto, hoje) != "ativa":
        return False
    promo = _to_dec(produto.get("preco_promo"))
    original = _to_dec(produto.get("preco_original"))
    return bool(promo and original and promo < original)


def margem_lucro(custo: Any, venda: Any) -> Tuple[Decimal, Decimal]:
    """Lucro absoluto e percentual sobre o custo.

    Retorna ``(0, 0)`` se custo ou preço de venda não forem positivos.
    """
    c = _to_dec(custo)
    v = _to_dec(venda)
    if not c or not v or c <= 0 or v <= 0:
        return Decimal("0.00"), Decimal("0.00")
    lucro = v - c
    return arredonda(lucro), arredonda(lucro / c * 100)


def status_pagamento(parcelas: Iterable[Mapping[str, Any]]) -> str:
    """Classifica a venda em ``'pago'``, ``'parcial'`` ou ``'pendente'``."""
    flags = [bool(p.get("pago")) for p in parcelas]
    if flags and all(flags):
        return "pago"
    if any(flags):
        return "parcial"
    return "pendente"
