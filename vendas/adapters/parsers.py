"""
Utilidades de parsing para os argumentos da linha de comando.

Itens e pagamentos são informados como textos curtos separados por
``:``, por exemplo:

    itens:       "12:3"  (produto 12, quantidade 3) ou "12" (quantidade 1)
    pagamentos:  "pix:100,00" ou "credito:250,00:4,5:3"
                 (método, valor base, juros % e número de parcelas)

Valores monetários seguem o padrão brasileiro (vírgula decimal) e são
interpretados por ``parse_moeda``; valor omitido ou zero é preenchido
pela venda a partir do subtotal.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional, Tuple

from vendas.domain.models import InstrucaoPagamento, MetodoPagamento
from vendas.domain.moeda import parse_moeda

_ITEM_RE = re.compile(r"^\s*(\d+)\s*(?::\s*(-?\d+)\s*)?$")
_DIGITO_RE = re.compile(r"[1-9]")


def parse_item(txt: str) -> Optional[Tuple[int, int]]:
    """Interpreta ``"<produto>[:<quantidade>]"``.

    Exemplos:
        "12:3" → (12, 3)
        "7"    → (7, 1)
        "x:1"  → None
    """
    if txt is None:
        return None
    m = _ITEM_RE.match(str(txt))
    if not m:
        return None
    return int(m.group(1)), int(m.group(2) or 1)


def parse_pagamento(txt: str, slot: int = 1) -> Optional[InstrucaoPagamento]:
    """Interpreta ``"<metodo>[:<valor>[:<juros>[:<parcelas>]]]"``.

    Juros e parcelas só são considerados para métodos de crédito. Métodos
    à vista já nascem pagos; crédito nasce com as parcelas em aberto.

    Returns:
        A instrução de pagamento, ou None se o texto for inválido.
    """
    if not txt or not str(txt).strip():
        return None
    partes = [p.strip() for p in str(txt).split(":")]
    if len(partes) > 4:
        return None
    try:
        metodo = MetodoPagamento.de_texto(partes[0])
    except ValueError:
        return None
    valor = parse_moeda(partes[1]) if len(partes) > 1 else Decimal("0")
    if valor == 0 and len(partes) > 1 and _DIGITO_RE.search(partes[1]):
        # valor digitado, mas ilegível ou fora da precisão
        return None
    juros = parse_moeda(partes[2]) if len(partes) > 2 and metodo.com_juros else Decimal("0")
    parcelas = 1
    if len(partes) > 3 and metodo.com_juros:
        if not partes[3].isdigit() or int(partes[3]) < 1:
            return None
        parcelas = int(partes[3])
    return InstrucaoPagamento(
        slot=slot,
        metodo=metodo,
        valor_base=valor,
        taxa_juros=juros,
        parcelas=parcelas,
        pago=not metodo.com_juros,
    )
