"""
Utilidades de moeda no padrão brasileiro (vírgula decimal).

O parse é tolerante: qualquer texto que não possa ser interpretado vira
zero, para não bloquear a digitação na interface. A formatação sempre
usa duas casas decimais, ponto como separador de milhar e vírgula como
separador decimal.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any

CENTAVO = Decimal("0.01")

_LIXO_RE = re.compile(r"[^\d,.\-]")


def arredonda(valor: Any) -> Decimal:
    """Quantiza ``valor`` para centavos (ROUND_HALF_UP).

    A precisão do contexto é ampliada quando necessário, então valores
    com mais de 28 dígitos também são quantizados.

    Raises:
        InvalidOperation: valor não numérico, infinito ou NaN.
    """
    if not isinstance(valor, Decimal):
        valor = Decimal(str(valor))
    if not valor.is_finite():
        raise InvalidOperation(f"valor monetário não finito: {valor}")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, valor.adjusted() + 3)
        return valor.quantize(CENTAVO, rounding=ROUND_HALF_UP)


def _cabe_em_centavos(valor: Decimal) -> bool:
    if not valor.is_finite():
        return False
    try:
        valor.quantize(CENTAVO, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return False
    return True


def parse_moeda(texto: Any) -> Decimal:
    """Interpreta um valor monetário digitado pelo usuário.

    Exemplos:
        "R$ 1.234,56" → Decimal("1234.56")
        "10,5"        → Decimal("10.5")
        "abc"         → Decimal("0")

    Números (int, float, Decimal) passam direto. Pontos são sempre
    tratados como separador de milhar e a vírgula como decimal. Valores
    que não cabem em centavos na precisão decimal padrão (28 dígitos),
    infinitos ou NaN também viram zero.
    """
    if texto is None or isinstance(texto, bool):
        return Decimal("0")
    if isinstance(texto, Decimal):
        valor = texto
    elif isinstance(texto, (int, float)):
        valor = Decimal(str(texto))
    else:
        s = _LIXO_RE.sub("", str(texto))
        if not s:
            return Decimal("0")
        s = s.replace(".", "").replace(",", ".", 1)
        try:
            valor = Decimal(s)
        except InvalidOperation:
            return Decimal("0")
    return valor if _cabe_em_centavos(valor) else Decimal("0")


def formata_moeda(valor: Any, simbolo: bool = False) -> str:
    """Formata ``valor`` como ``1.234,56`` (ou ``R$ 1.234,56``).

    Raises:
        ValueError: valor não numérico, infinito ou NaN.
    """
    try:
        v = arredonda(valor)
    except InvalidOperation as e:
        raise ValueError(f"valor monetário inválido: {valor!r}") from e
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, v.adjusted() + 3)
        txt = f"{v:,.2f}"
    txt = txt.replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R$ {txt}" if simbolo else txt
