from decimal import Decimal

import pytest

from vendas.adapters.parsers import parse_item, parse_pagamento
from vendas.domain.models import MetodoPagamento


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("12:3", (12, 3)),
        ("7", (7, 1)),
        (" 4 : 2 ", (4, 2)),
        ("5:-1", (5, -1)),
        ("x:1", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_item(txt, esperado):
    assert parse_item(txt) == esperado


def test_parse_pagamento_a_vista():
    p = parse_pagamento("pix:100,00")
    assert p.metodo is MetodoPagamento.PIX
    assert p.valor_base == Decimal("100.00")
    assert p.taxa_juros == Decimal("0")
    assert p.parcelas == 1
    assert p.pago


def test_parse_pagamento_credito_parcelado():
    p = parse_pagamento("credito:250,00:4,5:3", slot=2)
    assert p.slot == 2
    assert p.metodo is MetodoPagamento.CREDITO
    assert p.valor_base == Decimal("250.00")
    assert p.taxa_juros == Decimal("4.5")
    assert p.parcelas == 3
    assert not p.pago


def test_parse_pagamento_sem_valor_fica_zerado():
    p = parse_pagamento("dinheiro")
    assert p.valor_base == Decimal("0")


def test_parse_pagamento_juros_ignorados_fora_do_credito():
    p = parse_pagamento("debito:10:5:3")
    assert p.taxa_juros == Decimal("0")
    assert p.parcelas == 1


@pytest.mark.parametrize(
    "txt",
    ["", "boleto:10", "credito:10:1:0", "credito:10:1:x", "pix:1:2:3:4",
     "pix:1" + "0" * 29, "dinheiro:1,2,3"],
)
def test_parse_pagamento_invalido(txt):
    assert parse_pagamento(txt) is None


@pytest.mark.parametrize(
    "txt,metodo",
    [
        ("Cartão de Crédito", MetodoPagamento.CREDITO),
        ("PIX Crédito", MetodoPagamento.PIX_CREDITO),
        ("cash", MetodoPagamento.DINHEIRO),
        ("Débito", MetodoPagamento.DEBITO),
        ("outro", MetodoPagamento.OUTRO),
    ],
)
def test_metodo_de_texto(txt, metodo):
    assert MetodoPagamento.de_texto(txt) is metodo


def test_parse_pagamento_valor_zero_explicito():
    assert parse_pagamento("pix:0,00").valor_base == Decimal("0")
