from datetime import date
from decimal import Decimal

from vendas.domain.precos import (
    em_promocao,
    margem_lucro,
    preco_efetivo,
    situacao_promocao,
    status_pagamento,
)


def test_preco_efetivo_prioriza_promocao():
    p = {"preco_original": "100.00", "preco_atual": "90.00", "preco_promo": "80.00"}
    assert preco_efetivo(p) == Decimal("80.00")


def test_preco_efetivo_ignora_zerados_e_nulos():
    assert preco_efetivo({"preco_original": "100", "preco_atual": "0", "preco_promo": None}) == Decimal("100")
    assert preco_efetivo({"preco_original": None}) == Decimal("0")


def test_em_promocao():
    assert em_promocao({"preco_original": "50", "preco_promo": "40"})
    assert not em_promocao({"preco_original": "50", "preco_promo": None})
    assert not em_promocao({"preco_original": "50", "preco_promo": "60"})


def test_margem_lucro():
    lucro, pct = margem_lucro("30", "45")
    assert lucro == Decimal("15.00")
    assert pct == Decimal("50.00")


def test_margem_lucro_invalida():
    assert margem_lucro(0, "45") == (Decimal("0.00"), Decimal("0.00"))
    assert margem_lucro("10", None) == (Decimal("0.00"), Decimal("0.00"))


def test_status_pagamento():
    assert status_pagamento([{"pago": 1}, {"pago": 1}]) == "pago"
    assert status_pagamento([{"pago": 1}, {"pago": 0}]) == "parcial"
    assert status_pagamento([{"pago": 0}]) == "pendente"
    assert status_pagamento([]) == "pendente"


def test_situacao_promocao_pelo_periodo():
    p = {"preco_original": "50", "preco_promo": "40",
         "promo_inicio": "2024-03-01", "promo_fim": "2024-03-31"}
    assert situacao_promocao(p, date(2024, 2, 29)) == "agendada"
    assert situacao_promocao(p, date(2024, 3, 1)) == "ativa"
    assert situacao_promocao(p, date(2024, 3, 31)) == "ativa"
    assert situacao_promocao(p, date(2024, 4, 1)) == "encerrada"
    assert situacao_promocao({"preco_original": "50", "preco_promo": "0"}) is None


def test_periodo_aberto_de_um_lado():
    so_inicio = {"preco_original": "50", "preco_promo": "40", "promo_inicio": date(2024, 3, 1)}
    assert situacao_promocao(so_inicio, date(2030, 1, 1)) == "ativa"
    so_fim = {"preco_original": "50", "preco_promo": "40", "promo_fim": "2024-03-31"}
    assert situacao_promocao(so_fim, date(2000, 1, 1)) == "ativa"


def test_preco_e_promocao_fora_do_periodo():
    p = {"preco_original": "100.00", "preco_atual": "90.00", "preco_promo": "80.00",
         "promo_inicio": "2024-03-01", "promo_fim": "2024-03-31"}
    assert preco_efetivo(p, date(2024, 3, 15)) == Decimal("80.00")
    assert preco_efetivo(p, date(2024, 4, 1)) == Decimal("90.00")
    assert em_promocao(p, date(2024, 3, 15))
    assert not em_promocao(p, date(2024, 2, 1))
