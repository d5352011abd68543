from decimal import Decimal

import pytest

from vendas.domain.moeda import arredonda, formata_moeda, parse_moeda


@pytest.mark.parametrize(
    "txt,esperado",
    [
        ("R$ 1.234,56", Decimal("1234.56")),
        ("10,5", Decimal("10.5")),
        ("1.000", Decimal("1000")),
        ("-3,20", Decimal("-3.20")),
        ("abc", Decimal("0")),
        ("", Decimal("0")),
        (None, Decimal("0")),
        ("1,2,3", Decimal("0")),
    ],
)
def test_parse_moeda(txt, esperado):
    assert parse_moeda(txt) == esperado


def test_parse_moeda_numeros_passam_direto():
    assert parse_moeda(12) == Decimal("12")
    assert parse_moeda(2.5) == Decimal("2.5")
    assert parse_moeda(Decimal("7.10")) == Decimal("7.10")


@pytest.mark.parametrize(
    "valor,esperado",
    [
        (Decimal("0"), "0,00"),
        (Decimal("1234.5"), "1.234,50"),
        (Decimal("9999999.999"), "10.000.000,00"),
        ("0.005", "0,01"),
    ],
)
def test_formata_moeda(valor, esperado):
    assert formata_moeda(valor) == esperado


def test_formata_moeda_com_simbolo():
    assert formata_moeda(Decimal("90"), simbolo=True) == "R$ 90,00"


def test_arredonda_half_up():
    assert arredonda("2.675") == Decimal("2.68")
    assert arredonda(Decimal("0.004")) == Decimal("0.00")


@pytest.mark.parametrize(
    "valor",
    ["0", "0.01", "0.1", "1", "12.34", "999.99", "1000", "123456.78", "9999999.99"],
)
def test_ida_e_volta(valor):
    x = Decimal(valor)
    assert parse_moeda(formata_moeda(x)) == arredonda(x)


@pytest.mark.parametrize("txt", ["1" + "0" * 29, "9" * 27 + ",99", "NaN", "Infinity"])
def test_parse_moeda_valor_fora_da_precisao_vira_zero(txt):
    assert parse_moeda(txt) == Decimal("0")


def test_parse_moeda_numeros_fora_da_precisao_viram_zero():
    assert parse_moeda(10 ** 29) == Decimal("0")
    assert parse_moeda(float("inf")) == Decimal("0")
    assert parse_moeda(Decimal("1E+40")) == Decimal("0")


def test_parse_moeda_maior_valor_representavel():
    assert parse_moeda("9" * 26 + ",99") == Decimal("9" * 26 + ".99")


def test_formata_moeda_valores_grandes_nao_viram_zero():
    assert formata_moeda(Decimal("1" + "0" * 29)) == "100.000.000.000.000.000.000.000.000.000,00"
    assert arredonda(Decimal("1" + "0" * 29 + ".005")) == Decimal("1" + "0" * 29 + ".01")


@pytest.mark.parametrize("valor", ["abc", Decimal("NaN"), Decimal("Infinity")])
def test_formata_moeda_rejeita_valor_invalido(valor):
    with pytest.raises(ValueError):
        formata_moeda(valor)
