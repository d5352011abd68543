from decimal import Decimal

import pandas as pd

from vendas.adapters.catalogo_loader import load_produtos_from_xlsx


def test_load_produtos_normaliza_cabecalhos(tmp_path):
    xlsx = tmp_path / "produtos.xlsx"
    pd.DataFrame({
        "Código": [7, None, None],
        "Descrição": ["Caneca", "Boné", None],
        "Preço": ["R$ 1.234,50", 45.5, 10],
        "Preço Promocional": [None, "39,90", None],
        "Qtd": [3, None, 1],
    }).to_excel(xlsx, index=False)

    rows = load_produtos_from_xlsx(str(xlsx))
    assert [r["nome"] for r in rows] == ["Caneca", "Boné"]

    caneca, bone = rows
    assert caneca["id"] == 7
    assert caneca["preco_original"] == Decimal("1234.50")
    assert caneca["estoque"] == 3
    assert caneca["preco_promo"] is None
    assert caneca["custo"] == Decimal("0")

    assert bone["id"] is None
    assert bone["preco_original"] == Decimal("45.5")
    assert bone["preco_promo"] == Decimal("39.90")
    assert bone["estoque"] == 0


def test_load_produtos_ignora_linha_sem_preco(tmp_path):
    xlsx = tmp_path / "produtos.xlsx"
    pd.DataFrame({"nome": ["A", "B"], "preco": [None, "0"]}).to_excel(xlsx, index=False)
    assert load_produtos_from_xlsx(str(xlsx)) == []
