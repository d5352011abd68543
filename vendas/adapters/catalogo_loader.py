# vendas/adapters/catalogo_loader.py
"""
Loader de planilha (XLSX) do catálogo de produtos.

Essa função:
- lê a planilha usando pandas;
- normaliza cabeçalhos (acentos, variações, sinônimos);
- devolve dicionários com as chaves esperadas por ``ProdutoRepo.upsert``.

Observações:
- Células numéricas do Excel são usadas como estão; células de texto
  seguem o padrão brasileiro ("1.234,56") e passam por ``parse_moeda``.
- Linhas sem nome ou sem preço são ignoradas.
"""

from __future__ import annotations

import numbers
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pandas as pd

from vendas.domain.moeda import parse_moeda


def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


_ALIASES = {
    "id": "id",
    "codigo": "id",
    "nome": "nome",
    "produto": "nome",
    "descricao": "nome",

    "preco": "preco_original",
    "preco original": "preco_original",
    "preco venda": "preco_original",
    "preco de venda": "preco_original",
    "valor": "preco_original",

    "preco atual": "preco_atual",
    "promocao": "preco_promo",
    "preco promo": "preco_promo",
    "preco promocional": "preco_promo",

    "custo": "custo",
    "preco custo": "custo",
    "preco de custo": "custo",

    "estoque": "estoque",
    "qtd": "estoque",
    "quantidade": "estoque",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    return df.rename(columns={c: _ALIASES.get(_slug(c), _slug(c)) for c in df.columns})


def _cell(row, key) -> Any:
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return val


def _to_decimal(val: Any) -> Optional[Decimal]:
    if val is None:
        return None
    if isinstance(val, numbers.Number):
        return Decimal(str(val))
    return parse_moeda(val)


def _to_id(val: Any) -> Optional[int]:
    if val is None:
        return None
    try:
        return int(float(str(val)))
    except ValueError:
        return None


def _to_int(val: Any) -> int:
    if val is None:
        return 0
    try:
        return max(int(float(str(val).replace(",", "."))), 0)
    except ValueError:
        return 0


def load_produtos_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de PRODUTOS.

    Campos de saída (chaves do dict por linha):
      - id: int | None (atualiza o produto existente quando informado)
      - nome: str
      - preco_original: Decimal
      - preco_atual, preco_promo: Decimal | None
      - custo: Decimal
      - estoque: int (0 = sem controle de estoque)
    """
    df = _normalize_columns(pd.read_excel(path))
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        nome = _cell(row, "nome")
        preco = _to_decimal(_cell(row, "preco_original"))
        if nome is None or not preco:
            continue
        out.append({
            "id": _to_id(_cell(row, "id")),
            "nome": str(nome).strip(),
            "preco_original": preco,
            "preco_atual": _to_decimal(_cell(row, "preco_atual")),
            "preco_promo": _to_decimal(_cell(row, "preco_promo")),
            "custo": _to_decimal(_cell(row, "custo")) or Decimal("0"),
            "estoque": _to_int(_cell(row, "estoque")),
        })
    return out
