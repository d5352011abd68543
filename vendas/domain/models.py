# vendas/domain/models.py
"""
Modelos (dataclasses) do domínio de vendas.

Observação importante:
- ItemCarrinho e InstrucaoPagamento são imutáveis; as funções do
  compositor sempre devolvem listas novas em vez de alterar as recebidas.
- Os repositórios aceitam e devolvem dicionários; as dataclasses servem
  para tipagem/clareza na camada de domínio.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Union


class MetodoPagamento(str, Enum):
    DINHEIRO = "dinheiro"
    DEBITO = "debito"
    CREDITO = "credito"
    PIX = "pix"
    PIX_CREDITO = "pix_credito"
    OUTRO = "outro"

    @property
    def com_juros(self) -> bool:
        """Métodos de crédito aceitam juros e parcelamento."""
        return self in (MetodoPagamento.CREDITO, MetodoPagamento.PIX_CREDITO)

    @classmethod
    def de_texto(cls, texto: str) -> "MetodoPagamento":
        """Aceita o valor do enum ou nomes usuais ("Cartão de Crédito", "cash"...)."""
        s = str(texto).strip().lower()
        for m in cls:
            if s == m.value:
                return m
        sinonimos = {
            "cash": cls.DINHEIRO,
            "debit": cls.DEBITO,
            "credit": cls.CREDITO,
            "pix_credit": cls.PIX_CREDITO,
            "other": cls.OUTRO,
        }
        if s in sinonimos:
            return sinonimos[s]
        if "pix" in s and ("crédito" in s or "credito" in s):
            return cls.PIX_CREDITO
        if "crédito" in s or "credito" in s:
            return cls.CREDITO
        if "débito" in s or "debito" in s:
            return cls.DEBITO
        raise ValueError(f"método de pagamento desconhecido: {texto!r}")


@dataclass(frozen=True)
class ItemCarrinho:
    """Uma linha (produto x quantidade) do carrinho em composição."""
    produto_id: int
    preco_unitario: Decimal
    quantidade: int = 1
    estoque_disponivel: int = 0      # 0 = sem controle de estoque (ver config)

    @property
    def total(self) -> Decimal:
        return self.preco_unitario * self.quantidade


@dataclass(frozen=True)
class InstrucaoPagamento:
    """Uma das (no máximo duas) formas de pagamento da venda."""
    slot: int                         # 1 ou 2
    metodo: MetodoPagamento
    valor_base: Decimal = Decimal("0")
    taxa_juros: Decimal = Decimal("0")  # percentual; só vale para crédito
    parcelas: int = 1
    pago: bool = False
    ativo: bool = True

    def __post_init__(self):
        if self.slot not in (1, 2):
            raise ValueError("slot deve ser 1 ou 2")
        if self.parcelas < 1:
            raise ValueError("parcelas deve ser >= 1")


@dataclass(frozen=True)
class TotaisCompostos:
    """Retrato derivado dos totais; artefato de validação, nunca persistido."""
    subtotal: Decimal
    total_por_pagamento: Dict[int, Decimal]
    total_com_juros: Decimal


@dataclass(frozen=True)
class AvisoEstoque:
    """Aviso não fatal: quantidade corrigida para o estoque disponível."""
    produto_id: int
    solicitado: int
    ajustado: int

    @property
    def mensagem(self) -> str:
        return (
            f"Quantidade do produto {self.produto_id} ajustada de "
            f"{self.solicitado} para {self.ajustado} (estoque disponível)"
        )


@dataclass
class Parcela:
    """Parcela gerada a partir de um pagamento."""
    numero: int
    valor: Decimal
    vencimento: date
    pago: bool = False
    id: Optional[int] = None
    pagamento_id: Optional[int] = None
    data_pagamento: Optional[date] = None


@dataclass
class Venda:
    """Venda composta e validada, pronta para o repositório."""
    cliente_id: int
    data: date
    itens: List[ItemCarrinho]
    pagamentos: List[InstrucaoPagamento]
    id: Optional[int] = None
    totais: Optional[TotaisCompostos] = None


@dataclass(frozen=True)
class ResumoLucroMensal:
    valor: Decimal
    formatado: str
    calculado_em: datetime


# -------------------------
# Eventos
# -------------------------

@dataclass(frozen=True)
class VendaCriada:
    venda_id: Optional[int] = None


@dataclass(frozen=True)
class VendaExcluida:
    venda_id: Optional[int] = None


@dataclass(frozen=True)
class ParcelaPaga:
    parcela_id: Optional[int] = None


EventoVenda = Union[VendaCriada, VendaExcluida, ParcelaPaga]


@dataclass
class Produto:
    """Cadastro de produto (usado pelo catálogo e pelos relatórios)."""
    nome: str
    preco_original: Decimal
    custo: Decimal = Decimal("0")
    estoque: int = 0
    preco_atual: Optional[Decimal] = None
    preco_promo: Optional[Decimal] = None
    promo_inicio: Optional[date] = None
    promo_fim: Optional[date] = None
    id: Optional[int] = None
