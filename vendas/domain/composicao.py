"""
Composição de vendas: carrinho, pagamentos, totais e validação.

Este módulo contém as regras de negócio para montar uma venda antes de
enviá-la ao repositório. Todas as funções são puras e síncronas: não
alteram as listas recebidas (devolvem listas novas), não fazem I/O e
podem ser chamadas repetidamente sem efeitos colaterais. A ordem das
linhas do carrinho e dos slots de pagamento é sempre preservada.

Fluxo típico:
1) ``adiciona_item`` / ``define_quantidade`` montam o carrinho;
2) ``autopreenche_pagamento_unico`` ou ``divide_pagamento`` ajustam os valores;
3) ``calcula_totais`` gera o retrato ``TotaisCompostos``;
4) ``valida`` devolve a lista (possivelmente vazia) de erros.
"""

from __future__ import annotations

import calendar
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from vendas.config import DEFAULTS
from vendas.domain.erros import ErroValidacao
from vendas.domain.models import (
    AvisoEstoque,
    InstrucaoPagamento,
    ItemCarrinho,
    Parcela,
    TotaisCompostos,
)
from vendas.domain.moeda import arredonda, formata_moeda

CEM = Decimal("100")
ZERO = Decimal("0")


def _dec(valor: Any) -> Decimal:
    return valor if isinstance(valor, Decimal) else Decimal(str(valor))


def _limite_estoque(estoque: int, quantidade: int) -> int:
    """Corrige ``quantidade`` para o estoque quando este é controlado."""
    if estoque > 0 and quantidade > estoque:
        return estoque
    # estoque 0: nada a corrigir; se não for ilimitado, a validação rejeita
    return quantidade


def _excede_estoque(item: ItemCarrinho, estoque_zero_ilimitado: bool) -> bool:
    if item.estoque_disponivel > 0:
        return item.quantidade > item.estoque_disponivel
    return not estoque_zero_ilimitado


def pagamentos_ativos(pagamentos: Sequence[InstrucaoPagamento]) -> List[InstrucaoPagamento]:
    return [p for p in pagamentos if p.ativo]


# -------------------------
# Carrinho
# -------------------------

def adiciona_item(
    carrinho: Sequence[ItemCarrinho],
    produto_id: int,
    preco_unitario: Any,
    estoque_disponivel: int = 0,
    quantidade: int = 1,
) -> List[ItemCarrinho]:
    """Acrescenta um produto ao carrinho.

    Se o produto já estiver no carrinho, soma a quantidade à linha
    existente em vez de criar outra. A quantidade é limitada ao estoque
    disponível quando ``estoque_disponivel > 0``.

    Raises:
        ErroValidacao: preço negativo ou quantidade não positiva.
    """
    preco = _dec(preco_unitario)
    if preco < 0:
        raise ErroValidacao("Preço unitário não pode ser negativo", campo="preco_unitario")
    if quantidade <= 0:
        raise ErroValidacao("Quantidade deve ser maior que zero", campo="quantidade")

    novo = list(carrinho)
    for i, item in enumerate(novo):
        if item.produto_id == produto_id:
            qtd = _limite_estoque(item.estoque_disponivel, item.quantidade + quantidade)
            novo[i] = replace(item, quantidade=qtd)
            return novo

    qtd = _limite_estoque(int(estoque_disponivel), quantidade)
    novo.append(ItemCarrinho(produto_id, preco, qtd, int(estoque_disponivel)))
    return novo


def define_quantidade(
    carrinho: Sequence[ItemCarrinho],
    indice: int,
    quantidade: int,
) -> Tuple[List[ItemCarrinho], List[AvisoEstoque]]:
    """Altera a quantidade da linha ``indice``.

    Quantidades acima do estoque não são rejeitadas: são corrigidas para
    o estoque disponível e um ``AvisoEstoque`` é devolvido para a
    interface exibir.

    Returns:
        Tupla (carrinho novo, avisos).

    Raises:
        ErroValidacao: quantidade menor ou igual a zero.
        IndexError: índice inexistente.
    """
    if quantidade <= 0:
        raise ErroValidacao("Quantidade deve ser maior que zero", campo="quantidade")
    novo = list(carrinho)
    item = novo[indice]
    ajustada = _limite_estoque(item.estoque_disponivel, quantidade)
    avisos: List[AvisoEstoque] = []
    if ajustada != quantidade:
        avisos.append(AvisoEstoque(item.produto_id, quantidade, ajustada))
    novo[indice] = replace(item, quantidade=ajustada)
    return novo, avisos


def remove_item(carrinho: Sequence[ItemCarrinho], indice: int) -> List[ItemCarrinho]:
    novo = list(carrinho)
    del novo[indice]
    return novo


# -------------------------
# Totais
# -------------------------

def total_pagamento(pagamento: InstrucaoPagamento) -> Decimal:
    """Valor base acrescido de juros (somente métodos de crédito)."""
    base = _dec(pagamento.valor_base)
    if pagamento.metodo.com_juros:
        return arredonda(base + base * (_dec(pagamento.taxa_juros) / CEM))
    return arredonda(base)


def calcula_totais(
    carrinho: Sequence[ItemCarrinho],
    pagamentos: Sequence[InstrucaoPagamento],
) -> TotaisCompostos:
    subtotal = arredonda(sum((i.total for i in carrinho), ZERO))
    por_pagamento = {p.slot: total_pagamento(p) for p in pagamentos_ativos(pagamentos)}
    total = arredonda(sum(por_pagamento.values(), ZERO))
    return TotaisCompostos(subtotal=subtotal, total_por_pagamento=por_pagamento,
                           total_com_juros=total)


def autopreenche_pagamento_unico(
    subtotal: Any,
    pagamentos: Sequence[InstrucaoPagamento],
    juros_embutidos: bool = True,
) -> List[InstrucaoPagamento]:
    """Força o único pagamento ativo a reproduzir o subtotal.

    Com ``juros_embutidos`` (padrão), um pagamento de crédito recebe
    ``subtotal / (1 + taxa/100)``, de modo que o total com juros continue
    igual ao subtotal. Com ``juros_embutidos=False`` o valor base é o
    próprio subtotal e os juros ficam por conta do cliente.

    Com dois pagamentos ativos, nada é alterado: ambos são editáveis.
    """
    ativos = pagamentos_ativos(pagamentos)
    if len(ativos) != 1:
        return list(pagamentos)
    sub = _dec(subtotal)
    alvo = ativos[0]
    if alvo.metodo.com_juros and juros_embutidos:
        base = arredonda(sub / (1 + _dec(alvo.taxa_juros) / CEM))
    else:
        base = arredonda(sub)
    return [replace(p, valor_base=base) if p is alvo else p for p in pagamentos]


def divide_pagamento(total: Any, pagamentos: Sequence[InstrucaoPagamento]) -> List[InstrucaoPagamento]:
    """Preenche os valores de dois pagamentos ativos.

    - ambos zerados: metade para cada (centavo que sobrar vai para o slot 2);
    - só um preenchido: o outro recebe o restante, se positivo.
    """
    ativos = pagamentos_ativos(pagamentos)
    if len(ativos) != 2:
        return list(pagamentos)
    tot = arredonda(total)
    p1, p2 = sorted(ativos, key=lambda p: p.slot)
    v1, v2 = _dec(p1.valor_base), _dec(p2.valor_base)
    novos = {}
    if v1 == 0 and v2 == 0:
        metade = arredonda(tot / 2)
        novos[p1.slot] = metade
        novos[p2.slot] = tot - metade
    elif v1 > 0 and v2 == 0 and tot - v1 > 0:
        novos[p2.slot] = tot - v1
    elif v2 > 0 and v1 == 0 and tot - v2 > 0:
        novos[p1.slot] = tot - v2
    return [
        replace(p, valor_base=novos[p.slot]) if p.ativo and p.slot in novos else p
        for p in pagamentos
    ]


# -------------------------
# Validação
# -------------------------

def valida(
    carrinho: Sequence[ItemCarrinho],
    pagamentos: Sequence[InstrucaoPagamento],
    totais: TotaisCompostos,
    cliente_id: Optional[int] = None,
    exige_cliente: Optional[bool] = None,
    tolerancia: Optional[Decimal] = None,
    estoque_zero_ilimitado: Optional[bool] = None,
) -> List[ErroValidacao]:
    """Valida a venda e devolve *todos* os problemas encontrados.

    Regras:
        0. cliente informado, se ``exige_cliente`` (padrão: ``DEFAULTS``);
        1. ao menos um item no carrinho;
        2. nenhum item acima do estoque (quando o estoque é controlado);
        3. todo pagamento ativo com valor base > 0;
        4. soma dos valores base igual ao subtotal (± tolerância);
        5. soma dos totais por pagamento igual a ``totais.total_com_juros``
           (± tolerância), protegendo contra totais desatualizados.

    Uma lista vazia significa que a venda pode ser enviada ao repositório.
    """
    if exige_cliente is None:
        exige_cliente = DEFAULTS.exige_cliente
    if tolerancia is None:
        tolerancia = DEFAULTS.tolerancia
    if estoque_zero_ilimitado is None:
        estoque_zero_ilimitado = DEFAULTS.estoque_zero_ilimitado

    erros: List[ErroValidacao] = []

    if exige_cliente and not cliente_id:
        erros.append(ErroValidacao("Selecione um cliente", campo="cliente"))

    if not carrinho:
        erros.append(ErroValidacao("Adicione pelo menos um produto ao carrinho", campo="carrinho"))

    for i, item in enumerate(carrinho):
        if _excede_estoque(item, estoque_zero_ilimitado):
            erros.append(ErroValidacao(
                f"Produto {item.produto_id}: quantidade {item.quantidade} excede o "
                f"estoque disponível ({item.estoque_disponivel})",
                campo=f"itens[{i}].quantidade",
            ))

    ativos = pagamentos_ativos(pagamentos)
    slots = [p.slot for p in ativos]
    if not ativos:
        erros.append(ErroValidacao("Configure pelo menos um método de pagamento", campo="pagamentos"))
    elif len(ativos) > 2 or len(set(slots)) != len(slots):
        erros.append(ErroValidacao("No máximo dois pagamentos, um por slot", campo="pagamentos"))

    for p in ativos:
        if _dec(p.valor_base) <= 0:
            erros.append(ErroValidacao(
                f"Pagamento {p.slot}: valor deve ser maior que zero",
                campo=f"pagamentos[{p.slot}].valor_base",
            ))

    soma_base = arredonda(sum((_dec(p.valor_base) for p in ativos), ZERO))
    if abs(soma_base - totais.subtotal) > tolerancia:
        erros.append(ErroValidacao(
            f"Soma dos pagamentos ({formata_moeda(soma_base, simbolo=True)}) deve ser igual "
            f"ao subtotal ({formata_moeda(totais.subtotal, simbolo=True)})",
            campo="pagamentos",
        ))

    soma_total = arredonda(sum((total_pagamento(p) for p in ativos), ZERO))
    if abs(soma_total - totais.total_com_juros) > tolerancia:
        erros.append(ErroValidacao(
            f"Total com juros desatualizado ({formata_moeda(soma_total, simbolo=True)} "
            f"vs {formata_moeda(totais.total_com_juros, simbolo=True)})",
            campo="total_com_juros",
        ))

    return erros


# -------------------------
# Parcelas
# -------------------------

def _soma_meses(d: date, meses: int) -> date:
    mes = d.month - 1 + meses
    ano = d.year + mes // 12
    mes = mes % 12 + 1
    dia = min(d.day, calendar.monthrange(ano, mes)[1])
    return date(ano, mes, dia)


def gera_parcelas(pagamento: InstrucaoPagamento, data_venda: date) -> List[Parcela]:
    """Divide o total do pagamento em parcelas mensais.

    O resto dos centavos vai para a última parcela. Pagamento à vista
    (1 parcela) vence na data da venda; parcelado vence mês a mês a
    partir do mês seguinte.
    """
    total = total_pagamento(pagamento)
    n = pagamento.parcelas
    valor = arredonda(total / n)
    parcelas: List[Parcela] = []
    for k in range(1, n + 1):
        v = valor if k < n else total - valor * (n - 1)
        venc = data_venda if n == 1 else _soma_meses(data_venda, k)
        parcelas.append(Parcela(
            numero=k,
            valor=v,
            vencimento=venc,
            pago=pagamento.pago,
            data_pagamento=data_venda if pagamento.pago else None,
        ))
    return parcelas
