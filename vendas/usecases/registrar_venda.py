# vendas/usecases/registrar_venda.py
"""
UC: Registrar e excluir VENDAS.
- run_registrar_venda(): monta o carrinho pelo catálogo, preenche os
  pagamentos, valida e grava. Emite VendaCriada.
- run_excluir_venda(): remove a venda e emite VendaExcluida.
- run_excluir_vendas(): exclusão em lote (uma transação), um evento por venda.

Obs.:
- Erros de validação são devolvidos em lista (nada é gravado).
- ErroArmazenamento do repositório é registrado em log e propagado.
- Eventos só são emitidos depois que o repositório confirmou a operação.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from vendas.domain.composicao import (
    adiciona_item,
    autopreenche_pagamento_unico,
    calcula_totais,
    define_quantidade,
    divide_pagamento,
    pagamentos_ativos,
    valida,
)
from vendas.domain.erros import ErroArmazenamento, ErroValidacao
from vendas.domain.models import (
    AvisoEstoque,
    InstrucaoPagamento,
    ItemCarrinho,
    TotaisCompostos,
    Venda,
    VendaCriada,
    VendaExcluida,
)
from vendas.domain.portas import CatalogoProdutos, RepositorioVendas
from vendas.infra.logger import log_transaction, log_venda

Notificador = Callable[[object], None]


@dataclass
class ResultadoVenda:
    venda: Optional[Venda] = None
    erros: List[ErroValidacao] = field(default_factory=list)
    avisos: List[AvisoEstoque] = field(default_factory=list)
    totais: Optional[TotaisCompostos] = None

    @property
    def ok(self) -> bool:
        return self.venda is not None and not self.erros


def _monta_carrinho(
    itens: Sequence[Tuple[int, int]],
    catalogo: CatalogoProdutos,
) -> Tuple[List[ItemCarrinho], List[AvisoEstoque], List[ErroValidacao]]:
    carrinho: List[ItemCarrinho] = []
    avisos: List[AvisoEstoque] = []
    erros: List[ErroValidacao] = []
    for produto_id, quantidade in itens:
        info = catalogo.busca(produto_id)
        if info is None:
            erros.append(ErroValidacao(f"Produto {produto_id} não encontrado", campo="itens"))
            continue
        try:
            idx = next((i for i, it in enumerate(carrinho) if it.produto_id == produto_id), None)
            if idx is None:
                carrinho = adiciona_item(carrinho, produto_id, info["preco_unitario"],
                                         info["estoque_disponivel"])
                idx, anterior = len(carrinho) - 1, 0
            else:
                anterior = carrinho[idx].quantidade
            carrinho, novos = define_quantidade(carrinho, idx, anterior + quantidade)
        except ErroValidacao as e:
            erros.append(e)
            # linha recém-criada com quantidade inválida não entra na venda
            if idx is not None and anterior == 0 and idx < len(carrinho):
                carrinho = carrinho[:idx] + carrinho[idx + 1:]
            continue
        for aviso in novos:
            log_venda("aviso_estoque", produto_id=aviso.produto_id,
                      solicitado=aviso.solicitado, ajustado=aviso.ajustado)
        avisos.extend(novos)
    return carrinho, avisos, erros


def _preenche_pagamentos(subtotal, pagamentos: Sequence[InstrucaoPagamento]) -> List[InstrucaoPagamento]:
    """Completa valores zerados: pagamento único recebe o subtotal; dois dividem."""
    ativos = pagamentos_ativos(pagamentos)
    if len(ativos) == 1 and ativos[0].valor_base == 0:
        # juros por conta do cliente: o valor base é o subtotal
        return autopreenche_pagamento_unico(subtotal, pagamentos, juros_embutidos=False)
    if len(ativos) == 2:
        return divide_pagamento(subtotal, pagamentos)
    return list(pagamentos)


def run_registrar_venda(
    cliente_id: Optional[int],
    itens: Sequence[Tuple[int, int]],
    pagamentos: Sequence[InstrucaoPagamento],
    catalogo: CatalogoProdutos,
    repo: RepositorioVendas,
    notificar: Optional[Notificador] = None,
    data_venda: Optional[date] = None,
) -> ResultadoVenda:
    """Compõe, valida e grava uma venda.

    Args:
        cliente_id: Cliente da venda.
        itens: Pares (produto_id, quantidade); produtos repetidos são somados.
        pagamentos: Uma ou duas instruções de pagamento. Valores zerados
            são preenchidos a partir do subtotal.
        catalogo: Consulta de preço/estoque.
        repo: Repositório onde a venda é gravada.
        notificar: Recebe ``VendaCriada`` após a gravação.
        data_venda: Data da venda (padrão: hoje).

    Returns:
        ResultadoVenda com a venda gravada ou a lista de erros.
    """
    log_venda("inicio", cliente_id=cliente_id, itens=list(itens))
    carrinho, avisos, erros = _monta_carrinho(itens, catalogo)

    subtotal = calcula_totais(carrinho, []).subtotal
    pagamentos = _preenche_pagamentos(subtotal, pagamentos)
    totais = calcula_totais(carrinho, pagamentos)
    erros.extend(valida(carrinho, pagamentos, totais, cliente_id=cliente_id))

    if erros:
        log_venda("rejeitada", cliente_id=cliente_id, erros=[e.mensagem for e in erros])
        return ResultadoVenda(None, erros, avisos, totais)

    venda = Venda(
        cliente_id=cliente_id,
        data=data_venda or date.today(),
        itens=carrinho,
        pagamentos=pagamentos,
        totais=totais,
    )
    try:
        venda = repo.cria(venda)
    except ErroArmazenamento as e:
        log_transaction("registrar_venda", {"cliente_id": cliente_id}, error=str(e))
        raise

    log_transaction("registrar_venda", {"cliente_id": cliente_id},
                    result={"venda_id": venda.id, "total": str(totais.total_com_juros)})
    if notificar is not None:
        notificar(VendaCriada(venda.id))
    return ResultadoVenda(venda, [], avisos, totais)


def run_excluir_venda(
    venda_id: int,
    repo: RepositorioVendas,
    notificar: Optional[Notificador] = None,
) -> None:
    """Exclui a venda (remoção definitiva) e emite ``VendaExcluida``."""
    try:
        repo.exclui(venda_id)
    except ErroArmazenamento as e:
        log_transaction("excluir_venda", {"venda_id": venda_id}, error=str(e))
        raise
    log_transaction("excluir_venda", {"venda_id": venda_id}, result="success")
    log_venda("delete", venda_id)
    if notificar is not None:
        notificar(VendaExcluida(venda_id))


def run_excluir_vendas(
    venda_ids: Sequence[int],
    repo: RepositorioVendas,
    notificar: Optional[Notificador] = None,
) -> List[int]:
    """Exclusão em lote: tudo ou nada; emite um ``VendaExcluida`` por venda."""
    try:
        excluidas = repo.exclui_varios(venda_ids)
    except ErroArmazenamento as e:
        log_transaction("excluir_vendas", {"venda_ids": list(venda_ids)}, error=str(e))
        raise
    log_transaction("excluir_vendas", {"venda_ids": list(venda_ids)}, result={"excluidas": excluidas})
    for venda_id in excluidas:
        log_venda("delete", venda_id, lote=True)
        if notificar is not None:
            notificar(VendaExcluida(venda_id))
    return excluidas
