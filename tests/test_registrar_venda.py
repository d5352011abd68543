from dataclasses import replace
from decimal import Decimal

import pytest

from vendas.domain.erros import ErroArmazenamento
from vendas.domain.models import (
    InstrucaoPagamento,
    MetodoPagamento,
    ParcelaPaga,
    VendaCriada,
    VendaExcluida,
)
from vendas.usecases.pagar_parcela import run_pagar_parcela
from vendas.usecases.registrar_venda import run_excluir_venda, run_excluir_vendas, run_registrar_venda

D = Decimal


class CatalogoFake:
    def __init__(self, produtos):
        self.produtos = produtos

    def busca(self, produto_id):
        p = self.produtos.get(produto_id)
        return dict(p) if p is not None else None


class VendasFake:
    def __init__(self, falhar=False):
        self.vendas = {}
        self.falhar = falhar

    def cria(self, venda):
        if self.falhar:
            raise ErroArmazenamento("sem conexão")
        venda = replace(venda, id=len(self.vendas) + 1)
        self.vendas[venda.id] = venda
        return venda

    def exclui(self, venda_id):
        if venda_id not in self.vendas:
            raise ErroArmazenamento(f"venda {venda_id} não encontrada")
        del self.vendas[venda_id]

    def exclui_varios(self, venda_ids):
        ids = list(dict.fromkeys(venda_ids))
        faltando = [i for i in ids if i not in self.vendas]
        if faltando:
            raise ErroArmazenamento(f"venda {faltando[0]} não encontrada")
        for i in ids:
            del self.vendas[i]
        return ids


class ParcelasFake:
    def __init__(self, ids):
        self.abertas = set(ids)
        self.pagas = set()

    def marca_paga(self, parcela_id):
        if parcela_id not in self.abertas | self.pagas:
            raise ErroArmazenamento(f"parcela {parcela_id} não encontrada")
        self.abertas.discard(parcela_id)
        self.pagas.add(parcela_id)


@pytest.fixture
def catalogo():
    return CatalogoFake({
        1: {"preco_unitario": D("50.00"), "estoque_disponivel": 0},
        2: {"preco_unitario": D("10.00"), "estoque_disponivel": 3},
    })


def _pix(valor="0", slot=1):
    return InstrucaoPagamento(slot=slot, metodo=MetodoPagamento.PIX, valor_base=D(valor), pago=True)


def test_registra_venda_e_emite_evento(catalogo):
    repo, eventos = VendasFake(), []
    res = run_registrar_venda(10, [(1, 2)], [_pix()], catalogo, repo, notificar=eventos.append)
    assert res.ok
    assert res.totais.subtotal == D("100.00")
    assert res.venda.pagamentos[0].valor_base == D("100.00")
    assert eventos == [VendaCriada(res.venda.id)]
    assert res.venda.id in repo.vendas


def test_produto_repetido_vira_uma_linha(catalogo):
    res = run_registrar_venda(10, [(1, 1), (1, 2)], [_pix()], catalogo, VendasFake())
    assert [(i.produto_id, i.quantidade) for i in res.venda.itens] == [(1, 3)]


def test_quantidade_acima_do_estoque_gera_aviso(catalogo):
    res = run_registrar_venda(10, [(2, 10)], [_pix()], catalogo, VendasFake())
    assert res.ok
    assert res.venda.itens[0].quantidade == 3
    assert [(a.solicitado, a.ajustado) for a in res.avisos] == [(10, 3)]
    assert res.totais.subtotal == D("30.00")


def test_produto_inexistente_nao_grava(catalogo):
    repo, eventos = VendasFake(), []
    res = run_registrar_venda(10, [(99, 1)], [_pix()], catalogo, repo, notificar=eventos.append)
    assert not res.ok
    assert any("99" in e.mensagem for e in res.erros)
    assert repo.vendas == {}
    assert eventos == []


def test_quantidade_invalida_em_linha_nova(catalogo):
    res = run_registrar_venda(10, [(1, 1), (2, 0)], [_pix()], catalogo, VendasFake())
    assert not res.ok
    assert [e.campo for e in res.erros] == ["quantidade"]


def test_cliente_obrigatorio(catalogo):
    res = run_registrar_venda(None, [(1, 1)], [_pix()], catalogo, VendasFake())
    assert [e.mensagem for e in res.erros] == ["Selecione um cliente"]


def test_pagamentos_divergentes(catalogo):
    pags = [_pix("60"), _pix("30", slot=2)]
    res = run_registrar_venda(10, [(1, 2)], pags, catalogo, VendasFake())
    assert len(res.erros) == 1
    assert "R$ 90,00" in res.erros[0].mensagem


def test_dois_pagamentos_zerados_dividem_o_subtotal(catalogo):
    pags = [_pix(), InstrucaoPagamento(slot=2, metodo=MetodoPagamento.DINHEIRO, pago=True)]
    res = run_registrar_venda(10, [(1, 1)], pags, catalogo, VendasFake())
    assert res.ok
    assert [p.valor_base for p in res.venda.pagamentos] == [D("25.00"), D("25.00")]


def test_credito_juros_por_conta_do_cliente(catalogo):
    pag = InstrucaoPagamento(slot=1, metodo=MetodoPagamento.CREDITO, taxa_juros=D("5"), parcelas=2)
    res = run_registrar_venda(10, [(1, 4)], [pag], catalogo, VendasFake())
    assert res.ok
    assert res.venda.pagamentos[0].valor_base == D("200.00")
    assert res.totais.total_com_juros == D("210.00")


def test_erro_de_armazenamento_propaga_sem_evento(catalogo):
    eventos = []
    with pytest.raises(ErroArmazenamento):
        run_registrar_venda(10, [(1, 1)], [_pix()], catalogo, VendasFake(falhar=True),
                            notificar=eventos.append)
    assert eventos == []


def test_excluir_venda(catalogo):
    repo, eventos = VendasFake(), []
    res = run_registrar_venda(10, [(1, 1)], [_pix()], catalogo, repo)
    run_excluir_venda(res.venda.id, repo, notificar=eventos.append)
    assert repo.vendas == {}
    assert eventos == [VendaExcluida(res.venda.id)]
    with pytest.raises(ErroArmazenamento):
        run_excluir_venda(res.venda.id, repo, notificar=eventos.append)
    assert len(eventos) == 1


def test_excluir_vendas_em_lote(catalogo):
    repo, eventos = VendasFake(), []
    ids = [run_registrar_venda(10, [(1, 1)], [_pix()], catalogo, repo).venda.id for _ in range(3)]

    with pytest.raises(ErroArmazenamento):
        run_excluir_vendas([ids[0], 99], repo, notificar=eventos.append)
    assert eventos == []
    assert len(repo.vendas) == 3

    assert run_excluir_vendas([ids[2], ids[0], ids[2]], repo, notificar=eventos.append) == [ids[2], ids[0]]
    assert eventos == [VendaExcluida(ids[2]), VendaExcluida(ids[0])]
    assert list(repo.vendas) == [ids[1]]


def test_pagar_parcela():
    repo, eventos = ParcelasFake([5, 6]), []
    run_pagar_parcela(5, repo, notificar=eventos.append)
    assert repo.pagas == {5}
    assert eventos == [ParcelaPaga(5)]
    with pytest.raises(ErroArmazenamento):
        run_pagar_parcela(42, repo, notificar=eventos.append)
    assert len(eventos) == 1
