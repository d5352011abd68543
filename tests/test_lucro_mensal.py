import asyncio
from decimal import Decimal

import pytest

from vendas.domain.erros import ErroArmazenamento
from vendas.domain.models import ParcelaPaga, VendaCriada, VendaExcluida
from vendas.usecases.lucro_mensal import AtualizadorLucroMensal


class FonteFake:
    """Fonte de lucro em memória; cada chamada consome o próximo resultado."""

    def __init__(self, *resultados, demora=0.0):
        self.resultados = list(resultados)
        self.demora = demora
        self.chamadas = []

    async def busca_lucro_mes_atual(self):
        self.chamadas.append(asyncio.get_running_loop().time())
        if self.demora:
            await asyncio.sleep(self.demora)
        r = self.resultados.pop(0) if len(self.resultados) > 1 else self.resultados[0]
        if isinstance(r, Exception):
            raise r
        return r


def test_rajada_de_eventos_gera_uma_atualizacao():
    fonte = FonteFake({"valor": Decimal("123.4")})

    async def cenario():
        at = AtualizadorLucroMensal(fonte, atraso_ms=100)
        loop = asyncio.get_running_loop()
        ultimo = None
        for ev in (VendaCriada(1), ParcelaPaga(2), VendaExcluida(1), VendaCriada(3)):
            ultimo = loop.time()
            at.notifica(ev)
            await asyncio.sleep(0.01)
        assert at.pendente
        await at.aguarda()
        return at, ultimo

    at, ultimo = asyncio.run(cenario())
    assert len(fonte.chamadas) == 1
    assert fonte.chamadas[0] - ultimo >= 0.09
    assert at.resumo.valor == Decimal("123.40")
    assert at.resumo.formatado == "R$ 123,40"
    assert not at.pendente


def test_eventos_espacados_geram_atualizacoes_separadas():
    fonte = FonteFake({"valor": 1})

    async def cenario():
        at = AtualizadorLucroMensal(fonte, atraso_ms=10)
        at.notifica(VendaCriada(1))
        await at.aguarda()
        at.notifica(VendaCriada(2))
        await at.aguarda()

    asyncio.run(cenario())
    assert len(fonte.chamadas) == 2


def test_falha_mantem_resumo_anterior():
    fonte = FonteFake({"valor": "10"}, ErroArmazenamento("banco fora do ar"))

    async def cenario():
        at = AtualizadorLucroMensal(fonte, atraso_ms=0)
        primeiro = await at.inicializa()
        segundo = await at.atualiza()
        return at, primeiro, segundo

    at, primeiro, segundo = asyncio.run(cenario())
    assert primeiro.valor == Decimal("10.00")
    assert segundo is None
    assert at.resumo is primeiro
    assert isinstance(at.ultimo_erro, ErroArmazenamento)
    assert len(fonte.chamadas) == 2  # sem nova tentativa automática


def test_resposta_invalida_conta_como_falha():
    fonte = FonteFake({"total": 5})

    async def cenario():
        at = AtualizadorLucroMensal(fonte)
        return at, await at.atualiza()

    at, resumo = asyncio.run(cenario())
    assert resumo is None
    assert "resposta inválida" in str(at.ultimo_erro)


def test_tempo_esgotado():
    fonte = FonteFake({"valor": 1}, demora=1.0)

    async def cenario():
        at = AtualizadorLucroMensal(fonte, timeout_s=0.05)
        return at, await at.atualiza()

    at, resumo = asyncio.run(cenario())
    assert resumo is None
    assert at.resumo is None
    assert "tempo esgotado" in str(at.ultimo_erro)


def test_consulta_em_andamento_nao_e_cancelada():
    fonte = FonteFake({"valor": 1}, {"valor": 2}, demora=0.05)

    async def cenario():
        at = AtualizadorLucroMensal(fonte, atraso_ms=5)
        at.notifica(VendaCriada(1))
        await asyncio.sleep(0.03)  # primeira consulta já começou
        at.notifica(ParcelaPaga(9))
        await at.aguarda()
        return at

    at = asyncio.run(cenario())
    assert len(fonte.chamadas) == 2
    assert at.resumo.valor == Decimal("2.00")


def test_observadores_e_cancelamento():
    fonte = FonteFake({"valor": 7})
    recebidos = []

    def quebrado(_):
        raise RuntimeError("observador com defeito")

    async def cenario():
        at = AtualizadorLucroMensal(fonte)
        at.inscreve(quebrado)
        inscricao = at.inscreve(recebidos.append)
        await at.atualiza()
        assert inscricao.ativa
        inscricao.cancela()
        assert not inscricao.ativa
        await at.atualiza()

    asyncio.run(cenario())
    assert len(recebidos) == 1
    assert recebidos[0].valor == Decimal("7.00")


def test_encerra_cancela_atualizacao_pendente():
    fonte = FonteFake({"valor": 1})

    async def cenario():
        at = AtualizadorLucroMensal(fonte, atraso_ms=1000)
        at.notifica(VendaCriada(1))
        assert at.pendente
        await at.encerra()
        return at

    at = asyncio.run(cenario())
    assert not at.pendente
    assert fonte.chamadas == []
    assert at.resumo is None


def test_evento_desconhecido():
    at = AtualizadorLucroMensal(FonteFake({"valor": 0}))
    with pytest.raises(TypeError):
        at.notifica("venda")


def test_notificador_threadsafe_entrega_eventos_pelo_loop():
    fonte = FonteFake({"valor": "7.5"})

    def exclui_em_lote(notificar):
        for i in range(5):
            notificar(VendaExcluida(i))

    async def cenario():
        at = AtualizadorLucroMensal(fonte, atraso_ms=20)
        notificar = at.notificador_threadsafe()
        await asyncio.to_thread(exclui_em_lote, notificar)
        await at.aguarda()
        with pytest.raises(TypeError):
            await asyncio.to_thread(notificar, "venda")
        return at

    at = asyncio.run(cenario())
    assert len(fonte.chamadas) == 1
    assert at.resumo.valor == Decimal("7.50")
