"""
UC: manter o lucro mensal do dashboard atualizado.

O ``AtualizadorLucroMensal`` recebe os eventos de venda criada, venda
excluída e parcela paga, e recalcula o lucro a partir da fonte oficial
(nunca incrementalmente) depois de um atraso de acomodação.

Regras:
- debounce: cada evento cancela a espera pendente e agenda outra com o
  atraso completo; uma rajada de eventos gera uma única atualização;
- uma atualização que já começou a consultar a fonte não é cancelada
  por eventos novos;
- falha na consulta (ou tempo esgotado) mantém o último resumo válido,
  é registrada em log e não é repetida automaticamente;
- a escrita do resumo em cache é serializada por um ``asyncio.Lock``;
  entre consultas concorrentes vale a que terminar por último.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Set

from vendas.config import DEFAULTS
from vendas.domain.erros import ErroArmazenamento
from vendas.domain.models import (
    EventoVenda,
    ParcelaPaga,
    ResumoLucroMensal,
    VendaCriada,
    VendaExcluida,
)
from vendas.domain.moeda import arredonda, formata_moeda
from vendas.domain.portas import FonteLucro
from vendas.infra.logger import log_lucro

Observador = Callable[[ResumoLucroMensal], None]

EVENTOS_LUCRO = (VendaCriada, VendaExcluida, ParcelaPaga)


class Inscricao:
    """Handle devolvido por ``inscreve``; ``cancela()`` remove o observador."""

    def __init__(self, observadores: List[Observador], observador: Observador):
        self._observadores = observadores
        self._observador = observador

    @property
    def ativa(self) -> bool:
        return self._observador in self._observadores

    def cancela(self) -> None:
        if self._observador in self._observadores:
            self._observadores.remove(self._observador)


class AtualizadorLucroMensal:
    def __init__(
        self,
        fonte: FonteLucro,
        atraso_ms: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ):
        self.fonte = fonte
        self.atraso_ms = DEFAULTS.atraso_lucro_ms if atraso_ms is None else atraso_ms
        self.timeout_s = DEFAULTS.timeout_lucro_s if timeout_s is None else timeout_s
        self.ultimo_erro: Optional[ErroArmazenamento] = None
        self._resumo: Optional[ResumoLucroMensal] = None
        self._observadores: List[Observador] = []
        self._agendada: Optional[asyncio.Task] = None
        self._tarefas: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @property
    def resumo(self) -> Optional[ResumoLucroMensal]:
        return self._resumo

    @property
    def pendente(self) -> bool:
        """Há uma atualização agendada aguardando o atraso."""
        return self._agendada is not None and not self._agendada.done()

    def inscreve(self, observador: Observador) -> Inscricao:
        self._observadores.append(observador)
        return Inscricao(self._observadores, observador)

    def notifica(self, evento: EventoVenda) -> None:
        """Agenda (ou reagenda) a atualização. Deve ser chamado dentro do event loop."""
        if not isinstance(evento, EVENTOS_LUCRO):
            raise TypeError(f"evento não reconhecido: {type(evento).__name__}")
        if self.pendente:
            self._agendada.cancel()
        loop = asyncio.get_running_loop()
        tarefa = loop.create_task(self._espera_e_atualiza())
        self._agendada = tarefa
        self._tarefas.add(tarefa)
        tarefa.add_done_callback(self._tarefas.discard)
        log_lucro("agendado", evento=type(evento).__name__, atraso_ms=self.atraso_ms)

    def notificador_threadsafe(self) -> Callable[[EventoVenda], None]:
        """Notificador para código síncrono rodando fora do loop (``asyncio.to_thread``).

        Deve ser obtido dentro do event loop; o evento é validado na thread
        de quem chama e entregue a ``notifica`` pelo próprio loop.
        """
        loop = asyncio.get_running_loop()

        def _notifica(evento: EventoVenda) -> None:
            if not isinstance(evento, EVENTOS_LUCRO):
                raise TypeError(f"evento não reconhecido: {type(evento).__name__}")
            loop.call_soon_threadsafe(self.notifica, evento)

        return _notifica

    async def _espera_e_atualiza(self) -> None:
        await asyncio.sleep(self.atraso_ms / 1000)
        # daqui em diante a consulta não é mais cancelada por eventos novos
        self._agendada = None
        await self.atualiza()

    async def atualiza(self) -> Optional[ResumoLucroMensal]:
        """Consulta a fonte, atualiza o cache e avisa os observadores.

        Returns:
            O novo resumo, ou ``None`` se a consulta falhou (o resumo
            anterior é mantido e o erro fica em ``ultimo_erro``).
        """
        try:
            dados = await asyncio.wait_for(self.fonte.busca_lucro_mes_atual(), self.timeout_s)
            valor = arredonda(Decimal(str(dados["valor"])))
        except asyncio.TimeoutError:
            return self._falhou(ErroArmazenamento(
                f"tempo esgotado ({self.timeout_s}s) ao consultar o lucro mensal"
            ))
        except ErroArmazenamento as e:
            return self._falhou(e)
        except (KeyError, TypeError, InvalidOperation) as e:
            return self._falhou(ErroArmazenamento(f"resposta inválida da fonte de lucro: {e!r}"))

        resumo = ResumoLucroMensal(
            valor=valor,
            formatado=formata_moeda(valor, simbolo=True),
            calculado_em=datetime.now(),
        )
        async with self._lock:
            self._resumo = resumo
            self.ultimo_erro = None
        log_lucro("atualizado", valor=str(valor))

        for observador in list(self._observadores):
            try:
                observador(resumo)
            except Exception as e:  # um observador com defeito não derruba os demais
                log_lucro("observador_falhou", level="error", erro=repr(e))
        return resumo

    def _falhou(self, erro: ErroArmazenamento) -> None:
        self.ultimo_erro = erro
        log_lucro("falhou", level="error", erro=str(erro))
        return None

    async def inicializa(self) -> Optional[ResumoLucroMensal]:
        """Primeira carga do resumo (sem atraso)."""
        return await self.atualiza()

    async def aguarda(self) -> None:
        """Espera as atualizações agendadas e em andamento terminarem."""
        # deixa rodar notificações entregues por ``notificador_threadsafe``
        await asyncio.sleep(0)
        while self._tarefas:
            await asyncio.gather(*list(self._tarefas), return_exceptions=True)

    async def encerra(self) -> None:
        """Cancela a espera pendente e as consultas em andamento."""
        tarefas = list(self._tarefas)
        for t in tarefas:
            t.cancel()
        if tarefas:
            await asyncio.gather(*tarefas, return_exceptions=True)
        self._agendada = None
        log_lucro("encerrado", canceladas=len(tarefas))
