"""
Contratos dos colaboradores externos do núcleo de vendas.

Implementações SQLite ficam em ``vendas.infra.repositories``; os testes
usam versões em memória. Qualquer falha deve ser levantada como
``ErroArmazenamento``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol

from vendas.domain.models import Venda


class CatalogoProdutos(Protocol):
    def busca(self, produto_id: int) -> Optional[Dict[str, Any]]:
        """Retorna ``{"preco_unitario": Decimal, "estoque_disponivel": int}`` ou None."""
        ...


class RepositorioVendas(Protocol):
    def cria(self, venda: Venda) -> Venda:
        ...

    def exclui(self, venda_id: int) -> None:
        ...

    def exclui_varios(self, venda_ids: Iterable[int]) -> List[int]:
        """Exclui todas ou nenhuma; devolve os ids excluídos."""
        ...


class FonteLucro(Protocol):
    async def busca_lucro_mes_atual(self) -> Dict[str, Any]:
        """Retorna ``{"valor": Decimal}`` com o lucro do mês corrente."""
        ...


class RepositorioParcelas(Protocol):
    def marca_paga(self, parcela_id: int) -> None:
        ...
