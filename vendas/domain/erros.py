# vendas/domain/erros.py
"""
Taxonomia de erros do núcleo de vendas.

- ErroValidacao: problema corrigível pelo usuário. É sempre *retornado*
  (em lista) pela validação da venda, nunca propagado além do compositor.
- ErroArmazenamento: falha de um colaborador externo (banco, rede).
  Propaga para quem chamou create/delete/markPaid.
"""

from __future__ import annotations

from typing import Optional


class ErroValidacao(ValueError):
    """Entrada inválida que o usuário pode corrigir."""

    def __init__(self, mensagem: str, campo: Optional[str] = None):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.campo = campo

    def __eq__(self, other):
        if not isinstance(other, ErroValidacao):
            return NotImplemented
        return (self.mensagem, self.campo) == (other.mensagem, other.campo)

    def __hash__(self):
        return hash((self.mensagem, self.campo))

    def __repr__(self) -> str:
        return f"ErroValidacao({self.mensagem!r}, campo={self.campo!r})"


class ErroArmazenamento(RuntimeError):
    """Falha do repositório ou da fonte de dados."""


# Nomes em inglês usados pelas integrações externas
ValidationError = ErroValidacao
StorageError = ErroArmazenamento
