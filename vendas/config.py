# vendas/config.py
"""
Configurações globais e valores padrão do sistema de vendas.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal


# Caminho padrão do banco de dados SQLite (pode ser sobrescrito por VENDAS_DB)
DB_PATH = os.environ.get("VENDAS_DB", os.path.join(os.getcwd(), "vendas.db"))


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    atraso_lucro_ms: int = 500  # espera antes de recalcular o lucro mensal
    timeout_lucro_s: float = 30.0  # limite para a consulta do lucro
    tolerancia: Decimal = field(default_factory=lambda: Decimal("0.01"))  # arredondamento de centavos
    estoque_zero_ilimitado: bool = True  # estoque 0 = produto sem controle de estoque
    exige_cliente: bool = True
    limite_estoque_baixo: int = 5


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
