# vendas/infra/logger.py
"""
Sistema de logging para as operações de vendas.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: vendas registradas/excluídas, parcelas pagas,
recálculo do lucro mensal e operações no banco de dados.

Os arquivos só são criados quando o logging está habilitado
(``ENABLE_LOGGING`` ou variável de ambiente ``VENDAS_LOG=1``).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.environ.get("VENDAS_LOG", "0").lower() in {"1", "true", "sim"}

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Diretório base para logs
LOGS_DIR = Path(os.environ.get("VENDAS_LOG_DIR", Path.cwd() / "logs"))

_LOG_FILES = {
    "transactions": "transactions.log",
    "vendas": "vendas.log",
    "lucro": "lucro.log",
    "database": "database.log",
    "system": "system.log",
}

_loggers: Dict[str, logging.Logger] = {}


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers existentes
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


def get_logger(log_type: str) -> logging.Logger:
    """Logger `vendas.<log_type>`, criado na primeira utilização."""
    if log_type not in _loggers:
        _loggers[log_type] = setup_logger(
            f"vendas.{log_type}", str(LOGS_DIR / _LOG_FILES[log_type])
        )
    return _loggers[log_type]


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (registrar_venda, excluir_venda, pagar_parcela...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not ENABLE_LOGGING:
        return
    logger = get_logger("transactions")
    if error:
        logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")

def log_venda(action: str, venda_id: Optional[int] = None, **kwargs) -> None:
    """
    Log específico para operações de venda.

    Args:
        action: Ação realizada (insert, delete, aviso_estoque, rejeitada...)
        venda_id: Identificador da venda (opcional)
        **kwargs: Dados adicionais
    """
    if not ENABLE_LOGGING:
        return
    log_data = {"action": action, "venda_id": venda_id, **kwargs}
    get_logger("vendas").info(f"VENDA_{action.upper()}: {log_data}")

def log_lucro(event: str, level: str = "info", **kwargs) -> None:
    """Log do recálculo do lucro mensal (agendamento, sucesso, falha)."""
    if not ENABLE_LOGGING:
        return
    logger = get_logger("lucro")
    log_method = getattr(logger, level.lower(), logger.info)
    log_method(f"LUCRO_{event.upper()}: {kwargs}")

def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not ENABLE_LOGGING:
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    get_logger("database").info(f"DB_{operation}: {log_data}")

def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not ENABLE_LOGGING:
        return
    logger = get_logger("system")
    log_data = {"event": event, "details": details or {}}
    log_method = getattr(logger, level.lower(), logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")

def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Obtém as últimas linhas de um log.

    Args:
        log_type: Tipo de log (transactions, vendas, lucro, database, system)
        lines: Número de linhas a retornar
    """
    nome = _LOG_FILES.get(log_type)
    if not nome:
        return f"Log {log_type} desconhecido."
    log_file = LOGS_DIR / nome
    if not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
        return ''.join(all_lines[-lines:])
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"
