# almoxarifado/infra/logger.py
"""
Sistema de logging para as operações do almoxarifado.

Este módulo configura e fornece loggers para registrar todas as operações
críticas do sistema: entradas, saídas, solicitações (coordenação e
atendimento) e operações no banco de dados.

Os logs só são gravados quando ``ENABLE_LOGGING`` (ou ``ENABLE_OUTPUT``)
estiver ligado; ambos podem ser ativados pela variável de ambiente
``ALMOXARIFADO_LOGGING=1``.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "sim", "yes", "on"}


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = _env_flag("ALMOXARIFADO_LOGGING")
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = _env_flag("ALMOXARIFADO_OUTPUT")


def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)


# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


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

    # Remove handlers anteriores (reimportação em testes)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado na primeira gravação
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


# Diretório base para logs
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = Path(os.environ.get("ALMOXARIFADO_LOGS_DIR") or (BASE_DIR / "logs"))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "entradas": LOGS_DIR / "entradas.log",
    "saidas": LOGS_DIR / "saidas.log",
    "solicitacoes": LOGS_DIR / "solicitacoes.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

# Loggers específicos para cada operação
transaction_logger = setup_logger('almoxarifado.transactions', str(LOG_FILES["transactions"]))
entrada_logger = setup_logger('almoxarifado.entradas', str(LOG_FILES["entradas"]))
saida_logger = setup_logger('almoxarifado.saidas', str(LOG_FILES["saidas"]))
solicitacao_logger = setup_logger('almoxarifado.solicitacoes', str(LOG_FILES["solicitacoes"]))
database_logger = setup_logger('almoxarifado.database', str(LOG_FILES["database"]))
system_logger = setup_logger('almoxarifado.system', str(LOG_FILES["system"]))


def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (alterar_quantidade, atender_solicitacao, ...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_entrada(action: str, item_id: Any, quantidade: int, **kwargs) -> None:
    """
    Log específico para movimentações de entrada.

    Args:
        action: Ação realizada (movimento, estorno, cadastro_inicial, ajuste)
        item_id: Id do item
        quantidade: Quantidade movimentada
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "item_id": item_id, "quantidade": quantidade, **kwargs}
    entrada_logger.info(f"ENTRADA_{action.upper()}: {log_data}")


def log_saida(action: str, item_id: Any, quantidade: int, **kwargs) -> None:
    """
    Log específico para movimentações de saída.

    Args:
        action: Ação realizada (movimento, fifo, ajuste)
        item_id: Id do item
        quantidade: Quantidade movimentada
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "item_id": item_id, "quantidade": quantidade, **kwargs}
    saida_logger.info(f"SAIDA_{action.upper()}: {log_data}")


def log_solicitacao(action: str, solicitacao_id: Any, level: str = "info", **kwargs) -> None:
    """
    Log para transições do fluxo de solicitações.

    Args:
        action: Transição (submit, coordenacao, atender, rejeitar, editar)
        solicitacao_id: Id da solicitação
        level: Nível do log (info, warning, error)
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"action": action, "solicitacao_id": solicitacao_id, **kwargs}
    log_method = getattr(solicitacao_logger, level.lower(), solicitacao_logger.info)
    log_method(f"SOLICITACAO_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {"event": event, "details": details or {}}
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação de planilhas).

    Args:
        operation: Tipo de operação (import)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, entradas, saidas, solicitacoes, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string (None com o logging desligado)
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
    except OSError as e:
        return f"Erro ao ler log {log_type}: {e}"
    return ''.join(all_lines[-lines:])
