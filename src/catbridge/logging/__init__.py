"""CatBridge logging system.

Structured logging for the bridge: named loggers, a process-wide manager,
JSON and text formatters, and console and in-memory handlers.
"""

from .core import (
    BridgeLogger,
    LogConfig,
    LogContext,
    LogEntry,
    LogFormatter,
    LogHandler,
    LogLevel,
    LogManager,
    LogProcessor,
    get_logger,
    get_manager,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter
from .handlers import ConsoleHandler, MemoryHandler

__all__ = [
    # Core
    "LogLevel",
    "LogConfig",
    "LogContext",
    "LogEntry",
    "LogFormatter",
    "LogHandler",
    "LogManager",
    "LogProcessor",
    "BridgeLogger",
    "get_logger",
    "get_manager",
    "setup_logging",
    "shutdown_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Handlers
    "ConsoleHandler",
    "MemoryHandler",
]
