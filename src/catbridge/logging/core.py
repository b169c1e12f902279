"""Core logging interfaces and data structures for CatBridge.

Loggers hand structured entries to a process-wide manager, which runs them
through its processors and then through every configured handler. Bridge
context (component, operation, chain id, sequence) travels with each entry so
that a transfer can be followed from submission to claim.
"""

import json
import os
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LogLevel(Enum):
    """Log levels."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Parse a level name such as ``"info"`` or ``"WARNING"``."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown log level: {name}") from None


_LEVEL_ORDER = list(LogLevel)


@dataclass
class LogContext:
    """Log context information."""

    component: Optional[str] = None
    operation: Optional[str] = None
    chain_id: Optional[int] = None
    sequence: Optional[int] = None
    correlation_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def merged_with(self, other: Optional["LogContext"]) -> "LogContext":
        """Return a context where fields set on ``other`` take precedence."""
        if other is None:
            return self
        return LogContext(
            component=other.component or self.component,
            operation=other.operation or self.operation,
            chain_id=other.chain_id if other.chain_id is not None else self.chain_id,
            sequence=other.sequence if other.sequence is not None else self.sequence,
            correlation_id=other.correlation_id or self.correlation_id,
            metadata={**self.metadata, **other.metadata},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "component": self.component,
            "operation": self.operation,
            "chain_id": self.chain_id,
            "sequence": self.sequence,
            "correlation_id": self.correlation_id,
            "metadata": self.metadata,
        }


@dataclass
class LogEntry:
    """Log entry data structure."""

    timestamp: float
    level: LogLevel
    message: str
    logger_name: str
    context: LogContext
    exception: Optional[BaseException] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    thread_id: Optional[int] = None
    process_id: Optional[int] = None

    def __post_init__(self):
        if self.thread_id is None:
            self.thread_id = threading.get_ident()
        if self.process_id is None:
            self.process_id = os.getpid()

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary."""
        return {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
            "logger_name": self.logger_name,
            "context": self.context.to_dict(),
            "exception": str(self.exception) if self.exception else None,
            "extra": self.extra,
            "thread_id": self.thread_id,
            "process_id": self.process_id,
        }

    def to_json(self) -> str:
        """Convert log entry to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class LogConfig:
    """Log configuration."""

    def __init__(
        self,
        name: str = "catbridge",
        level: LogLevel = LogLevel.INFO,
        format_type: str = "text",
        handlers: Optional[List[str]] = None,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.handlers = handlers if handlers is not None else ["console"]


class LogFormatter(ABC):
    """Abstract log formatter."""

    @abstractmethod
    def format(self, entry: LogEntry) -> str:
        """Format log entry."""


class LogHandler(ABC):
    """Abstract log handler."""

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__
        self.formatter: Optional[LogFormatter] = None
        self.level: LogLevel = LogLevel.DEBUG
        self._lock = threading.RLock()

    def set_formatter(self, formatter: LogFormatter) -> None:
        with self._lock:
            self.formatter = formatter

    def set_level(self, level: LogLevel) -> None:
        with self._lock:
            self.level = level

    def should_handle(self, entry: LogEntry) -> bool:
        return entry.level.rank >= self.level.rank

    @abstractmethod
    def emit(self, entry: LogEntry) -> None:
        """Emit log entry."""

    def handle(self, entry: LogEntry) -> None:
        if self.should_handle(entry):
            self.emit(entry)

    def close(self) -> None:
        """Release handler resources."""


class LogProcessor(ABC):
    """Abstract log processor."""

    @abstractmethod
    def process(self, entry: LogEntry) -> LogEntry:
        """Process log entry."""


class LogManager:
    """Routes entries from every bridge logger to the configured handlers."""

    def __init__(self, config: Optional[LogConfig] = None):
        self.config = config or LogConfig()
        self.handlers: Dict[str, LogHandler] = {}
        self.processors: List[LogProcessor] = []
        self._lock = threading.RLock()
        self._context = LogContext()

        self._setup_defaults()

    def _setup_defaults(self) -> None:
        from .formatters import JSONFormatter, TextFormatter
        from .handlers import ConsoleHandler

        if "console" not in self.config.handlers:
            return
        console = ConsoleHandler(stream=sys.stderr)
        if self.config.format_type == "json":
            console.set_formatter(JSONFormatter())
        else:
            console.set_formatter(TextFormatter())
        self.handlers["console"] = console

    def add_handler(self, name: str, handler: LogHandler) -> None:
        with self._lock:
            self.handlers[name] = handler
            if name not in self.config.handlers:
                self.config.handlers.append(name)

    def remove_handler(self, name: str) -> None:
        with self._lock:
            handler = self.handlers.pop(name, None)
            if handler is not None:
                handler.close()
            if name in self.config.handlers:
                self.config.handlers.remove(name)

    def add_processor(self, processor: LogProcessor) -> None:
        with self._lock:
            self.processors.append(processor)

    def set_context(self, context: LogContext) -> None:
        """Set the context merged into every entry."""
        with self._lock:
            self._context = context

    def get_context(self) -> LogContext:
        with self._lock:
            return self._context

    def log(
        self,
        level: LogLevel,
        message: str,
        logger_name: str = "root",
        context: Optional[LogContext] = None,
        exception: Optional[BaseException] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        if level.rank < self.config.level.rank:
            return

        with self._lock:
            entry = LogEntry(
                timestamp=time.time(),
                level=level,
                message=message,
                logger_name=logger_name,
                context=self._context.merged_with(context),
                exception=exception,
                extra=extra or {},
            )

            for processor in self.processors:
                entry = processor.process(entry)

            for handler_name in self.config.handlers:
                handler = self.handlers.get(handler_name)
                if handler is not None:
                    handler.handle(entry)

    def shutdown(self) -> None:
        with self._lock:
            for handler in self.handlers.values():
                handler.close()
            self.handlers.clear()
            self.processors.clear()


class BridgeLogger:
    """Named logger.

    A logger created without a manager resolves the process-wide one on every
    call, so module-level loggers follow :func:`setup_logging`.
    """

    def __init__(
        self,
        name: str,
        manager: Optional[LogManager] = None,
        level: Optional[LogLevel] = None,
    ):
        self.name = name
        self._manager = manager
        self._level = level

    @property
    def manager(self) -> LogManager:
        return self._manager if self._manager is not None else get_manager()

    @property
    def level(self) -> LogLevel:
        return self._level if self._level is not None else self.manager.config.level

    def set_level(self, level: Optional[LogLevel]) -> None:
        """Pin this logger to ``level``; ``None`` follows the manager again."""
        self._level = level

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.rank >= self.level.rank

    def log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        exception: Optional[BaseException] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self.is_enabled_for(level):
            self.manager.log(
                level=level,
                message=message,
                logger_name=self.name,
                context=context,
                exception=exception,
                extra=extra,
            )

    def trace(self, message: str, **kwargs) -> None:
        self.log(LogLevel.TRACE, message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self.log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs) -> None:
        self.log(LogLevel.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log at ERROR, attaching the exception currently being handled."""
        exc = sys.exc_info()[1]
        if exc is not None:
            kwargs.setdefault("exception", exc)
        self.log(LogLevel.ERROR, message, **kwargs)


# Global log manager instance
_global_manager: Optional[LogManager] = None
_global_lock = threading.RLock()
_loggers: Dict[str, BridgeLogger] = {}


def get_manager() -> LogManager:
    """Return the process-wide manager, creating a default one on first use."""
    global _global_manager
    with _global_lock:
        if _global_manager is None:
            _global_manager = LogManager()
        return _global_manager


def get_logger(name: str = "root") -> BridgeLogger:
    """Get logger instance."""
    with _global_lock:
        if name not in _loggers:
            _loggers[name] = BridgeLogger(name)
        return _loggers[name]


def setup_logging(config: LogConfig) -> LogManager:
    """Setup logging with configuration."""
    global _global_manager
    with _global_lock:
        if _global_manager is not None:
            _global_manager.shutdown()
        _global_manager = LogManager(config)
        return _global_manager


def shutdown_logging() -> None:
    """Shutdown logging."""
    global _global_manager
    with _global_lock:
        if _global_manager is not None:
            _global_manager.shutdown()
            _global_manager = None
