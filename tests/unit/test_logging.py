"""Tests for the CatBridge logging system."""

import io
import json

import pytest

from catbridge.crypto import Address
from catbridge.logging import (
    BridgeLogger,
    ConsoleHandler,
    JSONFormatter,
    LogConfig,
    LogContext,
    LogEntry,
    LogLevel,
    LogManager,
    LogProcessor,
    MemoryHandler,
    TextFormatter,
    get_logger,
    get_manager,
    setup_logging,
    shutdown_logging,
)


def make_entry(**kwargs) -> LogEntry:
    defaults = dict(
        timestamp=0.0,
        level=LogLevel.INFO,
        message="hello",
        logger_name="catbridge.test",
        context=LogContext(component="engine", chain_id=2),
    )
    defaults.update(kwargs)
    return LogEntry(**defaults)


@pytest.fixture
def memory():
    """Fixture installing a quiet global manager with a memory handler."""
    manager = setup_logging(LogConfig(level=LogLevel.DEBUG, handlers=[]))
    handler = MemoryHandler()
    manager.add_handler("memory", handler)
    yield handler
    shutdown_logging()


class TestLogLevel:
    """Test LogLevel."""

    def test_order(self):
        """Test that levels are ranked from TRACE to CRITICAL."""
        assert LogLevel.TRACE.rank < LogLevel.DEBUG.rank < LogLevel.INFO.rank
        assert LogLevel.ERROR.rank < LogLevel.CRITICAL.rank

    def test_from_name(self):
        """Test parsing level names."""
        assert LogLevel.from_name("WARNING") is LogLevel.WARNING
        assert LogLevel.from_name(" info ") is LogLevel.INFO
        with pytest.raises(ValueError):
            LogLevel.from_name("loud")


class TestLogContext:
    """Test LogContext."""

    def test_merge_prefers_other(self):
        """Test that set fields of the other context win."""
        base = LogContext(component="engine", chain_id=1, metadata={"a": 1})
        merged = base.merged_with(LogContext(chain_id=2, sequence=0, metadata={"b": 2}))
        assert merged.component == "engine"
        assert merged.chain_id == 2
        assert merged.sequence == 0
        assert merged.metadata == {"a": 1, "b": 2}

    def test_merge_none(self):
        """Test merging nothing."""
        base = LogContext(component="engine")
        assert base.merged_with(None) is base


class TestFormatters:
    """Test formatters."""

    def test_json(self):
        """Test JSON output with context and extra."""
        data = json.loads(JSONFormatter().format(make_entry(extra={"amount": 5})))
        assert data["message"] == "hello"
        assert data["level"] == "info"
        assert data["context"] == {"component": "engine", "chain_id": 2}
        assert data["extra"] == {"amount": 5}

    def test_json_exception(self):
        """Test that exceptions are described."""
        data = json.loads(JSONFormatter().format(make_entry(exception=ValueError("bad"))))
        assert data["exception"] == {"type": "ValueError", "message": "bad"}

    def test_text(self):
        """Test the single-line text form."""
        line = TextFormatter().format(make_entry(extra={"amount": 5}))
        assert "[INFO] catbridge.test: hello" in line
        assert "component=engine" in line
        assert "chain_id=2" in line
        assert "amount=5" in line

    def test_text_without_context(self):
        """Test suppressing context."""
        line = TextFormatter(include_context=False).format(make_entry())
        assert "component" not in line


class TestHandlers:
    """Test handlers."""

    def test_console(self):
        """Test writing to a stream."""
        stream = io.StringIO()
        handler = ConsoleHandler(stream=stream)
        handler.set_formatter(TextFormatter())
        handler.handle(make_entry())
        assert "hello" in stream.getvalue()

    def test_level_filter(self):
        """Test that handlers drop entries below their level."""
        handler = MemoryHandler()
        handler.set_level(LogLevel.WARNING)
        handler.handle(make_entry())
        handler.handle(make_entry(level=LogLevel.ERROR, message="bad"))
        assert handler.messages() == ["bad"]

    def test_memory_bound(self):
        """Test that the memory handler keeps the newest entries."""
        handler = MemoryHandler(max_size=2)
        for i in range(3):
            handler.handle(make_entry(message=str(i)))
        assert handler.messages() == ["1", "2"]
        assert handler.get_logs(LogLevel.INFO)[0]["message"] == "1"
        handler.clear_logs()
        assert handler.messages() == []


class TestManager:
    """Test LogManager and loggers."""

    def test_manager_level(self):
        """Test that the manager drops entries below its level."""
        manager = LogManager(LogConfig(level=LogLevel.WARNING, handlers=[]))
        handler = MemoryHandler()
        manager.add_handler("memory", handler)
        logger = BridgeLogger("t", manager=manager)
        logger.info("quiet")
        logger.warning("loud")
        assert handler.messages() == ["loud"]

    def test_processor(self):
        """Test that processors see every entry first."""

        class Tagger(LogProcessor):
            def process(self, entry):
                entry.extra["tag"] = "x"
                return entry

        manager = LogManager(LogConfig(handlers=[]))
        handler = MemoryHandler()
        manager.add_handler("memory", handler)
        manager.add_processor(Tagger())
        BridgeLogger("t", manager=manager).info("hi")
        assert handler.get_logs()[0]["extra"] == {"tag": "x"}

    def test_remove_handler(self):
        """Test removing a handler."""
        manager = LogManager(LogConfig(handlers=[]))
        handler = MemoryHandler()
        manager.add_handler("memory", handler)
        manager.remove_handler("memory")
        BridgeLogger("t", manager=manager).info("hi")
        assert handler.messages() == []

    def test_global_context(self, memory):
        """Test that the manager context is merged into entries."""
        get_manager().set_context(LogContext(correlation_id="c1"))
        get_logger("catbridge.test").info("hi", context=LogContext(component="engine"))
        logs = memory.get_logs()
        assert logs[0]["context"]["correlation_id"] == "c1"
        assert logs[0]["context"]["component"] == "engine"

    def test_get_logger_is_cached(self):
        """Test that loggers are shared by name."""
        assert get_logger("catbridge.same") is get_logger("catbridge.same")

    def test_module_loggers_follow_setup(self, memory):
        """Test that loggers created at import time use the newest manager."""
        get_logger("catbridge.early").info("after setup")
        assert "after setup" in memory.messages()

    def test_exception(self, memory):
        """Test logging the exception being handled."""
        logger = get_logger("catbridge.test")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("failed")
        logs = memory.get_logs(LogLevel.ERROR)
        assert logs[0]["exception"] == "boom"


class TestBridgeLogging:
    """Test what the bridge logs."""

    def test_registry_logs_registration(self, memory):
        """Test that emitter registration is logged with its chain."""
        from catbridge.bridge import LocalChain, TransferModeKind

        chain = LocalChain.create()
        owner = Address.from_int(0x0E)
        chain.engine.initialize(owner, TransferModeKind.CANONICAL, decimals=8)
        chain.engine.register_emitter(owner, 2, Address.from_int(0xF0E))

        entries = [e for e in memory.get_logs() if e["message"] == "Registered foreign emitter"]
        assert entries[0]["context"]["chain_id"] == 2

    def test_engine_logs_rejection(self, memory):
        """Test that a rejected transfer is logged as a warning."""
        from catbridge.bridge import LocalChain, TransferModeKind
        from catbridge.errors import ValidationError

        chain = LocalChain.create()
        owner = Address.from_int(0x0E)
        chain.engine.initialize(owner, TransferModeKind.CANONICAL, decimals=8, initial_supply=10)
        with pytest.raises(ValidationError):
            chain.engine.bridge_out(owner, 5, 7, Address.from_int(0xF05))

        warnings = memory.get_logs(LogLevel.WARNING)
        assert warnings[0]["message"].startswith("Outbound transfer rejected")
        assert warnings[0]["extra"]["error"] == "ValidationError"
