"""Log handlers for CatBridge."""

import sys
from typing import Any, Dict, List, Optional

from .core import LogEntry, LogHandler, LogLevel


class ConsoleHandler(LogHandler):
    """Writes formatted entries to a text stream."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, entry: LogEntry) -> None:
        with self._lock:
            if self.formatter:
                formatted = self.formatter.format(entry)
            else:
                formatted = (
                    f"{entry.timestamp} [{entry.level.value.upper()}] "
                    f"{entry.logger_name}: {entry.message}"
                )

            self.stream.write(formatted + "\n")
            self.stream.flush()

    def close(self) -> None:
        # the stream is borrowed, usually stderr
        with self._lock:
            self.stream.flush()


class MemoryHandler(LogHandler):
    """Keeps the most recent entries in memory."""

    def __init__(self, max_size: int = 1000):
        super().__init__()
        self.max_size = max_size
        self.buffer: List[LogEntry] = []

    def emit(self, entry: LogEntry) -> None:
        with self._lock:
            self.buffer.append(entry)
            if len(self.buffer) > self.max_size:
                self.buffer.pop(0)

    def get_logs(self, level: Optional[LogLevel] = None) -> List[Dict[str, Any]]:
        """Return buffered entries as dictionaries, optionally for one level."""
        with self._lock:
            return [
                entry.to_dict()
                for entry in self.buffer
                if level is None or entry.level == level
            ]

    def messages(self) -> List[str]:
        with self._lock:
            return [entry.message for entry in self.buffer]

    def clear_logs(self) -> None:
        with self._lock:
            self.buffer.clear()
