"""Log formatters for CatBridge."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .core import LogEntry, LogFormatter


class JSONFormatter(LogFormatter):
    """One JSON object per entry."""

    def __init__(
        self,
        include_context: bool = True,
        include_extra: bool = True,
        include_thread: bool = False,
        indent: Optional[int] = None,
    ):
        self.include_context = include_context
        self.include_extra = include_extra
        self.include_thread = include_thread
        self.indent = indent

    def format(self, entry: LogEntry) -> str:
        data: Dict[str, Any] = {
            "timestamp": _iso(entry.timestamp),
            "level": entry.level.value,
            "logger": entry.logger_name,
            "message": entry.message,
        }

        if self.include_context:
            context = {k: v for k, v in entry.context.to_dict().items() if v}
            if context:
                data["context"] = context

        if entry.exception is not None:
            data["exception"] = {
                "type": type(entry.exception).__name__,
                "message": str(entry.exception),
            }

        if self.include_extra and entry.extra:
            data["extra"] = entry.extra

        if self.include_thread:
            data["thread_id"] = entry.thread_id
            data["process_id"] = entry.process_id

        return json.dumps(data, indent=self.indent, default=str, sort_keys=True)


class TextFormatter(LogFormatter):
    """Single-line human readable formatter."""

    def __init__(self, format_string: Optional[str] = None, include_context: bool = True):
        self.format_string = format_string or "%(timestamp)s [%(level)s] %(logger)s: %(message)s"
        self.include_context = include_context

    def format(self, entry: LogEntry) -> str:
        line = self.format_string % {
            "timestamp": _iso(entry.timestamp),
            "level": entry.level.value.upper(),
            "logger": entry.logger_name,
            "message": entry.message,
        }

        if self.include_context:
            pairs = [
                f"{key}={value}"
                for key, value in entry.context.to_dict().items()
                if value not in (None, {}, "") and key != "metadata"
            ]
            pairs.extend(f"{key}={value}" for key, value in entry.extra.items())
            if pairs:
                line = f"{line} ({', '.join(pairs)})"

        if entry.exception is not None:
            line = f"{line} [{type(entry.exception).__name__}: {entry.exception}]"

        return line


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
