"""Structured logging for retry loops and delay sequences.

Key-value logging with bound context:
- Human-readable console output for development
- JSON Lines for log aggregation
- Level and format from AGAIN_LOG_* settings unless given explicitly

Quick Start:
    >>> from again.observability import configure_logging, get_logger
    >>>
    >>> configure_logging(format="console", level="DEBUG")
    >>> log = get_logger("payments")
    >>> log.info("charging card", order_id=123)

The retry engine logs every attempt at debug level, so nothing shows up
until the level is lowered to DEBUG.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, TextIO, runtime_checkable

import orjson

JsonDict = dict[str, Any]


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class LogEntry:
    """A rendered-to-be log record."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """HH:MM:SS.mmm"""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. bind() returns a new logger with merged context.

    Level and renderer are looked up on every call unless pinned, so loggers
    created at import time follow later configure_logging() calls from any
    thread.

    Example:
        >>> log = BoundLogger(context={"service": "api"})
        >>> log.info("request received", path="/users")
        # => 10:30:45.120 [info] request received path="/users" service="api"
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: Any) -> BoundLogger:
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def is_enabled_for(self, level: int) -> bool:
        return level >= (self._level if self._level is not None else _default_level)

    def _log(self, level: int, event: str, **kw: Any) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(time.time(), _level_name(level), event, {**self.context, **kw})
        (self._renderer or _get_renderer()).render(entry)

    def debug(self, event: str, **kw: Any) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: Any) -> None: self._log(logging.INFO, event, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable output. Format: timestamp [level] event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        paint = _paint if self.colors else _plain
        parts = [paint("dim", entry.ts_human)] if self.show_timestamp else []
        parts += [paint(entry.level, f"[{entry.level}]"), paint("bold", entry.event)]
        parts += [f"{paint('key', k)}={_format_value(v)}" for k, v in sorted(entry.context.items())]
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        line = orjson.dumps(
            {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context},
            option=orjson.OPT_NON_STR_KEYS,
            default=repr,
        )
        print(line.decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────

# Process-wide so that retries running in worker threads see the configuration.
_lock = threading.Lock()
_renderer: LogRenderer | None = None
_default_level: int = logging.INFO


def configure_logging(
    format: str | None = None,  # noqa: A002
    level: str | None = None,
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure structured logging for the whole process.

    Format: "console" (human), "json" (machine), "none". Omitted format/level
    fall back to AGAIN_LOG_FORMAT / AGAIN_LOG_LEVEL; AGAIN_DEBUG=true makes the
    fallback level DEBUG.
    """
    global _renderer, _default_level
    if format is None or level is None:
        from again.config import get_settings
        settings = get_settings()
        format = format or settings.logging.format
        level = level or ("DEBUG" if settings.debug else settings.logging.level)
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    with _lock:
        _default_level = getattr(logging, level.upper(), logging.INFO)
        _renderer = renderer
    return renderer


def get_logger(name: str | None = None, **initial_context: Any) -> BoundLogger:
    """Structured logger; `name` is bound as 'logger'."""
    return BoundLogger(context={**initial_context, **({"logger": name} if name else {})})


def _get_renderer() -> LogRenderer:
    global _renderer
    if (renderer := _renderer) is None:
        with _lock:
            if _renderer is None:
                _renderer = ConsoleRenderer()
            renderer = _renderer
    return renderer


_ANSI = {"reset": "\033[0m", "dim": "\033[2m", "bold": "\033[1m", "key": "\033[36m",
         "debug": "\033[2m", "info": "\033[32m"}


def _paint(style: str, text: str) -> str:
    return f"{_ANSI[style]}{text}{_ANSI['reset']}" if style in _ANSI else text


def _plain(style: str, text: str) -> str:
    return text


def _level_name(level: int) -> str:
    return logging.getLevelName(level).lower()


def _format_value(v: object) -> str:
    match v:
        case str(): return f'"{v}"'
        case bool(): return str(v).lower()
        case int() | float(): return str(v)
        case _: return repr(v)
