"""Test doubles for code built on again.

- RecordingSleeper: records requested delays instead of sleeping
- ScriptedOperation: returns scripted results in order, recording each call

Example:
    >>> sleeper = RecordingSleeper()
    >>> op = ScriptedOperation(["error", "error", "ok"])
    >>> retry(op, lambda r: r == "error", constant_backoff(100), sleeper=sleeper)
    'ok'
    >>> sleeper.delays
    [0, 100, 100]
    >>> op.call_count
    3
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_NO_ARG = object()


@dataclass
class RecordingSleeper:
    """Sleeper that records every delay and returns immediately."""

    delays: list[int] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def sleep(self, delay: int) -> None:
        with self._lock:
            self.delays.append(delay)

    @property
    def call_count(self) -> int:
        return len(self.delays)

    @property
    def total(self) -> int:
        """Sum of all recorded delays in milliseconds."""
        return sum(self.delays)

    def reset(self) -> None:
        with self._lock:
            self.delays.clear()


@dataclass
class ScriptedOperation(Generic[T]):
    """Operation returning `results` in order, then repeating the last one.

    Callable with no argument (for retry) or with an accumulator (for
    retry_with_acc). When `acc_step` is set, calls with an accumulator return
    `(result, acc_step(acc))`.

    Items that are exception instances are raised instead of returned.
    """

    results: Sequence[T | BaseException]
    acc_step: Any = None
    calls: list[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.results:
            raise ValueError("ScriptedOperation needs at least one result")

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _next(self) -> T:
        item = self.results[min(len(self.calls) - 1, len(self.results) - 1)]
        if isinstance(item, BaseException):
            raise item
        return item

    def __call__(self, acc: Any = _NO_ARG) -> Any:
        if acc is _NO_ARG:
            self.calls.append(None)
            return self._next()
        self.calls.append(acc)
        result = self._next()
        return result, (self.acc_step(acc) if self.acc_step is not None else acc)
