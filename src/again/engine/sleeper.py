"""Sleepers: the one place the retry engine touches real time.

A Sleeper is handed to the engine explicitly; there is no global default to
patch. Tests pass a recording sleeper (see again.testing) instead.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from again.errors import InvalidDelayError


@runtime_checkable
class Sleeper(Protocol):
    """Protocol for waiting between attempts."""

    def sleep(self, delay: int) -> None:
        """Block for `delay` milliseconds."""
        ...


@dataclass(frozen=True, slots=True)
class ThreadSleeper:
    """Blocks the calling thread with time.sleep. Stateless, safe to share across threads."""

    def sleep(self, delay: int) -> None:
        if delay < 0:
            raise InvalidDelayError(delay)
        if delay:
            time.sleep(delay / 1000)


DEFAULT_SLEEPER: Sleeper = ThreadSleeper()
