"""Delay sequence transforms.

Each transform wraps any iterable of delays (finite or infinite, list, range
or generator) and stays lazy: one source element is pulled per element
produced.

- jitter: uniform random delay in [1, d]
- randomize: shift each delay by at most `proportion` of itself
- cap: clamp delays to a maximum
- expiry: bound the wall-clock lifetime of consuming the sequence
- take: keep only the first `count` delays

Example:
    >>> seq = take(cap(randomize(exponential_backoff(50), 0.2), 1_000), 5)
    >>> # same as
    >>> seq = exponential_backoff(50).randomize(0.2).cap(1_000).take(5)
"""

from __future__ import annotations

import math
import random
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from itertools import islice

from pydantic import NonNegativeFloat, NonNegativeInt, PositiveInt, TypeAdapter

from again.errors import check_parameter
from again.observability import get_logger

from .base import DelaySequence, round_half_away

log = get_logger("again.delays")

_NON_NEGATIVE_INT: TypeAdapter[int] = TypeAdapter(NonNegativeInt)
_POSITIVE_INT: TypeAdapter[int] = TypeAdapter(PositiveInt)
_NON_NEGATIVE_FLOAT: TypeAdapter[float] = TypeAdapter(NonNegativeFloat)


def monotonic_ms() -> int:
    """Milliseconds from a monotonic clock."""
    return time.monotonic_ns() // 1_000_000


def _uniform(rng: random.Random | None, n: int) -> int:
    """Uniform integer in [1, n]; 0 when n <= 0."""
    return 0 if n <= 0 else (rng or random).randint(1, n)


@dataclass(frozen=True, slots=True)
class Jitter(DelaySequence):
    """Each delay d becomes a uniform random integer in [1, floor(d)] (0 if floor(d) <= 0)."""

    delays: Iterable[int]
    rng: random.Random | None = field(default=None, repr=False, compare=False)

    def __iter__(self) -> Iterator[int]:
        for d in self.delays:
            yield _uniform(self.rng, math.floor(d))


@dataclass(frozen=True, slots=True)
class Randomize(DelaySequence):
    """Each delay d is shifted by a random amount in [-max_delta + 1, max_delta].

    max_delta = round(d * proportion). Results never go below 0.
    """

    delays: Iterable[int]
    proportion: float = 0.1
    rng: random.Random | None = field(default=None, repr=False, compare=False)

    def __iter__(self) -> Iterator[int]:
        for d in self.delays:
            max_delta = round_half_away(d * self.proportion)
            shift = _uniform(self.rng, 2 * max_delta) - max_delta if max_delta > 0 else 0
            yield max(0, d + shift)


@dataclass(frozen=True, slots=True)
class Cap(DelaySequence):
    """Delays never exceed `max`."""

    delays: Iterable[int]
    max: int

    def __iter__(self) -> Iterator[int]:
        for d in self.delays:
            yield min(d, self.max)


@dataclass(frozen=True, slots=True)
class Expiry(DelaySequence):
    """Limits the total life span of consuming `delays` to about `time_budget` ms.

    The budget window opens on the first pull of each iteration, not at
    construction. Every step reads the clock and computes

        remaining = max(end - now, min_delay)

    If the next source delay is >= remaining, or remaining has dropped to the
    min_delay floor, remaining is emitted as the final delay (one last try)
    and the sequence ends. Otherwise the source delay passes through. An
    exhausted source ends the sequence with no padding.

    Time spent by the consumer between pulls counts against the budget, so
    with the retry engine the operation's own run time is accounted for. The
    operation itself is never interrupted; a slow attempt can overrun.

    Each iteration owns its own timer. Do not share one iteration between
    consumers expecting independent budgets.
    """

    delays: Iterable[int]
    time_budget: int
    min_delay: int = 100
    clock: Callable[[], int] = field(default=monotonic_ms, repr=False, compare=False)

    def __iter__(self) -> Iterator[int]:
        end = self.clock() + self.time_budget
        for preferred in self.delays:
            remaining = max(end - self.clock(), self.min_delay)
            if preferred >= remaining or remaining == self.min_delay:
                log.debug("expiry budget spent", final_delay_ms=remaining, time_budget_ms=self.time_budget)
                yield remaining
                return
            yield preferred


@dataclass(frozen=True, slots=True)
class Take(DelaySequence):
    """The first `count` delays of `delays`."""

    delays: Iterable[int]
    count: int

    def __iter__(self) -> Iterator[int]:
        return islice(self.delays, self.count)


def jitter(delays: Iterable[int], *, rng: random.Random | None = None) -> Jitter:
    """Randomly adjust each delay to a number between 1 and the original delay.

    Example:
        >>> list(jitter(linear_backoff(10, 10)).take(5))  # doctest: +SKIP
        [8, 14, 28, 27, 15]
    """
    return Jitter(delays, rng)


def randomize(delays: Iterable[int], proportion: float = 0.1, *, rng: random.Random | None = None) -> Randomize:
    """Randomly adjust each delay by no more than `proportion` of itself.

    Example:
        >>> list(randomize(linear_backoff(100, 50), 0.5).take(5))  # doctest: +SKIP
        [130, 135, 106, 317, 191]
    """
    return Randomize(delays, check_parameter(_NON_NEGATIVE_FLOAT, "proportion", proportion), rng)


def cap(delays: Iterable[int], max: int) -> Cap:  # noqa: A002
    """Clamp delays so they never exceed `max`.

    Example:
        >>> list(cap(linear_backoff(100, 100), 250).take(5))
        [100, 200, 250, 250, 250]
    """
    return Cap(delays, check_parameter(_NON_NEGATIVE_INT, "max", max))


def expiry(
    delays: Iterable[int],
    time_budget: int,
    min_delay: int = 100,
    *,
    clock: Callable[[], int] | None = None,
) -> Expiry:
    """Bound the wall-clock lifetime of consuming `delays` to `time_budget` ms.

    Args:
        delays: Source delays
        time_budget: Budget in milliseconds, counted from the first pull
        min_delay: Floor for the final delay (default: 100)
        clock: Millisecond clock; defaults to a monotonic clock
    """
    return Expiry(
        delays,
        check_parameter(_POSITIVE_INT, "time_budget", time_budget),
        check_parameter(_NON_NEGATIVE_INT, "min_delay", min_delay),
        clock or monotonic_ms,
    )


def take(delays: Iterable[int], count: int) -> Take:
    """Keep only the first `count` delays.

    Example:
        >>> list(take(constant_backoff(), 3))
        [100, 100, 100]
    """
    return Take(delays, check_parameter(_NON_NEGATIVE_INT, "count", count))
