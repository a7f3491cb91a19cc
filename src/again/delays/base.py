"""Base class and helpers shared by delay generators and transforms.

A delay sequence is any iterable of non-negative integers (milliseconds).
DelaySequence adds fluent combinators on top of plain iteration so sequences
compose by wrapping one inside another:

    >>> exponential_backoff(50).randomize(0.2).cap(1_000).take(5)

Iterating a DelaySequence builds a fresh generator each time, so a sequence
made only of restartable parts (generators, lists, ranges) restarts from its
first element. Wrapping a one-shot iterator yields a one-shot sequence.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from fractions import Fraction
from random import Random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transforms import Cap, Expiry, Jitter, Randomize, Take


def round_half_away(value: float | Fraction) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).

    Works on the exact value of `value`, so floats just below a tie round down
    and Fractions of any size never overflow.
    """
    if isinstance(value, int):
        return value
    exact = Fraction(value)
    rounded = math.floor(abs(exact) + Fraction(1, 2))
    return rounded if exact >= 0 else -rounded


class DelaySequence(ABC):
    """Restartable, possibly infinite iterable of delays in milliseconds."""

    __slots__ = ()

    @abstractmethod
    def __iter__(self) -> Iterator[int]: ...

    def jitter(self, *, rng: Random | None = None) -> Jitter:
        from .transforms import jitter
        return jitter(self, rng=rng)

    def randomize(self, proportion: float = 0.1, *, rng: Random | None = None) -> Randomize:
        from .transforms import randomize
        return randomize(self, proportion, rng=rng)

    def cap(self, max: int) -> Cap:  # noqa: A002 - mirrors the transform's parameter name
        from .transforms import cap
        return cap(self, max)

    def expiry(self, time_budget: int, min_delay: int = 100, *, clock: Callable[[], int] | None = None) -> Expiry:
        from .transforms import expiry
        return expiry(self, time_budget, min_delay, clock=clock)

    def take(self, count: int) -> Take:
        from .transforms import take
        return take(self, count)


@dataclass(frozen=True, slots=True)
class Delays(DelaySequence):
    """Adapter lifting any iterable of delays (list, range, generator) into a DelaySequence."""

    source: Iterable[int]

    def __iter__(self) -> Iterator[int]:
        return iter(self.source)


def as_delays(source: Iterable[int]) -> DelaySequence:
    """Wrap `source` so it gains the fluent combinators. DelaySequences pass through unchanged."""
    return source if isinstance(source, DelaySequence) else Delays(source)
