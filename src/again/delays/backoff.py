"""Leaf delay generators.

Infinite, deterministic sequences of delays in milliseconds:
- ExponentialBackoff: each delay is the previous one times `factor`
- LinearBackoff: `initial` plus `factor` per step
- ConstantBackoff: the same delay forever

Fractional results are rounded to the nearest integer, ties away from zero.
Truncate with `take()` or bound with `expiry()` before handing them to the
retry engine, otherwise a predicate that never stops will retry forever.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from fractions import Fraction

from pydantic import NonNegativeFloat, NonNegativeInt, PositiveFloat, TypeAdapter

from again.errors import check_parameter

from .base import DelaySequence, round_half_away

_NON_NEGATIVE_INT: TypeAdapter[int] = TypeAdapter(NonNegativeInt)
_POSITIVE_FLOAT: TypeAdapter[float] = TypeAdapter(PositiveFloat)
_NON_NEGATIVE_FLOAT: TypeAdapter[float] = TypeAdapter(NonNegativeFloat)


@dataclass(frozen=True, slots=True)
class ExponentialBackoff(DelaySequence):
    """Exponentially growing delays.

    d[0] = initial, d[n+1] = round(d[n] * factor)

    Rounding happens at every step, so `factor=1.5` compounds on the rounded
    value: 31, 47, 71, 107, 161... Growth is exact integer arithmetic, so the
    sequence never overflows however far it is iterated.

    Attributes:
        initial: First delay in milliseconds (default: 10)
        factor: Growth factor, may be fractional (default: 2)
    """

    initial: int = 10
    factor: float = 2

    def __iter__(self) -> Iterator[int]:
        factor = Fraction(self.factor)
        delay = self.initial
        while True:
            yield delay
            delay = round_half_away(delay * factor)


@dataclass(frozen=True, slots=True)
class LinearBackoff(DelaySequence):
    """Linearly growing delays.

    d[n] = initial + round(n * factor)

    Attributes:
        initial: First delay in milliseconds
        factor: Increment per step; 0 gives a constant sequence
    """

    initial: int
    factor: float

    def __iter__(self) -> Iterator[int]:
        factor = Fraction(self.factor)
        step = 0
        while True:
            yield self.initial + round_half_away(step * factor)
            step += 1


@dataclass(frozen=True, slots=True)
class ConstantBackoff(DelaySequence):
    """The same delay, forever."""

    delay: int = 100

    def __iter__(self) -> Iterator[int]:
        while True:
            yield self.delay


def exponential_backoff(initial: int = 10, factor: float = 2) -> ExponentialBackoff:
    """Delays that grow exponentially.

    Example:
        >>> list(exponential_backoff().take(5))
        [10, 20, 40, 80, 160]
        >>> list(exponential_backoff(100, 1.5).take(5))
        [100, 150, 225, 338, 507]
    """
    return ExponentialBackoff(
        check_parameter(_NON_NEGATIVE_INT, "initial", initial),
        _keep_int(factor, check_parameter(_POSITIVE_FLOAT, "factor", factor)),
    )


def linear_backoff(initial: int, factor: float) -> LinearBackoff:
    """Delays that grow linearly.

    Example:
        >>> list(linear_backoff(100, 50).take(5))
        [100, 150, 200, 250, 300]
    """
    return LinearBackoff(
        check_parameter(_NON_NEGATIVE_INT, "initial", initial),
        _keep_int(factor, check_parameter(_NON_NEGATIVE_FLOAT, "factor", factor)),
    )


def constant_backoff(delay: int = 100) -> ConstantBackoff:
    """A constant stream of delays.

    Example:
        >>> list(constant_backoff(250).take(3))
        [250, 250, 250]
    """
    return ConstantBackoff(check_parameter(_NON_NEGATIVE_INT, "delay", delay))


def _keep_int(raw: object, validated: float) -> float:
    # Integral factors stay ints so reprs and equality read as written.
    return raw if isinstance(raw, int) and not isinstance(raw, bool) else validated
