"""Delay sequences: lazy, composable streams of wait times in milliseconds.

Generators produce infinite sequences; transforms wrap any iterable of delays
(including lists and ranges) and can be chained:

    >>> from again.delays import exponential_backoff, linear_backoff
    >>>
    >>> # Exponential from 50ms, +-20% noise, at most 1s, 5 retries
    >>> exponential_backoff(50).randomize(0.2).cap(1_000).take(5)
    >>>
    >>> # Linear from 100ms with jitter, give up after 30s
    >>> linear_backoff(100, 50).jitter().expiry(30_000)
"""

from .backoff import (
    ConstantBackoff,
    ExponentialBackoff,
    LinearBackoff,
    constant_backoff,
    exponential_backoff,
    linear_backoff,
)
from .base import DelaySequence, Delays, as_delays, round_half_away
from .transforms import (
    Cap,
    Expiry,
    Jitter,
    Randomize,
    Take,
    cap,
    expiry,
    jitter,
    monotonic_ms,
    randomize,
    take,
)

__all__ = [
    # Base
    "DelaySequence",
    "Delays",
    "as_delays",
    "round_half_away",
    # Generators
    "ExponentialBackoff",
    "LinearBackoff",
    "ConstantBackoff",
    "exponential_backoff",
    "linear_backoff",
    "constant_backoff",
    # Transforms
    "Jitter",
    "Randomize",
    "Cap",
    "Expiry",
    "Take",
    "jitter",
    "randomize",
    "cap",
    "expiry",
    "take",
    "monotonic_ms",
]
