"""Retry engine.

Repeatedly invokes an operation, sleeping between attempts for durations
pulled from a delay sequence, until a caller-supplied predicate says stop or
the delays run out.

Example:
    >>> from again.delays import exponential_backoff
    >>> from again.engine import retry
    >>>
    >>> retry(
    ...     lambda: make_network_call(),
    ...     lambda result: result[0] == "error",
    ...     exponential_backoff().take(5),
    ... )
"""

from .retrier import Retrier, retry, retry_with_acc
from .sleeper import DEFAULT_SLEEPER, Sleeper, ThreadSleeper

__all__ = [
    # Engine
    "Retrier",
    "retry",
    "retry_with_acc",
    # Sleepers
    "Sleeper",
    "ThreadSleeper",
    "DEFAULT_SLEEPER",
]
