"""Again - retries with composable delay sequences.

Retries an operation until a predicate says stop or the delays run out.
What counts as retryable is entirely up to the predicate: again never
inspects results and never catches exceptions.

Quick Start:
    >>> from again import retry, exponential_backoff
    >>>
    >>> retry(
    ...     lambda: make_network_call(),
    ...     lambda result: result[0] == "error",
    ...     exponential_backoff().take(5),
    ... )

Only retry specific errors, 100ms apart, for at most 1 second:
    >>> retry(
    ...     make_network_call,
    ...     lambda result: result in {("error", "timeout"), ("error", "busy")},
    ...     constant_backoff(100).expiry(1_000),
    ... )

Stateful retries thread an accumulator through the attempts:
    >>> retry_with_acc(
    ...     lambda attempts: (make_network_call(), attempts + 1),
    ...     lambda result, _attempts: result[0] == "error",
    ...     0,
    ...     constant_backoff().take(5),
    ... )

Any iterable of milliseconds works as delays, including lists and ranges:
    >>> retry(make_network_call, is_error, [100, 200, 300])
    >>> retry(make_network_call, is_error, range(100, 501, 100))
"""

from __future__ import annotations

__version__ = "0.1.0"

from .delays import (
    DelaySequence,
    as_delays,
    cap,
    constant_backoff,
    exponential_backoff,
    expiry,
    jitter,
    linear_backoff,
    randomize,
    take,
)
from .errors import AgainError, InvalidDelayError, InvalidDelayParameterError
from .engine import DEFAULT_SLEEPER, Retrier, Sleeper, ThreadSleeper, retry, retry_with_acc

__all__ = [
    "__version__",
    # Engine
    "retry",
    "retry_with_acc",
    "Retrier",
    "Sleeper",
    "ThreadSleeper",
    "DEFAULT_SLEEPER",
    # Delays
    "DelaySequence",
    "as_delays",
    "exponential_backoff",
    "linear_backoff",
    "constant_backoff",
    "jitter",
    "randomize",
    "cap",
    "expiry",
    "take",
    # Errors
    "AgainError",
    "InvalidDelayError",
    "InvalidDelayParameterError",
]
