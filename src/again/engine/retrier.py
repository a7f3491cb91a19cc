"""The retry loop.

Each iteration sleeps, invokes the operation, then asks the predicate
whether to go again. A synthetic delay of 0 is prepended to the caller's
delays so the first attempt runs immediately. The loop stops when:

- the predicate returns falsy: the last result is returned, or
- the delays run out: the last result is returned even if the predicate
  asked for another attempt.

Neither is an error. Exceptions raised by the operation, the predicate, the
delay sequence or the sleeper are not caught; they reach the caller as-is.
Callers that want to retry on exceptions catch them inside the operation and
return a value the predicate understands.

Example:
    >>> from again import retry, exponential_backoff
    >>> retry(
    ...     lambda: fetch_status(),
    ...     lambda result: result.status >= 500,
    ...     exponential_backoff().take(5),
    ... )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from itertools import chain
from typing import TypeVar

from again.observability import get_logger

from .sleeper import DEFAULT_SLEEPER, Sleeper

R = TypeVar("R")
A = TypeVar("A")

log = get_logger("again.retry")


class Retrier:
    """Retry engine bound to a sleeper.

    Holds no state between calls: every call owns its own traversal of the
    delays and its own accumulator. The same Retrier may be used from several
    threads at once if its sleeper allows it (ThreadSleeper does).

    Example:
        >>> retrier = Retrier(RecordingSleeper())
        >>> retrier.retry(lambda: "ok", lambda r: r != "ok", constant_backoff().take(3))
        'ok'
    """

    __slots__ = ("_sleeper",)

    def __init__(self, sleeper: Sleeper = DEFAULT_SLEEPER) -> None:
        self._sleeper = sleeper

    @property
    def sleeper(self) -> Sleeper:
        return self._sleeper

    def retry(
        self,
        operation: Callable[[], R],
        should_retry: Callable[[R], bool],
        delays: Iterable[int],
    ) -> R:
        """Call `operation` until `should_retry` rejects its result or `delays` run out.

        Args:
            operation: Zero-argument callable to invoke
            should_retry: Receives each result; truthy means try again
            delays: Milliseconds to wait before each retry (not before the first attempt)

        Returns:
            The result of the last invocation
        """
        attempt = 0
        for delay in chain((0,), delays):
            attempt += 1
            self._sleeper.sleep(delay)
            log.debug("attempt", attempt=attempt, delay_ms=delay)
            result = operation()
            if not should_retry(result):
                log.debug("retry halted", attempts=attempt)
                return result
        log.debug("delays exhausted", attempts=attempt)
        return result

    def retry_with_acc(
        self,
        operation: Callable[[A], tuple[R, A]],
        should_retry: Callable[[R, A], bool],
        acc: A,
        delays: Iterable[int],
    ) -> tuple[R, A]:
        """Like retry(), threading an accumulator through the attempts.

        The operation receives the current accumulator and returns
        `(result, new_acc)`; new_acc is what the predicate sees and what the
        next attempt receives. The engine never touches the accumulator itself.

        Args:
            operation: Callable taking the accumulator, returning (result, accumulator)
            should_retry: Receives (result, accumulator); truthy means try again
            acc: Initial accumulator
            delays: Milliseconds to wait before each retry

        Returns:
            (result, accumulator) from the last invocation

        Example:
            >>> retrier.retry_with_acc(
            ...     lambda errors: (r := call(), errors + [r] if r.failed else errors),
            ...     lambda r, _errors: r.failed,
            ...     [],
            ...     constant_backoff().take(5),
            ... )
        """
        attempt = 0
        for delay in chain((0,), delays):
            attempt += 1
            self._sleeper.sleep(delay)
            log.debug("attempt", attempt=attempt, delay_ms=delay)
            result, acc = operation(acc)
            if not should_retry(result, acc):
                log.debug("retry halted", attempts=attempt)
                return result, acc
        log.debug("delays exhausted", attempts=attempt)
        return result, acc

    def __repr__(self) -> str:
        return f"Retrier({self._sleeper!r})"


def retry(
    operation: Callable[[], R],
    should_retry: Callable[[R], bool],
    delays: Iterable[int],
    *,
    sleeper: Sleeper | None = None,
) -> R:
    """Retry `operation` with a one-off Retrier. `sleeper` defaults to real blocking sleep.

    Example:
        >>> retry(
        ...     network_call,
        ...     lambda result: result[0] == "error",
        ...     exponential_backoff().take(5),
        ... )
    """
    return Retrier(DEFAULT_SLEEPER if sleeper is None else sleeper).retry(operation, should_retry, delays)


def retry_with_acc(
    operation: Callable[[A], tuple[R, A]],
    should_retry: Callable[[R, A], bool],
    acc: A,
    delays: Iterable[int],
    *,
    sleeper: Sleeper | None = None,
) -> tuple[R, A]:
    """Retry `operation` with an accumulator using a one-off Retrier.

    Example:
        >>> retry_with_acc(
        ...     lambda attempts: (network_call(), attempts + 1),
        ...     lambda result, _attempts: result[0] == "error",
        ...     0,
        ...     constant_backoff().take(5),
        ... )
    """
    return Retrier(DEFAULT_SLEEPER if sleeper is None else sleeper).retry_with_acc(operation, should_retry, acc, delays)
