"""Tests for the retry engine.

Validates:
- Immediate first attempt (sleep 0)
- Predicate stop vs. delay exhaustion
- Accumulator threading
- Lists, ranges and generators as delays
- Exceptions propagate untouched
"""

from __future__ import annotations

import threading

import pytest

from again import (
    Retrier,
    Sleeper,
    ThreadSleeper,
    constant_backoff,
    exponential_backoff,
    retry,
    retry_with_acc,
    take,
)
from again.engine import DEFAULT_SLEEPER
from again.errors import InvalidDelayError
from again.testing import RecordingSleeper, ScriptedOperation


def is_error(result: str) -> bool:
    return result != "ok"


def is_error_acc(result: str, _acc: object) -> bool:
    return result != "ok"


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


# ─────────────────────────────────────────────────────────────────────────────
# retry
# ─────────────────────────────────────────────────────────────────────────────


def test_does_not_retry_successful_call(sleeper: RecordingSleeper) -> None:
    assert retry(lambda: "ok", is_error, constant_backoff(), sleeper=sleeper) == "ok"
    assert sleeper.delays == [0]


def test_retries_until_successful(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error"] * 4 + ["ok"])

    assert retry(op, is_error, constant_backoff(100), sleeper=sleeper) == "ok"
    assert op.call_count == 5
    assert sleeper.delays == [0, 100, 100, 100, 100]


def test_returns_last_error_when_delays_exhausted(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error-1", "error-2", "error-3", "error-4", "error-5", "error-6", "error-7"])

    assert retry(op, is_error, take(constant_backoff(100), 5), sleeper=sleeper) == "error-6"
    assert op.call_count == 6
    assert sleeper.delays == [0, 100, 100, 100, 100, 100]


def test_always_true_predicate_runs_k_plus_one_attempts(sleeper: RecordingSleeper) -> None:
    delays = [5, 10, 15]
    op = ScriptedOperation(["a", "b", "c", "d"])

    assert retry(op, lambda _: True, delays, sleeper=sleeper) == "d"
    assert op.call_count == 4
    assert sleeper.delays == [0, 5, 10, 15]


def test_empty_delays_still_attempts_once(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error"])

    assert retry(op, is_error, [], sleeper=sleeper) == "error"
    assert op.call_count == 1
    assert sleeper.delays == [0]


def test_false_predicate_ignores_remaining_delays(sleeper: RecordingSleeper) -> None:
    pulled: list[int] = []

    def tracked():
        for d in constant_backoff(100):
            pulled.append(d)
            yield d

    assert retry(lambda: "ok", is_error, tracked(), sleeper=sleeper) == "ok"
    assert sleeper.delays == [0]
    assert pulled == []


def test_works_with_regular_list(sleeper: RecordingSleeper) -> None:
    delays = [100, 200, 300, 400, 500]
    assert retry(lambda: "error", is_error, delays, sleeper=sleeper) == "error"
    assert sleeper.delays == [0, *delays]


def test_works_with_range(sleeper: RecordingSleeper) -> None:
    delays = range(100, 501, 100)
    assert retry(lambda: "error", is_error, delays, sleeper=sleeper) == "error"
    assert sleeper.delays == [0, 100, 200, 300, 400, 500]


def test_works_with_generator(sleeper: RecordingSleeper) -> None:
    assert retry(lambda: "error", is_error, (d * 10 for d in range(1, 4)), sleeper=sleeper) == "error"
    assert sleeper.delays == [0, 10, 20, 30]


def test_is_deterministic_for_deterministic_inputs() -> None:
    runs = []
    for _ in range(2):
        sleeper = RecordingSleeper()
        op = ScriptedOperation(["error", "error", "ok"])
        result = retry(op, is_error, exponential_backoff().take(10), sleeper=sleeper)
        runs.append((result, op.call_count, sleeper.delays))
    assert runs[0] == runs[1] == ("ok", 3, [0, 10, 20])


def test_truthy_predicate_values_mean_retry(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation([["error"], []])
    assert retry(op, lambda r: r, [1, 2, 3], sleeper=sleeper) == []
    assert op.call_count == 2


# ─────────────────────────────────────────────────────────────────────────────
# retry_with_acc
# ─────────────────────────────────────────────────────────────────────────────


def test_acc_does_not_retry_successful_call(sleeper: RecordingSleeper) -> None:
    assert retry_with_acc(lambda acc: ("ok", acc), is_error_acc, None, constant_backoff(), sleeper=sleeper) == ("ok", None)
    assert sleeper.delays == [0]


def test_acc_retries_until_successful(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error"] * 4 + ["ok"])

    assert retry_with_acc(op, is_error_acc, None, constant_backoff(100), sleeper=sleeper) == ("ok", None)
    assert sleeper.delays == [0, 100, 100, 100, 100]


def test_acc_returns_last_error_when_exhausted(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error"])

    assert retry_with_acc(op, is_error_acc, None, constant_backoff(100).take(5), sleeper=sleeper) == ("error", None)
    assert op.call_count == 6


def test_acc_updated_once_on_successful_call(sleeper: RecordingSleeper) -> None:
    assert retry_with_acc(lambda acc: ("ok", acc + 1), is_error_acc, 0, constant_backoff(), sleeper=sleeper) == ("ok", 1)


def test_acc_updated_on_every_retry(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error"], acc_step=lambda acc: acc + 1)

    assert retry_with_acc(op, is_error_acc, 0, constant_backoff(100).take(5), sleeper=sleeper) == ("error", 6)
    assert op.calls == [0, 1, 2, 3, 4, 5]


def test_acc_counts_attempts_until_success(sleeper: RecordingSleeper) -> None:
    op = ScriptedOperation(["error"] * 5 + ["ok"], acc_step=lambda acc: acc + 1)

    assert retry_with_acc(op, is_error_acc, 0, constant_backoff(10), sleeper=sleeper) == ("ok", 6)


def test_predicate_sees_updated_acc(sleeper: RecordingSleeper) -> None:
    seen: list[tuple[str, int]] = []

    def predicate(result: str, acc: int) -> bool:
        seen.append((result, acc))
        return acc < 3

    result = retry_with_acc(lambda acc: (f"try-{acc}", acc + 1), predicate, 0, [1, 1, 1, 1], sleeper=sleeper)

    assert result == ("try-2", 3)
    assert seen == [("try-0", 1), ("try-1", 2), ("try-2", 3)]


def test_acc_collects_errors(sleeper: RecordingSleeper) -> None:
    results = iter(["timeout", "refused", "ok"])

    def op(errors: list[str]) -> tuple[str, list[str]]:
        r = next(results)
        return r, errors if r == "ok" else [*errors, r]

    assert retry_with_acc(op, is_error_acc, [], [10, 10, 10], sleeper=sleeper) == ("ok", ["timeout", "refused"])


def test_acc_works_with_list_and_range(sleeper: RecordingSleeper) -> None:
    assert retry_with_acc(lambda acc: ("error", acc), is_error_acc, None, [100, 200], sleeper=sleeper) == ("error", None)
    assert retry_with_acc(lambda acc: ("error", acc), is_error_acc, None, range(1, 3), sleeper=sleeper) == ("error", None)
    assert sleeper.delays == [0, 100, 200, 0, 1, 2]


# ─────────────────────────────────────────────────────────────────────────────
# Propagation
# ─────────────────────────────────────────────────────────────────────────────


class Boom(Exception):
    pass


def test_operation_exception_propagates_unchanged(sleeper: RecordingSleeper) -> None:
    error = Boom("connection reset")
    op = ScriptedOperation(["error", error, "ok"])

    with pytest.raises(Boom) as exc_info:
        retry(op, is_error, constant_backoff(5), sleeper=sleeper)

    assert exc_info.value is error
    assert op.call_count == 2
    assert sleeper.delays == [0, 5]


def test_predicate_exception_propagates(sleeper: RecordingSleeper) -> None:
    def predicate(_result: str, _acc: int) -> bool:
        raise KeyError("bad predicate")

    with pytest.raises(KeyError):
        retry_with_acc(lambda acc: ("ok", acc), predicate, 0, [1, 2], sleeper=sleeper)
    assert sleeper.delays == [0]


def test_sleeper_exception_propagates() -> None:
    with pytest.raises(InvalidDelayError):
        retry(lambda: "error", is_error, [-5], sleeper=ThreadSleeper())


# ─────────────────────────────────────────────────────────────────────────────
# Retrier / sleepers
# ─────────────────────────────────────────────────────────────────────────────


def test_retrier_uses_injected_sleeper(sleeper: RecordingSleeper) -> None:
    retrier = Retrier(sleeper)
    assert retrier.sleeper is sleeper
    assert retrier.retry(ScriptedOperation(["error", "ok"]), is_error, [7]) == "ok"
    assert retrier.retry_with_acc(lambda acc: ("error", acc), is_error_acc, "x", [8]) == ("error", "x")
    assert sleeper.delays == [0, 7, 0, 8]


def test_default_sleeper_is_thread_sleeper() -> None:
    assert isinstance(DEFAULT_SLEEPER, ThreadSleeper)
    assert isinstance(Retrier().sleeper, ThreadSleeper)


def test_sleepers_satisfy_protocol() -> None:
    assert isinstance(ThreadSleeper(), Sleeper)
    assert isinstance(RecordingSleeper(), Sleeper)


def test_thread_sleeper_rejects_negative_delay() -> None:
    with pytest.raises(InvalidDelayError) as exc_info:
        ThreadSleeper().sleep(-1)
    assert exc_info.value.delay == -1
    assert isinstance(exc_info.value, ValueError)


def test_thread_sleeper_zero_returns_immediately() -> None:
    ThreadSleeper().sleep(0)


def test_concurrent_calls_do_not_share_state(sleeper: RecordingSleeper) -> None:
    retrier = Retrier(sleeper)
    results: dict[int, tuple[str, int]] = {}

    def worker(n: int) -> None:
        results[n] = retrier.retry_with_acc(
            lambda acc: ("error", acc + 1), is_error_acc, n * 100, constant_backoff(1).take(n)
        )

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == {n: ("error", n * 100 + n + 1) for n in range(1, 6)}
    assert sleeper.call_count == sum(n + 1 for n in range(1, 6))
