"""Errors raised by again itself.

The retry engine has no error taxonomy of its own: exhausting the delays and
a predicate asking to stop are both normal returns, and anything the retried
operation raises reaches the caller untouched. The types below only cover
misuse of the library (bad generator parameters, negative sleeps).
"""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError


class AgainError(Exception):
    """Base for errors raised by again (never for the retried operation's faults)."""


class InvalidDelayParameterError(AgainError, ValueError):
    """A delay generator or transform was constructed with an invalid parameter."""

    __slots__ = ("parameter", "value", "message")

    def __init__(self, parameter: str, value: object, message: str) -> None:
        self.parameter, self.value, self.message = parameter, value, message
        super().__init__(f"{parameter}={value!r}: {message}")


class InvalidDelayError(AgainError, ValueError):
    """A sleeper was asked to wait for a negative duration."""

    __slots__ = ("delay",)

    def __init__(self, delay: object) -> None:
        self.delay = delay
        super().__init__(f"delay must be a non-negative number of milliseconds, got {delay!r}")


def check_parameter(adapter: TypeAdapter, parameter: str, value: object) -> object:
    """Validate `value` with `adapter`, re-raising failures as InvalidDelayParameterError."""
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        raise InvalidDelayParameterError(parameter, value, e.errors()[0]["msg"]) from e
