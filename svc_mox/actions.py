"""Configured outcomes for matched expectations."""

from __future__ import annotations

import dataclasses as dc
import inspect
import typing as t


@dc.dataclass(slots=True, frozen=True)
class ReturnValue:
    """Return ``value`` to the caller."""

    value: t.Any

    def describe(self) -> str:
        """Return a short description for failure messages."""
        return f"returns {self.value!r}"


@dc.dataclass(slots=True, frozen=True)
class ThrowError:
    """Raise ``error`` through the intercepted call."""

    error: BaseException

    def describe(self) -> str:
        """Return a short description for failure messages."""
        return f"raises {self.error!r}"


@dc.dataclass(slots=True, frozen=True)
class Succeed:
    """Complete a ``None``-returning operation."""

    def describe(self) -> str:
        """Return a short description for failure messages."""
        return "succeeds"


@dc.dataclass(slots=True, frozen=True)
class Compute:
    """Delegate the outcome to ``func`` called with the call's arguments."""

    func: t.Callable[..., t.Any]

    def describe(self) -> str:
        """Return a short description for failure messages."""
        name = getattr(self.func, "__name__", None) or repr(self.func)
        return f"runs {name}"


Action: t.TypeAlias = ReturnValue | ThrowError | Succeed | Compute


def resolve(action: Action, args: t.Sequence[object]) -> t.Any:
    """Produce the outcome of *action* for a call with *args*.

    ``ThrowError`` raises the configured exception itself and exceptions
    raised by a ``Compute`` callback propagate unchanged, so the caller sees
    the same failure a real implementation would have produced. The stored
    exception is shared by every call an entry answers, so its traceback is
    reset before each raise.
    """
    if isinstance(action, ReturnValue):
        return action.value
    if isinstance(action, Succeed):
        return None
    if isinstance(action, ThrowError):
        raise action.error.with_traceback(None)
    if isinstance(action, Compute):
        return action.func(*args)
    msg = f"Unknown action: {action!r}"
    raise TypeError(msg)


async def resolve_async(action: Action, args: t.Sequence[object]) -> t.Any:
    """Resolve *action* for an ``async`` operation, awaiting computed results."""
    result = resolve(action, args)
    if inspect.isawaitable(result):
        return await result
    return result


__all__ = [
    "Action",
    "Compute",
    "ReturnValue",
    "Succeed",
    "ThrowError",
    "resolve",
    "resolve_async",
]
