"""Count verification for doubles and shared failure-message helpers."""

from __future__ import annotations

import dataclasses as dc
import typing as t
from textwrap import indent

from ._text import times_phrase
from .comparators import Comparator, as_matcher
from .double import domain_of, interface_of
from .errors import LifecycleError, VerificationError
from .interface import OperationKey, OperationKind, OperationSpec

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .journal import CallRecord


# ----------------------------------------------------------------------
# Verification modes
# ----------------------------------------------------------------------
def _require_non_negative(mode: str, count: int) -> None:
    if count < 0:
        msg = f"{mode} count must be non-negative, got {count}"
        raise ValueError(msg)


@dc.dataclass(slots=True, frozen=True)
class Times:
    """Exactly ``count`` matching calls."""

    count: int

    def __post_init__(self) -> None:
        """Reject negative counts."""
        _require_non_negative(type(self).__name__, self.count)

    def check(self, observed: int) -> bool:
        """Return ``True`` when *observed* satisfies the mode."""
        return observed == self.count

    def describe(self) -> str:
        """Return the expectation in words."""
        return times_phrase(self.count)


@dc.dataclass(slots=True, frozen=True)
class AtLeast:
    """``count`` or more matching calls."""

    count: int

    def __post_init__(self) -> None:
        """Reject negative counts."""
        _require_non_negative(type(self).__name__, self.count)

    def check(self, observed: int) -> bool:
        """Return ``True`` when *observed* satisfies the mode."""
        return observed >= self.count

    def describe(self) -> str:
        """Return the expectation in words."""
        return f"at least {times_phrase(self.count)}"


@dc.dataclass(slots=True, frozen=True)
class AtMost:
    """``count`` or fewer matching calls."""

    count: int

    def __post_init__(self) -> None:
        """Reject negative counts."""
        _require_non_negative(type(self).__name__, self.count)

    def check(self, observed: int) -> bool:
        """Return ``True`` when *observed* satisfies the mode."""
        return observed <= self.count

    def describe(self) -> str:
        """Return the expectation in words."""
        return f"at most {times_phrase(self.count)}"


@dc.dataclass(slots=True, frozen=True)
class Between:
    """Between ``low`` and ``high`` matching calls, inclusive."""

    low: int
    high: int

    def __post_init__(self) -> None:
        """Reject negative or inverted bounds."""
        _require_non_negative("Between", self.low)
        if self.high < self.low:
            msg = f"Between upper bound {self.high} is below lower bound {self.low}"
            raise ValueError(msg)

    def check(self, observed: int) -> bool:
        """Return ``True`` when *observed* satisfies the mode."""
        return self.low <= observed <= self.high

    def describe(self) -> str:
        """Return the expectation in words."""
        return f"{self.low}...{self.high} times"


@dc.dataclass(slots=True, frozen=True)
class Never:
    """No matching calls; equivalent to ``Times(0)``."""

    def check(self, observed: int) -> bool:
        """Return ``True`` when *observed* satisfies the mode."""
        return observed == 0

    def describe(self) -> str:
        """Return the expectation in words."""
        return "never"


@dc.dataclass(slots=True, frozen=True)
class AtLeastOnce:
    """One or more matching calls; equivalent to ``AtLeast(1)``."""

    def check(self, observed: int) -> bool:
        """Return ``True`` when *observed* satisfies the mode."""
        return observed >= 1

    def describe(self) -> str:
        """Return the expectation in words."""
        return "at least once"


VerificationMode: t.TypeAlias = Times | AtLeast | AtMost | Between | Never | AtLeastOnce


# ----------------------------------------------------------------------
# Message formatting
# ----------------------------------------------------------------------
def _format_args(args: t.Sequence[object]) -> str:
    return ", ".join(repr(arg) for arg in args)


def format_call(key: OperationKey, args: t.Sequence[object]) -> str:
    """Return ``name(arg, ...)`` for a call or matcher list."""
    return f"{key}({_format_args(args)})"


def describe_record(record: CallRecord) -> str:
    """Return a readable, numbered representation of *record*."""
    return f"#{record.sequence} {format_call(record.key, record.args)}"


def describe_records(records: t.Sequence[CallRecord]) -> str:
    """Return one line per record, or ``(none)``."""
    if not records:
        return "(none)"
    return "\n".join(describe_record(rec) for rec in records)


def format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    """Return *title* followed by labelled, indented sections."""
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


# ----------------------------------------------------------------------
# Operation routing shared with InOrder
# ----------------------------------------------------------------------
CheckFn: t.TypeAlias = t.Callable[[OperationKey, tuple[Comparator, ...]], None]


class _MethodCheck:
    """Callable returned for ``verify(double).<method>``."""

    def __init__(self, spec: OperationSpec, check: CheckFn) -> None:
        self._spec = spec
        self._check = check

    def __call__(self, *args: object, **kwargs: object) -> None:
        """Verify calls whose arguments satisfy the given matchers."""
        matchers = self._spec.bind_matchers(args, kwargs)
        self._check(self._spec.key, tuple(as_matcher(m) for m in matchers))


class _PropertyCheck:
    """Object returned for ``verify(double).<property>``."""

    def __init__(self, name: str, check: CheckFn, *, settable: bool) -> None:
        self._name = name
        self._check = check
        self._settable = settable

    def get(self) -> None:
        """Verify reads of the property."""
        self._check(OperationKey(self._name, OperationKind.GETTER), ())

    def set(self, value: object) -> None:
        """Verify assignments of a value matching *value*."""
        if not self._settable:
            msg = f"property {self._name!r} is read-only"
            raise LifecycleError(msg)
        key = OperationKey(self._name, OperationKind.SETTER)
        self._check(key, (as_matcher(value),))


class OperationRouter:
    """Expose a double's operations as verification entry points."""

    def __init__(self, double: object, check: CheckFn) -> None:
        self._interface = interface_of(double)
        self._check = check

    def __getattr__(self, name: str) -> t.Any:
        """Return the checker for operation *name*."""
        if name.startswith("_"):
            raise AttributeError(name)
        interface = self._interface
        if interface.is_method(name):
            return _MethodCheck(interface.methods[name], self._check)
        if interface.is_property(name):
            _, setter = interface.properties[name]
            return _PropertyCheck(name, self._check, settable=setter is not None)
        msg = f"{interface.name} declares no operation {name!r}"
        raise AttributeError(msg)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------
class CountVerifier:
    """Compare the number of matching recorded calls against a mode."""

    def __init__(self, double: object, mode: VerificationMode) -> None:
        self._double = double
        self._mode = mode

    def verify(self, key: OperationKey, matchers: tuple[Comparator, ...]) -> None:
        """Raise :class:`VerificationError` unless the mode holds for *key*."""
        domain = domain_of(self._double)
        records = domain.records()
        observed = sum(1 for rec in records if rec.matches(key, matchers))
        if self._mode.check(observed):
            return
        expected = format_call(key, matchers)
        calls = [rec for rec in records if rec.key == key]
        msg = format_sections(
            f"Expected {expected} to be called {self._mode.describe()}, "
            f"but was called {times_phrase(observed)}.",
            [
                ("Double", domain.name),
                ("Recorded calls", describe_records(calls)),
            ],
        )
        raise VerificationError(msg)


def verify(double: object, mode: VerificationMode | None = None) -> t.Any:
    """Return an object whose operations verify calls made to *double*.

    ``verify(double).fetch_user("42")`` asserts exactly one call with
    ``"42"``; pass a mode such as ``AtLeast(2)`` or ``Never()`` to change
    the expected count. Properties are verified with ``.get()`` and
    ``.set(value)``.
    """
    checker = CountVerifier(double, mode if mode is not None else Times(1))
    return OperationRouter(double, checker.verify)


def verify_no_interactions(double: object) -> None:
    """Raise :class:`VerificationError` if *double* recorded any call."""
    domain = domain_of(double)
    records = domain.records()
    if not records:
        return
    msg = format_sections(
        f"Expected no interactions with {domain.name}, "
        f"but it was called {times_phrase(len(records))}.",
        [("Recorded calls", describe_records(records))],
    )
    raise VerificationError(msg)


def _key_for(double: object, op: OperationKey | str) -> OperationKey:
    key = OperationKey.parse(op) if isinstance(op, str) else op
    interface_of(double).spec_for(key)
    return key


def call_count(double: object, op: OperationKey | str, *matchers: object) -> int:
    """Return the number of calls to *op*, optionally filtered by *matchers*."""
    key = _key_for(double, op)
    domain = domain_of(double)
    if not matchers:
        return len(domain.inputs(key))
    return domain.count(key, tuple(as_matcher(m) for m in matchers))


def received_inputs(
    double: object, op: OperationKey | str
) -> list[tuple[t.Any, ...]]:
    """Return the arguments of every call to *op* in call order."""
    return domain_of(double).inputs(_key_for(double, op))


__all__ = [
    "AtLeast",
    "AtLeastOnce",
    "AtMost",
    "Between",
    "CountVerifier",
    "Never",
    "OperationRouter",
    "Times",
    "VerificationMode",
    "call_count",
    "received_inputs",
    "verify",
    "verify_no_interactions",
]
