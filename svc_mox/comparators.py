"""Simple comparator classes used for argument matching."""

from __future__ import annotations

import typing as t


class Comparator(t.Protocol):
    """Callable returning ``True`` when a value matches."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""
        ...


class Any:
    """Match any value."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def __repr__(self) -> str:
        """Return a debug representation."""
        return "Any()"


class Exact:
    """Match values equal to ``expected``."""

    def __init__(self, expected: object) -> None:
        self.expected = expected

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* equals ``expected``."""
        return bool(value == self.expected)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return repr(self.expected)


class Range:
    """Match values within the closed interval ``low``..``high``."""

    def __init__(self, low: t.Any, high: t.Any) -> None:
        if high < low:
            msg = f"Range upper bound {high!r} is below lower bound {low!r}"
            raise ValueError(msg)
        self.low = low
        self.high = high

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``low <= value <= high``."""
        if value is None:
            return False
        try:
            return bool(self.low <= value <= self.high)  # type: ignore[operator]
        except TypeError:
            # unorderable against the bounds
            return False

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Range({self.low!r}, {self.high!r})"


class IsNil:
    """Match ``None``."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* is ``None``."""
        return value is None

    def __repr__(self) -> str:
        """Return a debug representation."""
        return "IsNil()"


class IsNotNil:
    """Match anything except ``None``."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* is not ``None``."""
        return value is not None

    def __repr__(self) -> str:
        """Return a debug representation."""
        return "IsNotNil()"


class Predicate:
    """Use a custom ``func`` to determine a match."""

    def __init__(self, func: t.Callable[[t.Any], bool]) -> None:
        self.func = func

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))

    def __repr__(self) -> str:
        """Return a debug representation."""
        name = getattr(self.func, "__name__", None) or repr(self.func)
        return f"Predicate({name})"


_MATCHER_TYPES: tuple[type, ...] = (Any, Exact, Range, IsNil, IsNotNil, Predicate)


def as_matcher(value: object) -> Comparator:
    """Return *value* unchanged when it is a matcher, else wrap it in ``Exact``."""
    if isinstance(value, _MATCHER_TYPES):
        return t.cast("Comparator", value)
    return Exact(value)


def matches_all(matchers: t.Sequence[Comparator], args: t.Sequence[object]) -> bool:
    """Return ``True`` when every positional matcher accepts its argument."""
    if len(matchers) != len(args):
        return False
    results = [matcher(arg) for matcher, arg in zip(matchers, args, strict=True)]
    return all(results)


__all__ = [
    "Any",
    "Comparator",
    "Exact",
    "IsNil",
    "IsNotNil",
    "Predicate",
    "Range",
    "as_matcher",
    "matches_all",
]
