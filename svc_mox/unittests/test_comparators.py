"""Comparator helpers and positional matching tests."""

from __future__ import annotations

import typing as t

import pytest

from svc_mox.comparators import (
    Any,
    Exact,
    IsNil,
    IsNotNil,
    Predicate,
    Range,
    as_matcher,
    matches_all,
)


@pytest.mark.parametrize(
    ("matcher", "good", "bad", "expected_repr"),
    [
        (Any(), "anything", None, "Any()"),
        (Exact("42"), "42", "43", "'42'"),
        (Range("100", "999"), "500", "1", "Range('100', '999')"),
        (Range(1, 3), 3, 4, "Range(1, 3)"),
        (IsNotNil(), 0, None, "IsNotNil()"),
    ],
)
def test_matchers_match_and_repr(
    matcher: t.Callable[[object], bool],
    good: object,
    bad: object | None,
    expected_repr: str,
) -> None:
    """Matchers evaluate values and provide helpful reprs."""
    assert matcher(good)
    if bad is not None or isinstance(matcher, IsNotNil):
        assert not matcher(bad)
    assert repr(matcher) == expected_repr


def test_any_accepts_none() -> None:
    """``Any`` matches optional arguments that were left unset."""
    assert Any()(None)


def test_is_nil_matches_only_none() -> None:
    """``IsNil`` distinguishes ``None`` from falsy values."""
    assert IsNil()(None)
    assert not IsNil()(0)
    assert not IsNil()("")
    assert repr(IsNil()) == "IsNil()"


def test_range_bounds_are_inclusive() -> None:
    """Both ends of a range match."""
    matcher = Range(10, 20)
    assert matcher(10)
    assert matcher(20)
    assert not matcher(9)
    assert not matcher(21)


def test_range_rejects_none_and_unorderable_values() -> None:
    """A range never matches values that cannot be compared with its bounds."""
    matcher = Range(1, 5)
    assert not matcher(None)
    assert not matcher("3")


def test_range_rejects_inverted_bounds() -> None:
    """Constructing a range whose upper bound is below the lower one fails."""
    with pytest.raises(ValueError, match="below lower bound"):
        Range(5, 1)


def test_predicate_uses_function_name_in_repr() -> None:
    """Predicates delegate to the callable and show its name."""

    def is_even(value: int) -> bool:
        return value % 2 == 0

    matcher = Predicate(is_even)
    assert matcher(4)
    assert not matcher(3)
    assert repr(matcher) == "Predicate(is_even)"


def test_as_matcher_wraps_literals_only() -> None:
    """Literal values become ``Exact`` while matchers pass through."""
    any_matcher = Any()
    assert as_matcher(any_matcher) is any_matcher
    wrapped = as_matcher("value")
    assert isinstance(wrapped, Exact)
    assert wrapped("value")


def test_as_matcher_wraps_none_as_exact() -> None:
    """``None`` given literally matches only ``None``."""
    wrapped = as_matcher(None)
    assert wrapped(None)
    assert not wrapped("x")


@pytest.mark.parametrize(
    ("matchers", "args", "expected"),
    [
        ((), (), True),
        ((Any(), Exact(2)), (1, 2), True),
        ((Any(), Exact(2)), (1, 3), False),
        ((Any(),), (1, 2), False),
        ((Range(1, 3), IsNil()), (2, None), True),
    ],
)
def test_matches_all_requires_every_position(
    matchers: tuple[t.Callable[[object], bool], ...],
    args: tuple[object, ...],
    expected: bool,  # noqa: FBT001
) -> None:
    """Matching is a positional AND; arity mismatches never match."""
    assert matches_all(matchers, args) is expected


def test_matches_all_evaluates_every_matcher() -> None:
    """No short-circuit ordering is relied upon: every matcher runs."""
    seen: list[object] = []

    def record(value: object) -> bool:
        seen.append(value)
        return False

    assert not matches_all((Predicate(record), Predicate(record)), ("a", "b"))
    assert seen == ["a", "b"]
