"""Append-only log of the calls a double has received."""

from __future__ import annotations

import dataclasses as dc
import itertools
import threading
import typing as t

from .comparators import Comparator, matches_all

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .interface import OperationKey


class _StampClock:
    """Process-wide admission counter shared by every double.

    Per-double sequence numbers order calls within one double; stamps let an
    ordering session compare calls made to different doubles.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


STAMP_CLOCK = _StampClock()


@dc.dataclass(slots=True, frozen=True)
class CallRecord:
    """One intercepted call."""

    key: OperationKey
    args: tuple[t.Any, ...]
    sequence: int
    stamp: int

    def matches(self, key: OperationKey, matchers: t.Sequence[Comparator]) -> bool:
        """Return ``True`` if this record is a call to *key* accepted by *matchers*."""
        return self.key == key and matches_all(matchers, self.args)


class CallJournal:
    """Record calls with gapless per-journal sequence numbers.

    The journal performs no locking of its own; it is only touched from
    inside the owning double's isolation domain.
    """

    def __init__(self) -> None:
        self._records: list[CallRecord] = []

    def record(self, key: OperationKey, args: t.Sequence[object]) -> CallRecord:
        """Append a call to *key* with *args* and return its record."""
        entry = CallRecord(
            key=key,
            args=tuple(args),
            sequence=len(self._records),
            stamp=STAMP_CLOCK.next(),
        )
        self._records.append(entry)
        return entry

    def count(self, key: OperationKey, matchers: t.Sequence[Comparator]) -> int:
        """Return how many calls to *key* satisfy *matchers*."""
        return sum(1 for rec in self._records if rec.matches(key, matchers))

    def inputs(self, key: OperationKey) -> list[tuple[t.Any, ...]]:
        """Return the arguments of every call to *key* in call order."""
        return [rec.args for rec in self._records if rec.key == key]

    def records(self) -> tuple[CallRecord, ...]:
        """Return a snapshot of the whole log."""
        return tuple(self._records)

    def __len__(self) -> int:
        """Return the number of recorded calls."""
        return len(self._records)
