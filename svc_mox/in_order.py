"""Ordered verification across one or more doubles."""

from __future__ import annotations

import typing as t

from ._text import times_phrase
from .double import domain_of, name_of
from .errors import VerificationError
from .verifiers import (
    AtLeast,
    AtLeastOnce,
    AtMost,
    Between,
    Never,
    OperationRouter,
    Times,
    VerificationMode,
    describe_record,
    describe_records,
    format_call,
    format_sections,
)

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .comparators import Comparator
    from .interface import OperationKey
    from .journal import CallRecord


def _take(
    mode: VerificationMode, candidates: list[CallRecord]
) -> list[CallRecord] | None:
    """Return the records a step consumes, or ``None`` if *mode* fails."""
    count = len(candidates)
    if isinstance(mode, Times):
        return candidates[: mode.count] if count >= mode.count else None
    if isinstance(mode, AtLeast):
        return candidates if count >= mode.count else None
    if isinstance(mode, AtLeastOnce):
        return candidates if count >= 1 else None
    if isinstance(mode, AtMost):
        return candidates[: mode.count]
    if isinstance(mode, Between):
        return candidates[: mode.high] if count >= mode.low else None
    if isinstance(mode, Never):
        return [] if count == 0 else None
    msg = f"Unknown verification mode: {mode!r}"
    raise TypeError(msg)


def _additionally(mode: VerificationMode) -> str:
    if isinstance(mode, Never):
        return "not to be called again"
    if isinstance(mode, AtLeastOnce):
        return "to be called additionally at least once"
    return f"to be called an additional {mode.describe()}"


class InOrder:
    """Verify that interactions with several doubles happened in order.

    Each participant has a cursor into its own call log; a step consumes
    records of one double from its cursor onwards. The session also keeps
    a watermark, the admission stamp of the last verified record, so a step
    cannot verify a call that happened before the previously verified one,
    whichever double received it.

    In non-strict mode unverified records may be skipped. Verifying a later
    call first therefore makes the step for the earlier call fail, not the
    first step. In strict mode a step may not skip anything: no participant,
    the verified double included, may hold an unverified record admitted
    before the last record the step consumes. Candidates are chosen the
    same way in both modes, so ``Never`` and ``AtLeast`` look at every
    remaining call of the double.

    ``InOrder`` is a single-use, single-threaded helper; reads of each
    double go through its isolation domain.
    """

    def __init__(self, *doubles: object, strict: bool = False) -> None:
        if not doubles:
            msg = "InOrder requires at least one double"
            raise ValueError(msg)
        self._strict = strict
        self._participants: list[object] = []
        self._cursors: dict[int, int] = {}
        self._consumed: dict[int, set[int]] = {}
        for dbl in doubles:
            domain_of(dbl)  # reject non-doubles early
            if id(dbl) not in self._cursors:
                self._participants.append(dbl)
                self._cursors[id(dbl)] = 0
                self._consumed[id(dbl)] = set()
        self._watermark = 0
        self._previous: str | None = None

    @property
    def strict(self) -> bool:
        """Return ``True`` if the session runs in strict mode."""
        return self._strict

    def verify(self, double: object, mode: VerificationMode | None = None) -> t.Any:
        """Return an object whose operations verify the next calls to *double*."""
        if id(double) not in self._cursors:
            msg = f"{double!r} was not passed to this InOrder session"
            raise ValueError(msg)
        step_mode = mode if mode is not None else Times(1)

        def check(key: OperationKey, matchers: tuple[Comparator, ...]) -> None:
            self._step(double, step_mode, key, matchers)

        return OperationRouter(double, check)

    def verify_no_more_interactions(self) -> None:
        """Raise unless every participant's cursor reached the end of its log.

        Calls a non-strict step skipped over lie behind that double's cursor
        and do not count as further interactions.
        """
        unverified: list[tuple[str, CallRecord]] = []
        for dbl in self._participants:
            records = domain_of(dbl).records()
            name = name_of(dbl)
            unverified.extend(
                (name, rec) for rec in records[self._cursors[id(dbl)] :]
            )
        if not unverified:
            return
        unverified.sort(key=lambda item: item[1].stamp)
        body = "\n".join(f"{name} {describe_record(rec)}" for name, rec in unverified)
        msg = format_sections(
            "Expected no remaining unverified interactions, "
            f"but interactions occurred {times_phrase(len(unverified))}.",
            [("Unverified calls", body)],
        )
        raise VerificationError(msg)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _step(
        self,
        double: object,
        mode: VerificationMode,
        key: OperationKey,
        matchers: tuple[Comparator, ...],
    ) -> None:
        records = domain_of(double).records()
        cursor = self._cursors[id(double)]
        pending = list(records[cursor:])
        label = f"{name_of(double)}.{format_call(key, matchers)}"
        candidates = [
            rec
            for rec in pending
            if rec.stamp > self._watermark and rec.matches(key, matchers)
        ]

        taken = _take(mode, candidates)
        if taken is None:
            self._fail_count(double, mode, key, matchers, label, candidates, pending)
        if self._strict and taken:
            self._check_nothing_skipped(double, label, taken, pending)
        if taken:
            self._consumed[id(double)].update(rec.sequence for rec in taken)
            last = taken[-1]
            self._cursors[id(double)] = last.sequence + 1
            self._watermark = last.stamp
            self._previous = label

    def _check_nothing_skipped(
        self,
        double: object,
        label: str,
        taken: list[CallRecord],
        pending: list[CallRecord],
    ) -> None:
        """Ensure no participant holds unverified records before *taken*."""
        last_stamp = taken[-1].stamp
        taken_sequences = {rec.sequence for rec in taken}
        own = [
            rec
            for rec in pending
            if rec.stamp < last_stamp and rec.sequence not in taken_sequences
        ]
        if own:
            msg = format_sections(
                f"Expected the next call to {name_of(double)} to be {label}, "
                f"but it was {format_call(own[0].key, own[0].args)}.",
                [
                    ("Mode", "strict"),
                    ("Unverified calls", describe_records(pending)),
                ],
            )
            raise VerificationError(msg)

        skipped: list[tuple[str, CallRecord]] = []
        for dbl in self._participants:
            if dbl is double:
                continue
            records = domain_of(dbl).records()
            name = name_of(dbl)
            skipped.extend(
                (name, rec)
                for rec in records[self._cursors[id(dbl)] :]
                if rec.stamp < last_stamp
            )
        if not skipped:
            return
        what = "this call" if len(taken) == 1 else "or between these calls"
        call = format_call(taken[0].key, taken[0].args)
        body = "\n".join(f"{name} {describe_record(rec)}" for name, rec in skipped)
        msg = format_sections(
            f"Expected no unverified interactions before {what} to {call}, "
            f"but interactions occurred {times_phrase(len(skipped))}.",
            [("Unverified calls", body)],
        )
        raise VerificationError(msg)

    def _fail_count(
        self,
        double: object,
        mode: VerificationMode,
        key: OperationKey,
        matchers: tuple[Comparator, ...],
        label: str,
        candidates: list[CallRecord],
        pending: list[CallRecord],
    ) -> t.NoReturn:
        consumed = self._consumed[id(double)]
        earlier = [
            rec
            for rec in domain_of(double).records()
            if rec.sequence not in consumed
            and rec.stamp < self._watermark
            and rec.matches(key, matchers)
        ]
        if earlier and not self._strict and self._previous is not None:
            title = (
                f"Expected {label} to be called after {self._previous}, "
                "but it was called before."
            )
        elif self._strict and pending and not candidates:
            title = (
                f"Expected the next call to {name_of(double)} to be {label}, "
                f"but it was {format_call(pending[0].key, pending[0].args)}."
            )
        else:
            title = (
                f"Expected {label} {_additionally(mode)}, "
                f"but was called {times_phrase(len(candidates))}."
            )
        msg = format_sections(
            title,
            [
                ("Mode", "strict" if self._strict else "non-strict"),
                ("Unverified calls", describe_records(pending)),
            ],
        )
        raise VerificationError(msg)


__all__ = ["InOrder"]
