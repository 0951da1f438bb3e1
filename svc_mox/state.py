"""Per-double mutable state and the lock that serialises access to it."""

from __future__ import annotations

import logging
import threading
import typing as t
from textwrap import indent

from .errors import UnconfiguredCallError
from .journal import CallJournal, CallRecord

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .actions import Action
    from .comparators import Comparator
    from .expectations import ExpectationEntry, ExpectationQueue
    from .interface import OperationKey

logger = logging.getLogger(__name__)

_T = t.TypeVar("_T")


class DoubleState:
    """Expectation queues and call journal owned by one double.

    Only :class:`IsolationDomain` touches an instance; nothing here locks.
    """

    def __init__(
        self, name: str, queues: t.Mapping[OperationKey, ExpectationQueue]
    ) -> None:
        self.name = name
        self.queues: dict[OperationKey, ExpectationQueue] = dict(queues)
        self.journal = CallJournal()
        self.unconfigured: list[UnconfiguredCallError] = []

    def consume(self, key: OperationKey, args: tuple[t.Any, ...]) -> Action:
        """Record the call and return the action of the first accepting entry.

        The call is journaled before matching so that calls which end up
        unconfigured still show up in verification output.
        """
        record = self.journal.record(key, args)
        queue = self.queues.get(key)
        entry = queue.select(args) if queue is not None else None
        if entry is None:
            err = UnconfiguredCallError(self._describe_unconfigured(record))
            self.unconfigured.append(err)
            logger.debug(
                "%s: unconfigured call #%d %s", self.name, record.sequence, key
            )
            raise err
        logger.debug("%s: call #%d %s matched", self.name, record.sequence, key)
        return entry.action

    def pending_entries(self) -> list[tuple[OperationKey, ExpectationEntry]]:
        """Return bounded entries that still have uses left."""
        return [
            (key, entry)
            for key, queue in self.queues.items()
            for entry in queue.entries
            if entry.remaining is not None and entry.remaining > 0
        ]

    def _describe_unconfigured(self, record: CallRecord) -> str:
        args = ", ".join(repr(arg) for arg in record.args)
        lines = [
            f"{self.name} received a call with no matching expectation.",
            "",
            "Call:",
            f"  {record.key}({args})",
            "",
            f"Expectations for {record.key}:",
        ]
        queue = self.queues.get(record.key)
        if queue is None or not len(queue):
            lines.append("  (none)")
        else:
            body = "\n".join(
                f"{index}. {entry.describe()}"
                for index, entry in enumerate(queue.entries, start=1)
            )
            lines.append(indent(body, "  "))
        return "\n".join(lines)


class IsolationDomain:
    """Run requests against a :class:`DoubleState` one at a time.

    Requests are admitted in lock acquisition order. A re-entrant lock lets
    a request issued from inside another one (for example a verification
    triggered by a callback) proceed on the same thread.
    """

    def __init__(self, state: DoubleState) -> None:
        self._state = state
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        """Return the owning double's display name."""
        return self._state.name

    def run(self, request: t.Callable[[DoubleState], _T]) -> _T:
        """Execute *request* with exclusive access to the state."""
        with self._lock:
            return request(self._state)

    def resolve_and_consume(
        self, key: OperationKey, args: tuple[t.Any, ...]
    ) -> Action:
        """Consume an expectation for a call and record it in one request."""
        return self.run(lambda state: state.consume(key, args))

    def count(self, key: OperationKey, matchers: t.Sequence[Comparator]) -> int:
        """Return the number of recorded calls to *key* matching *matchers*."""
        return self.run(lambda state: state.journal.count(key, matchers))

    def inputs(self, key: OperationKey) -> list[tuple[t.Any, ...]]:
        """Return recorded arguments for *key* in call order."""
        return self.run(lambda state: state.journal.inputs(key))

    def records(self) -> tuple[CallRecord, ...]:
        """Return a consistent snapshot of the call log."""
        return self.run(lambda state: state.journal.records())

    def unconfigured(self) -> list[UnconfiguredCallError]:
        """Return the unconfigured-call errors raised so far."""
        return self.run(lambda state: list(state.unconfigured))

    def pending_entries(self) -> list[tuple[OperationKey, ExpectationEntry]]:
        """Return bounded entries with uses left."""
        return self.run(lambda state: state.pending_entries())
