"""Expectation queues and the one-shot builder used to configure doubles."""

from __future__ import annotations

import dataclasses as dc
import typing as t

from ._text import times_phrase
from .actions import Action, Compute, ReturnValue, Succeed, ThrowError
from .comparators import Comparator, as_matcher, matches_all
from .errors import LifecycleError
from .interface import (
    Interface,
    OperationKey,
    OperationKind,
    OperationSpec,
    describe_interface,
)

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .double import ServiceDouble


@dc.dataclass(slots=True, frozen=True)
class RepeatCount:
    """How many times an entry may be consumed; ``None`` means unbounded."""

    limit: int | None = 1

    def __post_init__(self) -> None:
        """Reject non-positive limits."""
        if self.limit is not None and self.limit < 1:
            msg = f"repeat count must be at least 1, got {self.limit}"
            raise ValueError(msg)

    @classmethod
    def times(cls, count: int) -> RepeatCount:
        """Return a count allowing exactly *count* uses."""
        return cls(count)

    @classmethod
    def unbounded(cls) -> RepeatCount:
        """Return a count that never runs out."""
        return cls(None)

    def __str__(self) -> str:
        """Return ``"unbounded"`` or ``"N time(s)"``."""
        if self.limit is None:
            return "unbounded"
        return times_phrase(self.limit)


@dc.dataclass(slots=True)
class ExpectationEntry:
    """One queued ``(matchers, action, remaining)`` record."""

    matchers: tuple[Comparator, ...]
    action: Action = dc.field(default_factory=Succeed)
    count: RepeatCount = dc.field(default_factory=RepeatCount)
    consumed: int = 0

    @property
    def remaining(self) -> int | None:
        """Return the uses left, or ``None`` for unbounded entries."""
        if self.count.limit is None:
            return None
        return self.count.limit - self.consumed

    @property
    def exhausted(self) -> bool:
        """Return ``True`` once a bounded entry has no uses left."""
        return self.remaining == 0

    def accepts(self, args: t.Sequence[object]) -> bool:
        """Return ``True`` if the entry has capacity and matches *args*."""
        return not self.exhausted and matches_all(self.matchers, args)

    def consume(self) -> None:
        """Record one use of this entry."""
        self.consumed += 1

    def describe(self) -> str:
        """Return a readable summary for failure messages."""
        matchers = ", ".join(repr(m) for m in self.matchers)
        remaining = self.remaining
        left = "unbounded" if remaining is None else f"{remaining} left"
        return f"({matchers}) {self.action.describe()} [{self.count}, {left}]"


class ExpectationQueue:
    """Ordered expectation entries for one operation.

    Insertion order is match priority. Entries are never removed or
    reordered; an exhausted entry stays in place and is skipped.
    """

    def __init__(self, key: OperationKey) -> None:
        self.key = key
        self._entries: list[ExpectationEntry] = []

    def append(self, entry: ExpectationEntry) -> None:
        """Add *entry* at the lowest priority."""
        self._entries.append(entry)

    def select(self, args: t.Sequence[object]) -> ExpectationEntry | None:
        """Consume and return the first entry that accepts *args*."""
        for entry in self._entries:
            if entry.accepts(args):
                entry.consume()
                return entry
        return None

    @property
    def entries(self) -> tuple[ExpectationEntry, ...]:
        """Return the entries in priority order."""
        return tuple(self._entries)

    def __len__(self) -> int:
        """Return the number of entries, exhausted ones included."""
        return len(self._entries)


class ExpectationBuilder:
    """Fluent configuration for a single queued entry."""

    def __init__(self, owner: Expectations, entry: ExpectationEntry) -> None:
        self._owner = owner
        self.entry = entry

    def returns(self, value: object) -> ExpectationBuilder:
        """Return *value* when the entry is matched."""
        return self._set_action(ReturnValue(value))

    def raises(self, error: BaseException) -> ExpectationBuilder:
        """Raise *error* when the entry is matched."""
        if not isinstance(error, BaseException):
            msg = f"raises() expects an exception instance, got {error!r}"
            raise TypeError(msg)
        return self._set_action(ThrowError(error))

    def succeeds(self) -> ExpectationBuilder:
        """Complete successfully with ``None`` when the entry is matched."""
        return self._set_action(Succeed())

    def runs(self, func: t.Callable[..., t.Any]) -> ExpectationBuilder:
        """Call ``func(*args)`` to produce the outcome when matched."""
        return self._set_action(Compute(func))

    def times(self, count: int) -> ExpectationBuilder:
        """Allow the entry to be consumed *count* times."""
        return self._set_count(RepeatCount.times(count))

    def unbounded(self) -> ExpectationBuilder:
        """Allow the entry to be consumed any number of times."""
        return self._set_count(RepeatCount.unbounded())

    def _set_action(self, action: Action) -> ExpectationBuilder:
        self._owner._require_open()
        self.entry.action = action
        return self

    def _set_count(self, count: RepeatCount) -> ExpectationBuilder:
        self._owner._require_open()
        self.entry.count = count
        return self

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"ExpectationBuilder({self.entry.describe()})"


class PropertyExpectations:
    """Entry points for a property's getter and setter."""

    def __init__(self, owner: Expectations, name: str) -> None:
        self._owner = owner
        self._name = name

    def get(self) -> ExpectationBuilder:
        """Queue an expectation for reading the property."""
        return self._owner._queue_entry(
            OperationKey(self._name, OperationKind.GETTER), (), {}
        )

    def set(self, value: object) -> ExpectationBuilder:
        """Queue an expectation for assigning a value matching *value*."""
        return self._owner._queue_entry(
            OperationKey(self._name, OperationKind.SETTER), (value,), {}
        )


class Expectations:
    """Collect expectations for an interface before a double is built.

    Attribute access mirrors the interface: ``exp.fetch_user(Any())`` queues
    an entry for the ``fetch_user`` method and ``exp.name.get()`` one for
    the ``name`` property getter. Building a double freezes the object;
    any further registration raises :class:`LifecycleError`.
    """

    def __init__(self, interface: type) -> None:
        self._svc_mox_type = interface
        self._svc_mox_interface = describe_interface(interface)
        self._queues: dict[OperationKey, ExpectationQueue] = {}
        self._frozen = False

    @property
    def interface_type(self) -> type:
        """Return the interface class these expectations configure."""
        return self._svc_mox_type

    @property
    def interface(self) -> Interface:
        """Return the operation table of the interface."""
        return self._svc_mox_interface

    @property
    def frozen(self) -> bool:
        """Return ``True`` once a double has been built."""
        return self._frozen

    def __getattr__(self, name: str) -> t.Any:
        """Return the expectation entry point for operation *name*."""
        if name.startswith("_"):
            raise AttributeError(name)
        interface = self._svc_mox_interface
        if interface.is_method(name):
            spec = interface.methods[name]
            return _MethodExpectations(self, spec)
        if interface.is_property(name):
            return PropertyExpectations(self, name)
        msg = f"{interface.name} declares no operation {name!r}"
        raise AttributeError(msg)

    def enqueue(
        self,
        key: OperationKey | str,
        matchers: t.Sequence[object],
        action: Action,
        count: RepeatCount | None = None,
    ) -> ExpectationEntry:
        """Append a fully formed entry to the queue of *key*."""
        self._require_open()
        if isinstance(key, str):
            key = OperationKey.parse(key)
        spec = self._svc_mox_interface.spec_for(key)
        if len(matchers) != len(spec.parameters):
            msg = (
                f"{key}() takes {len(spec.parameters)} matcher(s), "
                f"got {len(matchers)}"
            )
            raise TypeError(msg)
        entry = ExpectationEntry(
            tuple(as_matcher(m) for m in matchers),
            action,
            count if count is not None else RepeatCount(),
        )
        self._queue(key).append(entry)
        return entry

    def entries(self, key: OperationKey | str) -> tuple[ExpectationEntry, ...]:
        """Return the entries queued so far for *key*."""
        if isinstance(key, str):
            key = OperationKey.parse(key)
        queue = self._queues.get(key)
        return queue.entries if queue is not None else ()

    def build(self, *, name: str | None = None) -> ServiceDouble:
        """Freeze these expectations into a new double."""
        from .double import ServiceDouble

        return ServiceDouble(self, name=name)

    def freeze(self) -> dict[OperationKey, ExpectationQueue]:
        """Hand the queues over to a double; the builder becomes read-only."""
        if self._frozen:
            msg = "Expectations have already been used to build a double"
            raise LifecycleError(msg)
        self._frozen = True
        return dict(self._queues)

    def _queue_entry(
        self,
        key: OperationKey,
        args: t.Sequence[object],
        kwargs: t.Mapping[str, object],
    ) -> ExpectationBuilder:
        self._require_open()
        spec = self._svc_mox_interface.spec_for(key)
        matchers = spec.bind_matchers(args, kwargs)
        entry = self.enqueue(key, matchers, Succeed())
        return ExpectationBuilder(self, entry)

    def _queue(self, key: OperationKey) -> ExpectationQueue:
        queue = self._queues.get(key)
        if queue is None:
            queue = ExpectationQueue(key)
            self._queues[key] = queue
        return queue

    def _require_open(self) -> None:
        if self._frozen:
            msg = (
                f"Expectations for {self._svc_mox_interface.name} are frozen; "
                "configure them before building the double"
            )
            raise LifecycleError(msg)

    def __repr__(self) -> str:
        """Return a debug representation."""
        total = sum(len(q) for q in self._queues.values())
        return f"Expectations({self._svc_mox_interface.name}, entries={total})"


class _MethodExpectations:
    """Callable returned for ``exp.<method>``."""

    def __init__(self, owner: Expectations, spec: OperationSpec) -> None:
        self._owner = owner
        self._spec = spec

    def __call__(self, *args: object, **kwargs: object) -> ExpectationBuilder:
        """Queue an entry whose matchers are *args* and *kwargs*."""
        return self._owner._queue_entry(self._spec.key, args, kwargs)


__all__ = [
    "ExpectationBuilder",
    "ExpectationEntry",
    "ExpectationQueue",
    "Expectations",
    "PropertyExpectations",
    "RepeatCount",
]
