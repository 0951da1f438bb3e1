"""Static description of the operations declared by a service interface.

A service interface is an ordinary class, usually a :class:`typing.Protocol`
or an :class:`abc.ABC`. :func:`describe_interface` walks its namespace once
and produces a table mapping every public method, ``async`` method and
property accessor to an :class:`OperationSpec`. Doubles and expectation
builders route attribute access through that table, so a misspelt operation
name fails when the test is written rather than when it runs.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import functools
import inspect
import types
import typing as t

from .comparators import Exact
from .errors import LifecycleError

_SKIPPED_BASES: frozenset[object] = frozenset({object, t.Protocol, t.Generic})


class OperationKind(enum.StrEnum):
    """Kinds of operations an interface can declare."""

    METHOD = "method"
    GETTER = "get"
    SETTER = "set"


@dc.dataclass(slots=True, frozen=True, order=True)
class OperationKey:
    """Identify one operation of an interface."""

    name: str
    kind: OperationKind = OperationKind.METHOD

    def __str__(self) -> str:
        """Return ``name`` for methods and ``name.get``/``name.set`` otherwise."""
        if self.kind is OperationKind.METHOD:
            return self.name
        return f"{self.name}.{self.kind.value}"

    @classmethod
    def parse(cls, text: str) -> OperationKey:
        """Build a key from its string form, e.g. ``"fetch_user"`` or ``"name.set"``."""
        name, sep, suffix = text.rpartition(".")
        if sep and suffix in (OperationKind.GETTER.value, OperationKind.SETTER.value):
            return cls(name, OperationKind(suffix))
        return cls(text)


@dc.dataclass(slots=True, frozen=True)
class OperationSpec:
    """Shape of one operation: its key, parameters and sync/async flavour."""

    key: OperationKey
    signature: inspect.Signature
    is_async: bool = False

    @property
    def parameters(self) -> tuple[str, ...]:
        """Return the parameter names in declaration order."""
        return tuple(self.signature.parameters)

    def bind(self, args: t.Sequence[object], kwargs: t.Mapping[str, object]) -> tuple:
        """Normalise a call into a positional argument tuple.

        Keyword arguments are folded into their declared positions and
        defaults are filled in, so ``f(1, b=2)`` and ``f(1, 2)`` record the
        same arguments.
        """
        try:
            bound = self.signature.bind(*args, **kwargs)
        except TypeError as exc:
            msg = f"{self.key}() {exc}"
            raise TypeError(msg) from exc
        bound.apply_defaults()
        return tuple(bound.arguments.values())

    def bind_matchers(
        self, args: t.Sequence[object], kwargs: t.Mapping[str, object]
    ) -> tuple:
        """Bind matchers to parameters in the same shape :meth:`bind` produces.

        Omitted parameters with a default match exactly that default, and
        omitted ``*args``/``**kwargs`` match an empty tuple or dict, so an
        expectation written like the call it stands for matches that call.
        Every other parameter needs a matcher.
        """
        try:
            bound = self.signature.bind_partial(*args, **kwargs)
        except TypeError as exc:
            msg = f"{self.key}() {exc}"
            raise TypeError(msg) from exc
        slots: list[object] = []
        missing: list[str] = []
        for name, param in self.signature.parameters.items():
            if name in bound.arguments:
                slots.append(bound.arguments[name])
            elif param.kind is inspect.Parameter.VAR_POSITIONAL:
                slots.append(Exact(()))
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                slots.append(Exact({}))
            elif param.default is not inspect.Parameter.empty:
                slots.append(Exact(param.default))
            else:
                missing.append(name)
        if missing:
            msg = f"{self.key}() missing matchers for: {', '.join(missing)}"
            raise TypeError(msg)
        return tuple(slots)


_GETTER_SIGNATURE = inspect.Signature()
_SETTER_SIGNATURE = inspect.Signature(
    [inspect.Parameter("value", inspect.Parameter.POSITIONAL_OR_KEYWORD)]
)


@dc.dataclass(slots=True, frozen=True)
class Interface:
    """Operation table for one interface class."""

    name: str
    methods: t.Mapping[str, OperationSpec]
    properties: t.Mapping[str, tuple[OperationSpec, OperationSpec | None]]

    @property
    def operations(self) -> dict[OperationKey, OperationSpec]:
        """Return every operation keyed by :class:`OperationKey`."""
        ops = {spec.key: spec for spec in self.methods.values()}
        for getter, setter in self.properties.values():
            ops[getter.key] = getter
            if setter is not None:
                ops[setter.key] = setter
        return ops

    def spec_for(self, key: OperationKey) -> OperationSpec:
        """Return the spec for *key* or raise :class:`LifecycleError`."""
        try:
            return self.operations[key]
        except KeyError:
            msg = f"{self.name} declares no operation {str(key)!r}"
            raise LifecycleError(msg) from None

    def is_method(self, name: str) -> bool:
        """Return ``True`` if *name* is a declared method."""
        return name in self.methods

    def is_property(self, name: str) -> bool:
        """Return ``True`` if *name* is a declared property."""
        return name in self.properties


def _method_spec(name: str, func: t.Callable[..., t.Any]) -> OperationSpec:
    signature = inspect.signature(func)
    params = list(signature.parameters.values())[1:]  # drop ``self``
    return OperationSpec(
        key=OperationKey(name),
        signature=signature.replace(parameters=params),
        is_async=inspect.iscoroutinefunction(func),
    )


def _property_specs(
    name: str, *, settable: bool
) -> tuple[OperationSpec, OperationSpec | None]:
    getter = OperationSpec(OperationKey(name, OperationKind.GETTER), _GETTER_SIGNATURE)
    if not settable:
        return getter, None
    setter = OperationSpec(OperationKey(name, OperationKind.SETTER), _SETTER_SIGNATURE)
    return getter, setter


def _namespace(cls: type) -> dict[str, object]:
    """Merge the class dictionaries of *cls*'s MRO; derived classes win."""
    merged: dict[str, object] = {}
    for base in reversed(cls.__mro__):
        if base in _SKIPPED_BASES:
            continue
        merged.update(vars(base))
        for name, annotation in inspect.get_annotations(base).items():
            if "ClassVar" in str(annotation):
                continue
            # ``timeout: float = 1.0`` is still a data attribute
            if not isinstance(merged.get(name), (property, types.FunctionType)):
                merged[name] = _ANNOTATED
    return merged


_ANNOTATED = object()


@functools.cache
def describe_interface(cls: type) -> Interface:
    """Return the :class:`Interface` table for *cls*.

    Public functions become methods (``async def`` ones are flagged async),
    ``property`` objects become a getter plus, when they define ``fset``, a
    setter, and bare annotations such as ``name: str`` on a protocol become
    read/write properties. Private names, static and class methods are
    ignored.
    """
    methods: dict[str, OperationSpec] = {}
    properties: dict[str, tuple[OperationSpec, OperationSpec | None]] = {}
    for name, member in _namespace(cls).items():
        if name.startswith("_"):
            continue
        if isinstance(member, property):
            properties[name] = _property_specs(name, settable=member.fset is not None)
        elif member is _ANNOTATED:
            properties[name] = _property_specs(name, settable=True)
        elif isinstance(member, (staticmethod, classmethod)):
            continue
        elif inspect.isfunction(member):
            methods[name] = _method_spec(name, member)
    if not methods and not properties:
        msg = f"{cls.__name__} declares no public operations"
        raise LifecycleError(msg)
    return Interface(cls.__name__, methods, properties)


__all__ = [
    "Interface",
    "OperationKey",
    "OperationKind",
    "OperationSpec",
    "describe_interface",
]
