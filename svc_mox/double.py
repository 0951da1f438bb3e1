"""Doubles that stand in for a service interface at runtime."""

from __future__ import annotations

import functools
import logging
import types
import typing as t

from .actions import resolve, resolve_async
from .errors import LifecycleError
from .interface import describe_interface
from .state import DoubleState, IsolationDomain

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import Expectations
    from .interface import Interface, OperationSpec

logger = logging.getLogger(__name__)


class ServiceDouble:
    """Base class of every generated double.

    ``ServiceDouble(expectations)`` returns an instance of a class derived
    from both this class and the interface, with one real method or
    property per declared operation. Each operation binds its arguments,
    consumes an expectation and records the call in a single request to the
    double's :class:`IsolationDomain`, then resolves the selected action.
    """

    _svc_mox_interface: t.ClassVar[Interface]

    def __new__(
        cls, expectations: Expectations, *, name: str | None = None
    ) -> ServiceDouble:
        """Instantiate the double class generated for the interface."""
        if cls is ServiceDouble:
            cls = _double_class(expectations.interface_type)
        return object.__new__(cls)

    def __init__(self, expectations: Expectations, *, name: str | None = None) -> None:
        if expectations.interface is not self._svc_mox_interface:
            msg = (
                f"Expectations for {expectations.interface.name} cannot build "
                f"a double of {self._svc_mox_interface.name}"
            )
            raise LifecycleError(msg)
        queues = expectations.freeze()
        self._svc_mox_name = name or f"Mock{self._svc_mox_interface.name}"
        state = DoubleState(self._svc_mox_name, queues)
        self._svc_mox_domain = IsolationDomain(state)
        logger.debug(
            "Built %s with %d expectation queue(s)", self._svc_mox_name, len(queues)
        )

    def _svc_mox_invoke(
        self,
        spec: OperationSpec,
        args: t.Sequence[object],
        kwargs: t.Mapping[str, object],
    ) -> t.Any:
        bound = spec.bind(args, kwargs)
        action = self._svc_mox_domain.resolve_and_consume(spec.key, bound)
        return resolve(action, bound)

    async def _svc_mox_invoke_async(
        self,
        spec: OperationSpec,
        args: t.Sequence[object],
        kwargs: t.Mapping[str, object],
    ) -> t.Any:
        bound = spec.bind(args, kwargs)
        action = self._svc_mox_domain.resolve_and_consume(spec.key, bound)
        return await resolve_async(action, bound)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<{self._svc_mox_name} double>"


def _make_method(spec: OperationSpec) -> t.Callable[..., t.Any]:
    if spec.is_async:

        async def async_method(
            self: ServiceDouble, *args: object, **kwargs: object
        ) -> t.Any:
            return await self._svc_mox_invoke_async(spec, args, kwargs)

        method: t.Callable[..., t.Any] = async_method
    else:

        def sync_method(self: ServiceDouble, *args: object, **kwargs: object) -> t.Any:
            return self._svc_mox_invoke(spec, args, kwargs)

        method = sync_method
    method.__name__ = spec.key.name
    method.__qualname__ = spec.key.name
    return method


def _make_property(
    getter: OperationSpec, setter: OperationSpec | None
) -> property:
    def fget(self: ServiceDouble) -> t.Any:
        return self._svc_mox_invoke(getter, (), {})

    if setter is None:
        return property(fget)

    def fset(self: ServiceDouble, value: object) -> None:
        self._svc_mox_invoke(setter, (value,), {})

    return property(fget, fset)


@functools.cache
def _double_class(interface_type: type) -> type[ServiceDouble]:
    """Create (once per interface) the concrete double class."""
    interface = describe_interface(interface_type)
    namespace: dict[str, object] = {"_svc_mox_interface": interface}
    for name, spec in interface.methods.items():
        namespace[name] = _make_method(spec)
    for name, (getter, setter) in interface.properties.items():
        namespace[name] = _make_property(getter, setter)

    cls = types.new_class(
        f"Mock{interface.name}",
        (ServiceDouble, interface_type),
        exec_body=lambda ns: ns.update(namespace),
    )
    # private abstract helpers of an ABC interface are never called
    cls.__abstractmethods__ = frozenset()
    return t.cast("type[ServiceDouble]", cls)


def domain_of(double: object) -> IsolationDomain:
    """Return the isolation domain of *double*."""
    if not isinstance(double, ServiceDouble):
        msg = f"{double!r} is not a svc_mox double"
        raise TypeError(msg)
    return double._svc_mox_domain


def interface_of(double: object) -> Interface:
    """Return the interface table *double* implements."""
    if not isinstance(double, ServiceDouble):
        msg = f"{double!r} is not a svc_mox double"
        raise TypeError(msg)
    return double._svc_mox_interface


def name_of(double: object) -> str:
    """Return the display name of *double*."""
    return domain_of(double).name


__all__ = ["ServiceDouble", "domain_of", "interface_of", "name_of"]
