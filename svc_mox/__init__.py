"""Test doubles for Python service interfaces: configure, call, verify.

Build :class:`Expectations` for an interface, freeze them into a
:class:`ServiceDouble`, hand the double to the code under test and check
what happened with :func:`verify`, :func:`verify_no_interactions` and
:class:`InOrder`.
"""

from __future__ import annotations

from .actions import Compute, ReturnValue, Succeed, ThrowError
from .comparators import Any, Exact, IsNil, IsNotNil, Predicate, Range
from .controller import Phase, SvcMox
from .double import ServiceDouble
from .errors import (
    LifecycleError,
    SvcMoxError,
    UnconfiguredCallError,
    VerificationError,
)
from .expectations import Expectations, RepeatCount
from .in_order import InOrder
from .interface import OperationKey, OperationKind, describe_interface
from .pytest_plugin import svc_mox as svc_mox_fixture
from .verifiers import (
    AtLeast,
    AtLeastOnce,
    AtMost,
    Between,
    Never,
    Times,
    call_count,
    received_inputs,
    verify,
    verify_no_interactions,
)

__all__ = [
    "Any",
    "AtLeast",
    "AtLeastOnce",
    "AtMost",
    "Between",
    "Compute",
    "Exact",
    "Expectations",
    "InOrder",
    "IsNil",
    "IsNotNil",
    "LifecycleError",
    "Never",
    "OperationKey",
    "OperationKind",
    "Phase",
    "Predicate",
    "Range",
    "RepeatCount",
    "ReturnValue",
    "ServiceDouble",
    "Succeed",
    "SvcMox",
    "SvcMoxError",
    "ThrowError",
    "Times",
    "UnconfiguredCallError",
    "VerificationError",
    "call_count",
    "describe_interface",
    "received_inputs",
    "svc_mox_fixture",
    "verify",
    "verify_no_interactions",
]
