"""Custom exceptions raised by :mod:`svc_mox`."""

from __future__ import annotations


class SvcMoxError(Exception):
    """Base class for all svc_mox errors."""


class LifecycleError(SvcMoxError):
    """Raised when expectations or doubles are used in the wrong phase."""


class UnconfiguredCallError(SvcMoxError):
    """Raised when a double receives a call no expectation can satisfy."""


class VerificationError(SvcMoxError, AssertionError):
    """Raised when a verification or ordering check fails."""


__all__ = [
    "LifecycleError",
    "SvcMoxError",
    "UnconfiguredCallError",
    "VerificationError",
]
