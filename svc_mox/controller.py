"""SvcMox controller: creates doubles for a test and checks them at the end."""

from __future__ import annotations

import enum
import logging
import types  # noqa: TC003
import typing as t

from .double import ServiceDouble, domain_of, name_of
from .errors import LifecycleError, UnconfiguredCallError, VerificationError
from .expectations import Expectations
from .in_order import InOrder
from .verifiers import format_sections

logger = logging.getLogger(__name__)


class Phase(enum.StrEnum):
    """Lifecycle phases for :class:`SvcMox`."""

    ACTIVE = "ACTIVE"
    VERIFIED = "VERIFIED"


class SvcMox:
    """Track the doubles of one test and run end-of-test checks."""

    def __init__(
        self,
        *,
        verify_on_exit: bool = True,
        strict_expectations: bool = False,
    ) -> None:
        """Create a new controller.

        Parameters
        ----------
        verify_on_exit:
            When ``True`` (the default), :meth:`__exit__` calls :meth:`verify`
            if the block finished without raising.
        strict_expectations:
            When ``True``, :meth:`verify` also fails for entries with a fixed
            repeat count that were not used up.
        """
        self._verify_on_exit = verify_on_exit
        self.strict_expectations = strict_expectations
        self._phase = Phase.ACTIVE
        self._doubles: list[ServiceDouble] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def phase(self) -> Phase:
        """Return the current lifecycle phase."""
        return self._phase

    @property
    def doubles(self) -> tuple[ServiceDouble, ...]:
        """Return the doubles created through this controller."""
        return tuple(self._doubles)

    # ------------------------------------------------------------------
    # Context manager protocol
    # ------------------------------------------------------------------
    def __enter__(self) -> SvcMox:
        """Enter the controller context."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Verify on a clean exit when ``verify_on_exit`` is set."""
        if exc_type is not None or not self._verify_on_exit:
            return
        if self._phase is Phase.ACTIVE:
            self.verify()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def expectations(self, interface: type) -> Expectations:
        """Return a fresh :class:`Expectations` builder for *interface*."""
        self._require_phase(Phase.ACTIVE, "expectations")
        return Expectations(interface)

    def double(
        self, expectations: Expectations, *, name: str | None = None
    ) -> ServiceDouble:
        """Build a double from *expectations* and track it."""
        self._require_phase(Phase.ACTIVE, "double")
        dbl = expectations.build(name=name)
        self._doubles.append(dbl)
        return dbl

    def in_order(self, *doubles: object, strict: bool = False) -> InOrder:
        """Return an :class:`InOrder` session over *doubles*."""
        return InOrder(*doubles, strict=strict)

    def verify(self) -> None:
        """Fail for swallowed unconfigured calls and, if strict, unused entries."""
        self._require_phase(Phase.ACTIVE, "verify")
        try:
            self._check_unconfigured_calls()
            if self.strict_expectations:
                self._check_pending_expectations()
        finally:
            self._phase = Phase.VERIFIED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_phase(self, expected: Phase, action: str) -> None:
        """Ensure we're in ``expected`` phase before executing ``action``."""
        if self._phase is not expected:
            msg = (
                f"Cannot call {action}(): not in '{expected.name.lower()}' phase "
                f"(current phase: {self._phase.name.lower()})"
            )
            raise LifecycleError(msg)

    def _check_unconfigured_calls(self) -> None:
        errors = [
            err for dbl in self._doubles for err in domain_of(dbl).unconfigured()
        ]
        if not errors:
            return
        logger.debug("%d unconfigured call(s) recorded", len(errors))
        if len(errors) == 1:
            raise UnconfiguredCallError(str(errors[0]))
        body = "\n\n".join(str(err) for err in errors)
        msg = format_sections(
            f"{len(errors)} calls had no matching expectation.", [("Calls", body)]
        )
        raise UnconfiguredCallError(msg)

    def _check_pending_expectations(self) -> None:
        lines: list[str] = []
        for dbl in self._doubles:
            name = name_of(dbl)
            lines.extend(
                f"{name}.{key}{entry.describe()}"
                for key, entry in domain_of(dbl).pending_entries()
            )
        if not lines:
            return
        msg = format_sections(
            "Unfulfilled expectations.", [("Entries with uses left", "\n".join(lines))]
        )
        raise VerificationError(msg)


__all__ = ["Phase", "SvcMox"]
