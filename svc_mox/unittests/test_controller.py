"""Unit tests for the :class:`SvcMox` controller lifecycle."""

from __future__ import annotations

import pytest

from svc_mox import (
    Any,
    InOrder,
    LifecycleError,
    Phase,
    SvcMox,
    UnconfiguredCallError,
    VerificationError,
)
from svc_mox.unittests._services import Logger, UserService


def test_controller_tracks_doubles_and_verifies() -> None:
    """A clean run passes verification and moves to the verified phase."""
    mox = SvcMox()
    exp = mox.expectations(UserService)
    exp.ping().returns("pong")
    double = mox.double(exp, name="users")

    assert double.ping() == "pong"
    assert mox.doubles == (double,)
    mox.verify()
    assert mox.phase is Phase.VERIFIED


def test_swallowed_unconfigured_call_fails_verification() -> None:
    """Unconfigured calls caught by the code under test still fail the test."""
    mox = SvcMox()
    double = mox.double(mox.expectations(UserService))

    with pytest.raises(UnconfiguredCallError):
        double.ping()
    with pytest.raises(UnconfiguredCallError, match="no matching expectation"):
        mox.verify()
    assert mox.phase is Phase.VERIFIED


def test_several_unconfigured_calls_are_reported_together() -> None:
    """Every swallowed call appears in one report."""
    mox = SvcMox()
    users = mox.double(mox.expectations(UserService), name="users")
    log = mox.double(mox.expectations(Logger), name="log")

    for call in (users.ping, lambda: log.log("x")):
        with pytest.raises(UnconfiguredCallError):
            call()

    with pytest.raises(UnconfiguredCallError) as excinfo:
        mox.verify()
    message = str(excinfo.value)
    assert message.startswith("2 calls had no matching expectation.")
    assert "users received a call" in message
    assert "log received a call" in message


def test_unused_entries_pass_unless_strict() -> None:
    """Leftover single-use entries only fail strict controllers."""
    lenient = SvcMox()
    exp = lenient.expectations(UserService)
    exp.ping().returns("pong")
    lenient.double(exp)
    lenient.verify()

    strict = SvcMox(strict_expectations=True)
    exp = strict.expectations(UserService)
    exp.ping().returns("pong").times(2)
    exp.fetch_user(Any()).returns("u").unbounded()
    double = strict.double(exp, name="users")
    double.ping()

    with pytest.raises(VerificationError) as excinfo:
        strict.verify()
    message = str(excinfo.value)
    assert "Unfulfilled expectations." in message
    assert "users.ping() returns 'pong' [2 times, 1 left]" in message
    assert "fetch_user" not in message


def test_context_manager_verifies_on_clean_exit() -> None:
    """Leaving the block verifies automatically."""
    with pytest.raises(UnconfiguredCallError):  # noqa: PT012
        with SvcMox() as mox:
            double = mox.double(mox.expectations(UserService))
            try:
                double.ping()
            except UnconfiguredCallError:
                pass


def test_context_manager_skips_verification_on_error() -> None:
    """An exception in the block is not masked by verification."""
    with pytest.raises(RuntimeError, match="boom"):  # noqa: PT012
        with SvcMox() as mox:
            double = mox.double(mox.expectations(UserService))
            with pytest.raises(UnconfiguredCallError):
                double.ping()
            raise RuntimeError("boom")  # noqa: EM101, TRY003
    assert mox.phase is Phase.ACTIVE


def test_verify_on_exit_can_be_disabled() -> None:
    """``verify_on_exit=False`` leaves verification to the caller."""
    with SvcMox(verify_on_exit=False) as mox:
        mox.double(mox.expectations(UserService))
    assert mox.phase is Phase.ACTIVE


def test_lifecycle_is_enforced_after_verification() -> None:
    """Nothing new can be created once the controller has verified."""
    mox = SvcMox()
    mox.verify()

    with pytest.raises(LifecycleError, match="not in 'active' phase"):
        mox.expectations(UserService)
    with pytest.raises(LifecycleError):
        mox.verify()


def test_in_order_factory() -> None:
    """The controller hands out ordering sessions over its doubles."""
    mox = SvcMox()
    exp = mox.expectations(Logger)
    exp.log(Any()).succeeds().unbounded()
    log = mox.double(exp)
    log.log("a")

    order = mox.in_order(log, strict=True)
    assert isinstance(order, InOrder)
    assert order.strict
    order.verify(log).log("a")
