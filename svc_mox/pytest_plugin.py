"""Pytest plugin providing the ``svc_mox`` fixture.

The fixture hands each test a fresh :class:`SvcMox` controller and runs its
end-of-test checks during teardown. A check that fails after the test body
already failed does not add a second error; it is attached to the teardown
report as a ``svc_mox verification`` section instead.
"""

from __future__ import annotations

import logging
import typing as t

import pytest

from .controller import Phase, SvcMox
from .errors import SvcMoxError

logger = logging.getLogger(__name__)

_CALL_FAILED = pytest.StashKey[bool]()
_DEFERRED_ERROR = pytest.StashKey[SvcMoxError]()

_STRICT_KEY = "strict_expectations"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("svc_mox")
    group.addoption(
        "--svc-mox-strict-expectations",
        action="store_true",
        dest="svc_mox_strict_expectations",
        default=None,
        help=(
            "Fail tests whose svc_mox doubles still hold expectations with "
            "uses left at teardown. Overrides the ini setting."
        ),
    )
    group.addoption(
        "--no-svc-mox-strict-expectations",
        action="store_false",
        dest="svc_mox_strict_expectations",
        default=None,
        help="Allow unused svc_mox expectations. Overrides the ini setting.",
    )
    parser.addini(
        "svc_mox_strict_expectations",
        "Fail at teardown when svc_mox expectations were not used up.",
        type="bool",
        default=False,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "svc_mox(strict_expectations: bool = False): override the "
            "unused-expectation check for a single test."
        ),
    )


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Note call-stage failures and report checks deferred past them."""
    del call
    outcome = yield
    report: pytest.TestReport = outcome.get_result()
    if report.when == "call":
        item.stash[_CALL_FAILED] = report.failed
    elif report.when == "teardown":
        error = item.stash.get(_DEFERRED_ERROR, None)
        if error is not None:
            del item.stash[_DEFERRED_ERROR]
            report.sections.append(
                ("svc_mox verification", f"{type(error).__name__}: {error}")
            )


# ----------------------------------------------------------------------
# Strictness resolution
# ----------------------------------------------------------------------
def _strict_expectations(request: pytest.FixtureRequest) -> bool:
    """Resolve strictness from the marker, fixture param, CLI, then ini."""
    marker = request.node.get_closest_marker("svc_mox")
    if marker is not None and _STRICT_KEY in marker.kwargs:
        return bool(marker.kwargs[_STRICT_KEY])

    param = getattr(request, "param", None)
    if param is not None:
        return _strict_from_param(param)

    cli_value = request.config.getoption("svc_mox_strict_expectations")
    if cli_value is not None:
        return bool(cli_value)
    return bool(request.config.getini("svc_mox_strict_expectations"))


def _strict_from_param(param: object) -> bool:
    if isinstance(param, bool):
        return param
    if isinstance(param, dict) and _STRICT_KEY in param:
        return bool(param[_STRICT_KEY])
    got = f"keys {list(param)}" if isinstance(param, dict) else type(param).__name__
    msg = (
        f"svc_mox fixture param must be a bool or dict with {_STRICT_KEY!r} "
        f"key, got {got}"
    )
    raise TypeError(msg)


# ----------------------------------------------------------------------
# Fixture
# ----------------------------------------------------------------------
def _verify_at_teardown(mox: SvcMox) -> SvcMoxError | None:
    """Run the controller's end-of-test checks once and return any failure."""
    if mox.phase is not Phase.ACTIVE:
        return None
    try:
        mox.verify()
    except SvcMoxError as err:
        logger.exception("svc_mox verification failed at teardown")
        return err
    return None


@pytest.fixture
def svc_mox(request: pytest.FixtureRequest) -> t.Generator[SvcMox, None, None]:
    """Provide a :class:`SvcMox` controller verified at teardown."""
    strict = _strict_expectations(request)
    mox = SvcMox(verify_on_exit=False, strict_expectations=strict)
    yield mox

    error = _verify_at_teardown(mox)
    if error is None:
        return
    if request.node.stash.get(_CALL_FAILED, False):
        request.node.stash[_DEFERRED_ERROR] = error
        return
    pytest.fail(f"{type(error).__name__}: {error}", pytrace=False)
