"""Global test configuration and shared fixtures."""

from __future__ import annotations

import logging
import typing as t

import pytest

pytest_plugins = ("svc_mox.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def svc_mox_debug_logging(
    caplog: pytest.LogCaptureFixture,
) -> t.Generator[None, None, None]:
    """Capture svc_mox debug logs so failing tests show the call trail."""
    with caplog.at_level(logging.DEBUG, logger="svc_mox"):
        yield
