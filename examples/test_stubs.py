"""Example tests demonstrating canned responses."""

from __future__ import annotations

import asyncio
import typing as t

import pytest

from examples._utils import Inventory, PaymentError, PaymentGateway, basket_total
from svc_mox import Any, Predicate, Range

pytest_plugins = ("svc_mox.pytest_plugin",)

if t.TYPE_CHECKING:  # pragma: no cover - typing only
    from svc_mox.controller import SvcMox


def test_stub_returns_configured_values(svc_mox: SvcMox) -> None:
    """Entries answer calls in the order they were declared."""
    exp = svc_mox.expectations(PaymentGateway)
    exp.charge("acct-1", Range(1, 10_000)).returns("r-1")
    exp.charge(Any(), Any()).raises(PaymentError("declined"))
    gateway = svc_mox.double(exp)

    assert gateway.charge("acct-1", 500) == "r-1"
    with pytest.raises(PaymentError, match="declined"):
        gateway.charge("acct-1", 500)


def test_stub_computes_responses(svc_mox: SvcMox) -> None:
    """``runs`` builds a response from the call arguments."""
    exp = svc_mox.expectations(Inventory)
    exp.reserve(Predicate(lambda sku: sku.startswith("A")), Any()).runs(
        lambda sku, quantity: quantity <= 3
    ).unbounded()
    inventory = svc_mox.double(exp)

    assert inventory.reserve("A-1", quantity=2) is True
    assert inventory.reserve("A-2", 5) is False


def test_async_operations_are_awaited(svc_mox: SvcMox) -> None:
    """Async interface methods become coroutines on the double."""
    exp = svc_mox.expectations(Inventory)
    exp.price("apple").returns(120)
    exp.price("pear").returns(80)
    inventory = svc_mox.double(exp)

    assert asyncio.run(basket_total(inventory, ["apple", "pear"])) == 200


def test_properties_are_operations(svc_mox: SvcMox) -> None:
    """Property reads and writes consume their own expectations."""
    exp = svc_mox.expectations(Inventory)
    exp.currency.get().returns("EUR")
    exp.currency.set("GBP").succeeds()
    inventory = svc_mox.double(exp)

    assert inventory.currency == "EUR"
    inventory.currency = "GBP"
