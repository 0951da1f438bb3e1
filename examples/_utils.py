"""Shared service interfaces and code under test for the runnable examples."""

from __future__ import annotations

import typing as t


class PaymentError(Exception):
    """Raised by a gateway when a charge is declined."""


class PaymentGateway(t.Protocol):
    """External payment provider."""

    def charge(self, account: str, cents: int) -> str: ...

    def refund(self, receipt: str) -> None: ...


class AuditLog(t.Protocol):
    """Append-only audit trail."""

    def record(self, event: str) -> None: ...


class Inventory(t.Protocol):
    """Stock lookups, some of them asynchronous."""

    currency: str

    def reserve(self, sku: str, quantity: int = 1) -> bool: ...

    async def price(self, sku: str) -> int: ...


def checkout(gateway: PaymentGateway, audit: AuditLog, account: str, cents: int) -> str:
    """Charge *account* and record the outcome; return the receipt or ``""``."""
    audit.record(f"charging {account}")
    try:
        receipt = gateway.charge(account, cents)
    except PaymentError:
        audit.record(f"declined {account}")
        return ""
    audit.record(f"charged {account}")
    return receipt


async def basket_total(inventory: Inventory, skus: list[str]) -> int:
    """Return the summed price of *skus*."""
    total = 0
    for sku in skus:
        total += await inventory.price(sku)
    return total
