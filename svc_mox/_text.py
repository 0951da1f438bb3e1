"""Wording shared by repeat counts and verification messages."""

from __future__ import annotations


def times_phrase(count: int) -> str:
    """Return ``"1 time"`` or ``"N times"`` for *count*."""
    return "1 time" if count == 1 else f"{count} times"
