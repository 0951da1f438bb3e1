"""Sample service interfaces shared by the unit and behavioural tests."""

from __future__ import annotations

import abc
import typing as t


class UserService(t.Protocol):
    """Protocol with sync, async and property operations."""

    timeout: float

    def fetch_user(self, user_id: str) -> str: ...

    def rename(self, user_id: str, name: str | None = None) -> None: ...

    def ping(self) -> str: ...

    async def load_profile(self, user_id: str) -> dict[str, str]: ...

    @property
    def is_logged_in(self) -> bool: ...


class Storage(abc.ABC):
    """Abstract base class interface."""

    @abc.abstractmethod
    def put(self, key: str, value: int) -> None:
        """Store *value* under *key*."""

    @abc.abstractmethod
    def get(self, key: str) -> int:
        """Return the value stored under *key*."""

    @property
    @abc.abstractmethod
    def size(self) -> int:
        """Return the number of stored keys."""

    @abc.abstractmethod
    def _flush(self) -> None:
        """Write pending changes; never part of the public surface."""

    @staticmethod
    def backend_name() -> str:
        return "abstract"


class Logger(t.Protocol):
    """Minimal collaborator used in ordering tests."""

    def log(self, message: str) -> None: ...


class ServiceError(Exception):
    """Failure declared by the sample services."""
