"""Cache Port - Interface for the in-memory page/result cache."""

from __future__ import annotations

from typing import Protocol, TypeVar

T = TypeVar("T")


class CachePort(Protocol[T]):
    """Port for a synchronous key-value cache with lazy TTL expiry.

    Implementations:
      - TtlCache (in-memory, injectable clock)
    """

    def get(self, key: str) -> T | None:
        """Retrieve value. None = not found / expired."""
        ...

    def put(self, key: str, value: T) -> None:
        """Store value, stamped with the current clock reading."""
        ...
