"""
IdempotencyStore - Abstract interface for idempotency cache backends.

Design Pattern: Adapter Pattern
IdempotencyStore defines the target interface that all cache backends
implement. The in-memory and Redis backends adapt to this common interface,
so the checkout transaction never knows where responses are kept.

Contract shared by every backend:
- An empty key never hits and is never stored (silent no-op)
- store() overwrites unconditionally and resets the creation timestamp
- An entry older than the TTL is reported absent and evicted by the lookup
  that notices it (no background sweep)
- Bodies cross the boundary as immutable ``bytes`` copies; callers never
  get a reference into backend storage
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

DEFAULT_TTL = timedelta(hours=24)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class IdempotencyEntry:
    """
    A stored response for one idempotency key.

    Attributes:
        key: Client-supplied idempotency key (non-empty)
        status_code: HTTP-equivalent status code of the stored response
        body: Serialized response body
        created_at: When the entry was (last) stored
    """

    key: str
    status_code: int
    body: bytes
    created_at: datetime

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        """Check if the entry is older than ``ttl`` at ``now``."""
        return now - self.created_at > ttl


class StorageError(Exception):
    """
    Storage operation failed.

    Raised for backend failures (connection, decoding), never for a miss.
    """

    pass


class IdempotencyStore(ABC):
    """
    Abstract idempotency cache.

    Clients program to this interface, not to concrete implementations:
    - InMemoryIdempotencyStore: single-process cache (default)
    - RedisIdempotencyStore: cache shared by several processes
    """

    ttl: timedelta = DEFAULT_TTL

    @abstractmethod
    async def lookup(self, key: str) -> IdempotencyEntry | None:
        """
        Return the stored response for ``key``, or None on a miss.

        A miss is returned for an empty key, an absent key, or an entry
        older than the TTL (which is evicted as a side effect).

        Raises:
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    async def store(self, key: str, status_code: int, body: bytes) -> None:
        """
        Store a response under ``key``, replacing any previous entry.

        An empty key is ignored.

        Raises:
            StorageError: If the backend fails
        """
        pass
