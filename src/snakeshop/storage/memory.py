"""In-memory idempotency store.

Design Pattern: Adapter Pattern
InMemoryIdempotencyStore adapts a plain dictionary to the IdempotencyStore
interface.

Instance is immediately usable after __init__.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from snakeshop.storage.base import (
    DEFAULT_TTL,
    Clock,
    IdempotencyEntry,
    IdempotencyStore,
    utc_now,
)

logger = logging.getLogger(__name__)


class InMemoryIdempotencyStore(IdempotencyStore):
    """Process-local idempotency cache.

    Can be substituted for RedisIdempotencyStore without changing client code.

    Usage:
        store = InMemoryIdempotencyStore()
        await store.store("key-1", 200, b'{"Status":"Success"}')
        entry = await store.lookup("key-1")

        # Tests control time through the clock
        store = InMemoryIdempotencyStore(clock=fake_clock)
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Clock = utc_now):
        """Initialize an empty store.

        Args:
            ttl: Age after which an entry is treated as absent
            clock: Returns the current (timezone-aware) time
        """
        self.ttl = ttl
        self._clock = clock

        # Storage: {key: IdempotencyEntry}
        self._entries: dict[str, IdempotencyEntry] = {}

        # Lock for task-safety; never held across an await of anything else
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"InMemoryIdempotencyStore(ttl={self.ttl})"

    def __len__(self) -> int:
        return len(self._entries)

    async def lookup(self, key: str) -> IdempotencyEntry | None:
        if not key:
            return None

        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock(), self.ttl):
                del self._entries[key]
                logger.debug(f"Evicted expired idempotency entry: key={key!r}")
                return None

            # Callers get a fresh entry, never the stored instance
            return IdempotencyEntry(
                key=entry.key,
                status_code=entry.status_code,
                body=bytes(entry.body),
                created_at=entry.created_at,
            )

    async def store(self, key: str, status_code: int, body: bytes) -> None:
        if not key:
            return

        # bytes() snapshots bytearray/memoryview inputs
        entry = IdempotencyEntry(
            key=key,
            status_code=status_code,
            body=bytes(body),
            created_at=self._clock(),
        )
        async with self._lock:
            self._entries[key] = entry

    async def purge_expired(self) -> int:
        """Remove every expired entry. Returns count removed."""
        async with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now, self.ttl)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    async def reset(self) -> None:
        """Drop every entry (testing helper)."""
        async with self._lock:
            self._entries.clear()
