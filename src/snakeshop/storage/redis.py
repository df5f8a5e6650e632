"""Redis-based idempotency store.

Lets several server processes share one idempotency cache, so a client
retry that lands on a different process still replays the stored response.

Data Structures:
- snakeshop:idem:{key} (HASH): status_code, body, created_at (epoch seconds)

Redis expires each hash after the TTL on its own; lookup() still checks the
age itself so the semantics match InMemoryIdempotencyStore even when the
key's expiry has not been processed yet.

Design: Adapter Pattern
Implements IdempotencyStore for Redis.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

try:
    import redis.asyncio as redis
except ImportError:
    raise ImportError(
        "redis-py is required for RedisIdempotencyStore. Install with: pip install redis"
    )

from snakeshop.storage.base import (
    DEFAULT_TTL,
    Clock,
    IdempotencyEntry,
    IdempotencyStore,
    StorageError,
    utc_now,
)

logger = logging.getLogger(__name__)


class RedisIdempotencyStore(IdempotencyStore):
    """Redis idempotency store using connection pooling.

    Usage:
        store = RedisIdempotencyStore("redis://localhost:6379")
        await store.connect()
        try:
            entry = await store.lookup(key)
        finally:
            await store.close()

    An already-configured client can be passed instead of a URL; connect()
    is then a no-op.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        ttl: timedelta = DEFAULT_TTL,
        max_connections: int = 16,
        client: redis.Redis | None = None,
        clock: Clock = utc_now,
    ):
        """Initialize Redis idempotency store.

        Args:
            redis_url: Redis connection URL
            ttl: Age after which an entry is treated as absent
            max_connections: Maximum pool size
            client: Pre-built client (skips connect())
            clock: Returns the current (timezone-aware) time
        """
        self.ttl = ttl
        self._redis_url = redis_url
        self._max_connections = max_connections
        self._redis = client
        self._clock = clock

    def __repr__(self) -> str:
        return f"RedisIdempotencyStore({self._redis_url})"

    async def connect(self) -> None:
        """Establish Redis connection pool."""
        if self._redis is not None:
            return
        self._redis = redis.from_url(
            self._redis_url,
            decode_responses=False,  # Bodies are binary
            max_connections=self._max_connections,
        )

    async def close(self) -> None:
        """Close Redis connection pool."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _check_connected(self) -> None:
        if self._redis is None:
            raise StorageError("Not connected. Call connect() first.")

    @staticmethod
    def _entry_key(key: str) -> str:
        """Build Redis key for an idempotency entry."""
        return f"snakeshop:idem:{key}"

    async def lookup(self, key: str) -> IdempotencyEntry | None:
        if not key:
            return None
        self._check_connected()

        redis_key = self._entry_key(key)
        try:
            data = await self._redis.hgetall(redis_key)
        except redis.RedisError as e:
            raise StorageError(f"Failed to read idempotency entry {key!r}: {e}") from e

        if not data:
            return None

        try:
            entry = IdempotencyEntry(
                key=key,
                status_code=int(data[b"status_code"]),
                body=bytes(data[b"body"]),
                created_at=datetime.fromtimestamp(float(data[b"created_at"]), UTC),
            )
        except (KeyError, ValueError) as e:
            raise StorageError(f"Failed to parse idempotency entry {key!r}: {e}") from e

        if entry.is_expired(self._clock(), self.ttl):
            try:
                await self._redis.delete(redis_key)
            except redis.RedisError as e:
                raise StorageError(f"Failed to evict idempotency entry {key!r}: {e}") from e
            logger.debug(f"Evicted expired idempotency entry: key={key!r}")
            return None

        return entry

    async def store(self, key: str, status_code: int, body: bytes) -> None:
        if not key:
            return
        self._check_connected()

        redis_key = self._entry_key(key)
        created_at = self._clock()
        ttl_ms = int(self.ttl.total_seconds() * 1000)

        # Atomic pipeline: replace the whole hash and reset its expiry
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.delete(redis_key)
                await pipe.hset(
                    redis_key,
                    mapping={
                        "status_code": str(status_code),
                        "body": bytes(body),
                        "created_at": str(created_at.timestamp()),
                    },
                )
                await pipe.pexpire(redis_key, ttl_ms)
                await pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f"Failed to store idempotency entry {key!r}: {e}") from e
