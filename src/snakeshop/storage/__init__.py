"""Idempotency cache backends.

Provides multiple implementations behind a common interface:
    - IdempotencyStore: Abstract interface
    - InMemoryIdempotencyStore: Process-local cache
    - RedisIdempotencyStore: Cache shared across processes

Design: Adapter Pattern + Dependency Inversion (SOLID)
    The checkout transaction depends on IdempotencyStore, not on a concrete
    backend, so backends can be swapped without touching it.
"""

from snakeshop.storage.base import (
    DEFAULT_TTL,
    IdempotencyEntry,
    IdempotencyStore,
    StorageError,
)
from snakeshop.storage.memory import InMemoryIdempotencyStore

# Lazy import: redis is only needed when the Redis backend is used


def __getattr__(name: str):
    """Lazy import the Redis backend so redis-py stays optional at import time."""
    if name == "RedisIdempotencyStore":
        from snakeshop.storage.redis import RedisIdempotencyStore

        return RedisIdempotencyStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "DEFAULT_TTL",
    "IdempotencyEntry",
    "IdempotencyStore",
    "StorageError",
    "InMemoryIdempotencyStore",
    "RedisIdempotencyStore",
]
