"""
Tests for RedisIdempotencyStore.

Runs against a small in-process stand-in for the redis.asyncio client that
implements the handful of commands the store issues.
"""

from datetime import timedelta

import pytest
import redis.asyncio as redis

from snakeshop.storage import StorageError
from snakeshop.storage.redis import RedisIdempotencyStore


class FakePipeline:
    def __init__(self, client):
        self._client = client
        self._commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def delete(self, key):
        self._commands.append(("delete", key))

    async def hset(self, key, mapping):
        self._commands.append(("hset", key, mapping))

    async def pexpire(self, key, ms):
        self._commands.append(("pexpire", key, ms))

    async def execute(self):
        if self._client.fail:
            raise redis.ConnectionError("connection refused")
        for command, key, *args in self._commands:
            if command == "delete":
                await self._client.delete(key)
            elif command == "hset":
                self._client.hashes[key] = {
                    k.encode(): v if isinstance(v, bytes) else str(v).encode()
                    for k, v in args[0].items()
                }
            elif command == "pexpire":
                self._client.expiries[key] = args[0]


class FakeRedis:
    def __init__(self):
        self.hashes = {}
        self.expiries = {}
        self.fail = False
        self.fail_delete = False
        self.closed = False

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def hgetall(self, key):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        return dict(self.hashes.get(key, {}))

    async def delete(self, key):
        if self.fail_delete:
            raise redis.ConnectionError("connection lost")
        self.hashes.pop(key, None)
        self.expiries.pop(key, None)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_store(fake_redis, fake_clock):
    return RedisIdempotencyStore(client=fake_redis, ttl=timedelta(hours=1), clock=fake_clock)


@pytest.mark.asyncio
async def test_store_then_lookup(redis_store, fake_redis):
    await redis_store.store("key-1", 503, b'{"Status":"Fail"}')

    entry = await redis_store.lookup("key-1")

    assert entry.status_code == 503
    assert entry.body == b'{"Status":"Fail"}'
    assert fake_redis.expiries["snakeshop:idem:key-1"] == 3_600_000


@pytest.mark.asyncio
async def test_lookup_missing_key(redis_store):
    assert await redis_store.lookup("absent") is None


@pytest.mark.asyncio
async def test_empty_key_is_ignored(redis_store, fake_redis):
    await redis_store.store("", 200, b"body")

    assert fake_redis.hashes == {}
    assert await redis_store.lookup("") is None


@pytest.mark.asyncio
async def test_expired_entry_is_evicted(redis_store, fake_redis, fake_clock):
    await redis_store.store("key-1", 200, b"body")

    fake_clock.advance(timedelta(hours=1, seconds=1))

    assert await redis_store.lookup("key-1") is None
    assert "snakeshop:idem:key-1" not in fake_redis.hashes


@pytest.mark.asyncio
async def test_backend_failure_raises_storage_error(redis_store, fake_redis):
    fake_redis.fail = True

    with pytest.raises(StorageError):
        await redis_store.store("key-1", 200, b"body")
    with pytest.raises(StorageError):
        await redis_store.lookup("key-1")


@pytest.mark.asyncio
async def test_eviction_failure_raises_storage_error(redis_store, fake_redis, fake_clock):
    await redis_store.store("key-1", 200, b"body")
    fake_clock.advance(timedelta(hours=2))
    fake_redis.fail_delete = True

    with pytest.raises(StorageError):
        await redis_store.lookup("key-1")


@pytest.mark.asyncio
async def test_corrupt_entry_raises_storage_error(redis_store, fake_redis):
    fake_redis.hashes["snakeshop:idem:key-1"] = {b"body": b"x"}

    with pytest.raises(StorageError):
        await redis_store.lookup("key-1")


@pytest.mark.asyncio
async def test_not_connected_raises():
    store = RedisIdempotencyStore()

    with pytest.raises(StorageError):
        await store.lookup("key-1")


@pytest.mark.asyncio
async def test_close_releases_client(redis_store, fake_redis):
    await redis_store.close()

    assert fake_redis.closed
    with pytest.raises(StorageError):
        await redis_store.store("key-1", 200, b"body")
