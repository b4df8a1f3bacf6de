"""Pytest configuration and fixtures"""
import os

import pytest
from unittest.mock import AsyncMock

# Keep test logs readable and independent of the developer's shell
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("CART_STORE_BACKEND", "memory")

from storefront.cart import CartRepository, MemoryCartStore  # noqa: E402


class FakeClock:
    """Manually advanced time source in POSIX seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


CART_TTL = 3600


@pytest.fixture
def clock():
    """Fake clock shared by store and repository"""
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """In-memory cart store on the fake clock"""
    return MemoryCartStore(clock=clock)


@pytest.fixture
def repository(memory_store, clock):
    """Cart repository over the memory store, no retry delay"""
    return CartRepository(memory_store, ttl=CART_TTL, retry_backoff=0, clock=clock)


@pytest.fixture
def mock_redis():
    """Mock async Upstash Redis client"""
    redis = AsyncMock()
    redis.get.return_value = None
    redis.eval.return_value = 1
    redis.delete.return_value = 1
    redis.sadd.return_value = 1
    redis.srem.return_value = 1
    redis.smembers.return_value = []
    redis.sismember.return_value = False
    redis.lrange.return_value = []
    return redis


class UpstashShapedRedis:
    """fakeredis client exposing the Upstash async call shape used here.

    Lua scripts run for real (fakeredis[lua]), so conditional writes and
    list trimming are executed rather than asserted on.
    """

    def __init__(self, client):
        self.client = client

    async def get(self, key):
        return await self.client.get(key)

    async def delete(self, *keys):
        return await self.client.delete(*keys)

    async def eval(self, script, keys=None, args=None):
        keys = keys or []
        return await self.client.eval(script, len(keys), *keys, *(args or []))

    async def lrange(self, key, start, stop):
        return await self.client.lrange(key, start, stop)


@pytest.fixture
def fake_redis():
    """Upstash-shaped client over an isolated fakeredis server"""
    import fakeredis

    server = fakeredis.FakeServer()
    return UpstashShapedRedis(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))
