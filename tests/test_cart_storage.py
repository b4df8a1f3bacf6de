"""Tests for cart storage backends"""
import pytest

from storefront.cart import MemoryCartStore, RedisCartStore
from storefront.cart.storage import CAS_DELETE_SCRIPT, CAS_SET_SCRIPT
from storefront.errors import StoreUnavailableError


@pytest.mark.asyncio
async def test_redis_load_uses_cart_prefix(mock_redis):
    """Test load reads the prefixed key"""
    mock_redis.get.return_value = '{"key": "sess1"}'
    store = RedisCartStore(mock_redis)

    assert await store.load("sess1") == '{"key": "sess1"}'
    mock_redis.get.assert_awaited_once_with("cart:sess1")


@pytest.mark.asyncio
async def test_redis_compare_and_set_on_absent_key(mock_redis):
    """Test absent expectation is sent as empty string with TTL"""
    store = RedisCartStore(mock_redis)

    assert await store.compare_and_set("sess1", None, "payload", 3600) is True
    mock_redis.eval.assert_awaited_once_with(
        CAS_SET_SCRIPT, keys=["cart:sess1"], args=["", "payload", "3600"]
    )


@pytest.mark.asyncio
async def test_redis_compare_and_set_mismatch(mock_redis):
    """Test script result 0 means the write lost"""
    mock_redis.eval.return_value = 0
    store = RedisCartStore(mock_redis)

    assert await store.compare_and_set("sess1", "old", "new", 60) is False


@pytest.mark.asyncio
async def test_redis_compare_and_delete(mock_redis):
    store = RedisCartStore(mock_redis)

    assert await store.compare_and_delete("sess1", "old") is True
    mock_redis.eval.assert_awaited_once_with(CAS_DELETE_SCRIPT, keys=["cart:sess1"], args=["old"])


@pytest.mark.asyncio
async def test_redis_delete(mock_redis):
    store = RedisCartStore(mock_redis)

    await store.delete("sess1")

    mock_redis.delete.assert_awaited_once_with("cart:sess1")


@pytest.mark.asyncio
async def test_redis_custom_key_builder(mock_redis):
    store = RedisCartStore(mock_redis, key_builder=lambda key: f"shop:eu:cart:{key}")

    await store.load("sess1")

    mock_redis.get.assert_awaited_once_with("shop:eu:cart:sess1")


@pytest.mark.asyncio
@pytest.mark.parametrize("method, args", [
    ("load", ("sess1",)),
    ("compare_and_set", ("sess1", None, "v", 10)),
    ("compare_and_delete", ("sess1", "v")),
    ("delete", ("sess1",)),
])
async def test_redis_errors_become_store_unavailable(mock_redis, method, args):
    """Test client failures are wrapped, keeping the cause"""
    error = ConnectionError("connection refused")
    mock_redis.get.side_effect = error
    mock_redis.eval.side_effect = error
    mock_redis.delete.side_effect = error
    store = RedisCartStore(mock_redis)

    with pytest.raises(StoreUnavailableError) as exc_info:
        await getattr(store, method)(*args)

    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_memory_compare_and_set(clock):
    store = MemoryCartStore(clock=clock)

    assert await store.compare_and_set("k", None, "v1", 60) is True
    assert await store.compare_and_set("k", None, "v2", 60) is False
    assert await store.compare_and_set("k", "v1", "v2", 60) is True
    assert await store.load("k") == "v2"


@pytest.mark.asyncio
async def test_memory_compare_and_delete(clock):
    store = MemoryCartStore(clock=clock)
    await store.compare_and_set("k", None, "v1", 60)

    assert await store.compare_and_delete("k", "other") is False
    assert await store.compare_and_delete("k", "v1") is True
    assert await store.load("k") is None


@pytest.mark.asyncio
async def test_memory_ttl_eviction(clock):
    store = MemoryCartStore(clock=clock)
    await store.compare_and_set("k", None, "v1", 60)

    clock.advance(59)
    assert await store.load("k") == "v1"

    clock.advance(1)
    assert await store.load("k") is None
    assert len(store) == 0


@pytest.mark.asyncio
async def test_memory_expired_entry_counts_as_absent_for_cas(clock):
    store = MemoryCartStore(clock=clock)
    await store.compare_and_set("k", None, "v1", 60)
    clock.advance(61)

    assert await store.compare_and_set("k", None, "v2", 60) is True


@pytest.mark.asyncio
async def test_memory_delete_missing_key(clock):
    store = MemoryCartStore(clock=clock)

    await store.delete("missing")

    assert len(store) == 0


@pytest.mark.asyncio
async def test_memory_write_sweeps_other_expired_keys(clock):
    """Test expired carts nobody reads again do not pile up"""
    store = MemoryCartStore(clock=clock)
    await store.compare_and_set("old-1", None, "v", 60)
    await store.compare_and_set("old-2", None, "v", 60)
    clock.advance(61)

    await store.compare_and_set("new", None, "v", 60)

    assert len(store) == 1
    assert await store.load("new") == "v"
