"""Tests for WishlistService"""
import pytest

from storefront.errors import StoreUnavailableError, ValidationError
from storefront.services import WishlistService


@pytest.mark.asyncio
async def test_add_item(mock_redis):
    """Test adding a new product"""
    service = WishlistService(mock_redis)

    assert await service.add_item("user-1", "sku-1") is True
    mock_redis.sadd.assert_awaited_once_with("wishlist:user-1", "sku-1")


@pytest.mark.asyncio
async def test_add_existing_item(mock_redis):
    """Test adding a product already in the wishlist"""
    mock_redis.sadd.return_value = 0
    service = WishlistService(mock_redis)

    assert await service.add_item("user-1", "sku-1") is False


@pytest.mark.asyncio
async def test_remove_item(mock_redis):
    service = WishlistService(mock_redis)

    assert await service.remove_item("user-1", "sku-1") is True
    mock_redis.srem.assert_awaited_once_with("wishlist:user-1", "sku-1")

    mock_redis.srem.return_value = 0
    assert await service.remove_item("user-1", "sku-1") is False


@pytest.mark.asyncio
async def test_get_items_sorted(mock_redis):
    mock_redis.smembers.return_value = ["sku-3", "sku-1", "sku-2"]
    service = WishlistService(mock_redis)

    assert await service.get_items("user-1") == ["sku-1", "sku-2", "sku-3"]


@pytest.mark.asyncio
async def test_get_items_empty(mock_redis):
    mock_redis.smembers.return_value = None
    service = WishlistService(mock_redis)

    assert await service.get_items("user-1") == []


@pytest.mark.asyncio
async def test_is_in_wishlist(mock_redis):
    mock_redis.sismember.return_value = 1
    service = WishlistService(mock_redis)

    assert await service.is_in_wishlist("user-1", "sku-1") is True
    mock_redis.sismember.assert_awaited_once_with("wishlist:user-1", "sku-1")


@pytest.mark.asyncio
async def test_clear(mock_redis):
    service = WishlistService(mock_redis)

    await service.clear("user-1")

    mock_redis.delete.assert_awaited_once_with("wishlist:user-1")


@pytest.mark.asyncio
async def test_validation(mock_redis):
    service = WishlistService(mock_redis)

    with pytest.raises(ValidationError):
        await service.add_item("", "sku-1")
    with pytest.raises(ValidationError):
        await service.add_item("user-1", "")
    mock_redis.sadd.assert_not_awaited()


@pytest.mark.asyncio
async def test_store_failure(mock_redis):
    mock_redis.smembers.side_effect = TimeoutError("slow")
    service = WishlistService(mock_redis)

    with pytest.raises(StoreUnavailableError):
        await service.get_items("user-1")
