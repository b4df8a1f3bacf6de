"""Wishlist Service.

Keeps the set of product ids a shopper saved for later, one Redis set
per session or user key. Wishlists do not expire.
"""

from storefront.db import RedisKeys
from storefront.errors import (
    ERROR_EMPTY_KEY,
    ERROR_EMPTY_PRODUCT_ID,
    ERROR_STORE_UNAVAILABLE,
    StoreUnavailableError,
    ValidationError,
)
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


def _check(key: str, product_id: str | None = None) -> None:
    if not isinstance(key, str) or not key:
        raise ValidationError(ERROR_EMPTY_KEY)
    if product_id is not None and (not isinstance(product_id, str) or not product_id):
        raise ValidationError(ERROR_EMPTY_PRODUCT_ID)


class WishlistService:
    """Wishlist operations backed by a Redis set."""

    def __init__(self, redis) -> None:
        self.redis = redis

    async def add_item(self, key: str, product_id: str) -> bool:
        """Add product to wishlist.

        Returns:
            True if added, False if it was already there
        """
        _check(key, product_id)
        try:
            added = await self.redis.sadd(RedisKeys.wishlist_key(key), product_id)
        except Exception as e:
            logger.error("Failed to add to wishlist %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
        return int(added) > 0

    async def remove_item(self, key: str, product_id: str) -> bool:
        """Remove product from wishlist.

        Returns:
            True if removed, False if it was not there
        """
        _check(key, product_id)
        try:
            removed = await self.redis.srem(RedisKeys.wishlist_key(key), product_id)
        except Exception as e:
            logger.error("Failed to remove from wishlist %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
        return int(removed) > 0

    async def get_items(self, key: str) -> list[str]:
        """Product ids in the wishlist, sorted."""
        _check(key)
        try:
            members = await self.redis.smembers(RedisKeys.wishlist_key(key))
        except Exception as e:
            logger.error("Failed to get wishlist %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
        return sorted(members or [])

    async def is_in_wishlist(self, key: str, product_id: str) -> bool:
        _check(key, product_id)
        try:
            return bool(await self.redis.sismember(RedisKeys.wishlist_key(key), product_id))
        except Exception as e:
            logger.error("Failed to check wishlist %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e

    async def clear(self, key: str) -> None:
        _check(key)
        try:
            await self.redis.delete(RedisKeys.wishlist_key(key))
        except Exception as e:
            logger.error("Failed to clear wishlist %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
