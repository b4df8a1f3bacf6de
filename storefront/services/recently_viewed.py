"""Recently Viewed Service.

Most-recent-first list of product ids per session or user key, without
duplicates and capped at a fixed length.
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

# Move-to-front, cap and TTL refresh as one atomic step
RECORD_VIEW_SCRIPT = """
redis.call('LREM', KEYS[1], 0, ARGV[1])
redis.call('LPUSH', KEYS[1], ARGV[1])
redis.call('LTRIM', KEYS[1], 0, tonumber(ARGV[2]) - 1)
redis.call('EXPIRE', KEYS[1], tonumber(ARGV[3]))
return 1
"""


class RecentlyViewedService:
    """Recently viewed products backed by a capped Redis list."""

    def __init__(self, redis, limit: int, ttl: int) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.redis = redis
        self.limit = limit
        self.ttl = ttl

    async def record(self, key: str, product_id: str) -> None:
        """Mark product as just viewed, moving it to the front."""
        if not isinstance(key, str) or not key:
            raise ValidationError(ERROR_EMPTY_KEY)
        if not isinstance(product_id, str) or not product_id:
            raise ValidationError(ERROR_EMPTY_PRODUCT_ID)
        try:
            await self.redis.eval(
                RECORD_VIEW_SCRIPT,
                keys=[RedisKeys.recently_viewed_key(key)],
                args=[product_id, str(self.limit), str(self.ttl)],
            )
        except Exception as e:
            logger.error("Failed to record view for %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e

    async def get_items(self, key: str) -> list[str]:
        """Product ids, newest first."""
        if not isinstance(key, str) or not key:
            raise ValidationError(ERROR_EMPTY_KEY)
        try:
            items = await self.redis.lrange(RedisKeys.recently_viewed_key(key), 0, self.limit - 1)
        except Exception as e:
            logger.error("Failed to get recently viewed for %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
        return list(items or [])

    async def clear(self, key: str) -> None:
        if not isinstance(key, str) or not key:
            raise ValidationError(ERROR_EMPTY_KEY)
        try:
            await self.redis.delete(RedisKeys.recently_viewed_key(key))
        except Exception as e:
            logger.error("Failed to clear recently viewed for %s: %s", sanitize_id_for_logging(key), type(e).__name__)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
