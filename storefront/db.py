"""
Store Module - Redis client, key layout and storage settings.

Settings are read from the environment once, at import time, and handed
to constructors by storefront.bootstrap. Nothing else reads os.environ.
"""

import os

from upstash_redis.asyncio import Redis as AsyncRedis

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# "redis" in production, "memory" for local development without Upstash
CART_STORE_BACKEND = os.environ.get("CART_STORE_BACKEND", "redis").lower()

# Total compare-and-set attempts per cart mutation
CART_MAX_ATTEMPTS = int(os.environ.get("CART_MAX_ATTEMPTS", "5"))

RECENTLY_VIEWED_LIMIT = int(os.environ.get("RECENTLY_VIEWED_LIMIT", "10"))


def create_redis(url: str | None = None, token: str | None = None) -> AsyncRedis:
    """
    Create an async Upstash Redis client.

    Called once by the bootstrap; the client is then shared by every
    service. Falls back to UPSTASH_REDIS_REST_URL / UPSTASH_REDIS_REST_TOKEN.
    """
    url = url or UPSTASH_REDIS_REST_URL
    token = token or UPSTASH_REDIS_REST_TOKEN
    if not url or not token:
        raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
    return AsyncRedis(url=url, token=token)


class RedisKeys:
    """Redis key prefixes for different data types."""

    CART = "cart:"  # cart:{session_or_user_key}
    WISHLIST = "wishlist:"  # wishlist:{key}, set of product ids
    RECENTLY_VIEWED = "recent:"  # recent:{key}, list, newest first

    @staticmethod
    def cart_key(key: str) -> str:
        return f"{RedisKeys.CART}{key}"

    @staticmethod
    def wishlist_key(key: str) -> str:
        return f"{RedisKeys.WISHLIST}{key}"

    @staticmethod
    def recently_viewed_key(key: str) -> str:
        return f"{RedisKeys.RECENTLY_VIEWED}{key}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    CART = int(os.environ.get("CART_TTL_SECONDS", "2592000"))  # 30 days
    RECENTLY_VIEWED = int(os.environ.get("RECENTLY_VIEWED_TTL_SECONDS", "2592000"))  # 30 days
