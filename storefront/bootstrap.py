"""
Service wiring.

Everything is constructed once, at process start, by build_services()
and handed to request handlers explicitly. There is no module-level
singleton to look services up from.

    services = build_services()
    cart = await services.cart.add_item("sess1", "sku-42", 2, "19.99")
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from storefront import db
from storefront.cart import CartRepository, CartService, MemoryCartStore, RedisCartStore
from storefront.cart.storage import CartStore
from storefront.logging import get_logger
from storefront.services import RecentlyViewedService, WishlistService

logger = get_logger(__name__)

BACKEND_REDIS = "redis"
BACKEND_MEMORY = "memory"


@dataclass(frozen=True)
class Services:
    """Process-wide service instances."""

    cart_repository: CartRepository
    cart: CartService
    wishlist: WishlistService
    recently_viewed: RecentlyViewedService


def _build_cart_store(backend: str, redis: Any, clock: Callable[[], float]) -> CartStore:
    if backend == BACKEND_REDIS:
        return RedisCartStore(redis)
    if backend == BACKEND_MEMORY:
        logger.warning("Using in-memory cart store; carts are not shared between processes")
        return MemoryCartStore(clock=clock)
    raise ValueError(f"Unknown cart store backend: {backend!r}")


def build_services(
    redis: Any = None,
    *,
    backend: Optional[str] = None,
    cart_ttl: Optional[int] = None,
    max_attempts: Optional[int] = None,
    recently_viewed_limit: Optional[int] = None,
    recently_viewed_ttl: Optional[int] = None,
    clock: Callable[[], float] = time.time,
) -> Services:
    """
    Construct all storefront services.

    Arguments left as None fall back to the environment settings in
    storefront.db. A Redis client is created from UPSTASH_REDIS_REST_URL /
    UPSTASH_REDIS_REST_TOKEN when none is passed.

    Args:
        redis: Shared async Upstash Redis client
        backend: Cart store backend, "redis" or "memory"
        cart_ttl: Cart time-to-live in seconds
        max_attempts: Compare-and-set attempts per cart mutation
        recently_viewed_limit: Max products kept in recently viewed
        recently_viewed_ttl: Recently viewed time-to-live in seconds
        clock: Time source in POSIX seconds

    Returns:
        Services bundle
    """
    backend = (backend or db.CART_STORE_BACKEND).lower()
    if redis is None:
        redis = db.create_redis()

    repository = CartRepository(
        _build_cart_store(backend, redis, clock),
        ttl=cart_ttl if cart_ttl is not None else db.TTL.CART,
        max_attempts=max_attempts if max_attempts is not None else db.CART_MAX_ATTEMPTS,
        clock=clock,
    )

    services = Services(
        cart_repository=repository,
        cart=CartService(repository),
        wishlist=WishlistService(redis),
        recently_viewed=RecentlyViewedService(
            redis,
            limit=recently_viewed_limit if recently_viewed_limit is not None else db.RECENTLY_VIEWED_LIMIT,
            ttl=recently_viewed_ttl if recently_viewed_ttl is not None else db.TTL.RECENTLY_VIEWED,
        ),
    )
    logger.info(
        "Storefront services ready (cart backend=%s, ttl=%ss, max_attempts=%s)",
        backend,
        repository.ttl,
        repository.max_attempts,
    )
    return services
