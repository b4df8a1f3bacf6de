"""Cart package: models, storage backends, repository and service."""
from .models import Cart, CartItem
from .repository import CartRepository
from .service import CartService
from .storage import CartStore, MemoryCartStore, RedisCartStore

__all__ = [
    "Cart",
    "CartItem",
    "CartRepository",
    "CartService",
    "CartStore",
    "MemoryCartStore",
    "RedisCartStore",
]
