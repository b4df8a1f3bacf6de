"""Shopper-facing services that live next to the cart."""
from .recently_viewed import RecentlyViewedService
from .wishlist import WishlistService

__all__ = [
    "RecentlyViewedService",
    "WishlistService",
]
