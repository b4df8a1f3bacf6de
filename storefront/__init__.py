"""
Storefront Package

Session-scoped shopper state kept in Redis:
- cart: cart models, storage backends, repository and service
- services: wishlist and recently viewed
- bootstrap: build_services() wiring
- db: Redis client factory, key layout and settings

Note: Imports are lazy so importing a submodule does not pull in the
whole dependency graph.
"""

__all__ = [
    "build_services",
    "Services",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name in ("build_services", "Services"):
        from storefront import bootstrap
        return getattr(bootstrap, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
