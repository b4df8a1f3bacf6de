"""Cart service: consumer facade over the cart repository."""
from typing import Iterable, Optional

from storefront.logging import get_logger, sanitize_id_for_logging

from .models import Cart
from .repository import CartRepository

logger = get_logger(__name__)


class CartService:
    """
    Cart operations as used by request handlers.

    Add-to-cart, update-cart and checkout-clear flows go through here;
    all persistence and atomicity is delegated to CartRepository.
    """

    def __init__(self, repository: CartRepository) -> None:
        self.repository = repository

    async def get_cart(self, key: str) -> Cart:
        return await self.repository.get(key)

    async def add_item(
        self,
        key: str,
        product_id: str,
        quantity: int,
        unit_price,
        variant: Optional[Iterable[str]] = None,
    ) -> Cart:
        return await self.repository.add_item(key, product_id, quantity, unit_price, variant)

    async def update_quantity(
        self,
        key: str,
        product_id: str,
        new_quantity: int,
        variant: Optional[Iterable[str]] = None,
    ) -> Cart:
        return await self.repository.update_quantity(key, product_id, new_quantity, variant)

    async def remove_item(
        self,
        key: str,
        product_id: str,
        variant: Optional[Iterable[str]] = None,
    ) -> Cart:
        return await self.repository.remove_item(key, product_id, variant)

    async def checkout_clear(self, key: str) -> None:
        """Drop the cart once its contents have been turned into an order."""
        await self.repository.clear(key)
        logger.info("Cart %s cleared after checkout", sanitize_id_for_logging(key))

    async def item_count(self, key: str) -> int:
        """Number of units in the cart, for badges."""
        cart = await self.repository.get(key)
        return cart.total_items

    async def get_cart_summary(self, key: str) -> dict:
        """Get JSON-ready cart summary. Money values are strings."""
        cart = await self.repository.get(key)

        if cart.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "items": [],
                "subtotal": "0.00",
                "expires_at": None,
            }

        return {
            "is_empty": False,
            "total_items": cart.total_items,
            "items": [
                {
                    "product_id": item.product_id,
                    "variant": list(item.variant),
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price),
                    "line_total": str(item.line_total),
                }
                for item in cart.items
            ],
            "subtotal": str(cart.subtotal),
            "expires_at": cart.expires_at,
        }
