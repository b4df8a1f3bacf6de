"""Cart repository: atomic, expiry-aware CRUD over carts.

Every mutation is an optimistic read-modify-write:

    load payload -> decode -> apply change -> compare-and-set(payload)

The store only commits if the payload is still the one that was loaded.
A lost race is retried with exponential backoff up to max_attempts, then
surfaces as ConflictError. Each persisted cart carries a version counter,
so two writes never produce the same payload.
"""
import asyncio
import json
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

from storefront.errors import (
    ERROR_EMPTY_KEY,
    ERROR_EMPTY_PRODUCT_ID,
    ERROR_INVALID_NEW_QUANTITY,
    ERROR_INVALID_QUANTITY,
    ERROR_INVALID_UNIT_PRICE,
    ERROR_INVALID_VARIANT,
    ERROR_ITEM_NOT_FOUND,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from storefront.logging import get_logger, key_fingerprint, sanitize_id_for_logging
from storefront.money import to_decimal

from .models import Cart, CartItem, Variant, line_key, normalize_variant
from .storage import CartStore

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_BACKOFF = 0.01  # seconds, doubled per attempt

# Change callbacks return True when the cart must be written back
CartChange = Callable[[Cart], bool]


def _validate_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValidationError(ERROR_EMPTY_KEY)


def _validate_product_id(product_id: str) -> None:
    if not isinstance(product_id, str) or not product_id:
        raise ValidationError(ERROR_EMPTY_PRODUCT_ID)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _variant(variant: Optional[Iterable[str]]) -> Variant:
    try:
        return normalize_variant(variant)
    except (TypeError, ValueError) as e:
        raise ValidationError(ERROR_INVALID_VARIANT) from e


def _price(unit_price) -> Decimal:
    try:
        price = to_decimal(unit_price)
    except ValueError as e:
        raise ValidationError(ERROR_INVALID_UNIT_PRICE) from e
    if price < 0:
        raise ValidationError(ERROR_INVALID_UNIT_PRICE)
    return price


class CartRepository:
    """
    Owns all reads and writes of carts in a shared key-value store.

    Features:
    - Empty cart for missing, expired or unreadable entries
    - Per-key atomic mutations via compare-and-set with bounded retries
    - TTL refreshed on every successful mutation, never on reads
    """

    def __init__(
        self,
        store: CartStore,
        ttl: int,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Cart:
        """Return the cart for key, or an empty cart."""
        _validate_key(key)
        raw, cart, stale = await self._read(key)
        if stale:
            # Only removes the entry if nobody rewrote it meanwhile
            try:
                await self.store.compare_and_delete(key, raw)
            except StoreUnavailableError:
                logger.warning(
                    "Could not remove stale cart %s, store TTL will expire it",
                    sanitize_id_for_logging(key),
                )
        return cart

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_item(
        self,
        key: str,
        product_id: str,
        quantity: int,
        unit_price,
        variant: Optional[Iterable[str]] = None,
    ) -> Cart:
        """Add quantity of product+variant, merging with an existing line."""
        _validate_key(key)
        _validate_product_id(product_id)
        if not _is_int(quantity) or quantity <= 0:
            raise ValidationError(ERROR_INVALID_QUANTITY)
        price = _price(unit_price)
        options = _variant(variant)

        def change(cart: Cart) -> bool:
            existing = cart.find(product_id, options)
            if existing is not None:
                # Price snapshot stays the one taken when the line was created
                existing.quantity += quantity
            else:
                cart.items.append(
                    CartItem(
                        product_id=product_id,
                        quantity=quantity,
                        unit_price=price,
                        variant=options,
                        added_at=self._now_iso(),
                    )
                )
            return True

        return await self._mutate(key, "add_item", change)

    async def update_quantity(
        self,
        key: str,
        product_id: str,
        new_quantity: int,
        variant: Optional[Iterable[str]] = None,
    ) -> Cart:
        """Set quantity of an existing line. Zero removes the line.

        Raises:
            NotFoundError: product+variant is not in the cart
        """
        _validate_key(key)
        _validate_product_id(product_id)
        if not _is_int(new_quantity) or new_quantity < 0:
            raise ValidationError(ERROR_INVALID_NEW_QUANTITY)
        options = _variant(variant)

        def change(cart: Cart) -> bool:
            existing = cart.find(product_id, options)
            if existing is None:
                raise NotFoundError(f"{ERROR_ITEM_NOT_FOUND}: {line_key(product_id, options)}")
            if new_quantity == 0:
                cart.items.remove(existing)
            else:
                existing.quantity = new_quantity
            return True

        return await self._mutate(key, "update_quantity", change)

    async def remove_item(
        self,
        key: str,
        product_id: str,
        variant: Optional[Iterable[str]] = None,
    ) -> Cart:
        """Remove a line if present. Absent lines are a no-op."""
        _validate_key(key)
        _validate_product_id(product_id)
        options = _variant(variant)

        def change(cart: Cart) -> bool:
            existing = cart.find(product_id, options)
            if existing is None:
                return False
            cart.items.remove(existing)
            return True

        return await self._mutate(key, "remove_item", change)

    async def clear(self, key: str) -> None:
        """Delete the cart entirely. Idempotent."""
        _validate_key(key)
        await self.store.delete(key)
        logger.info("Cart %s cleared", sanitize_id_for_logging(key))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _read(self, key: str) -> Tuple[Optional[str], Cart, bool]:
        """Load and decode.

        Returns (raw payload, cart, stale). stale is True when raw exists
        but is expired or unreadable, in which case cart is empty.
        """
        raw = await self.store.load(key)
        if raw is None:
            return None, Cart.empty(key), False

        try:
            cart = Cart.from_dict(json.loads(raw))
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Corrupted cart data for %s: %s", sanitize_id_for_logging(key), type(e).__name__
            )
            return raw, Cart.empty(key), True

        if cart.is_expired(self._clock()):
            return raw, Cart.empty(key), True
        return raw, cart, False

    async def _mutate(self, key: str, operation: str, change: CartChange) -> Cart:
        for attempt in range(self.max_attempts):
            raw, cart, _ = await self._read(key)

            if not change(cart):
                return cart

            if cart.is_empty:
                if raw is None:
                    return Cart.empty(key)
                committed = await self.store.compare_and_delete(key, raw)
                result = Cart.empty(key)
            else:
                payload = self._encode_for_write(cart)
                committed = await self.store.compare_and_set(key, raw, payload, self.ttl)
                result = cart

            if committed:
                logger.debug(
                    "Cart %s %s committed (version %s)",
                    sanitize_id_for_logging(key),
                    operation,
                    result.version,
                )
                return result

            logger.warning(
                "Cart %s %s lost a concurrent update (attempt %s/%s)",
                sanitize_id_for_logging(key),
                operation,
                attempt + 1,
                self.max_attempts,
            )
            if attempt + 1 < self.max_attempts:
                await asyncio.sleep(self._backoff_delay(attempt))

        logger.error(
            "Cart %s (fp %s) %s gave up after %s attempts",
            sanitize_id_for_logging(key),
            key_fingerprint(key),
            operation,
            self.max_attempts,
        )
        raise ConflictError(key, self.max_attempts)

    def _encode_for_write(self, cart: Cart) -> str:
        now = self._clock()
        if cart.version == 0:
            cart.created_at = self._now_iso(now)
        cart.version += 1
        cart.updated_at = self._now_iso(now)
        cart.expires_at = now + self.ttl
        return json.dumps(cart.to_dict(), separators=(",", ":"))

    def _backoff_delay(self, attempt: int) -> float:
        return float(self.retry_backoff * (2 ** attempt))

    def _now_iso(self, now: Optional[float] = None) -> str:
        if now is None:
            now = self._clock()
        return datetime.fromtimestamp(now, tz=timezone.utc).isoformat()
