"""Cart models with Decimal-based price snapshots."""
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from storefront.money import round_money, multiply, to_decimal

Variant = Tuple[str, ...]


def normalize_variant(variant: Optional[Iterable[str]]) -> Variant:
    """Normalize selected options to a sorted tuple of unique ids.

    A bare string is one option, not a sequence of characters.
    """
    if variant is None:
        return ()
    if isinstance(variant, str):
        variant = (variant,)
    options = tuple(variant)
    if any(not isinstance(option, str) or not option for option in options):
        raise ValueError("variant options must be non-empty strings")
    return tuple(sorted(set(options)))


def line_key(product_id: str, variant: Variant = ()) -> str:
    """Identity of a line item inside one cart."""
    if not variant:
        return product_id
    return f"{product_id}|{','.join(variant)}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CartItem:
    """Single line in the cart."""
    product_id: str
    quantity: int
    unit_price: Decimal  # snapshot taken when the line was created
    variant: Variant = ()
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = _now_iso()
        self.unit_price = to_decimal(self.unit_price)
        self.variant = normalize_variant(self.variant)

    @property
    def key(self) -> str:
        return line_key(self.product_id, self.variant)

    @property
    def line_total(self) -> Decimal:
        """Total price for all units."""
        return round_money(multiply(self.unit_price, self.quantity))

    def matches(self, product_id: str, variant: Variant) -> bool:
        return self.product_id == product_id and self.variant == variant

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "variant": list(self.variant),
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        quantity = int(data["quantity"])
        if quantity < 1:
            raise ValueError(f"Stored quantity must be positive, got {quantity}")
        return cls(
            product_id=data["product_id"],
            quantity=quantity,
            unit_price=to_decimal(data["unit_price"]),
            variant=tuple(data.get("variant") or ()),
            added_at=data.get("added_at", ""),
        )


@dataclass
class Cart:
    """Shopping cart for one session or user key.

    Instances returned by the repository are value copies; changing
    them has no effect on stored state.
    """
    key: str
    items: List[CartItem] = field(default_factory=list)
    version: int = 0
    created_at: str = ""
    updated_at: str = ""
    expires_at: Optional[float] = None

    def __post_init__(self):
        now = _now_iso()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = now

    @classmethod
    def empty(cls, key: str) -> "Cart":
        return cls(key=key)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        """Sum of line totals at snapshot prices."""
        return sum((item.line_total for item in self.items), Decimal("0.00"))

    def find(self, product_id: str, variant: Variant = ()) -> Optional[CartItem]:
        return next((item for item in self.items if item.matches(product_id, variant)), None)

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self) -> dict:
        """Convert to dictionary for Redis storage."""
        return {
            "key": self.key,
            "items": [item.to_dict() for item in self.items],
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cart":
        items = [CartItem.from_dict(item) for item in data.get("items", [])]
        lines = [(item.product_id, item.variant) for item in items]
        if len(set(lines)) != len(lines):
            raise ValueError("Stored cart has duplicate lines")
        expires_at = data.get("expires_at")
        return cls(
            key=data["key"],
            items=items,
            version=int(data.get("version", 0)),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            expires_at=float(expires_at) if expires_at is not None else None,
        )
