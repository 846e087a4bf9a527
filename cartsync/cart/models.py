"""Cart line item model with Decimal-based pricing."""
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Optional

from cartsync.money import to_decimal, round_money, multiply


class ProductKind(str, Enum):
    """Catalog entity a backend line points at."""
    LAPTOP = "laptop"
    BOOK = "book"


@dataclass(frozen=True)
class CartLineItem:
    """
    Single row of the cart: a product, its price snapshot and quantity.

    ``line_id`` is the backend identity handle and is only set once the
    line has been confirmed by the cart service. ``product_id`` links the
    line to the catalog; without it the line can never be synced.
    """
    title: str
    price: Decimal
    quantity: int = 1
    line_id: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    product_id: Optional[str] = None
    image: Optional[str] = None
    kind: Optional[ProductKind] = None

    def __post_init__(self):
        if not self.title or not isinstance(self.title, str):
            raise ValueError("title must be a non-empty string")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError("quantity must be a positive integer")
        price = to_decimal(self.price)
        if not price.is_finite() or price < 0:
            raise ValueError("price must be a finite non-negative number")
        object.__setattr__(self, "price", price)

    @property
    def slot_key(self) -> tuple[str, Decimal]:
        """Local-mode merge key: two lines are the same slot iff (title, price) match."""
        return (self.title, self.price)

    @property
    def line_total(self) -> Decimal:
        return round_money(multiply(self.price, self.quantity))

    def with_quantity(self, quantity: int) -> "CartLineItem":
        """Copy of this line with a new quantity (must stay >= 1)."""
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        """Convert to dictionary for UI bindings."""
        return {
            "line_id": self.line_id,
            "title": self.title,
            "brand": self.brand,
            "category": self.category,
            "price": str(self.price),
            "quantity": self.quantity,
            "product_id": self.product_id,
            "image": self.image,
            "kind": self.kind.value if self.kind else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLineItem":
        """Create from dictionary."""
        kind = data.get("kind")
        return cls(
            title=data["title"],
            price=to_decimal(data["price"]),
            quantity=int(data.get("quantity", 1)),
            line_id=data.get("line_id"),
            brand=data.get("brand"),
            category=data.get("category"),
            product_id=data.get("product_id"),
            image=data.get("image"),
            kind=ProductKind(kind) if kind else None,
        )
