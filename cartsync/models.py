"""
Pydantic Models - Backend payload schemas

Mirrors the cart and order gateway responses and maps them into the
client-side ``CartLineItem``. The product variant embedded in a cart line
(laptop or book) is resolved once here, as a tagged union, and never
re-inspected downstream.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cartsync.cart.models import CartLineItem, ProductKind
from cartsync.money import to_decimal as _to_decimal, to_float

UNKNOWN_PRODUCT_TITLE = "Unknown product"


# ============================================================
# Cart payloads
# ============================================================

class _ProductSummary(BaseModel):
    """Fields shared by every embedded product summary."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    brand: Optional[str] = Field(default=None, alias="Brand")
    model: Optional[str] = Field(default=None, alias="Model")
    spec: Optional[str] = Field(default=None, alias="Spec")
    category: Optional[str] = None
    price: Optional[Decimal] = None
    cover_image: Optional[str] = Field(default=None, alias="coverImage")
    image_url: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return None if v is None else _to_decimal(v)

    @property
    def display_title(self) -> str:
        return f"{self.brand or ''} {self.model or ''}".strip()

    @property
    def brand_label(self) -> Optional[str]:
        return self.brand


class LaptopSummary(_ProductSummary):
    kind: Literal["laptop"] = "laptop"


class BookSummary(_ProductSummary):
    kind: Literal["book"] = "book"
    title: Optional[str] = None
    author: Optional[str] = None

    @property
    def display_title(self) -> str:
        return (self.title or super().display_title).strip()

    @property
    def brand_label(self) -> Optional[str]:
        return self.brand or self.author


ProductSummary = Annotated[Union[LaptopSummary, BookSummary], Field(discriminator="kind")]


class BackendCartLine(BaseModel):
    """One persisted cart line as returned by the cart service."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    quantity: int
    price: Decimal = Decimal("0")
    product: Optional[ProductSummary] = None

    @model_validator(mode="before")
    @classmethod
    def fold_product_variant(cls, data):
        """Fold the raw ``laptop`` / ``book`` keys into a tagged ``product``."""
        if isinstance(data, dict) and data.get("product") is None:
            for kind in ProductKind:
                raw = data.get(kind.value)
                if isinstance(raw, dict):
                    return {**data, "product": {**raw, "kind": kind.value}}
        return data

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return _to_decimal(v)

    def to_line_item(self) -> CartLineItem:
        """Map to the client-side line item."""
        product = self.product
        if product is None:
            return CartLineItem(
                title=UNKNOWN_PRODUCT_TITLE,
                price=self.price,
                quantity=self.quantity,
                line_id=self.id,
            )
        return CartLineItem(
            title=product.display_title or UNKNOWN_PRODUCT_TITLE,
            price=product.price if product.price is not None else self.price,
            quantity=self.quantity,
            line_id=self.id,
            brand=product.brand_label,
            category=product.category,
            product_id=product.id,
            image=product.cover_image or product.image_url,
            kind=ProductKind(product.kind),
        )


class BackendCartResponse(BaseModel):
    """Complete server-side cart, returned by every cart endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cart_id: Optional[str] = Field(default=None, alias="cartId")
    items: List[BackendCartLine] = Field(default_factory=list)

    def to_line_items(self) -> list[CartLineItem]:
        """Map every line, skipping rows the server left at quantity 0."""
        return [line.to_line_item() for line in self.items if line.quantity >= 1]


# ============================================================
# Order payloads
# ============================================================

class OrderStatus(str, Enum):
    """Order status as reported by the order service."""
    PENDING = "pending"
    SUCCESS = "success"
    FAIL = "fail"


class OrderItemPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: str = Field(alias="laptopId")
    title: str
    quantity: int = Field(ge=1)
    price: float

    @classmethod
    def from_line_item(cls, item: CartLineItem) -> "OrderItemPayload":
        return cls(
            product_id=item.product_id,
            title=item.title,
            quantity=item.quantity,
            price=to_float(item.price),
        )


class OrderRequest(BaseModel):
    """Body of ``POST /orders``."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[OrderItemPayload]
    total_price: float = Field(alias="totalPrice")
    name: str
    shipping_address: str = Field(alias="shippingAddress")
    order_note: Optional[str] = Field(default=None, alias="orderNote")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Order(BaseModel):
    """Order as returned by the order service."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    items: List[OrderItemPayload] = Field(default_factory=list)
    total_price: Decimal = Field(default=Decimal("0"), alias="totalPrice")
    name: Optional[str] = None
    shipping_address: Optional[str] = Field(default=None, alias="shippingAddress")
    order_note: Optional[str] = Field(default=None, alias="orderNote")
    status: Optional[OrderStatus] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("total_price", mode="before")
    @classmethod
    def convert_total_to_decimal(cls, v):
        return _to_decimal(v)
