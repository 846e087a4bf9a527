"""Pytest configuration and fixtures"""
import os
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pytest

from cartsync.cart import CartLineItem, CartSession, CartStateStore, ProductKind
from cartsync.errors import TransportFailure

# Set test environment variables
os.environ.setdefault("CART_API_URL", "https://gateway.test/v1")
os.environ.setdefault("LOG_LEVEL", "WARNING")


class FakeCartTransport:
    """
    In-memory stand-in for the cart service.

    Behaves like the gateway: one line per product, ``add_unit`` increments,
    ``remove_unit`` decrements (dropping the line at 0), and every call
    answers with the full cart. Failures are injected per method.
    """

    def __init__(self, catalog: Dict[str, Tuple[str, Decimal]]):
        self.catalog = catalog
        self.lines: List[dict] = []
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[str, Optional[int]] = {}
        self._next_id = 1

    def fail(self, method: str, times: Optional[int] = None) -> None:
        """Make ``method`` raise TransportFailure (always, or ``times`` times)."""
        self._failures[method] = times

    def seed(self, product_id: str, quantity: int) -> None:
        for _ in range(quantity):
            self._add(product_id)

    def _check(self, method: str, arg: str = "") -> None:
        self.calls.append((method, arg))
        if method not in self._failures:
            return
        remaining = self._failures[method]
        if remaining is not None:
            if remaining <= 1:
                del self._failures[method]
            else:
                self._failures[method] = remaining - 1
        raise TransportFailure(f"{method} unavailable")

    def _add(self, product_id: str) -> None:
        for line in self.lines:
            if line["product_id"] == product_id:
                line["quantity"] += 1
                return
        self.lines.append({"line_id": f"line-{self._next_id}", "product_id": product_id, "quantity": 1})
        self._next_id += 1

    def snapshot(self) -> List[CartLineItem]:
        return [
            CartLineItem(
                title=self.catalog[line["product_id"]][0],
                price=self.catalog[line["product_id"]][1],
                quantity=line["quantity"],
                line_id=line["line_id"],
                product_id=line["product_id"],
                kind=ProductKind.LAPTOP,
            )
            for line in self.lines
        ]

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def fetch_remote_cart(self) -> List[CartLineItem]:
        self._check("fetch_remote_cart")
        return self.snapshot()

    async def add_unit(self, product_id: str) -> List[CartLineItem]:
        self._check("add_unit", product_id)
        self._add(product_id)
        return self.snapshot()

    async def remove_unit(self, product_id: str) -> List[CartLineItem]:
        self._check("remove_unit", product_id)
        for line in self.lines:
            if line["product_id"] == product_id:
                line["quantity"] -= 1
        self.lines = [line for line in self.lines if line["quantity"] > 0]
        return self.snapshot()

    async def remove_line(self, line_id: str) -> List[CartLineItem]:
        self._check("remove_line", line_id)
        self.lines = [line for line in self.lines if line["line_id"] != line_id]
        return self.snapshot()


@pytest.fixture
def catalog():
    """Products known to the fake cart service"""
    return {
        "lap-1": ("Dell XPS 13", Decimal("999.00")),
        "lap-2": ("Apple MacBook Air", Decimal("1199.00")),
        "X": ("X", Decimal("10")),
    }


@pytest.fixture
def transport(catalog):
    return FakeCartTransport(catalog)


@pytest.fixture
def store():
    return CartStateStore()


@pytest.fixture
def session(transport):
    return CartSession(transport)


@pytest.fixture
def xps():
    """Catalog item as added from the product page (not yet in any cart)"""
    return CartLineItem(
        title="Dell XPS 13",
        price=Decimal("999.00"),
        brand="Dell",
        category="Ultrabook",
        product_id="lap-1",
    )


@pytest.fixture
def air():
    return CartLineItem(
        title="Apple MacBook Air",
        price=Decimal("1199.00"),
        brand="Apple",
        category="Ultrabook",
        product_id="lap-2",
    )


@pytest.fixture
def gift_card():
    """Line with no catalog reference: can never be synced"""
    return CartLineItem(title="Gift card", price=Decimal("25"))


@pytest.fixture
def sample_backend_cart():
    """Raw gateway response for GET /cart"""
    return {
        "cartId": "cart-123",
        "items": [
            {
                "_id": "line-1",
                "quantity": 2,
                "price": 999,
                "laptop": {
                    "_id": "lap-1",
                    "Brand": "Dell",
                    "Model": "XPS 13",
                    "Spec": "16GB / 512GB",
                    "category": "Ultrabook",
                    "price": 999,
                    "image_url": "https://img.test/xps.png",
                },
            },
            {
                "_id": "line-2",
                "quantity": 1,
                "price": 45.5,
                "book": {
                    "_id": "book-7",
                    "title": "Fluent Python",
                    "author": "Luciano Ramalho",
                    "category": "Programming",
                    "price": 45.5,
                    "coverImage": "https://img.test/fluent.png",
                },
            },
        ],
    }
