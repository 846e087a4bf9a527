"""
cartsync - client-side shopping cart with backend reconciliation

This package contains:
- cart: line items, state store, reconciliation engine, mutation executor
- transport: HTTP access to the server-side cart
- orders: order submission at checkout
- models: pydantic schemas for backend payloads

Note: Imports are lazy so importing ``cartsync`` does not pull in httpx.
"""

__all__ = [
    "CartSession",
    "CartLineItem",
    "CartMode",
    "HttpCartTransport",
    "OrderClient",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name in ("CartSession", "CartLineItem", "CartMode"):
        from cartsync import cart
        return getattr(cart, name)
    elif name == "HttpCartTransport":
        from cartsync.transport import HttpCartTransport
        return HttpCartTransport
    elif name == "OrderClient":
        from cartsync.orders import OrderClient
        return OrderClient
    raise AttributeError(f"module 'cartsync' has no attribute '{name}'")
