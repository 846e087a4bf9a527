"""Cart Transport - HTTP access to the server-side cart.

Every endpoint answers with the complete current cart; the transport maps
it to ``CartLineItem`` and turns any network, HTTP or payload error into
``TransportFailure``. Timeouts live here, not in the cart core.
"""

import os
from urllib.parse import quote
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from cartsync.cart.models import CartLineItem
from cartsync.errors import ERROR_CART_UNAVAILABLE, ERROR_INVALID_PAYLOAD, TransportFailure
from cartsync.logging import get_logger, sanitize_id_for_logging
from cartsync.models import BackendCartResponse

logger = get_logger(__name__)

DEFAULT_API_URL = "http://localhost:3000/v1"
DEFAULT_TIMEOUT = 10.0


class CartTransport(Protocol):
    """What the cart core needs from the cart service."""

    async def fetch_remote_cart(self) -> list[CartLineItem]: ...

    async def add_unit(self, product_id: str) -> list[CartLineItem]: ...

    async def remove_unit(self, product_id: str) -> list[CartLineItem]: ...

    async def remove_line(self, line_id: str) -> list[CartLineItem]: ...


def _timeout_from_env() -> float:
    raw = os.environ.get("CART_HTTP_TIMEOUT", "")
    try:
        return float(raw) if raw.strip() else DEFAULT_TIMEOUT
    except ValueError:
        logger.warning("Invalid CART_HTTP_TIMEOUT %r, using %s", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT


class HttpCartTransport:
    """Cart transport over the storefront API gateway."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_url = (api_url or os.environ.get("CART_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.token = token if token is not None else os.environ.get("CART_API_TOKEN", "")
        self.timeout = timeout if timeout is not None else _timeout_from_env()

        # HTTP client (lazy init)
        self._http_client: httpx.AsyncClient | None = client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of shared httpx client with timeouts."""
        if self._http_client is None:
            headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
            self._http_client = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Issue a request and return the decoded JSON body."""
        client = await self._get_http_client()
        url = f"{self.api_url}{path}"
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Cart API %s %s returned %s", method, path, status)
            raise TransportFailure(f"{ERROR_CART_UNAVAILABLE}: HTTP {status}", status_code=status, raw_error=e) from e
        except httpx.HTTPError as e:
            logger.warning("Cart API %s %s failed: %s", method, path, e)
            raise TransportFailure(f"{ERROR_CART_UNAVAILABLE}: {e}", raw_error=e) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportFailure(ERROR_INVALID_PAYLOAD, status_code=response.status_code, raw_error=e) from e

    @staticmethod
    def _parse_cart(data: Any) -> list[CartLineItem]:
        try:
            return BackendCartResponse.model_validate(data).to_line_items()
        except (ValidationError, ValueError) as e:
            logger.warning("Malformed cart payload: %s", e)
            raise TransportFailure(ERROR_INVALID_PAYLOAD, raw_error=e) from e

    # ==================== MAIN API ====================

    async def fetch_remote_cart(self) -> list[CartLineItem]:
        """GET the user's cart."""
        data = await self._request("GET", "/cart")
        return self._parse_cart(data)

    async def add_unit(self, product_id: str) -> list[CartLineItem]:
        """Add one unit of a product (increments an existing line)."""
        logger.debug("Adding unit of product %s", sanitize_id_for_logging(product_id))
        data = await self._request("POST", "/cart/add", json={"laptopId": product_id})
        return self._parse_cart(data)

    async def remove_unit(self, product_id: str) -> list[CartLineItem]:
        """Remove one unit of a product (decrements its line)."""
        logger.debug("Removing unit of product %s", sanitize_id_for_logging(product_id))
        data = await self._request("POST", "/cart/remove", json={"laptopId": product_id})
        return self._parse_cart(data)

    async def remove_line(self, line_id: str) -> list[CartLineItem]:
        """Delete a persisted cart line by its identity handle."""
        logger.debug("Deleting cart line %s", sanitize_id_for_logging(line_id))
        data = await self._request("DELETE", f"/cart/item/{quote(line_id, safe='')}")
        # Some gateway versions answer the delete with an empty body
        if not isinstance(data, dict) or "items" not in data:
            return await self.fetch_remote_cart()
        return self._parse_cart(data)
