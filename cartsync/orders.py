"""Order Service client - submits a checked-out cart as an order."""

import os
from typing import Any

import httpx
from pydantic import ValidationError

from cartsync.errors import ERROR_ORDER_FAILED, OrderRejected
from cartsync.logging import get_logger, sanitize_id_for_logging
from cartsync.models import Order, OrderRequest
from cartsync.transport import DEFAULT_API_URL

logger = get_logger(__name__)


class OrderClient:
    """Thin async client for the order service."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        cart_api = (os.environ.get("CART_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.api_url = (api_url or os.environ.get("ORDER_API_URL") or f"{cart_api}/orders").rstrip("/")
        self.token = token if token is not None else os.environ.get("CART_API_TOKEN", "")
        self._http_client: httpx.AsyncClient | None = client

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
            self._http_client = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(10.0, connect=5.0),
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        client = await self._get_http_client()
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Order API %s returned %s", method, e.response.status_code)
            raise OrderRejected(f"{ERROR_ORDER_FAILED}: HTTP {e.response.status_code}", raw_error=e) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Order API %s failed: %s", method, e)
            raise OrderRejected(f"{ERROR_ORDER_FAILED}: {e}", raw_error=e) from e

    async def create_order(self, request: OrderRequest) -> Order:
        """
        Submit an order.

        Args:
            request: Order built from the cart

        Returns:
            Order as stored by the service

        Raises:
            OrderRejected: On any network, HTTP or payload error
        """
        data = await self._request("POST", self.api_url, json=request.to_payload())
        try:
            order = Order.model_validate(data)
        except ValidationError as e:
            raise OrderRejected(f"{ERROR_ORDER_FAILED}: malformed response", raw_error=e) from e
        logger.info("Order %s created", sanitize_id_for_logging(order.id))
        return order

    async def list_orders(self) -> list[Order]:
        """Orders placed by the current user."""
        data = await self._request("GET", self.api_url)
        if not isinstance(data, list):
            raise OrderRejected(f"{ERROR_ORDER_FAILED}: malformed response")
        try:
            return [Order.model_validate(row) for row in data]
        except ValidationError as e:
            raise OrderRejected(f"{ERROR_ORDER_FAILED}: malformed response", raw_error=e) from e
