"""Cart session - the per-user cart context.

One ``CartSession`` per page/session lifecycle, passed by reference to
whatever needs the cart. It owns the store and wires the executor and
reconciler to it.

Usage:
    session = CartSession(transport, is_authenticated=auth.is_logged_in)
    await session.activate()
    await session.add(item)
    session.total()
"""
from decimal import Decimal
from typing import Callable, Optional

from cartsync.errors import ERROR_EMPTY_CART, ERROR_UNSYNCABLE_ITEMS, OrderRejected
from cartsync.logging import get_logger
from cartsync.money import round_money, to_float
from .executor import MutationExecutor, MutationResult
from .models import CartLineItem
from .reconcile import ADOPTED_LOCAL, CartReconciler, ReconcileResult
from .state import CartEvent, CartMode
from .store import CartStateStore

logger = get_logger(__name__)


class CartSession:
    """
    Shopping cart for one user session.

    Routine actions (activate, add, increase, decrease, remove) never raise
    on backend trouble; they degrade to local editing and record the
    failure in ``last_error`` for the UI to surface.
    """

    def __init__(
        self,
        transport,
        is_authenticated: Optional[Callable[[], bool]] = None,
        order_client=None,
        store: Optional[CartStateStore] = None,
    ):
        self.store = store or CartStateStore()
        self.transport = transport
        self.order_client = order_client
        self._is_authenticated = is_authenticated or (lambda: True)
        self._executor = MutationExecutor(self.store, transport)
        self._reconciler = CartReconciler(self.store, transport)
        self.last_error: Optional[str] = None

    # ==================== READ ====================

    @property
    def mode(self) -> CartMode:
        return self.store.mode

    def items(self) -> tuple[CartLineItem, ...]:
        return self.store.items()

    def total(self) -> Decimal:
        return self.store.total()

    def summary(self) -> dict:
        """Cart summary for UI bindings."""
        items = self.store.items()
        if not items:
            return {
                "is_empty": True,
                "mode": self.mode.value,
                "total_items": 0,
                "total": 0.0,
            }
        return {
            "is_empty": False,
            "mode": self.mode.value,
            "total_items": self.store.total_quantity(),
            "items": [
                {
                    "line_id": item.line_id,
                    "product_id": item.product_id,
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.price),
                    "total": to_float(item.line_total),
                }
                for item in items
            ],
            "total": to_float(round_money(self.total())),
        }

    # ==================== LIFECYCLE ====================

    async def activate(self) -> ReconcileResult:
        """
        Enter backend mode (e.g. cart page load after login).

        Skipped while the user is not authenticated: the cart stays local.
        """
        if not self._is_authenticated():
            logger.info("User not authenticated, cart stays local")
            return ReconcileResult(success=False, adopted=ADOPTED_LOCAL, error="not authenticated")

        result = await self._reconciler.reconcile()
        self.last_error = result.error
        return result

    def clear(self) -> None:
        """Empty the cart (after checkout completion); mode unchanged."""
        self.store.clear()

    def logout(self) -> None:
        """Forget the user's cart and go back to local mode."""
        self.store.clear()
        self.store.apply(CartEvent.LOGGED_OUT)
        self.last_error = None

    async def aclose(self) -> None:
        for client in (self.transport, self.order_client):
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()

    # ==================== MUTATIONS ====================

    async def add(self, item: CartLineItem, quantity: int = 1) -> MutationResult:
        return self._record(await self._executor.add(item, quantity))

    async def increase(self, item: CartLineItem) -> MutationResult:
        return self._record(await self._executor.increase(item))

    async def decrease(self, item: CartLineItem) -> MutationResult:
        return self._record(await self._executor.decrease(item))

    async def remove(self, item: CartLineItem) -> MutationResult:
        return self._record(await self._executor.remove(item))

    def _record(self, result: MutationResult) -> MutationResult:
        self.last_error = result.error
        return result

    # ==================== CHECKOUT ====================

    async def checkout(self, name: str, shipping_address: str, note: Optional[str] = None):
        """
        Submit the cart as an order and clear it once the order exists.

        Raises:
            OrderRejected: Empty cart, unorderable lines, or the order
                service refused the request. The cart is left untouched.
        """
        # Imported here: cartsync.models depends on cartsync.cart.models
        from cartsync.models import OrderItemPayload, OrderRequest

        if self.order_client is None:
            raise OrderRejected("No order client configured")

        items = self.store.items()
        if not items:
            raise OrderRejected(ERROR_EMPTY_CART)
        if any(not item.product_id for item in items):
            raise OrderRejected(ERROR_UNSYNCABLE_ITEMS)

        request = OrderRequest(
            items=[OrderItemPayload.from_line_item(item) for item in items],
            total_price=to_float(round_money(self.total())),
            name=name,
            shipping_address=shipping_address,
            order_note=note,
        )
        order = await self.order_client.create_order(request)
        self.clear()
        return order
