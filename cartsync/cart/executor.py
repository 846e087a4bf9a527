"""Mutation Executor - add / increase / decrease / remove.

All four operations share one dispatch path: when the cart is synced and
the line carries the reference the backend needs, the backend call is
issued and its full cart response replaces local state; otherwise, or when
the call fails, the in-memory list is edited directly.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from cartsync.errors import ERROR_NO_LINE_ID, ERROR_NO_PRODUCT_REF, IdentityMismatch, TransportFailure
from cartsync.logging import describe_line, get_logger
from .models import CartLineItem
from .state import CartEvent, CartMode
from .store import CartStateStore

logger = get_logger(__name__)

PATH_BACKEND = "backend"
PATH_LOCAL = "local"
PATH_STALE = "stale"

BackendCall = Callable[[str, int], Awaitable[list[CartLineItem]]]


@dataclass(frozen=True)
class Operation:
    """How one mutation maps onto the backend and onto the local list."""
    name: str
    reference: str  # CartLineItem attribute the backend call is keyed by
    failure_event: CartEvent
    fallback_on_failure: bool = True

    def resolve(self, item: CartLineItem) -> str:
        ref = getattr(item, self.reference)
        if not ref:
            raise IdentityMismatch(ERROR_NO_LINE_ID if self.reference == "line_id" else ERROR_NO_PRODUCT_REF)
        return ref


ADD = Operation("add", "product_id", CartEvent.MUTATION_FAILED)
INCREASE = Operation("increase", "product_id", CartEvent.MUTATION_FAILED)
DECREASE = Operation("decrease", "product_id", CartEvent.MUTATION_FAILED)
# A removal that silently failed would hide a line the server still has
REMOVE = Operation("remove", "line_id", CartEvent.REMOVE_FAILED, fallback_on_failure=False)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one mutation, for callers that want to notify the user."""
    op: str
    path: str
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        """True when a backend call was attempted and failed."""
        return self.error is not None


class MutationExecutor:
    """Applies cart mutations against the backend or the local list."""

    def __init__(self, store: CartStateStore, transport):
        self._store = store
        self._transport = transport

    # ==================== OPERATIONS ====================

    async def add(self, item: CartLineItem, quantity: int = 1) -> MutationResult:
        """Add ``quantity`` units of ``item``, merging into an existing slot."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError("quantity must be a positive integer")

        remaining = quantity

        async def push(product_id: str, sequence: int) -> list[CartLineItem]:
            # The backend only increments by one; issue one call per unit
            nonlocal remaining
            items = None
            try:
                for _ in range(quantity):
                    items = await self._transport.add_unit(product_id)
                    remaining -= 1
            except TransportFailure:
                if items is not None:
                    self._store.replace_all(items, sequence)
                raise
            return items

        return await self._dispatch(ADD, item, push, lambda: self._add_local(item, remaining))

    async def increase(self, item: CartLineItem) -> MutationResult:
        async def call(product_id: str, _sequence: int) -> list[CartLineItem]:
            return await self._transport.add_unit(product_id)

        return await self._dispatch(
            INCREASE, item, call, lambda: self._edit_local(item, lambda i: i.with_quantity(i.quantity + 1))
        )

    async def decrease(self, item: CartLineItem) -> MutationResult:
        """Take one unit off; never drops below 1 (use ``remove`` for that)."""
        async def call(product_id: str, _sequence: int) -> list[CartLineItem]:
            return await self._transport.remove_unit(product_id)

        return await self._dispatch(
            DECREASE, item, call, lambda: self._edit_local(item, lambda i: i.with_quantity(max(1, i.quantity - 1)))
        )

    async def remove(self, item: CartLineItem) -> MutationResult:
        """Delete the line regardless of quantity."""
        async def call(line_id: str, _sequence: int) -> list[CartLineItem]:
            return await self._transport.remove_line(line_id)

        return await self._dispatch(REMOVE, item, call, lambda: self._edit_local(item, lambda _i: None))

    # ==================== DISPATCH ====================

    async def _dispatch(
        self,
        op: Operation,
        item: CartLineItem,
        backend_call: BackendCall,
        local_edit: Callable[[], None],
    ) -> MutationResult:
        if self._store.mode is CartMode.BACKEND_SYNCED:
            try:
                ref = op.resolve(item)
            except IdentityMismatch as e:
                logger.debug("%s of %s stays local: %s", op.name, describe_line(item), e)
            else:
                return await self._run_backend(op, ref, backend_call, local_edit)

        local_edit()
        return MutationResult(op.name, PATH_LOCAL)

    async def _run_backend(
        self,
        op: Operation,
        ref: str,
        backend_call: BackendCall,
        local_edit: Callable[[], None],
    ) -> MutationResult:
        sequence = self._store.next_sequence()
        try:
            items = await backend_call(ref, sequence)
        except TransportFailure as e:
            self._store.apply(op.failure_event)
            if op.fallback_on_failure:
                logger.warning("Backend %s failed, editing local cart instead: %s", op.name, e)
                local_edit()
            else:
                logger.warning("Backend %s failed, line kept and cart switched to local mode: %s", op.name, e)
            return MutationResult(op.name, PATH_LOCAL, error=str(e))

        if not self._store.replace_all(items, sequence):
            return MutationResult(op.name, PATH_STALE)
        return MutationResult(op.name, PATH_BACKEND)

    # ==================== LOCAL EDITS ====================

    def _same_slot(self, a: CartLineItem, b: CartLineItem) -> bool:
        """
        Slot identity for local edits.

        LOCAL mode matches on (title, price). Once synced, backend identity
        wins: line handle first, then product reference; title/price is
        only used between two lines that have no backend identity at all.
        """
        if self._store.mode is CartMode.LOCAL:
            return a.slot_key == b.slot_key
        if a.line_id and b.line_id:
            return a.line_id == b.line_id
        if a.product_id and b.product_id:
            return a.product_id == b.product_id
        # Exception to identity-only matching while synced: unsyncable lines
        # (no line_id, no product_id) still merge by (title, price)
        if not (a.line_id or a.product_id or b.line_id or b.product_id):
            return a.slot_key == b.slot_key
        return False

    def _add_local(self, item: CartLineItem, quantity: int) -> None:
        if quantity < 1:
            return
        items = self._store.items()
        if any(self._same_slot(existing, item) for existing in items):
            self._edit_local(item, lambda i: i.with_quantity(i.quantity + quantity))
        else:
            self._store.replace_all(items + (item.with_quantity(quantity),))

    def _edit_local(
        self,
        item: CartLineItem,
        change: Callable[[CartLineItem], Optional[CartLineItem]],
    ) -> None:
        """Apply ``change`` to the first matching line; None deletes it."""
        items = self._store.items()
        for index, existing in enumerate(items):
            if self._same_slot(existing, item):
                updated = change(existing)
                head, tail = items[:index], items[index + 1:]
                self._store.replace_all(head + tail if updated is None else head + (updated,) + tail)
                return
        logger.debug("No cart line matches %s", describe_line(item))
