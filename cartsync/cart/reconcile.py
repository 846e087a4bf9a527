"""Reconciliation Engine - one-time merge when entering backend mode.

Backend state always wins once it is non-empty. Local items are only pushed
when the server cart is empty, so there is never a three-way merge between
independently added items.
"""
from dataclasses import dataclass
from typing import Optional

from cartsync.errors import TransportFailure
from cartsync.logging import describe_line, get_logger
from .models import CartLineItem
from .state import CartEvent
from .store import CartStateStore

logger = get_logger(__name__)

ADOPTED_REMOTE = "remote"
ADOPTED_PUSHED = "pushed"
ADOPTED_LOCAL = "local"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciliation run."""
    success: bool
    adopted: str
    pushed_units: int = 0
    failed_units: int = 0
    error: Optional[str] = None


class CartReconciler:
    """Brings the local cart and the server cart into agreement."""

    def __init__(self, store: CartStateStore, transport):
        self._store = store
        self._transport = transport

    async def reconcile(self) -> ReconcileResult:
        """
        Fetch the server cart and decide which side wins.

        Returns:
            ReconcileResult; failures are reported here, never raised
        """
        snapshot = self._store.items()
        sequence = self._store.next_sequence()

        try:
            remote_items = await self._transport.fetch_remote_cart()
        except TransportFailure as e:
            logger.error("Failed to fetch cart from backend, staying local: %s", e)
            self._store.apply(CartEvent.FETCH_FAILED)
            return ReconcileResult(success=False, adopted=ADOPTED_LOCAL, error=str(e))

        if not remote_items and snapshot:
            return await self._push_local(snapshot, sequence)

        logger.info("Adopting backend cart (%d lines, %d local discarded)", len(remote_items), len(snapshot))
        self._store.replace_all(remote_items, sequence)
        self._store.apply(CartEvent.SYNC_SUCCEEDED)
        return ReconcileResult(success=True, adopted=ADOPTED_REMOTE)

    async def _push_local(self, snapshot: tuple[CartLineItem, ...], sequence: int) -> ReconcileResult:
        """
        Push local lines into the empty server cart, one add per unit.

        Lines without a product reference cannot be addressed on the server
        and drop out of the synced result. The final successful response is
        adopted only once every unit call has completed.
        """
        pushable = [item for item in snapshot if item.product_id]
        expected = sum(item.quantity for item in pushable)

        if not pushable:
            logger.info("No local lines carry a product reference, keeping local cart")
            self._store.apply(CartEvent.SYNC_SUCCEEDED)
            return ReconcileResult(success=True, adopted=ADOPTED_LOCAL)

        logger.info("Backend cart empty, pushing %d local units", expected)
        completed = 0
        failed = 0
        last_items: Optional[list[CartLineItem]] = None
        last_error: Optional[TransportFailure] = None

        for item in pushable:
            for _ in range(item.quantity):
                try:
                    last_items = await self._transport.add_unit(item.product_id)
                except TransportFailure as e:
                    failed += 1
                    last_error = e
                    logger.warning("Failed to sync unit of %s: %s", describe_line(item), e)
                completed += 1

        if last_items is None:
            self._store.apply(CartEvent.PUSH_FAILED)
            return ReconcileResult(
                success=False,
                adopted=ADOPTED_LOCAL,
                failed_units=failed,
                error=str(last_error) if last_error else None,
            )

        self._store.replace_all(last_items, sequence)
        self._store.apply(CartEvent.SYNC_SUCCEEDED)
        return ReconcileResult(
            success=True,
            adopted=ADOPTED_PUSHED,
            pushed_units=completed - failed,
            failed_units=failed,
            error=str(last_error) if last_error else None,
        )
