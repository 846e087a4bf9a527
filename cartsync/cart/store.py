"""In-memory cart state: the canonical line list plus the mode flag."""
from decimal import Decimal
from typing import Callable, Iterable, Optional

from cartsync.logging import get_logger
from cartsync.money import multiply, sum_money
from .models import CartLineItem
from .state import CartEvent, CartMode, transition

logger = get_logger(__name__)

Listener = Callable[[tuple[CartLineItem, ...]], None]


class CartStateStore:
    """
    Holds the cart's line items and mode.

    The collection is an immutable tuple swapped wholesale, so observers
    always see either the previous or the next full list. The store does
    no I/O; the executor and reconciler are its only writers.

    Responses from overlapping backend requests are ordered with a
    monotonic sequence: callers take ``next_sequence()`` before issuing a
    request and pass it to ``replace_all``; anything older than the latest
    issued sequence is dropped.
    """

    def __init__(self, items: Optional[Iterable[CartLineItem]] = None):
        self._items: tuple[CartLineItem, ...] = tuple(items or ())
        self._mode = CartMode.LOCAL
        self._issued = 0
        self._listeners: list[Listener] = []

    # ==================== READ ====================

    @property
    def mode(self) -> CartMode:
        return self._mode

    def items(self) -> tuple[CartLineItem, ...]:
        """Current lines, in insertion order (local) or server order (synced)."""
        return self._items

    def total(self) -> Decimal:
        """Exact sum of price x quantity over all lines (not rounded)."""
        return sum_money(multiply(item.price, item.quantity) for item in self._items)

    def total_quantity(self) -> int:
        return sum(item.quantity for item in self._items)

    def find(self, predicate: Callable[[CartLineItem], bool]) -> Optional[CartLineItem]:
        return next((item for item in self._items if predicate(item)), None)

    # ==================== WRITE ====================

    def next_sequence(self) -> int:
        """Reserve a sequence number for a backend request about to be issued."""
        self._issued += 1
        return self._issued

    def is_stale(self, sequence: int) -> bool:
        return sequence < self._issued

    def replace_all(self, items: Iterable[CartLineItem], sequence: Optional[int] = None) -> bool:
        """
        Atomically swap the whole collection.

        Args:
            items: New complete list of lines
            sequence: Sequence reserved for the request this list answers

        Returns:
            False if the response was stale and discarded, True otherwise
        """
        if sequence is not None and self.is_stale(sequence):
            logger.info("Discarding stale cart response (seq %s < %s)", sequence, self._issued)
            return False
        self._items = tuple(items)
        self._notify()
        return True

    def clear(self) -> None:
        """Empty the cart; mode is left as-is."""
        self._items = ()
        self._notify()

    def apply(self, event: CartEvent) -> CartMode:
        """Feed an event to the mode state machine and store the result."""
        new_mode = transition(self._mode, event)
        if new_mode is not self._mode:
            logger.info("Cart mode %s -> %s (%s)", self._mode.value, new_mode.value, event.value)
        self._mode = new_mode
        return new_mode

    # ==================== OBSERVERS ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with the new tuple after every swap.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self._items
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning("Cart listener failed: %s", e)
