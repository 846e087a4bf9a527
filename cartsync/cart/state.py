"""
Cart mode state machine.

The cart is either editing its in-memory list (LOCAL) or mirroring the
server cart (BACKEND_SYNCED). Every mode change goes through
``transition``; nothing else assigns the mode.
"""
from enum import Enum


class CartMode(str, Enum):
    """Where the cart's source of truth currently lives."""
    LOCAL = "local"
    BACKEND_SYNCED = "backend_synced"


class CartEvent(str, Enum):
    """Outcomes that can move the cart between modes."""
    SYNC_SUCCEEDED = "sync_succeeded"  # fetch or push round trip completed
    FETCH_FAILED = "fetch_failed"
    PUSH_FAILED = "push_failed"  # every reconciliation add failed
    MUTATION_FAILED = "mutation_failed"  # add / increase / decrease
    REMOVE_FAILED = "remove_failed"
    LOGGED_OUT = "logged_out"


# None keeps the current mode
_TRANSITIONS: dict[CartEvent, CartMode | None] = {
    CartEvent.SYNC_SUCCEEDED: CartMode.BACKEND_SYNCED,
    CartEvent.FETCH_FAILED: CartMode.LOCAL,
    CartEvent.PUSH_FAILED: CartMode.LOCAL,
    CartEvent.MUTATION_FAILED: None,
    CartEvent.REMOVE_FAILED: CartMode.LOCAL,
    CartEvent.LOGGED_OUT: CartMode.LOCAL,
}


def transition(mode: CartMode, event: CartEvent) -> CartMode:
    """
    Compute the next mode.

    Additive failures (add / increase / decrease) are transient and keep
    the mode; a failed removal demotes to LOCAL so the line stays visible
    instead of being silently masked.

    Args:
        mode: Current mode
        event: What just happened

    Returns:
        The mode after the event
    """
    target = _TRANSITIONS[event]
    return mode if target is None else target
