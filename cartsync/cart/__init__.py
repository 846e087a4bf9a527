"""Cart package: line items, state store, reconciliation and mutations."""
from .models import CartLineItem, ProductKind
from .state import CartEvent, CartMode, transition
from .store import CartStateStore
from .executor import MutationExecutor, MutationResult
from .reconcile import CartReconciler, ReconcileResult
from .session import CartSession

__all__ = [
    "CartLineItem",
    "ProductKind",
    "CartEvent",
    "CartMode",
    "transition",
    "CartStateStore",
    "MutationExecutor",
    "MutationResult",
    "CartReconciler",
    "ReconcileResult",
    "CartSession",
]
