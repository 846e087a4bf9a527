"""Tests for reconciliation between the local cart and the server cart"""
from decimal import Decimal

import pytest

from cartsync.cart import CartLineItem, CartMode, CartReconciler


@pytest.fixture
def reconciler(store, transport):
    return CartReconciler(store, transport)


@pytest.mark.asyncio
async def test_empty_remote_pushes_one_add_per_unit(store, transport, reconciler):
    """Local [X x2] and an empty server: exactly two adds, then synced."""
    store.replace_all([CartLineItem(title="X", price=10, quantity=2, product_id="X")])

    result = await reconciler.reconcile()

    assert transport.count("add_unit") == 2
    assert result.success is True
    assert result.adopted == "pushed"
    assert result.pushed_units == 2
    assert store.mode is CartMode.BACKEND_SYNCED
    assert store.items() == tuple(transport.snapshot())
    assert store.items()[0].line_id == "line-1"
    assert store.items()[0].quantity == 2


@pytest.mark.asyncio
async def test_non_empty_remote_wins(store, transport, reconciler, xps, gift_card):
    """Backend cart replaces local items outright, no merge."""
    store.replace_all([xps.with_quantity(3), gift_card])
    transport.seed("lap-2", 1)

    result = await reconciler.reconcile()

    assert result.adopted == "remote"
    assert store.items() == tuple(transport.snapshot())
    assert [i.product_id for i in store.items()] == ["lap-2"]
    assert transport.count("add_unit") == 0
    assert store.mode is CartMode.BACKEND_SYNCED


@pytest.mark.asyncio
async def test_both_empty_enters_backend_mode(store, reconciler):
    result = await reconciler.reconcile()

    assert result.success is True
    assert store.items() == ()
    assert store.mode is CartMode.BACKEND_SYNCED


@pytest.mark.asyncio
async def test_fetch_failure_keeps_local_items(store, transport, reconciler, xps):
    store.replace_all([xps.with_quantity(2)])
    transport.fail("fetch_remote_cart")

    result = await reconciler.reconcile()

    assert result.success is False
    assert "fetch_remote_cart unavailable" in result.error
    assert store.mode is CartMode.LOCAL
    assert store.items() == (xps.with_quantity(2),)


@pytest.mark.asyncio
async def test_lines_without_reference_are_dropped(store, transport, reconciler, xps, gift_card):
    store.replace_all([gift_card, xps])

    await reconciler.reconcile()

    assert transport.calls == [("fetch_remote_cart", ""), ("add_unit", "lap-1")]
    assert [i.title for i in store.items()] == ["Dell XPS 13"]


@pytest.mark.asyncio
async def test_nothing_pushable_keeps_local_cart(store, transport, reconciler, gift_card):
    store.replace_all([gift_card])

    result = await reconciler.reconcile()

    assert result.adopted == "local"
    assert store.items() == (gift_card,)
    assert store.mode is CartMode.BACKEND_SYNCED
    assert transport.count("add_unit") == 0


@pytest.mark.asyncio
async def test_all_adds_fail_leaves_local_state(store, transport, reconciler, xps, air):
    store.replace_all([xps, air.with_quantity(2)])
    transport.fail("add_unit")

    result = await reconciler.reconcile()

    assert result.success is False
    assert result.failed_units == 3
    assert transport.count("add_unit") == 3
    assert store.items() == (xps, air.with_quantity(2))
    assert store.mode is CartMode.LOCAL


@pytest.mark.asyncio
async def test_partial_push_adopts_last_success(store, transport, reconciler, xps, air):
    """Every unit is attempted; the last good server answer becomes the cart."""
    store.replace_all([xps, air])
    transport.fail("add_unit", times=1)

    result = await reconciler.reconcile()

    assert result.success is True
    assert result.pushed_units == 1
    assert result.failed_units == 1
    assert [i.product_id for i in store.items()] == ["lap-2"]
    assert store.total() == Decimal("1199.00")
    assert store.mode is CartMode.BACKEND_SYNCED
