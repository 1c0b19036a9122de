"""Order lifecycle after acceptance, against a real database."""

from typing import Any

import pytest

from src.qm_common.enums import NotifyEvent, OrderStatus, Role
from src.qm_common.errors import (
    ConfirmationCodeMismatchError,
    ForbiddenError,
    IncompleteConfirmationError,
    InvalidTransitionError,
)
from src.qm_gateway.auth.actor import Actor

BUYER = Actor("buyer", frozenset({Role.BUYER}))
SELLER = Actor("seller", frozenset({Role.SELLER}))
PROVIDER = Actor("prov-1", frozenset({Role.PROVIDER}))


async def _confirmed_order(market: Any) -> Any:
    request = await market.open_request()
    quote = await market.bid(request.id, "prov-1", 1000)
    return await market.accept(quote.id)


async def _advance(market: Any, order_id: str, actor: Actor, status: OrderStatus) -> Any:
    async with market.session_factory() as db:
        return await market.orders.advance(order_id, actor, status, db)


async def _reload(market: Any, order_id: str) -> Any:
    async with market.session_factory() as db:
        return await market.order_repo.get_by_id(order_id, db)


async def _to_arrived(market: Any, order_id: str) -> None:
    await _advance(market, order_id, SELLER, OrderStatus.PROCESSING)
    await _advance(market, order_id, PROVIDER, OrderStatus.PICKED_UP)
    await _advance(market, order_id, PROVIDER, OrderStatus.IN_TRANSIT)
    await _advance(market, order_id, PROVIDER, OrderStatus.ARRIVED)


async def test_full_delivery_with_confirmation_code(market: Any) -> None:
    order = await _confirmed_order(market)
    await _to_arrived(market, order.id)

    async with market.session_factory() as db:
        with pytest.raises(IncompleteConfirmationError):
            await market.orders.confirm_delivery(order.id, PROVIDER, "", "left at door", db)
    assert (await _reload(market, order.id)).status == "ARRIVED"

    async with market.session_factory() as db:
        with pytest.raises(ConfirmationCodeMismatchError):
            await market.orders.confirm_delivery(order.id, PROVIDER, "999", "left at door", db)
    assert (await _reload(market, order.id)).status == "ARRIVED"

    market.clock.advance(hours=3)
    async with market.session_factory() as db:
        delivered = await market.orders.confirm_delivery(
            order.id, PROVIDER, order.delivery_code, "handed to buyer", db
        )

    stored = await _reload(market, order.id)
    assert delivered.status == stored.status == "DELIVERED"
    assert stored.delivery_notes == "handed to buyer"
    assert stored.delivered_at == market.clock()
    assert (stored.subtotal, stored.delivery_fee, stored.total_amount) == (5300, 1000, 6300)

    async with market.session_factory() as db:
        events = await market.orders.timeline(order.id, BUYER, db)
    assert [e.to_status for e in events] == [
        "CONFIRMED", "PROCESSING", "PICKED_UP", "IN_TRANSIT", "ARRIVED", "DELIVERED",
    ]
    assert events[-1].actor_id == "prov-1"


async def test_shipped_order_cannot_be_cancelled_by_buyer(market: Any) -> None:
    order = await _confirmed_order(market)
    await _advance(market, order.id, SELLER, OrderStatus.PROCESSING)
    await _advance(market, order.id, SELLER, OrderStatus.SHIPPED)

    async with market.session_factory() as db:
        with pytest.raises(InvalidTransitionError):
            await market.orders.cancel(order.id, BUYER, "too slow", db)

    assert (await _reload(market, order.id)).status == "SHIPPED"


async def test_buyer_cancels_confirmed_order(market: Any) -> None:
    order = await _confirmed_order(market)

    async with market.session_factory() as db:
        await market.orders.cancel(order.id, BUYER, "ordered twice", db)

    stored = await _reload(market, order.id)
    assert stored.status == "CANCELLED"
    assert stored.cancel_reason == "ordered twice"
    assert NotifyEvent.ORDER_STATUS_CHANGED in market.notifier.events_for("seller")
    assert NotifyEvent.ORDER_STATUS_CHANGED in market.notifier.events_for("prov-1")

    with pytest.raises(InvalidTransitionError):
        await _advance(market, order.id, SELLER, OrderStatus.PROCESSING)


async def test_skipping_states_rejected(market: Any) -> None:
    order = await _confirmed_order(market)
    with pytest.raises(InvalidTransitionError):
        await _advance(market, order.id, PROVIDER, OrderStatus.IN_TRANSIT)
    assert (await _reload(market, order.id)).status == "CONFIRMED"


async def test_outsider_cannot_view_or_move(market: Any) -> None:
    order = await _confirmed_order(market)
    outsider = Actor("prov-2", frozenset({Role.PROVIDER}))
    async with market.session_factory() as db:
        with pytest.raises(ForbiddenError):
            await market.orders.get(order.id, outsider, db)
    with pytest.raises(ForbiddenError):
        await _advance(market, order.id, outsider, OrderStatus.PROCESSING)


async def test_each_party_lists_the_order(market: Any) -> None:
    order = await _confirmed_order(market)
    async with market.session_factory() as db:
        for actor, party in ((BUYER, "buyer"), (SELLER, "seller"), (PROVIDER, "provider")):
            items, cursor, has_more = await market.orders.list_for(actor, party, None, 20, None, db)
            assert [o.id for o in items] == [order.id]
            assert (cursor, has_more) == (None, False)
        items, _, _ = await market.orders.list_for(BUYER, "buyer", "DELIVERED", 20, None, db)
        assert items == []


async def test_provider_stats(market: Any) -> None:
    delivered = await _confirmed_order(market)
    await _to_arrived(market, delivered.id)
    async with market.session_factory() as db:
        await market.orders.confirm_delivery(
            delivered.id, PROVIDER, delivered.delivery_code, "ok", db
        )

    request = await market.open_request(seller_id="seller-2")
    quote = await market.bid(request.id, "prov-1", 700)
    await market.accept(quote.id)

    async with market.session_factory() as db:
        stats = await market.orders.provider_stats(PROVIDER, db)

    assert stats.orders_by_status == {"DELIVERED": 1, "CONFIRMED": 1}
    assert stats.delivered_count == 1
    assert stats.delivered_fees == 1000
