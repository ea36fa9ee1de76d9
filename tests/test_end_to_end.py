"""Checkout in Basket ends up as an Order in Ordering, through the outbox."""
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from conftest import PRODUCT_1, line
from eshop.consumers.outbox_dispatcher import OutboxDispatcher
from eshop.consumers.subscriptions import build_event_bus
from eshop.events.integration_events import BasketCheckoutIntegrationEvent, ProductPriceChangedIntegrationEvent
from eshop.events.outbox_utility import create_outbox_message
from eshop.models.order import Order
from eshop.models.outbox import OutboxMessage
from eshop.services.basket_service import checkout_basket, create_basket, customer_id_for, get_basket
from eshop.services.order_service import get_orders_by_customer


@pytest.mark.asyncio
async def test_alice_checkout_becomes_an_order(db, make_checkout):
    bus = build_event_bus()
    spy = AsyncMock()
    bus.subscribe(BasketCheckoutIntegrationEvent.EVENT_TYPE, spy)
    dispatcher = OutboxDispatcher(bus)

    await create_basket("alice", [line(PRODUCT_1, quantity=3, price="10.00")])
    assert (await checkout_basket(make_checkout("alice"))).is_success

    message = await OutboxMessage.get(type=BasketCheckoutIntegrationEvent.EVENT_TYPE)
    assert Decimal(json.loads(message.content)["total_price"]) == Decimal("30.00")

    assert await dispatcher.process_pending() == 1

    message = await OutboxMessage.get(id=message.id)
    assert message.processed_on is not None
    spy.assert_awaited_once()
    assert spy.await_args.args[0].total_price == Decimal("30.00")

    orders = await get_orders_by_customer(customer_id_for("alice"))
    assert len(orders) == 1
    order = orders[0]
    assert order.order_name == "alice"
    assert order.total_price == Decimal("30.00")
    assert [(item.product_id, item.quantity) for item in order.items] == [(PRODUCT_1, 3)]


@pytest.mark.asyncio
async def test_crash_before_marking_processed_republishes_without_duplicate_order(db, make_checkout):
    dispatcher = OutboxDispatcher(build_event_bus())
    await create_basket("alice", [line(PRODUCT_1, quantity=3, price="10.00")])
    await checkout_basket(make_checkout("alice"))

    # Publish succeeds, saving processed_on does not
    with patch.object(dispatcher, "_save", new=AsyncMock(side_effect=ConnectionError("db gone"))):
        with pytest.raises(ConnectionError):
            await dispatcher.process_pending()

    assert (await OutboxMessage.all().first()).processed_on is None
    assert await Order.all().count() == 1

    # Next cycle publishes the same event again
    assert await dispatcher.process_pending() == 1

    assert await Order.all().count() == 1
    assert (await OutboxMessage.all().first()).processed_on is not None


@pytest.mark.asyncio
async def test_retried_older_price_change_keeps_newest_price(db):
    bus = build_event_bus()
    dispatcher = OutboxDispatcher(bus)
    await create_basket("alice", [line(PRODUCT_1, quantity=1, price="10.00")])

    now = datetime.now(timezone.utc)
    older = ProductPriceChangedIntegrationEvent(
        product_id=PRODUCT_1, name="Lamp", price=Decimal("12.00"), occurred_on=now - timedelta(minutes=1),
    )
    newer = ProductPriceChangedIntegrationEvent(
        product_id=PRODUCT_1, name="Lamp", price=Decimal("15.00"), occurred_on=now,
    )
    await create_outbox_message(older)
    await create_outbox_message(newer)

    # A second subscriber fails once on the older event
    flaky = AsyncMock(side_effect=[RuntimeError("basket db busy"), None, None])
    bus.subscribe(ProductPriceChangedIntegrationEvent.EVENT_TYPE, flaky)

    assert await dispatcher.process_pending() == 1
    assert (await OutboxMessage.get(id=older.event_id)).attempts == 1

    assert await dispatcher.process_pending() == 1
    assert (await OutboxMessage.get(id=older.event_id)).processed_on is not None

    assert (await get_basket("alice")).items[0].price == Decimal("15.00")
