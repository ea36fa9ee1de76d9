import json
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from eshop.core.exceptions import EventDeserializationError, PublishError, UnknownEventTypeError
from eshop.events.bus import InMemoryEventBus
from eshop.events.integration_events import ProductPriceChangedIntegrationEvent
from eshop.events.registry import EventRegistry, default_registry, serialize_event


def price_changed():
    return ProductPriceChangedIntegrationEvent(
        product_id=uuid4(), name="Lamp", category=["Home"], price=Decimal("19.99")
    )


class TestEventRegistry:

    def test_wire_shape_carries_envelope_fields(self):
        event = price_changed()

        payload = json.loads(serialize_event(event))

        assert payload["event_id"] == str(event.event_id)
        assert payload["event_type"] == "catalog.product_price_changed.v1"
        assert "occurred_on" in payload
        assert payload["price"] == "19.99"

    def test_deserialize_restores_event(self):
        event = price_changed()

        restored = default_registry.deserialize(event.event_type, serialize_event(event))

        assert isinstance(restored, ProductPriceChangedIntegrationEvent)
        assert restored == event

    def test_unknown_type_is_rejected(self):
        with pytest.raises(UnknownEventTypeError):
            default_registry.deserialize("Shared.Events.Missing, Shared", "{}")

    def test_content_not_matching_type_is_rejected(self):
        with pytest.raises(EventDeserializationError):
            default_registry.deserialize(ProductPriceChangedIntegrationEvent.EVENT_TYPE, '{"name": "no id"}')

    def test_custom_deserializer_returning_nothing_is_rejected(self):
        registry = EventRegistry()
        registry.register(ProductPriceChangedIntegrationEvent, deserializer=lambda content: None)

        with pytest.raises(EventDeserializationError):
            registry.deserialize(ProductPriceChangedIntegrationEvent.EVENT_TYPE, "{}")

    def test_custom_deserializer_errors_become_deserialization_errors(self):
        registry = EventRegistry()
        registry.register(ProductPriceChangedIntegrationEvent, deserializer=lambda content: json.loads(content)["product_id"])

        with pytest.raises(EventDeserializationError) as exc_info:
            registry.deserialize(ProductPriceChangedIntegrationEvent.EVENT_TYPE, "{}")

        assert "KeyError" in str(exc_info.value)


class TestInMemoryEventBus:

    @pytest.mark.asyncio
    async def test_delivers_to_subscribers_of_the_event_type_only(self):
        bus = InMemoryEventBus()
        price_handler = AsyncMock()
        other_handler = AsyncMock()
        bus.subscribe(ProductPriceChangedIntegrationEvent.EVENT_TYPE, price_handler)
        bus.subscribe("basket.checkout.v1", other_handler)
        event = price_changed()

        await bus.publish(event)

        price_handler.assert_awaited_once_with(event)
        other_handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_subscriber_failure_raises_after_all_subscribers_ran(self):
        bus = InMemoryEventBus()
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        bus.subscribe(ProductPriceChangedIntegrationEvent.EVENT_TYPE, failing)
        bus.subscribe(ProductPriceChangedIntegrationEvent.EVENT_TYPE, healthy)

        with pytest.raises(PublishError) as excinfo:
            await bus.publish(price_changed())

        healthy.assert_awaited_once()
        assert "boom" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_publish_without_subscribers_succeeds(self):
        await InMemoryEventBus().publish(price_changed())

    def test_subscribing_twice_registers_once(self):
        bus = InMemoryEventBus()
        handler = AsyncMock()

        bus.subscribe("basket.checkout.v1", handler)
        bus.subscribe("basket.checkout.v1", handler)

        assert bus.subscribers("basket.checkout.v1") == [handler]
