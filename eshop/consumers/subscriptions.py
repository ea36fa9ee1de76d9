from eshop.consumers.basket_checkout_consumer import handle_basket_checkout
from eshop.consumers.product_price_consumer import handle_product_price_changed
from eshop.events.bus import EventBus, InMemoryEventBus
from eshop.events.integration_events import (
    BasketCheckoutIntegrationEvent,
    ProductPriceChangedIntegrationEvent,
)


def register_consumers(bus: EventBus) -> EventBus:
    """Wires every cross-module consumer to its event channel."""
    # Ordering
    bus.subscribe(BasketCheckoutIntegrationEvent.EVENT_TYPE, handle_basket_checkout)
    # Basket
    bus.subscribe(ProductPriceChangedIntegrationEvent.EVENT_TYPE, handle_product_price_changed)
    return bus


def build_event_bus() -> EventBus:
    return register_consumers(InMemoryEventBus())
