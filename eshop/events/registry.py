import logging
from typing import Callable, Dict, Optional, Type

from eshop.core.exceptions import EventDeserializationError, UnknownEventTypeError
from eshop.events.integration_events import (
    BasketCheckoutIntegrationEvent,
    IntegrationEvent,
    ProductPriceChangedIntegrationEvent,
)

log = logging.getLogger(__name__)

Deserializer = Callable[[str], IntegrationEvent]


def serialize_event(event: IntegrationEvent) -> str:
    return event.model_dump_json()


class EventRegistry:
    """Maps the stable event-type discriminator to a deserializer."""

    def __init__(self):
        self._deserializers: Dict[str, Deserializer] = {}

    def register(self, event_cls: Type[IntegrationEvent], deserializer: Optional[Deserializer] = None):
        self._deserializers[event_cls.EVENT_TYPE] = deserializer or event_cls.model_validate_json
        return event_cls

    def is_registered(self, event_type: str) -> bool:
        return event_type in self._deserializers

    def deserialize(self, event_type: str, content: str) -> IntegrationEvent:
        deserializer = self._deserializers.get(event_type)
        if deserializer is None:
            raise UnknownEventTypeError(event_type)

        try:
            event = deserializer(content)
        except Exception as e:
            # Any deserializer failure makes the message poison, not the cycle
            raise EventDeserializationError(event_type, f"{type(e).__name__}: {e}") from e

        if event is None:
            raise EventDeserializationError(event_type, "deserializer returned no event")
        return event


def build_default_registry() -> EventRegistry:
    registry = EventRegistry()
    registry.register(BasketCheckoutIntegrationEvent)
    registry.register(ProductPriceChangedIntegrationEvent)
    return registry


default_registry = build_default_registry()
