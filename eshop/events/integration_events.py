"""Integration events exchanged between the Catalog, Basket and Ordering modules.

Every event is an immutable pydantic model. ``EVENT_TYPE`` is the stable
discriminator written to the outbox ``type`` column and used as the bus
channel name; renaming a class never changes it.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar, List

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntegrationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    EVENT_TYPE: ClassVar[str] = "integration_event"

    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    occurred_on: datetime = Field(default_factory=_utcnow)

    @computed_field
    @property
    def event_type(self) -> str:
        return self.EVENT_TYPE


class CheckoutLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: uuid.UUID
    product_name: str = ""
    quantity: int
    price: Decimal


class BasketCheckoutIntegrationEvent(IntegrationEvent):
    EVENT_TYPE: ClassVar[str] = "basket.checkout.v1"

    user_name: str
    customer_id: uuid.UUID
    total_price: Decimal

    # Shipping and billing address
    first_name: str
    last_name: str
    email_address: str
    address_line: str
    country: str
    state: str
    zip_code: str

    # Payment
    card_name: str
    card_number: str
    expiration: str
    cvv: str
    payment_method: int

    items: List[CheckoutLineItem] = Field(default_factory=list)


class ProductPriceChangedIntegrationEvent(IntegrationEvent):
    EVENT_TYPE: ClassVar[str] = "catalog.product_price_changed.v1"

    product_id: uuid.UUID
    name: str
    category: List[str] = Field(default_factory=list)
    description: str = ""
    image_file: str = ""
    price: Decimal
