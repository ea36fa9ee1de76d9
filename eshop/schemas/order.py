import uuid
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class AddressDto(BaseModel):
    first_name: str
    last_name: str
    email_address: str = Field(..., min_length=1)
    address_line: str = Field(..., min_length=1)
    country: str
    state: str = ""
    zip_code: str


class PaymentDto(BaseModel):
    card_name: str
    card_number: str
    expiration: str
    cvv: str
    payment_method: int = 1


class OrderItemDto(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., gt=0)


class CreateOrderCommand(BaseModel):
    """Local Ordering command; built by the basket checkout consumer."""
    customer_id: uuid.UUID
    order_name: str = Field(..., min_length=1)
    shipping_address: AddressDto
    billing_address: AddressDto
    payment: PaymentDto
    items: List[OrderItemDto] = Field(default_factory=list)


class OrderResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    order_name: str
    shipping_address: AddressDto
    billing_address: AddressDto
    payment: PaymentDto
    items: List[OrderItemDto]
    total_price: Decimal
    created_at: str
