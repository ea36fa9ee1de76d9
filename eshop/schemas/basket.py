import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ShoppingCartItemDto(BaseModel):
    """Schema for a single line in a shopping cart."""
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    color: str = ""
    price: Decimal = Field(..., gt=0)
    product_name: str = ""


class ShoppingCartDto(BaseModel):
    """Snapshot of a basket; this is also what the read cache stores."""
    id: uuid.UUID
    user_name: str
    items: List[ShoppingCartItemDto] = Field(default_factory=list)
    total_price: Decimal = Decimal("0")


class CreateBasketRequest(BaseModel):
    user_name: str = Field(..., min_length=1, description="Owner of the basket; one basket per user.")
    items: List[ShoppingCartItemDto] = Field(default_factory=list)


class BasketCheckoutRequest(BaseModel):
    """Checkout payload: the basket owner plus shipping/billing and payment fields."""
    user_name: str = Field(..., min_length=1)
    customer_id: Optional[uuid.UUID] = Field(None, description="Defaults to an ID derived from user_name.")

    # Shipping and billing address
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email_address: str = Field(..., min_length=3)
    address_line: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    state: str = ""
    zip_code: str = Field(..., min_length=1)

    # Payment
    card_name: str = Field(..., min_length=1)
    card_number: str = Field(..., min_length=1)
    expiration: str = Field(..., min_length=1)
    cvv: str = Field(..., min_length=1)
    payment_method: int = 1


class CheckoutResult(BaseModel):
    is_success: bool


class UpdateItemPriceCommand(BaseModel):
    product_id: uuid.UUID
    price: Decimal = Field(..., gt=0)
    # When set, lines already repriced by a newer change are left alone
    changed_on: Optional[datetime] = None
