import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from tortoise.transactions import in_transaction

from eshop.core.exceptions import BasketNotFoundError
from eshop.events.integration_events import BasketCheckoutIntegrationEvent, CheckoutLineItem
from eshop.events.outbox_utility import create_outbox_message
from eshop.models.basket import ShoppingCart
from eshop.schemas.basket import (
    BasketCheckoutRequest,
    CheckoutResult,
    ShoppingCartDto,
    ShoppingCartItemDto,
    UpdateItemPriceCommand,
)
from eshop.services.basket_cache import build_basket_cache
from eshop.services.basket_repository import (
    CENT,
    BasketRepository,
    CachedBasketRepository,
    delete_basket_rows,
)

log = logging.getLogger(__name__)

# Customers are identified by user name until an identity module exists
CUSTOMER_NAMESPACE = uuid.UUID("8f1b6d2e-4c1a-4f7e-9a3b-5d2c6e7f8a90")

_repository: Optional[BasketRepository] = None


def get_basket_repository() -> BasketRepository:
    global _repository
    if _repository is None:
        _repository = CachedBasketRepository(BasketRepository(), build_basket_cache())
    return _repository


def set_basket_repository(repository: Optional[BasketRepository]) -> None:
    global _repository
    _repository = repository


async def close_basket_repository() -> None:
    """Closes the module-level repository (and its cache client) if one was built."""
    global _repository
    if _repository is not None:
        await _repository.close()
        _repository = None


def customer_id_for(user_name: str) -> uuid.UUID:
    return uuid.uuid5(CUSTOMER_NAMESPACE, user_name)


async def create_basket(user_name: str, items: List[ShoppingCartItemDto]) -> ShoppingCartDto:
    basket = await get_basket_repository().create_basket(user_name, items)
    log.info(f"Basket {basket.id} stored for user {user_name} with {len(basket.items)} item(s).")
    return basket


async def get_basket(user_name: str) -> ShoppingCartDto:
    return await get_basket_repository().get_basket(user_name)


async def add_item(user_name: str, item: ShoppingCartItemDto) -> ShoppingCartDto:
    return await get_basket_repository().add_item(user_name, item)


async def remove_item(user_name: str, product_id: uuid.UUID) -> ShoppingCartDto:
    return await get_basket_repository().remove_item(user_name, product_id)


async def delete_basket(user_name: str) -> bool:
    return await get_basket_repository().delete_basket(user_name)


async def update_item_price_in_baskets(command: UpdateItemPriceCommand) -> bool:
    """Applies a catalog price change to every basket line of the product.

    Returns False when no basket line was repriced.
    """
    user_names = await get_basket_repository().update_item_price(
        command.product_id, command.price, command.changed_on
    )
    if not user_names:
        return False
    log.info(f"Repriced product {command.product_id} to {command.price} in {len(user_names)} basket(s).")
    return True


def build_checkout_event(checkout: BasketCheckoutRequest, basket: ShoppingCart) -> BasketCheckoutIntegrationEvent:
    """Translates a checkout request and the loaded basket into the integration event."""
    items = list(basket.items)
    total = sum((item.price * item.quantity for item in items), Decimal("0")).quantize(CENT)

    return BasketCheckoutIntegrationEvent(
        user_name=checkout.user_name,
        customer_id=checkout.customer_id or customer_id_for(checkout.user_name),
        total_price=total,
        first_name=checkout.first_name,
        last_name=checkout.last_name,
        email_address=checkout.email_address,
        address_line=checkout.address_line,
        country=checkout.country,
        state=checkout.state,
        zip_code=checkout.zip_code,
        card_name=checkout.card_name,
        card_number=checkout.card_number,
        expiration=checkout.expiration,
        cvv=checkout.cvv,
        payment_method=checkout.payment_method,
        items=[
            CheckoutLineItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                price=item.price,
            )
            for item in items
        ],
    )


async def checkout_basket(checkout: BasketCheckoutRequest) -> CheckoutResult:
    """
    Checks out the user's basket.

    The checkout event is appended to the outbox and the basket is deleted in
    ONE transaction; nothing is published here. The outbox dispatcher delivers
    the event to Ordering later.

    Raises BasketNotFoundError for a missing or empty basket. Any other failure
    rolls the transaction back and is reported as is_success=False.
    """
    user_name = checkout.user_name
    try:
        async with in_transaction() as conn:
            basket = await ShoppingCart.get_or_none(user_name=user_name).using_db(conn).prefetch_related("items")
            if basket is None or not list(basket.items):
                raise BasketNotFoundError(user_name)

            event = build_checkout_event(checkout, basket)
            await create_outbox_message(event, conn)
            await delete_basket_rows(basket, conn)

    except BasketNotFoundError:
        log.warning(f"Checkout rejected: basket for {user_name} is empty or missing.")
        raise
    except Exception:
        log.exception(f"Checkout failed for user {user_name}; transaction rolled back.")
        return CheckoutResult(is_success=False)

    log.info(f"Basket of {user_name} checked out (event {event.event_id}, total {event.total_price}).")

    try:
        await get_basket_repository().evict(user_name)
    except Exception:
        # The checkout is committed; a stale cache entry expires with its TTL
        log.exception(f"Could not evict cached basket of {user_name} after checkout.")

    return CheckoutResult(is_success=True)
