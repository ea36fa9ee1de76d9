import logging
from tortoise.transactions import in_transaction

from eshop.events.integration_events import BasketCheckoutIntegrationEvent
from eshop.models.processed_event import ProcessedEvent
from eshop.schemas.order import AddressDto, CreateOrderCommand, OrderItemDto, PaymentDto
from eshop.services.order_service import create_order

log = logging.getLogger(__name__)

CONSUMER_NAME = "ordering.basket_checkout"


def to_create_order_command(event: BasketCheckoutIntegrationEvent) -> CreateOrderCommand:
    """Maps the checkout event to the Ordering module's CreateOrder command."""
    address = AddressDto(
        first_name=event.first_name,
        last_name=event.last_name,
        email_address=event.email_address,
        address_line=event.address_line,
        country=event.country,
        state=event.state,
        zip_code=event.zip_code,
    )
    return CreateOrderCommand(
        customer_id=event.customer_id,
        order_name=event.user_name,
        shipping_address=address,
        billing_address=address,
        payment=PaymentDto(
            card_name=event.card_name,
            card_number=event.card_number,
            expiration=event.expiration,
            cvv=event.cvv,
            payment_method=event.payment_method,
        ),
        items=[
            OrderItemDto(product_id=item.product_id, quantity=item.quantity, price=item.price)
            for item in event.items
        ],
    )


async def handle_basket_checkout(event: BasketCheckoutIntegrationEvent):
    """
    Consumer logic for 'basket.checkout.v1'. Creates the order.

    Idempotent: the processed-event marker is written in the same transaction
    as the order. Failures propagate so the event is redelivered.
    """
    event_id_str = str(event.event_id)
    log.info(f"Integration event handled: {event.event_type} (ID: {event_id_str[:8]}...) for {event.user_name}")

    # Idempotency Check
    if await ProcessedEvent.filter(event_id=event_id_str, consumer=CONSUMER_NAME).exists():
        log.info(f"Idempotency: Event {event_id_str} already processed by {CONSUMER_NAME}.")
        return

    command = to_create_order_command(event)
    log.debug(f"Mapped CreateOrderCommand: {command.model_dump(exclude={'payment'})}")

    async with in_transaction() as conn:
        order = await create_order(command, conn=conn)
        await ProcessedEvent.create(event_id=event_id_str, consumer=CONSUMER_NAME, using_db=conn)

    log.info(f"Order {order.id} created from checkout event {event_id_str}.")
