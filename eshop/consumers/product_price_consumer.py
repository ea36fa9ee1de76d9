import logging

from eshop.events.integration_events import ProductPriceChangedIntegrationEvent
from eshop.schemas.basket import UpdateItemPriceCommand
from eshop.services.basket_service import update_item_price_in_baskets

log = logging.getLogger(__name__)


async def handle_product_price_changed(event: ProductPriceChangedIntegrationEvent):
    """
    Consumer logic for 'catalog.product_price_changed.v1'. Reprices basket lines.
    Lines already repriced by a newer change are skipped, so a redelivered or
    retried older event never reverts a price.
    """
    log.info(f"Integration event handled: {event.event_type} for product {event.product_id}")

    command = UpdateItemPriceCommand(
        product_id=event.product_id, price=event.price, changed_on=event.occurred_on
    )
    updated = await update_item_price_in_baskets(command)

    if updated:
        log.info(f"Price for product {event.product_id} updated in baskets.")
    else:
        log.info(f"No basket line of product {event.product_id} needed repricing.")
