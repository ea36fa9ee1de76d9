import logging
import uuid
from typing import List, Optional

from tortoise.transactions import in_transaction

from eshop.core.exceptions import ProductNotFoundError
from eshop.events.integration_events import ProductPriceChangedIntegrationEvent
from eshop.events.outbox_utility import create_outbox_message
from eshop.models.catalog import Product
from eshop.schemas.catalog import ProductRequest, ProductUpdateRequest

log = logging.getLogger(__name__)


def product_price_changed_event(product: Product) -> ProductPriceChangedIntegrationEvent:
    """Translates a repriced product into the event Basket consumes."""
    return ProductPriceChangedIntegrationEvent(
        product_id=product.id,
        name=product.name,
        category=list(product.category or []),
        description=product.description,
        image_file=product.image_file,
        price=product.price,
    )


async def create_product(request: ProductRequest) -> Product:
    product = await Product.create(
        id=uuid.uuid4(),
        name=request.name,
        category=request.category,
        description=request.description,
        image_file=request.image_file,
        price=request.price,
    )
    log.info(f"Product {product.id} ({product.name}) created.")
    return product


async def get_products(category: Optional[str] = None) -> List[Product]:
    products = await Product.all().order_by("name")
    if category:
        # Categories are stored as a JSON list; filter in Python to stay backend-neutral
        products = [p for p in products if category in (p.category or [])]
    return products


async def get_product(product_id: uuid.UUID) -> Product:
    product = await Product.get_or_none(id=product_id)
    if not product:
        raise ProductNotFoundError(product_id)
    return product


async def update_product(product_id: uuid.UUID, request: ProductUpdateRequest) -> Product:
    """
    Updates a product. A price change appends a ProductPriceChanged event to
    the outbox in the same transaction as the product update.
    """
    async with in_transaction() as conn:
        product = await Product.get_or_none(id=product_id).using_db(conn)
        if not product:
            raise ProductNotFoundError(product_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        price_changed = "price" in changes and changes["price"] != product.price
        for field, value in changes.items():
            setattr(product, field, value)
        await product.save(using_db=conn)

        if price_changed:
            await create_outbox_message(product_price_changed_event(product), conn)
            log.info(f"Price of product {product.id} changed to {product.price}; event queued.")

    return product


async def delete_product(product_id: uuid.UUID) -> bool:
    deleted = await Product.filter(id=product_id).delete()
    if not deleted:
        raise ProductNotFoundError(product_id)
    log.info(f"Product {product_id} deleted.")
    return True
