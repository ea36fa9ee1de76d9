import json
from decimal import Decimal
from uuid import uuid4

import pytest

from eshop.core.exceptions import ProductNotFoundError
from eshop.events.integration_events import ProductPriceChangedIntegrationEvent
from eshop.models.outbox import OutboxMessage
from eshop.schemas.catalog import ProductRequest, ProductUpdateRequest
from eshop.services.catalog_service import (
    create_product,
    delete_product,
    get_product,
    get_products,
    update_product,
)


async def lamp(price="20.00"):
    return await create_product(ProductRequest(
        name="Lamp", category=["Home", "Lighting"], description="Desk lamp",
        image_file="lamp.png", price=Decimal(price),
    ))


@pytest.mark.asyncio
async def test_price_change_queues_integration_event(db):
    product = await lamp()

    await update_product(product.id, ProductUpdateRequest(price=Decimal("25.00")))

    message = await OutboxMessage.get(type=ProductPriceChangedIntegrationEvent.EVENT_TYPE)
    content = json.loads(message.content)
    assert content["product_id"] == str(product.id)
    assert Decimal(content["price"]) == Decimal("25.00")
    assert content["category"] == ["Home", "Lighting"]
    assert (await get_product(product.id)).price == Decimal("25.00")


@pytest.mark.asyncio
async def test_update_without_price_change_queues_nothing(db):
    product = await lamp()

    await update_product(product.id, ProductUpdateRequest(name="Desk Lamp", price=Decimal("20.00")))

    assert (await get_product(product.id)).name == "Desk Lamp"
    assert await OutboxMessage.all().count() == 0


@pytest.mark.asyncio
async def test_products_filtered_by_category(db):
    await lamp()
    await create_product(ProductRequest(name="Phone", category=["Smart Phone"], image_file="p.png", price=Decimal("900")))

    assert [p.name for p in await get_products("Lighting")] == ["Lamp"]
    assert len(await get_products()) == 2


@pytest.mark.asyncio
async def test_missing_product_raises_not_found(db):
    with pytest.raises(ProductNotFoundError):
        await update_product(uuid4(), ProductUpdateRequest(price=Decimal("1.00")))
    with pytest.raises(ProductNotFoundError):
        await delete_product(uuid4())
