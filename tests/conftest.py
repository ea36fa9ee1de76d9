import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from tortoise import Tortoise

from eshop.core.db import MODELS_MODULES
from eshop.schemas.basket import BasketCheckoutRequest, ShoppingCartItemDto
from eshop.services import basket_service
from eshop.services.basket_cache import InMemoryBasketCache
from eshop.services.basket_repository import BasketRepository, CachedBasketRepository

PRODUCT_1 = uuid.UUID("5334c996-8457-4cf0-815c-ed2b77c4ff61")
PRODUCT_2 = uuid.UUID("c67d6323-e8b1-4bdf-9a75-b0d0d2e7e914")


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database per test."""
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": MODELS_MODULES})
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def basket_cache():
    return InMemoryBasketCache(ttl=60)


@pytest.fixture(autouse=True)
def basket_repository(basket_cache):
    """Isolates the module-level basket repository (and its cache) per test."""
    repository = CachedBasketRepository(BasketRepository(), basket_cache)
    basket_service.set_basket_repository(repository)
    yield repository
    basket_service.set_basket_repository(None)


def line(product_id=PRODUCT_1, quantity=1, price="10.00", name="Product"):
    return ShoppingCartItemDto(
        product_id=product_id,
        quantity=quantity,
        price=Decimal(price),
        color="Red",
        product_name=name,
    )


@pytest.fixture
def make_checkout():
    def _make(user_name="alice", **overrides):
        data = dict(
            user_name=user_name,
            first_name="Alice",
            last_name="Smith",
            email_address="alice@example.com",
            address_line="1 Main St",
            country="US",
            state="CA",
            zip_code="94000",
            card_name="Alice Smith",
            card_number="4111111111111111",
            expiration="12/30",
            cvv="123",
            payment_method=1,
        )
        data.update(overrides)
        return BasketCheckoutRequest(**data)

    return _make
