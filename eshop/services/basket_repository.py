import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from eshop.core.exceptions import BasketNotFoundError
from eshop.models.basket import ShoppingCart, ShoppingCartItem
from eshop.schemas.basket import ShoppingCartDto, ShoppingCartItemDto
from eshop.services.basket_cache import BasketCache

log = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_basket_dto(basket: ShoppingCart) -> ShoppingCartDto:
    """Maps a basket with prefetched items to its snapshot."""
    items = list(basket.items)
    return ShoppingCartDto(
        id=basket.id,
        user_name=basket.user_name,
        items=[
            ShoppingCartItemDto(
                product_id=item.product_id,
                quantity=item.quantity,
                color=item.color,
                price=item.price,
                product_name=item.product_name,
            )
            for item in items
        ],
        total_price=basket.total_price().quantize(CENT),
    )


async def _add_or_merge_item(basket: ShoppingCart, item: ShoppingCartItemDto, conn) -> None:
    existing = await ShoppingCartItem.get_or_none(
        shopping_cart_id=basket.id, product_id=item.product_id
    ).using_db(conn)
    if existing:
        existing.quantity += item.quantity
        await existing.save(update_fields=["quantity"], using_db=conn)
        return

    await ShoppingCartItem.create(
        shopping_cart=basket,
        product_id=item.product_id,
        quantity=item.quantity,
        color=item.color,
        price=item.price,
        product_name=item.product_name,
        using_db=conn,
    )


async def delete_basket_rows(basket: ShoppingCart, conn) -> None:
    """Deletes a basket and its items on the given connection."""
    await ShoppingCartItem.filter(shopping_cart_id=basket.id).using_db(conn).delete()
    await basket.delete(using_db=conn)


class BasketRepository:
    """Tortoise-backed basket storage returning basket snapshots."""

    async def get_basket(self, user_name: str) -> ShoppingCartDto:
        basket = await ShoppingCart.get_or_none(user_name=user_name).prefetch_related("items")
        if not basket:
            raise BasketNotFoundError(user_name)
        return to_basket_dto(basket)

    async def create_basket(self, user_name: str, items: List[ShoppingCartItemDto]) -> ShoppingCartDto:
        async with in_transaction() as conn:
            basket = await ShoppingCart.get_or_none(user_name=user_name).using_db(conn)
            if basket is None:
                basket = await ShoppingCart.create(id=uuid.uuid4(), user_name=user_name, using_db=conn)
            for item in items:
                await _add_or_merge_item(basket, item, conn)
        return await self.get_basket(user_name)

    async def add_item(self, user_name: str, item: ShoppingCartItemDto) -> ShoppingCartDto:
        async with in_transaction() as conn:
            basket = await ShoppingCart.get_or_none(user_name=user_name).using_db(conn)
            if basket is None:
                raise BasketNotFoundError(user_name)
            await _add_or_merge_item(basket, item, conn)
        return await self.get_basket(user_name)

    async def remove_item(self, user_name: str, product_id: uuid.UUID) -> ShoppingCartDto:
        basket = await ShoppingCart.get_or_none(user_name=user_name)
        if basket is None:
            raise BasketNotFoundError(user_name)
        await ShoppingCartItem.filter(shopping_cart_id=basket.id, product_id=product_id).delete()
        return await self.get_basket(user_name)

    async def delete_basket(self, user_name: str) -> bool:
        async with in_transaction() as conn:
            basket = await ShoppingCart.get_or_none(user_name=user_name).using_db(conn)
            if basket is None:
                raise BasketNotFoundError(user_name)
            await delete_basket_rows(basket, conn)
        return True

    async def update_item_price(
        self, product_id: uuid.UUID, price: Decimal, changed_on: Optional[datetime] = None
    ) -> List[str]:
        """Reprices every basket line for the product. Returns the affected user names.

        With ``changed_on``, lines already repriced by a change that occurred
        at or after it keep their price, so a late redelivery of an older
        change cannot overwrite a newer one.
        """
        query = ShoppingCartItem.filter(product_id=product_id)
        if changed_on is not None:
            query = query.filter(Q(price_changed_on__isnull=True) | Q(price_changed_on__lt=changed_on))

        async with in_transaction() as conn:
            items = await query.using_db(conn).prefetch_related("shopping_cart")
            for item in items:
                item.price = price
                item.price_changed_on = changed_on or item.price_changed_on
                await item.save(update_fields=["price", "price_changed_on"], using_db=conn)
        return sorted({item.shopping_cart.user_name for item in items})

    async def evict(self, user_name: str) -> None:
        """No-op without a cache; see CachedBasketRepository."""

    async def close(self) -> None:
        """No-op without a cache."""


class CachedBasketRepository(BasketRepository):
    """Wraps a BasketRepository with a read-through cache keyed by user name.

    Reads are served from the cache when possible. Every write goes to the
    wrapped repository first and then evicts the affected entries.
    """

    def __init__(self, repository: BasketRepository, cache: BasketCache):
        self.repository = repository
        self.cache = cache

    async def get_basket(self, user_name: str) -> ShoppingCartDto:
        cached = await self.cache.get(user_name)
        if cached:
            return ShoppingCartDto.model_validate_json(cached)

        basket = await self.repository.get_basket(user_name)
        await self.cache.set(user_name, basket.model_dump_json())
        return basket

    async def create_basket(self, user_name: str, items: List[ShoppingCartItemDto]) -> ShoppingCartDto:
        basket = await self.repository.create_basket(user_name, items)
        await self.cache.set(user_name, basket.model_dump_json())
        return basket

    async def add_item(self, user_name: str, item: ShoppingCartItemDto) -> ShoppingCartDto:
        basket = await self.repository.add_item(user_name, item)
        await self.cache.delete(user_name)
        return basket

    async def remove_item(self, user_name: str, product_id: uuid.UUID) -> ShoppingCartDto:
        basket = await self.repository.remove_item(user_name, product_id)
        await self.cache.delete(user_name)
        return basket

    async def delete_basket(self, user_name: str) -> bool:
        await self.repository.delete_basket(user_name)
        await self.cache.delete(user_name)
        return True

    async def update_item_price(
        self, product_id: uuid.UUID, price: Decimal, changed_on: Optional[datetime] = None
    ) -> List[str]:
        user_names = await self.repository.update_item_price(product_id, price, changed_on)
        for user_name in user_names:
            await self.cache.delete(user_name)
        return user_names

    async def evict(self, user_name: str) -> None:
        await self.cache.delete(user_name)

    async def close(self) -> None:
        await self.cache.close()
