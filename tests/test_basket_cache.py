from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from eshop.core.exceptions import BasketNotFoundError
from eshop.schemas.basket import ShoppingCartDto
from eshop.services.basket_cache import BasketCache, InMemoryBasketCache, RedisBasketCache
from eshop.services.basket_repository import BasketRepository, CachedBasketRepository
from eshop.services.basket_service import close_basket_repository, set_basket_repository


def snapshot(user_name="alice"):
    return ShoppingCartDto(id=uuid4(), user_name=user_name, items=[], total_price=Decimal("0"))


@pytest.fixture
def inner():
    repository = MagicMock(spec=BasketRepository)
    repository.get_basket = AsyncMock(return_value=snapshot())
    repository.delete_basket = AsyncMock(return_value=True)
    repository.update_item_price = AsyncMock(return_value=["alice", "bob"])
    return repository


@pytest.mark.asyncio
async def test_reads_are_served_from_cache_after_first_load(inner):
    cached = CachedBasketRepository(inner, InMemoryBasketCache())

    first = await cached.get_basket("alice")
    second = await cached.get_basket("alice")

    assert first == second
    inner.get_basket.assert_awaited_once_with("alice")


@pytest.mark.asyncio
async def test_missing_basket_is_not_cached(inner):
    inner.get_basket.side_effect = BasketNotFoundError("alice")
    cache = InMemoryBasketCache()
    cached = CachedBasketRepository(inner, cache)

    with pytest.raises(BasketNotFoundError):
        await cached.get_basket("alice")

    assert await cache.get("alice") is None


@pytest.mark.asyncio
async def test_writes_evict_affected_users(inner):
    cache = InMemoryBasketCache()
    for user_name in ("alice", "bob", "carol"):
        await cache.set(user_name, snapshot(user_name).model_dump_json())
    cached = CachedBasketRepository(inner, cache)

    await cached.update_item_price(uuid4(), Decimal("3.00"))
    await cached.delete_basket("carol")

    assert [await cache.get(u) for u in ("alice", "bob", "carol")] == [None, None, None]


@pytest.mark.asyncio
async def test_in_memory_entries_expire():
    cache = InMemoryBasketCache(ttl=-1)

    await cache.set("alice", "{}")

    assert await cache.get("alice") is None


@pytest.mark.asyncio
async def test_redis_cache_prefixes_keys_and_sets_ttl():
    client = MagicMock()
    client.get = AsyncMock(return_value="{}")
    client.set = AsyncMock()
    client.delete = AsyncMock()
    cache = RedisBasketCache(client, ttl=120)

    await cache.set("alice", "{}")
    assert await cache.get("alice") == "{}"
    await cache.delete("alice")

    client.set.assert_awaited_once_with("basket:alice", "{}", ex=120)
    client.get.assert_awaited_once_with("basket:alice")
    client.delete.assert_awaited_once_with("basket:alice")


@pytest.mark.asyncio
async def test_redis_cache_close_releases_client():
    client = MagicMock()
    client.aclose = AsyncMock()

    await RedisBasketCache(client).close()

    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_closing_module_repository_closes_its_cache(inner):
    cache = MagicMock(spec=BasketCache)
    cache.close = AsyncMock()
    set_basket_repository(CachedBasketRepository(inner, cache))

    await close_basket_repository()

    cache.close.assert_awaited_once()
