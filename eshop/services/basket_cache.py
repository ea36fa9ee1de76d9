"""Key/value stores backing the basket read cache.

Values are serialized ``ShoppingCartDto`` JSON keyed by user name. The cache
only ever holds read snapshots; checkout always reads the database inside its
transaction.
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from redis.asyncio import Redis

from eshop.core.config import BASKET_CACHE_TTL, REDIS_URL

log = logging.getLogger(__name__)


class BasketCache(ABC):

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        """Releases connections held by the cache."""


class InMemoryBasketCache(BasketCache):
    """Process-local cache with a per-entry TTL."""

    def __init__(self, ttl: int = BASKET_CACHE_TTL):
        self.ttl = ttl
        self._entries: Dict[str, Tuple[float, str]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at < time.monotonic():
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str) -> None:
        self._entries[key] = (time.monotonic() + self.ttl, value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisBasketCache(BasketCache):
    KEY_PREFIX = "basket:"

    def __init__(self, client: Redis, ttl: int = BASKET_CACHE_TTL):
        self.client = client
        self.ttl = ttl

    @classmethod
    def from_url(cls, url: str, ttl: int = BASKET_CACHE_TTL) -> "RedisBasketCache":
        return cls(Redis.from_url(url, decode_responses=True), ttl=ttl)

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(self.KEY_PREFIX + key)

    async def set(self, key: str, value: str) -> None:
        await self.client.set(self.KEY_PREFIX + key, value, ex=self.ttl)

    async def delete(self, key: str) -> None:
        await self.client.delete(self.KEY_PREFIX + key)

    async def close(self) -> None:
        await self.client.aclose()


def build_basket_cache(redis_url: str = REDIS_URL) -> BasketCache:
    if redis_url:
        log.info("Basket cache backed by Redis.")
        return RedisBasketCache.from_url(redis_url)
    log.info("Basket cache backed by process memory.")
    return InMemoryBasketCache()
