"""Expiring key-value cache used in front of TMDB.

Every store fails open: a broken or unreachable backend is logged and
treated as a cache miss, never as a request failure.
"""

import fnmatch
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

from cachetools import TLRUCache
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from showfeed.core.config import Settings

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Abstract cache store holding JSON-serializable payloads."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached payload, or None when absent or unavailable."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a payload that expires after ``ttl_seconds``."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> None:
        """Delete every key matching a glob pattern."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis, values kept as JSON strings."""

    def __init__(self, url: str, client: aioredis.Redis | None = None):
        self.url = url
        self.client = client or aioredis.Redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Any | None:
        try:
            data = await self.client.get(key)
        except RedisError as exc:
            logger.warning("Cache get error for '%s': %s", key, exc)
            return None
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError as exc:
            logger.warning("Discarding undecodable cache entry '%s': %s", key, exc)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.client.set(key, json.dumps(value), ex=ttl_seconds)
        except (RedisError, TypeError, ValueError) as exc:
            logger.warning("Cache set error for '%s': %s", key, exc)

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as exc:
            logger.warning("Cache delete error for '%s': %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        try:
            keys = [key async for key in self.client.scan_iter(match=pattern)]
            if keys:
                await self.client.delete(*keys)
        except RedisError as exc:
            logger.warning("Cache delete pattern error for '%s': %s", pattern, exc)

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except RedisError as exc:
            logger.warning("Error closing Redis connection: %s", exc)


def _entry_expiry(_key: str, value: tuple[str, int], now: float) -> float:
    return now + value[1]


class MemoryCacheStore(CacheStore):
    """In-process cache store with a per-entry TTL.

    Payloads are JSON-encoded on write so readers never share mutable
    state with the writer, mirroring the Redis backend.
    """

    def __init__(
        self, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic
    ):
        self._cache: TLRUCache = TLRUCache(
            maxsize=maxsize, ttu=_entry_expiry, timer=timer
        )

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        return json.loads(entry[0])

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._cache[key] = (json.dumps(value), ttl_seconds)
        except (TypeError, ValueError) as exc:
            logger.warning("Cache set error for '%s': %s", key, exc)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        for key in [k for k in self._cache.keys() if fnmatch.fnmatchcase(k, pattern)]:
            self._cache.pop(key, None)


def build_cache_store(settings: Settings) -> CacheStore:
    """Create the cache store selected by ``settings.cache_backend``."""
    if settings.cache_backend == "memory":
        logger.info("Using in-memory cache store")
        return MemoryCacheStore()
    logger.info("Using Redis cache store")
    return RedisCacheStore(settings.redis_url)
