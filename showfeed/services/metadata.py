"""Aggregation service: cached, concurrent movie + series lookups."""

import asyncio
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from showfeed.core.cache import CacheStore
from showfeed.models.media import MediaType, TimeWindow, UnifiedShow
from showfeed.services.normalizer import ResultVariant, normalize
from showfeed.services.tmdb import DecodeError, TMDBClient, UpstreamError

logger = logging.getLogger(__name__)

SEARCH_TTL = 1800  # 30 minutes
TRENDING_TTL = 3600  # 1 hour
DETAILS_TTL = 86400  # 24 hours

MIN_QUERY_LENGTH = 2
RESULTS_PER_CATEGORY = 5


def search_cache_key(query: str) -> str:
    return f"tmdb:search:{query.strip().lower()}"


def trending_cache_key(window: TimeWindow) -> str:
    return f"tmdb:trending:{window.value}"


def details_cache_key(tmdb_id: int, category: MediaType) -> str:
    return f"tmdb:details:{category.value}:{tmdb_id}"


def _result_items(payload: dict[str, Any], category: MediaType) -> List[dict]:
    """First page items of a list response, truncated per category."""
    results = payload.get("results")
    if not isinstance(results, list):
        raise DecodeError(f"TMDB {category.value} list response without results")
    items = results[:RESULTS_PER_CATEGORY]
    if not all(isinstance(item, dict) for item in items):
        raise DecodeError(f"TMDB {category.value} list response with bad items")
    return items


class MetadataService:
    """Search, trending and detail lookups over TMDB with a cache in front.

    Movies and series are fetched concurrently and merged movies first.
    Failure handling differs per operation: search propagates
    ``UpstreamError``, trending degrades to an empty list and details
    degrade to ``None``.
    """

    def __init__(self, client: TMDBClient, cache: CacheStore):
        self.client = client
        self.cache = cache

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.cache.close()

    async def _cached_list(self, key: str) -> Optional[List[UnifiedShow]]:
        cached = await self.cache.get(key)
        if cached is None:
            return None
        try:
            return [UnifiedShow.model_validate(item) for item in cached]
        except (TypeError, ValidationError) as exc:
            logger.warning("Ignoring malformed cache entry '%s': %s", key, exc)
            return None

    def _merge(
        self,
        movies: dict[str, Any],
        series: dict[str, Any],
        rate_content: bool = True,
    ) -> List[UnifiedShow]:
        results: List[UnifiedShow] = []
        for category, payload in (
            (MediaType.MOVIE, movies),
            (MediaType.SERIES, series),
        ):
            for item in _result_items(payload, category):
                results.append(
                    normalize(
                        item, category, ResultVariant.LIST, rate_content=rate_content
                    )
                )
        return results

    async def search(self, query: str) -> List[UnifiedShow]:
        """Search movies and series by keyword.

        Queries shorter than two characters (after trimming) return an empty
        list without touching the cache or TMDB.

        Raises:
            UpstreamError: if either category fails.
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        key = search_cache_key(query)
        cached = await self._cached_list(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        try:
            movies, series = await asyncio.gather(
                self.client.search(MediaType.MOVIE, query),
                self.client.search(MediaType.SERIES, query),
            )
            results = self._merge(movies, series)
        except UpstreamError as exc:
            logger.error("TMDB search error for '%s': %s", query, exc)
            raise

        await self.cache.set(key, [r.to_payload() for r in results], SEARCH_TTL)
        return results

    async def trending(
        self, window: TimeWindow | str = TimeWindow.WEEK
    ) -> List[UnifiedShow]:
        """Trending movies and series for a day or week window.

        Any upstream failure yields an empty list, never a partial one.
        """
        window = TimeWindow(window)
        key = trending_cache_key(window)
        cached = await self._cached_list(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        try:
            movies, series = await asyncio.gather(
                self.client.trending(MediaType.MOVIE, window),
                self.client.trending(MediaType.SERIES, window),
            )
            results = self._merge(movies, series, rate_content=False)
        except UpstreamError as exc:
            logger.error("TMDB trending error for '%s': %s", window.value, exc)
            return []

        await self.cache.set(key, [r.to_payload() for r in results], TRENDING_TTL)
        return results

    async def get_details(
        self, tmdb_id: int, category: MediaType | str
    ) -> Optional[UnifiedShow]:
        """Full record for one movie or series, or None if unavailable."""
        category = MediaType(category)
        key = details_cache_key(tmdb_id, category)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return UnifiedShow.model_validate(cached)
            except ValidationError as exc:
                logger.warning("Ignoring malformed cache entry '%s': %s", key, exc)

        try:
            raw = await self.client.details(category, tmdb_id)
            result = normalize(raw, category, ResultVariant.DETAIL)
        except UpstreamError as exc:
            if exc.status_code == 404:
                logger.info("TMDB %s %s not found", category.value, tmdb_id)
            else:
                logger.error(
                    "TMDB details error for %s %s: %s", category.value, tmdb_id, exc
                )
            return None

        await self.cache.set(key, result.to_payload(), DETAILS_TTL)
        return result
