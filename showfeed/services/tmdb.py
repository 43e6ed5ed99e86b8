"""TMDB client for the movie and series endpoints used by showfeed."""

import logging
from typing import Any

import niquests
from aiolimiter import AsyncLimiter

from showfeed.core.config import Settings
from showfeed.models.media import MediaType, TimeWindow

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Domain exception for TMDB failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.original_exception = original_exception


class DecodeError(UpstreamError):
    """TMDB answered with a payload that could not be understood."""


class TMDBClient:
    """Thin async wrapper over the TMDB v3 REST API.

    Requests are never retried here; callers decide what a failure means.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        timeout: int = 10,
        rate_limit: int = 40,
        proxy: str | None = None,
        session: niquests.AsyncSession | None = None,
    ):
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.rate_limiter = AsyncLimiter(rate_limit, 1.0)
        self.session = session or niquests.AsyncSession()
        if proxy:
            self.session.proxies = {"http": proxy, "https": proxy}

    @classmethod
    def from_settings(cls, settings: Settings) -> "TMDBClient":
        return cls(
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            timeout=settings.upstream_timeout,
            rate_limit=settings.upstream_rate_limit,
            proxy=settings.proxy,
        )

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if self.session:
            await self.session.close()

    async def fetch(
        self,
        category: MediaType,
        endpoint_path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET an endpoint and return the decoded JSON object.

        Raises:
            UpstreamError: on transport failure or a non-success status.
            DecodeError: when the body is not a JSON object.
        """
        url = f"{self.base_url}{endpoint_path}"
        query = dict(params or {})
        query["api_key"] = self._api_key

        try:
            async with self.rate_limiter:
                response = await self.session.get(
                    url,
                    params=query,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
        except niquests.exceptions.RequestException as exc:
            logger.error(
                "TMDB %s request to %s failed: %s", category.value, endpoint_path, exc
            )
            raise UpstreamError(f"TMDB request to {endpoint_path} failed", None, exc)

        if not response.ok:
            logger.error(
                "TMDB %s request to %s returned %s",
                category.value,
                endpoint_path,
                response.status_code,
            )
            raise UpstreamError(
                f"TMDB API error: {response.status_code}", response.status_code
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise DecodeError(
                f"Malformed JSON from {endpoint_path}", response.status_code, exc
            )
        if not isinstance(data, dict):
            raise DecodeError(
                f"Unexpected payload type from {endpoint_path}: {type(data).__name__}",
                response.status_code,
            )
        return data

    async def search(self, category: MediaType, query: str) -> dict[str, Any]:
        """Keyword search within one category."""
        return await self.fetch(
            category, f"/search/{category.tmdb_path}", {"query": query}
        )

    async def trending(self, category: MediaType, window: TimeWindow) -> dict[str, Any]:
        """Trending titles of one category for a time window."""
        return await self.fetch(
            category, f"/trending/{category.tmdb_path}/{window.value}"
        )

    async def details(self, category: MediaType, tmdb_id: int) -> dict[str, Any]:
        """Full record for a single movie or series."""
        return await self.fetch(category, f"/{category.tmdb_path}/{tmdb_id}")
