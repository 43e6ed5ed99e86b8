"""Unified show model returned to clients and stored in the cache."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaType(str, Enum):
    """Content category. Each category has its own TMDB schema."""

    MOVIE = "movie"
    SERIES = "series"

    @property
    def tmdb_path(self) -> str:
        """Path segment TMDB uses for this category."""
        return "movie" if self is MediaType.MOVIE else "tv"


class TimeWindow(str, Enum):
    """Trending window."""

    DAY = "day"
    WEEK = "week"


class UnifiedShow(BaseModel):
    """A movie or series normalized into one shape.

    Identity is the ``(id, type)`` pair; movie and series ids overlap.
    Serialized with camelCase aliases for the mobile client.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    type: MediaType
    title: str = Field(min_length=1)
    overview: str = ""
    artwork_url: Optional[str] = Field(default=None, alias="artworkURL")
    backdrop_url: Optional[str] = Field(default=None, alias="backdropURL")
    genres: List[str] = []
    runtime: int = 0
    content_rating: Optional[str] = Field(default=None, alias="contentRating")
    release_date: str = Field(default="", alias="releaseDate")
    rating: float = 0.0

    def to_payload(self) -> dict:
        """JSON-ready dict using the wire (alias) names."""
        return self.model_dump(mode="json", by_alias=True)
