"""Map raw TMDB movie and series payloads onto UnifiedShow."""

import math
from enum import Enum
from typing import Any, List, Optional

from pydantic import ValidationError

from showfeed.models.media import MediaType, UnifiedShow
from showfeed.services.tmdb import DecodeError

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
POSTER_SIZE = "w500"
BACKDROP_SIZE = "w780"


class ResultVariant(str, Enum):
    """Which TMDB response shape a raw record came from."""

    LIST = "list"  # search/trending items, genre ids only
    DETAIL = "detail"  # per-item lookup, genre names and runtimes


def image_url(path: Optional[str], size: str = POSTER_SIZE) -> Optional[str]:
    """Build a full image URL from a TMDB relative path."""
    if not path:
        return None
    return f"{IMAGE_BASE_URL}/{size}{path}"


def average_runtime(runtimes: Any) -> int:
    """Mean episode runtime rounded half up, 0 when unknown."""
    if not isinstance(runtimes, list):
        return 0
    values = [
        r for r in runtimes if isinstance(r, (int, float)) and not isinstance(r, bool)
    ]
    if not values:
        return 0
    return int(math.floor(sum(values) / len(values) + 0.5))


def _genre_names(genres: Any) -> List[str]:
    if not isinstance(genres, list):
        return []
    return [g["name"] for g in genres if isinstance(g, dict) and g.get("name")]


def normalize(
    raw: dict[str, Any],
    category: MediaType,
    variant: ResultVariant,
    rate_content: bool = True,
) -> UnifiedShow:
    """Normalize one raw TMDB record.

    ``category`` is the endpoint family the record came from and decides
    which field mapping applies. Missing optional fields fall back to
    defaults; only a missing or non-integer ``id`` is rejected.

    Args:
        raw: A single result object as returned by TMDB.
        category: Movie or series.
        variant: List-item or detail shape.
        rate_content: Derive ``content_rating`` from the movie adult flag.
            Only honoured for movie list items.

    Raises:
        DecodeError: if the record has no usable id.
    """
    tmdb_id = raw.get("id")
    if not isinstance(tmdb_id, int) or isinstance(tmdb_id, bool):
        raise DecodeError(f"TMDB {category.value} record without a valid id")

    if category is MediaType.MOVIE:
        title = raw.get("title")
        release_date = raw.get("release_date")
    else:
        title = raw.get("name")
        release_date = raw.get("first_air_date")

    genres: List[str] = []
    runtime = 0
    content_rating = None

    if variant is ResultVariant.DETAIL:
        genres = _genre_names(raw.get("genres"))
        if category is MediaType.MOVIE:
            movie_runtime = raw.get("runtime")
            if isinstance(movie_runtime, (int, float)):
                runtime = int(movie_runtime)
        else:
            runtime = average_runtime(raw.get("episode_run_time"))
    elif category is MediaType.MOVIE and rate_content:
        content_rating = "R" if raw.get("adult") else None

    try:
        return UnifiedShow(
            id=tmdb_id,
            type=category,
            title=title or "Unknown",
            overview=raw.get("overview") or "",
            artwork_url=image_url(raw.get("poster_path"), POSTER_SIZE),
            backdrop_url=image_url(raw.get("backdrop_path"), BACKDROP_SIZE),
            genres=genres,
            runtime=runtime,
            content_rating=content_rating,
            release_date=release_date or "",
            rating=raw.get("vote_average") or 0.0,
        )
    except ValidationError as exc:
        raise DecodeError(
            f"Malformed TMDB {category.value} record {tmdb_id}", None, exc
        )
