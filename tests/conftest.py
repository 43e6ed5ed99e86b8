import pytest

from showfeed.core.cache import MemoryCacheStore
from showfeed.services.metadata import MetadataService
from showfeed.services.tmdb import TMDBClient


def _movie(i: int, **overrides) -> dict:
    item = {
        "id": 100 + i,
        "title": f"Movie {i}",
        "overview": f"Movie overview {i}",
        "poster_path": f"/movie{i}.jpg",
        "backdrop_path": f"/movie_bd{i}.jpg",
        "release_date": "2022-03-04",
        "genre_ids": [28, 12],
        "vote_average": 7.5,
        "vote_count": 1200,
        "adult": False,
    }
    item.update(overrides)
    return item


def _series(i: int, **overrides) -> dict:
    item = {
        "id": 200 + i,
        "name": f"Series {i}",
        "overview": f"Series overview {i}",
        "poster_path": f"/series{i}.jpg",
        "backdrop_path": None,
        "first_air_date": "2019-09-01",
        "genre_ids": [18],
        "vote_average": 8.1,
        "vote_count": 300,
    }
    item.update(overrides)
    return item


@pytest.fixture
def movie_item():
    return _movie


@pytest.fixture
def series_item():
    return _series


@pytest.fixture
def list_response():
    def build(items: list) -> dict:
        return {
            "page": 1,
            "results": items,
            "total_pages": 1,
            "total_results": len(items),
        }

    return build


@pytest.fixture
def tmdb_client():
    return TMDBClient(api_key="test-key")


@pytest.fixture
def cache_store():
    return MemoryCacheStore()


@pytest.fixture
def service(tmdb_client, cache_store):
    return MetadataService(client=tmdb_client, cache=cache_store)
