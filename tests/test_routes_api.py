from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from showfeed.api.routes_api import get_metadata_service
from showfeed.main import app
from showfeed.models.media import MediaType, TimeWindow, UnifiedShow
from showfeed.services.metadata import MetadataService
from showfeed.services.tmdb import UpstreamError

mock_show = UnifiedShow(
    id=1,
    type=MediaType.MOVIE,
    title="Test Movie",
    overview="Test Overview",
    artwork_url="https://image.tmdb.org/t/p/w500/test.jpg",
    release_date="2023-01-01",
    rating=8.0,
)


@pytest.fixture
def mock_service():
    service = MagicMock(spec=MetadataService)
    service.search = AsyncMock(return_value=[mock_show])
    service.trending = AsyncMock(return_value=[mock_show])
    service.get_details = AsyncMock(return_value=mock_show)
    return service


@pytest.fixture
def client(mock_service):
    app.dependency_overrides[get_metadata_service] = lambda: mock_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_search_returns_wire_format(client, mock_service):
    response = client.get("/api/search/tmdb?q=batman")

    assert response.status_code == 200
    results = response.json()["results"]
    assert results == [
        {
            "id": 1,
            "type": "movie",
            "title": "Test Movie",
            "overview": "Test Overview",
            "artworkURL": "https://image.tmdb.org/t/p/w500/test.jpg",
            "backdropURL": None,
            "genres": [],
            "runtime": 0,
            "contentRating": None,
            "releaseDate": "2023-01-01",
            "rating": 8.0,
        }
    ]
    mock_service.search.assert_awaited_once_with("batman")


@pytest.mark.parametrize("url", ["/api/search/tmdb", "/api/search/tmdb?q="])
def test_search_requires_query(client, mock_service, url):
    response = client.get(url)

    assert response.status_code == 400
    assert response.json() == {"error": 'Query parameter "q" is required'}
    mock_service.search.assert_not_called()


def test_short_query_is_not_a_client_error(client, mock_service):
    mock_service.search.return_value = []

    response = client.get("/api/search/tmdb?q=a")

    assert response.status_code == 200
    assert response.json() == {"results": []}


@pytest.mark.parametrize("window", ["day", "week"])
def test_trending_takes_precedence(client, mock_service, window):
    response = client.get(f"/api/search/tmdb?trending={window}&q=batman")

    assert response.status_code == 200
    assert response.json()["results"][0]["title"] == "Test Movie"
    mock_service.trending.assert_awaited_once_with(TimeWindow(window))
    mock_service.search.assert_not_called()


def test_invalid_trending_window_falls_back_to_query(client, mock_service):
    response = client.get("/api/search/tmdb?trending=month")

    assert response.status_code == 400
    mock_service.trending.assert_not_called()


def test_search_upstream_failure_is_opaque_500(client, mock_service):
    mock_service.search.side_effect = UpstreamError("TMDB API error: 401", 401)

    response = client.get("/api/search/tmdb?q=batman")

    assert response.status_code == 500
    assert response.json() == {"error": "upstream_error"}
    assert "401" not in response.text


def test_unexpected_error_is_labelled_json_500(mock_service):
    mock_service.trending.side_effect = RuntimeError("boom")
    app.dependency_overrides[get_metadata_service] = lambda: mock_service
    # Starlette re-raises after the catch-all handler unless told not to
    client = TestClient(app, raise_server_exceptions=False)
    try:
        response = client.get("/api/search/tmdb?trending=week")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "internal_error"}
    assert "boom" not in response.text


def test_unknown_path_uses_error_body(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_details(client, mock_service):
    response = client.get("/api/search/tmdb/1?type=movie")

    assert response.status_code == 200
    assert response.json()["result"]["title"] == "Test Movie"
    mock_service.get_details.assert_awaited_once_with(1, MediaType.MOVIE)


@pytest.mark.parametrize(
    "url",
    [
        "/api/search/tmdb/1",
        "/api/search/tmdb/1?type=tv",
        "/api/search/tmdb/abc?type=movie",
        "/api/search/tmdb/12abc?type=series",
        "/api/search/tmdb/-5?type=series",
        # Beyond the int() string conversion limit
        "/api/search/tmdb/" + "9" * 5000 + "?type=movie",
    ],
)
def test_details_bad_request(client, mock_service, url):
    response = client.get(url)

    assert response.status_code == 400
    assert "error" in response.json()
    mock_service.get_details.assert_not_called()


def test_details_not_found(client, mock_service):
    mock_service.get_details.return_value = None

    response = client.get("/api/search/tmdb/999?type=series")

    assert response.status_code == 404
    assert response.json() == {"error": "Show not found"}
    mock_service.get_details.assert_awaited_once_with(999, MediaType.SERIES)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "timestamp" in body
