"""JSON API routes consumed by the mobile client."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from showfeed.models.media import MediaType, TimeWindow, UnifiedShow
from showfeed.services.metadata import MetadataService

router = APIRouter()


class SearchResponse(BaseModel):
    results: List[UnifiedShow]


class DetailsResponse(BaseModel):
    result: UnifiedShow


def get_metadata_service(request: Request) -> MetadataService:
    """Dependency that provides the service built during app startup."""
    return request.app.state.metadata_service


@router.get("/search/tmdb", response_model=SearchResponse)
async def search_shows(
    q: Optional[str] = Query(None, description="Search query"),
    trending: Optional[str] = Query(None, description="Trending window: day or week"),
    service: MetadataService = Depends(get_metadata_service),
):
    """Search TMDB movies and series, or list trending titles.

    A valid ``trending`` window takes precedence over ``q``.
    """
    if trending in (TimeWindow.DAY.value, TimeWindow.WEEK.value):
        return {"results": await service.trending(TimeWindow(trending))}

    if not q:
        raise HTTPException(status_code=400, detail='Query parameter "q" is required')

    return {"results": await service.search(q)}


@router.get("/search/tmdb/{tmdb_id}", response_model=DetailsResponse)
async def show_details(
    tmdb_id: str,
    type: Optional[str] = Query(None, description="Media type: movie or series"),
    service: MetadataService = Depends(get_metadata_service),
):
    """Get details for a single movie or series."""
    if type not in (MediaType.MOVIE.value, MediaType.SERIES.value):
        raise HTTPException(
            status_code=400,
            detail='Query parameter "type" must be "movie" or "series"',
        )

    if not (tmdb_id.isascii() and tmdb_id.isdigit()):
        raise HTTPException(status_code=400, detail="Invalid TMDB ID")
    try:
        parsed_id = int(tmdb_id)
    except ValueError:
        # Longer than the interpreter's int string conversion limit
        raise HTTPException(status_code=400, detail="Invalid TMDB ID")

    result = await service.get_details(parsed_id, MediaType(type))
    if result is None:
        raise HTTPException(status_code=404, detail="Show not found")
    return {"result": result}
