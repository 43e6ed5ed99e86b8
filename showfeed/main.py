import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from showfeed.api.routes_api import router as api_router
from showfeed.core.cache import build_cache_store
from showfeed.core.config import get_settings
from showfeed.services.metadata import MetadataService
from showfeed.services.tmdb import TMDBClient, UpstreamError

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Application lifespan context manager.

    Settings are loaded here so a missing TMDB_API_KEY stops startup.
    """
    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)

    service = MetadataService(
        client=TMDBClient.from_settings(settings),
        cache=build_cache_store(settings),
    )
    app.state.metadata_service = service
    try:
        yield
    finally:
        try:
            await service.aclose()
        except Exception as e:
            logger.error(f"Error closing metadata service: {e}")


app = FastAPI(
    title="showfeed",
    description="Cached TMDB search, trending and details for the mobile client",
    version="0.1.0",
    lifespan=app_lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Client errors use the ``{"error": ...}`` body the mobile client reads."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    logger.error("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "upstream_error"})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "internal_error"})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(api_router, prefix="/api")
