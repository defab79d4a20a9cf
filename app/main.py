"""Entry point for the FastAPI-powered Stremio ratings addon."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from .config import settings
from .database import Database
from .formatting import build_stream
from .models import StreamConfig
from .seasons import SeasonInferenceEngine
from .services.episodes import EpisodeRatingResolver
from .services.mapping import MappingResolver
from .services.mapping_store import MappingStore
from .services.rating_service import SUPPORTED_TYPES, RatingService
from .services.ratings import RatingsApiClient
from .services.search import CandidateSearchClient
from .web import render_config_page

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADDON_ID = "imdb.ratings.local"
ADDON_VERSION = "2.0.0"

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    async with AsyncExitStack() as exit_stack:
        search_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                timeout=httpx.Timeout(15.0, connect=5.0),
                headers={"User-Agent": f"{settings.app_name}/{ADDON_VERSION}"},
            )
        )
        ratings_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.ratings_api_url),
                timeout=httpx.Timeout(10.0, connect=5.0),
            )
        )
        database = Database(settings.database_url)
        exit_stack.push_async_callback(database.dispose)
        await database.create_all()

        search_client = CandidateSearchClient.from_settings(settings, search_http_client)
        if not search_client.primary_available:
            logger.warning(
                "TMDB_API_KEY is not set; title discovery uses IMDb suggestions only"
            )
        store = MappingStore(database.session_factory)
        ratings = RatingsApiClient(ratings_http_client)
        seasons = SeasonInferenceEngine()
        rating_service = RatingService(
            MappingResolver.from_settings(settings, search_client, store),
            EpisodeRatingResolver.from_settings(settings, ratings, seasons, search_client),
            ratings,
            seasons,
            search_client,
        )

        fastapi_app.state.rating_service = rating_service
        fastapi_app.state.mapping_store = store
        fastapi_app.state.database = database

        yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="IMDb ratings for movies, episodes and anime in Stremio",
        version=ADDON_VERSION,
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_rating_service(app: FastAPI) -> RatingService:
    service = getattr(app.state, "rating_service", None)
    if not isinstance(service, RatingService):
        raise RuntimeError("Rating service not initialised")
    return service


def get_mapping_store(app: FastAPI) -> MappingStore:
    store = getattr(app.state, "mapping_store", None)
    if not isinstance(store, MappingStore):
        raise RuntimeError("Mapping store not initialised")
    return store


def build_manifest() -> dict[str, Any]:
    return {
        "id": ADDON_ID,
        "version": ADDON_VERSION,
        "name": settings.app_name,
        "description": "Shows IMDb ratings for movies and individual TV episodes",
        "resources": ["stream"],
        "types": list(SUPPORTED_TYPES),
        "catalogs": [],
        "idPrefixes": ["tt", "kitsu", "tmdb"],
        "behaviorHints": {
            "configurable": True,
            "configurationRequired": False,
        },
    }


def register_routes(fastapi_app: FastAPI) -> None:
    def _check_type(content_type: str) -> None:
        if content_type not in SUPPORTED_TYPES:
            raise HTTPException(status_code=400, detail="Unsupported content type")

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/configure", response_class=HTMLResponse)
    async def configure_page(request: Request) -> HTMLResponse:
        base_url = str(request.base_url).rstrip("/")
        return HTMLResponse(render_config_page(settings, base_url=base_url))

    @fastapi_app.get("/manifest.json")
    async def manifest() -> dict[str, Any]:
        return build_manifest()

    @fastapi_app.get("/stream/{content_type}/{content_id}.json")
    async def stream(
        content_type: str,
        content_id: str,
        config: str | None = Query(default=None),
    ) -> JSONResponse:
        _check_type(content_type)
        service = get_rating_service(fastapi_app)
        stream_config = StreamConfig.from_query(config)
        result = await service.resolve(content_type, content_id)
        if result.not_found:
            logger.info("No rating for %s %s: %s", content_type, content_id, result.reason)
        payload = {"streams": [build_stream(result, stream_config, content_id)]}
        return JSONResponse(
            payload, headers={"Cache-Control": "public, max-age=3600"}
        )

    @fastapi_app.get("/api/resolve/{content_type}/{content_id}")
    async def resolve(content_type: str, content_id: str) -> dict[str, object]:
        _check_type(content_type)
        service = get_rating_service(fastapi_app)
        result = await service.resolve(content_type, content_id)
        return {"id": content_id, "type": content_type, **result.to_payload()}

    @fastapi_app.get("/api/mappings")
    async def mappings(limit: int = Query(default=50, ge=1, le=500)) -> dict[str, Any]:
        store = get_mapping_store(fastapi_app)
        entries = await store.list_mappings(limit=limit)
        return {
            "mappings": [
                {
                    "foreignId": entry.foreign_id,
                    "imdbId": entry.imdb_id,
                    "source": entry.source,
                    "confidence": entry.confidence,
                    "createdAt": entry.created_at.isoformat(),
                    "lastVerified": entry.last_verified.isoformat(),
                }
                for entry in entries
            ]
        }


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
