"""Single entry point over every external search capability."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import httpx

from ..config import Settings
from ..models import AnimeMetadata, RawCandidate, SearchContext
from .cache import RequestQueue, ResponseCache
from .http import JsonFetcher
from .imdb_suggest import ImdbSuggestClient
from .kitsu import KitsuClient
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


class CandidateSearchClient:
    """Expose title search, metadata and external-id lookups as capabilities.

    Every capability shares one cache and one request queue through the
    underlying :class:`JsonFetcher` and degrades to an empty result on error.
    """

    def __init__(
        self,
        fetcher: JsonFetcher,
        kitsu: KitsuClient,
        tmdb: TMDBClient,
        imdb: ImdbSuggestClient,
    ) -> None:
        self._fetcher = fetcher
        self._kitsu = kitsu
        self._tmdb = tmdb
        self._imdb = imdb

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        cache: ResponseCache | None = None,
        queue: RequestQueue | None = None,
    ) -> "CandidateSearchClient":
        cache = cache or ResponseCache(
            settings.response_cache_seconds, settings.response_cache_size
        )
        queue = queue or RequestQueue(
            settings.request_batch_size, settings.request_batch_delay
        )
        fetcher = JsonFetcher(http_client, cache, queue)
        return cls(
            fetcher,
            KitsuClient(fetcher, str(settings.kitsu_api_url)),
            TMDBClient(fetcher, str(settings.tmdb_api_url), settings.tmdb_api_key),
            ImdbSuggestClient(fetcher, str(settings.imdb_suggest_url)),
        )

    @property
    def primary_available(self) -> bool:
        return self._tmdb.enabled

    @property
    def network_calls(self) -> int:
        """Number of requests that actually left the process."""

        return self._fetcher.network_calls

    async def search(
        self, query: str, context: SearchContext | None = None
    ) -> list[RawCandidate]:
        """Search with the best available capability for ``query``.

        A context naming a non-anime content type narrows TMDB to that media
        type and forwards the year hint; anime is searched across both types
        because movies and series are often mislabelled upstream.
        """

        if not self.primary_available:
            return await self.legacy_suggest_search(query)
        if context is None or context.is_anime or context.content_type is None:
            return await self.search_titles(query)
        media_type = "movie" if context.content_type == "movie" else "tv"
        return await self.search_titles(query, context.year, media_type=media_type)

    async def fetch_anime_metadata(self, kitsu_id: str) -> AnimeMetadata | None:
        return await self._kitsu.fetch_anime(kitsu_id)

    async def search_titles(
        self,
        query: str,
        year_hint: int | None = None,
        *,
        media_type: str | None = None,
    ) -> list[RawCandidate]:
        return await self._tmdb.search(query, media_type=media_type, year=year_hint)

    async def get_external_id(self, media_type: str, native_id: str) -> str | None:
        return await self._tmdb.external_imdb_id(media_type, native_id)

    async def legacy_suggest_search(self, query: str) -> list[RawCandidate]:
        return await self._imdb.search(query)

    async def get_series_display_title(self, imdb_id: str) -> str | None:
        return await self._imdb.title_for(imdb_id)

    async def attach_episode_counts(
        self, candidates: Sequence[RawCandidate], *, limit: int
    ) -> None:
        """Fill ``episode_count`` on up to ``limit`` TMDB series candidates."""

        targets = [
            candidate
            for candidate in candidates
            if candidate.provider == "tmdb"
            and candidate.media_type == "tv"
            and candidate.episode_count is None
        ][:limit]
        if not targets:
            return
        counts = await asyncio.gather(
            *(self._tmdb.episode_count(candidate.id) for candidate in targets)
        )
        for candidate, count in zip(targets, counts):
            candidate.episode_count = count
