"""Utilities for resolving metadata from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from typing import Any

from ..models import RawCandidate
from ..utils import coerce_float, coerce_int
from .http import JsonFetcher

logger = logging.getLogger(__name__)

GENRE_NAMES: dict[int, str] = {
    12: "Adventure",
    14: "Fantasy",
    16: "Animation",
    18: "Drama",
    27: "Horror",
    28: "Action",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    878: "Science Fiction",
    9648: "Mystery",
    10749: "Romance",
    10751: "Family",
    10759: "Action & Adventure",
    10762: "Kids",
    10765: "Sci-Fi & Fantasy",
}


class TMDBClient:
    """Client responsible for searching TMDB and reading external ids."""

    def __init__(self, fetcher: JsonFetcher, base_url: str, api_key: str | None):
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def search(
        self,
        query: str,
        *,
        media_type: str | None = None,
        year: int | None = None,
    ) -> list[RawCandidate]:
        """Search TMDB, across movies and series unless ``media_type`` is set."""

        if not self.enabled or not query.strip():
            return []
        if media_type == "movie":
            endpoint = "/search/movie"
        elif media_type == "tv":
            endpoint = "/search/tv"
        else:
            endpoint = "/search/multi"
        params: dict[str, Any] = {
            "query": query.strip(),
            "include_adult": "false",
            "language": "en-US",
            "page": 1,
            "api_key": self._api_key,
        }
        if year and media_type == "movie":
            params["year"] = year
        elif year and media_type == "tv":
            params["first_air_date_year"] = year

        payload = await self._fetcher.get_json(
            f"{self._base_url}{endpoint}", params=params
        )
        if not isinstance(payload, dict):
            return []
        results = payload.get("results")
        if not isinstance(results, list):
            return []

        candidates: list[RawCandidate] = []
        for entry in results:
            if not isinstance(entry, dict):
                continue
            candidate = self._to_candidate(entry, media_type)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    async def external_imdb_id(self, media_type: str, tmdb_id: str) -> str | None:
        """Fetch the IMDb id TMDB records for a movie or series."""

        if not self.enabled:
            return None
        kind = "movie" if media_type == "movie" else "tv"
        payload = await self._fetcher.get_json(
            f"{self._base_url}/{kind}/{tmdb_id}/external_ids",
            params={"api_key": self._api_key},
        )
        if not isinstance(payload, dict):
            logger.debug("TMDB external id fetch failed for %s/%s", kind, tmdb_id)
            return None
        imdb_id = payload.get("imdb_id")
        if isinstance(imdb_id, str) and imdb_id.startswith("tt"):
            return imdb_id
        return None

    async def episode_count(self, tmdb_id: str) -> int | None:
        if not self.enabled:
            return None
        payload = await self._fetcher.get_json(
            f"{self._base_url}/tv/{tmdb_id}",
            params={"api_key": self._api_key, "language": "en-US"},
        )
        if not isinstance(payload, dict):
            return None
        return coerce_int(payload.get("number_of_episodes"))

    def _to_candidate(
        self, entry: dict[str, Any], media_type: str | None
    ) -> RawCandidate | None:
        kind = entry.get("media_type") or media_type
        if kind not in {"movie", "tv"}:
            return None
        title = entry.get("title") or entry.get("name")
        tmdb_id = entry.get("id")
        if not title or tmdb_id is None:
            return None
        genre_ids = entry.get("genre_ids") or []
        genres = tuple(
            GENRE_NAMES[genre_id]
            for genre_id in genre_ids
            if isinstance(genre_id, int) and genre_id in GENRE_NAMES
        )
        origin = entry.get("origin_country") or []
        return RawCandidate(
            id=str(tmdb_id),
            title=str(title),
            media_type=kind,
            provider="tmdb",
            year=self._extract_year(entry, kind),
            genres=genres,
            origin=tuple(str(code).upper() for code in origin if code),
            original_language=entry.get("original_language") or None,
            popularity=coerce_float(entry.get("popularity"), default=0.0) or 0.0,
        )

    @staticmethod
    def _extract_year(result: dict[str, Any], content_type: str) -> int | None:
        date_key = "release_date" if content_type == "movie" else "first_air_date"
        date_value = result.get(date_key)
        if not isinstance(date_value, str) or len(date_value) < 4:
            return None
        try:
            return int(date_value[:4])
        except ValueError:
            return None
