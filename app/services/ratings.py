"""Client for the local IMDb ratings dataset API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..models import RatingKind, RatingRecord
from ..utils import coerce_float, coerce_int

logger = logging.getLogger(__name__)


class RatingsApiClient:
    """Read-only access to title, episode and episode-id ratings.

    The ``http_client`` is expected to carry the ratings API base URL. A 404
    means "not found"; every other failure is logged and treated the same way.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def get_rating(self, imdb_id: str) -> RatingRecord | None:
        data = await self._get(f"/api/rating/{imdb_id}")
        if data is None:
            return None
        return self._to_record(data, imdb_id=imdb_id, kind="movie")

    async def get_episode_rating(
        self, series_id: str, season: int, episode: int
    ) -> RatingRecord | None:
        data = await self._get(f"/api/episode/{series_id}/{season}/{episode}")
        if data is None:
            return None
        return self._to_record(
            data,
            imdb_id=series_id,
            kind="episode",
            season=season,
            episode=episode,
        )

    async def get_episode_rating_by_id(self, episode_id: str) -> RatingRecord | None:
        data = await self._get(f"/api/episode/id/{episode_id}")
        if data is None:
            return None
        record = self._to_record(data, imdb_id=episode_id, kind="episode")
        if record is None:
            return None
        return RatingRecord(
            imdb_id=record.imdb_id,
            rating=record.rating,
            votes=record.votes,
            kind="episode",
            episode_imdb_id=episode_id,
        )

    async def _get(self, path: str) -> dict[str, Any] | None:
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            logger.warning("Ratings API request %s failed: %s", path, exc)
            return None
        if response.status_code == 404:
            logger.debug("Ratings API has no entry for %s", path)
            return None
        if response.status_code >= 400:
            logger.warning(
                "Ratings API request %s returned HTTP %s", path, response.status_code
            )
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning("Unexpected non-JSON ratings API response for %s", path)
            return None
        if not isinstance(data, dict) or data.get("error"):
            return None
        return data

    @staticmethod
    def _to_record(
        data: dict[str, Any],
        *,
        imdb_id: str,
        kind: RatingKind,
        season: int | None = None,
        episode: int | None = None,
    ) -> RatingRecord | None:
        rating = coerce_float(data.get("rating"))
        if rating is None or not 0 <= rating <= 10:
            return None
        episode_id = data.get("episodeId")
        return RatingRecord(
            imdb_id=imdb_id,
            rating=rating,
            votes=max(coerce_int(data.get("votes"), default=0) or 0, 0),
            kind=kind,
            episode_imdb_id=episode_id if isinstance(episode_id, str) else None,
            season=season,
            episode=episode,
        )
