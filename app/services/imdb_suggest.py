"""Client for IMDb's public title suggestion endpoint."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from ..models import RawCandidate
from ..utils import parse_year
from .http import JsonFetcher

logger = logging.getLogger(__name__)

MEDIA_TYPES_BY_QID: dict[str, str] = {
    "tvSeries": "tv",
    "tvMiniSeries": "tv",
    "movie": "movie",
    "tvMovie": "movie",
    "video": "movie",
    "short": "movie",
    "tvShort": "movie",
    "tvEpisode": "episode",
    "tvSpecial": "special",
    "videoGame": "game",
}


class ImdbSuggestClient:
    """Literal-text title lookup; results are unranked and need re-scoring."""

    def __init__(self, fetcher: JsonFetcher, base_url: str) -> None:
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")

    def _url(self, query: str) -> str:
        letter = query[:1].lower()
        if not letter.isalnum() or not letter.isascii():
            letter = "x"
        return f"{self._base_url}/{letter}/{quote(query, safe='')}.json"

    async def search(self, query: str) -> list[RawCandidate]:
        normalized = (query or "").strip()
        if not normalized:
            return []
        payload = await self._fetcher.get_json(self._url(normalized))
        entries = payload.get("d") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            logger.debug("No IMDb suggestions for %r", normalized)
            return []
        candidates = [self._to_candidate(entry) for entry in entries if isinstance(entry, dict)]
        return [candidate for candidate in candidates if candidate is not None]

    async def title_for(self, imdb_id: str) -> str | None:
        """Return IMDb's display title for ``imdb_id``."""

        for candidate in await self.search(imdb_id):
            if candidate.id == imdb_id:
                return candidate.title
        return None

    @staticmethod
    def _to_candidate(entry: dict[str, Any]) -> RawCandidate | None:
        imdb_id = entry.get("id")
        title = entry.get("l")
        if not isinstance(imdb_id, str) or not imdb_id.startswith("tt") or not title:
            return None
        qid = str(entry.get("qid") or "")
        label = entry.get("q")
        media_type = MEDIA_TYPES_BY_QID.get(qid)
        if media_type is None:
            lowered = str(label or "").lower()
            if "episode" in lowered:
                media_type = "episode"
            elif "series" in lowered:
                media_type = "tv"
            else:
                media_type = "movie"
        return RawCandidate(
            id=imdb_id,
            title=str(title),
            media_type=media_type,
            provider="imdb",
            year=parse_year(entry.get("y")),
            kind_label=str(label) if label else None,
        )
