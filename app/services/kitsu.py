"""Helper client for fetching anime metadata from the Kitsu API."""

from __future__ import annotations

import logging
from typing import Any

from ..models import AnimeMetadata
from ..utils import coerce_int, parse_year
from .http import JsonFetcher

logger = logging.getLogger(__name__)

TITLE_KEYS = ("en", "en_jp", "en_us", "ja_jp")


class KitsuClient:
    """Wrapper around the Kitsu ``/anime/{id}`` endpoint."""

    def __init__(self, fetcher: JsonFetcher, base_url: str) -> None:
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")

    async def fetch_anime(self, kitsu_id: str) -> AnimeMetadata | None:
        """Return titles, year, subtype and episode count for ``kitsu_id``."""

        payload = await self._fetcher.get_json(
            f"{self._base_url}/anime/{kitsu_id}",
            headers={"Accept": "application/vnd.api+json"},
        )
        if not isinstance(payload, dict):
            logger.info("No Kitsu metadata found for %s", kitsu_id)
            return None
        return self.parse_anime(kitsu_id, payload)

    @staticmethod
    def parse_anime(kitsu_id: str, payload: dict[str, Any]) -> AnimeMetadata | None:
        data = payload.get("data")
        attributes = data.get("attributes") if isinstance(data, dict) else None
        if not isinstance(attributes, dict):
            return None

        canonical = attributes.get("canonicalTitle")
        raw_titles = attributes.get("titles")
        if not isinstance(raw_titles, dict):
            raw_titles = {}
        titles: list[str] = []
        for value in [canonical, *(raw_titles.get(key) for key in TITLE_KEYS)]:
            if isinstance(value, str) and value.strip() and value.strip() not in titles:
                titles.append(value.strip())
        if not titles:
            logger.info("Kitsu entry %s carries no titles", kitsu_id)
            return None

        return AnimeMetadata(
            kitsu_id=str(kitsu_id),
            titles=titles,
            canonical_title=canonical.strip() if isinstance(canonical, str) else None,
            year=parse_year(attributes.get("startDate")),
            subtype=str(attributes.get("subtype") or "") or None,
            episode_count=coerce_int(attributes.get("episodeCount")),
        )
