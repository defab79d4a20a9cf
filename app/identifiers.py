"""Parsing of the content ids Stremio hands to stream handlers."""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote

from .models import ContentReference

logger = logging.getLogger(__name__)

KITSU_ID_RE = re.compile(r"^kitsu:(?:anime|movie|manga)?(\d+)(?::(\d+))?$")
TMDB_ID_RE = re.compile(r"^tmdb:(\d+)(?::(\d+):(\d+))?$")
IMDB_ID_RE = re.compile(r"^tt(\d+)(?::(\d+):(\d+))?$")


class ParseError(ValueError):
    """Raised when a content id matches none of the supported shapes."""

    def __init__(self, raw_id: str):
        super().__init__(f"Unsupported content id: {raw_id!r}")
        self.raw_id = raw_id


def parse_content_id(raw_id: str) -> ContentReference:
    """Classify ``raw_id`` as a Kitsu, TMDB or IMDb reference.

    Kitsu ids only carry an episode number; the season is provisionally set to
    1 and refined once the title has been resolved.
    """

    decoded = unquote(raw_id or "").strip()

    match = KITSU_ID_RE.match(decoded)
    if match:
        native_id, episode = match.groups()
        return ContentReference(
            platform="kitsu",
            native_id=native_id,
            content_type="series" if episode else "movie",
            original_id=decoded,
            season=1 if episode else None,
            episode=int(episode) if episode else None,
        )

    for platform, pattern in (("tmdb", TMDB_ID_RE), ("imdb", IMDB_ID_RE)):
        match = pattern.match(decoded)
        if not match:
            continue
        native_id, season, episode = match.groups()
        is_episode = season is not None and episode is not None
        return ContentReference(
            platform=platform,  # type: ignore[arg-type]
            native_id=native_id,
            content_type="series" if is_episode else "movie",
            original_id=decoded,
            season=int(season) if is_episode else None,
            episode=int(episode) if is_episode else None,
        )

    logger.debug("Could not parse content id %s", decoded)
    raise ParseError(decoded)
