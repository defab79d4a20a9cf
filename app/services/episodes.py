"""Fallback chain that finds an episode rating despite numbering mismatches."""

from __future__ import annotations

import logging
from typing import Iterator

from ..config import Settings
from ..models import RatingRecord
from ..seasons import SeasonInferenceEngine
from .ratings import RatingsApiClient
from .search import CandidateSearchClient

logger = logging.getLogger(__name__)


class EpisodeRatingResolver:
    """Look up an episode rating, trying increasingly loose alignments.

    The chain is: direct lookup, the hardcoded per-title season table, a
    numeric estimate of the absolute episode, a title search for the episode
    page and finally the series rating tagged as ``series_fallback``.
    """

    def __init__(
        self,
        ratings: RatingsApiClient,
        seasons: SeasonInferenceEngine,
        search_client: CandidateSearchClient | None = None,
        *,
        nominal_episodes_per_season: int = 25,
        estimate_window: int = 2,
    ) -> None:
        self._ratings = ratings
        self._seasons = seasons
        self._search = search_client
        self._nominal = nominal_episodes_per_season
        self._window = estimate_window

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        ratings: RatingsApiClient,
        seasons: SeasonInferenceEngine,
        search_client: CandidateSearchClient | None = None,
    ) -> "EpisodeRatingResolver":
        return cls(
            ratings,
            seasons,
            search_client,
            nominal_episodes_per_season=settings.nominal_episodes_per_season,
            estimate_window=settings.episode_estimate_window,
        )

    async def resolve_episode_rating(
        self, imdb_id: str, season: int, episode: int
    ) -> RatingRecord | None:
        record = await self._ratings.get_episode_rating(imdb_id, season, episode)
        if record is not None:
            return record

        if season > 1:
            aligned = self._seasons.get_hardcoded_alignment(imdb_id, season, episode)
            if aligned is not None:
                record = await self._ratings.get_episode_rating(imdb_id, *aligned)
                if record is not None:
                    logger.debug(
                        "Episode %s S%sE%s found via season table at %s",
                        imdb_id,
                        season,
                        episode,
                        aligned,
                    )
                    return record

            for estimate in self.estimated_episodes(season, episode):
                record = await self._ratings.get_episode_rating(imdb_id, 1, estimate)
                if record is not None:
                    logger.debug(
                        "Episode %s S%sE%s found via estimate E%s",
                        imdb_id,
                        season,
                        episode,
                        estimate,
                    )
                    return record

        record = await self._search_episode(imdb_id, season, episode)
        if record is not None:
            return record

        series = await self._ratings.get_rating(imdb_id)
        if series is None:
            return None
        logger.info(
            "Falling back to series rating for %s S%sE%s", imdb_id, season, episode
        )
        return RatingRecord(
            imdb_id=imdb_id,
            rating=series.rating,
            votes=series.votes,
            kind="series_fallback",
            season=season,
            episode=episode,
        )

    def estimated_episodes(self, season: int, episode: int) -> Iterator[int]:
        """Yield absolute episode guesses, closest offsets first."""

        base = (season - 1) * self._nominal + episode
        offsets = [0]
        for distance in range(1, self._window + 1):
            offsets.extend((distance, -distance))
        for offset in offsets:
            estimate = base + offset
            if estimate >= 1:
                yield estimate

    @staticmethod
    def episode_queries(title: str, season: int, episode: int) -> list[str]:
        return [
            f"{title} season {season} episode {episode}",
            f"{title} S{season:02d}E{episode:02d}",
            f"{title} {season}x{episode}",
        ]

    async def _search_episode(
        self, imdb_id: str, season: int, episode: int
    ) -> RatingRecord | None:
        if self._search is None:
            return None
        title = await self._search.get_series_display_title(imdb_id)
        if not title:
            return None
        for query in self.episode_queries(title, season, episode):
            candidates = await self._search.legacy_suggest_search(query)
            episode_id = next(
                (
                    candidate.id
                    for candidate in candidates
                    if candidate.id.startswith("tt") and candidate.id != imdb_id
                ),
                None,
            )
            if episode_id is None:
                continue
            record = await self._ratings.get_episode_rating_by_id(episode_id)
            if record is not None:
                logger.debug(
                    "Episode %s S%sE%s found via title search as %s",
                    imdb_id,
                    season,
                    episode,
                    episode_id,
                )
                return record
        return None
