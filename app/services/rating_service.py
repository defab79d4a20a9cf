"""End-to-end resolution of a content id to a rating result."""

from __future__ import annotations

import logging
from typing import get_args

from ..identifiers import ParseError, parse_content_id
from ..models import (
    ContentReference,
    ContentType,
    MappingHints,
    ResolutionResult,
    SeasonAlignment,
    TitleMapping,
)
from ..seasons import SeasonInferenceEngine
from .episodes import EpisodeRatingResolver
from .mapping import MappingResolver
from .ratings import RatingsApiClient
from .search import CandidateSearchClient

logger = logging.getLogger(__name__)

SUPPORTED_TYPES: tuple[str, ...] = get_args(ContentType)


class RatingService:
    """Turn an opaque Stremio id into a :class:`ResolutionResult`.

    Native IMDb ids go straight to the rating store. Foreign ids are mapped
    first and, for episodes, their numbering is aligned to IMDb's before the
    episode fallback chain runs. Failures never raise; they come back as a
    ``not_found`` result carrying a reason.
    """

    def __init__(
        self,
        mapping_resolver: MappingResolver,
        episode_resolver: EpisodeRatingResolver,
        ratings: RatingsApiClient,
        seasons: SeasonInferenceEngine,
        search_client: CandidateSearchClient,
    ) -> None:
        self._mapping = mapping_resolver
        self._episodes = episode_resolver
        self._ratings = ratings
        self._seasons = seasons
        self._search = search_client

    async def resolve(self, content_type: str, raw_id: str) -> ResolutionResult:
        if content_type not in SUPPORTED_TYPES:
            return ResolutionResult.missing("unsupported_type")
        try:
            reference = parse_content_id(raw_id)
        except ParseError:
            logger.info("Cannot parse content id %r", raw_id)
            return ResolutionResult.missing("unparseable_id")

        mapping: TitleMapping | None = None
        imdb_id = reference.imdb_id
        if imdb_id is None:
            mapping = await self._mapping.resolve_mapping(
                reference.platform,
                reference.native_id,
                MappingHints(content_type=content_type),  # type: ignore[arg-type]
            )
            if mapping is None:
                return ResolutionResult.missing("mapping_not_found")
            imdb_id = mapping.imdb_id

        if reference.is_episode:
            season, episode = await self.align_episode(reference, imdb_id, mapping)
            record = await self._episodes.resolve_episode_rating(
                imdb_id, season, episode
            )
            if record is None:
                return ResolutionResult.missing("rating_not_found", imdb_id=imdb_id)
            return ResolutionResult.from_record(
                record, imdb_id=imdb_id, season=season, episode=episode
            )

        record = await self._ratings.get_rating(imdb_id)
        if record is None:
            return ResolutionResult.missing("rating_not_found", imdb_id=imdb_id)
        return ResolutionResult.from_record(record, imdb_id=imdb_id)

    async def align_episode(
        self,
        reference: ContentReference,
        imdb_id: str,
        mapping: TitleMapping | None,
    ) -> tuple[int, int]:
        """Translate the source catalog's episode pair into IMDb numbering."""

        if reference.season is None or reference.episode is None:
            raise ValueError(f"{reference.original_id!r} does not name an episode")
        offset = mapping.episode_offset if mapping else 0

        if mapping is not None and mapping.season is not None:
            return mapping.season, reference.episode + offset

        if reference.platform == "kitsu":
            metadata = await self._search.fetch_anime_metadata(reference.native_id)
            detected = (
                self._seasons.infer_from_titles(metadata.titles) if metadata else 1
            )
            alignment = SeasonAlignment(
                imdb_id=imdb_id, detected_season=detected, episode_offset=offset
            )
            aligned = alignment.apply(reference.season, reference.episode)
            if aligned != (reference.season, reference.episode):
                logger.debug(
                    "Aligned %s to IMDb S%sE%s", reference.original_id, *aligned
                )
            return aligned

        return reference.season, reference.episode + offset
