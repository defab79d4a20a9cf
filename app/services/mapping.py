"""Resolve foreign catalog ids (Kitsu, TMDB) to IMDb title ids."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping

from ..config import Settings
from ..models import (
    AnimeMetadata,
    ManualMapping,
    MappingHints,
    MappingSource,
    Platform,
    ScoredCandidate,
    SearchContext,
    TitleMapping,
)
from ..overrides import manual_mapping_index
from ..titles import clean_variants, prioritize_titles
from .mapping_store import MappingStore
from .scoring import CandidateScorer
from .search import CandidateSearchClient

logger = logging.getLogger(__name__)

MANUAL_CONFIDENCE = 100
EXTERNAL_ID_CONFIDENCE = 90


class MappingResolver:
    """Find the IMDb title behind a foreign id.

    Strategies are tried in order and the first success wins: the compiled-in
    manual table, the persistent mapping store, metadata-driven primary search
    and finally the legacy suggestion search. Discoveries are written back to
    the store once per call on a best-effort basis.
    """

    def __init__(
        self,
        search_client: CandidateSearchClient,
        scorer: CandidateScorer,
        store: MappingStore | None = None,
        *,
        manual_mappings: Mapping[str, ManualMapping] | None = None,
        max_title_variants: int = 3,
        episode_count_lookups: int = 3,
    ) -> None:
        self._search = search_client
        self._scorer = scorer
        self._store = store
        self._manual = (
            manual_mappings if manual_mappings is not None else manual_mapping_index()
        )
        self._max_title_variants = max_title_variants
        self._episode_count_lookups = episode_count_lookups

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        search_client: CandidateSearchClient,
        store: MappingStore | None = None,
    ) -> "MappingResolver":
        return cls(
            search_client,
            CandidateScorer.from_settings(settings),
            store,
            max_title_variants=settings.max_title_variants,
            episode_count_lookups=settings.episode_count_lookups,
        )

    async def resolve(
        self,
        platform: Platform,
        native_id: str,
        hints: MappingHints | None = None,
    ) -> str | None:
        mapping = await self.resolve_mapping(platform, native_id, hints)
        return mapping.imdb_id if mapping else None

    async def resolve_mapping(
        self,
        platform: Platform,
        native_id: str,
        hints: MappingHints | None = None,
    ) -> TitleMapping | None:
        """Return the mapping for ``platform:native_id`` or ``None``."""

        hints = hints or MappingHints()
        foreign_id = f"{platform}:{native_id}"

        manual = self._manual.get(foreign_id)
        if manual is not None:
            logger.debug("Manual mapping hit for %s -> %s", foreign_id, manual.imdb_id)
            return TitleMapping(
                foreign_id=foreign_id,
                imdb_id=manual.imdb_id,
                source="manual",
                confidence=MANUAL_CONFIDENCE,
                season=manual.season,
                episode_offset=manual.episode_offset,
            )

        if self._store is not None:
            stored = await self._store.get_mapping(foreign_id)
            if stored is not None:
                logger.debug("Stored mapping hit for %s -> %s", foreign_id, stored.imdb_id)
                return replace(stored, source="persistent_store")

        discovered = await self._discover(platform, native_id, hints)
        if discovered is None:
            logger.info("No IMDb mapping found for %s", foreign_id)
            return None

        imdb_id, source, confidence = discovered
        logger.info("Discovered mapping %s -> %s via %s", foreign_id, imdb_id, source)
        if self._store is not None:
            await self._store.put_mapping(foreign_id, imdb_id, source, confidence)
        return TitleMapping(
            foreign_id=foreign_id,
            imdb_id=imdb_id,
            source=source,
            confidence=confidence,
        )

    async def _discover(
        self, platform: Platform, native_id: str, hints: MappingHints
    ) -> tuple[str, MappingSource, int] | None:
        if platform == "tmdb":
            return await self._discover_tmdb(native_id, hints)
        if platform == "kitsu":
            return await self._discover_kitsu(native_id, hints)
        return None

    async def _discover_tmdb(
        self, native_id: str, hints: MappingHints
    ) -> tuple[str, MappingSource, int] | None:
        if self._search.primary_available:
            if hints.content_type == "movie":
                media_types = ["movie"]
            elif hints.content_type == "series":
                media_types = ["tv"]
            else:
                media_types = ["tv", "movie"]
            for media_type in media_types:
                imdb_id = await self._search.get_external_id(media_type, native_id)
                if imdb_id:
                    return imdb_id, "discovery_tmdb", EXTERNAL_ID_CONFIDENCE

        if not hints.title:
            return None
        context = SearchContext(year=hints.year, content_type=hints.content_type)
        return await self._legacy_search([hints.title], context)

    async def _discover_kitsu(
        self, native_id: str, hints: MappingHints
    ) -> tuple[str, MappingSource, int] | None:
        metadata = await self._search.fetch_anime_metadata(native_id)
        titles = self._title_variants(metadata, hints)
        if not titles:
            logger.debug("No titles available to search for kitsu:%s", native_id)
            return None

        context = SearchContext(
            year=metadata.year if metadata else hints.year,
            subtype=metadata.subtype if metadata else None,
            episode_count=metadata.episode_count if metadata else None,
            is_anime=True,
            content_type=hints.content_type,
        )

        if self._search.primary_available:
            for title in titles:
                match = await self._search_and_score(title, context, was_cleaned=False)
                for cleaned in clean_variants(title)[1:]:
                    if match is not None:
                        break
                    match = await self._search_and_score(
                        cleaned, context, was_cleaned=True
                    )
                if match is None:
                    continue
                candidate = match.candidate
                imdb_id = await self._search.get_external_id(
                    candidate.media_type, candidate.id
                )
                if imdb_id:
                    return imdb_id, "discovery_tmdb", int(match.score)
                logger.debug(
                    "Best match %r (tmdb %s) has no IMDb id", candidate.title, candidate.id
                )

        return await self._legacy_search(titles, context)

    def _title_variants(
        self, metadata: AnimeMetadata | None, hints: MappingHints
    ) -> list[str]:
        titles: list[str | None] = []
        if metadata is not None:
            titles.append(metadata.canonical_title)
            titles.extend(metadata.titles)
        titles.append(hints.title)
        return prioritize_titles(titles, limit=self._max_title_variants)

    async def _search_and_score(
        self, title: str, context: SearchContext, *, was_cleaned: bool
    ) -> ScoredCandidate | None:
        candidates = await self._search.search(title, context)
        if not candidates:
            return None
        if context.episode_count and self._episode_count_lookups:
            await self._search.attach_episode_counts(
                candidates, limit=self._episode_count_lookups
            )
        ranked = self._scorer.score(candidates, context, title, was_cleaned)
        if not ranked:
            return None
        best = ranked[0]
        if best.score < self._scorer.threshold(was_cleaned):
            logger.debug(
                "Best candidate %r for %r scored %.1f, below threshold",
                best.candidate.title,
                title,
                best.score,
            )
            return None
        return best

    async def _legacy_search(
        self, titles: list[str], context: SearchContext
    ) -> tuple[str, MappingSource, int] | None:
        for title in titles:
            candidates = await self._search.legacy_suggest_search(title)
            ranked = self._scorer.score_legacy(candidates, context, title)
            if not ranked:
                continue
            best = ranked[0]
            if best.score < self._scorer.legacy_threshold:
                continue
            if best.candidate.id.startswith("tt"):
                return best.candidate.id, "discovery_imdb_fallback", int(best.score)
        return None
