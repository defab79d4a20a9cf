"""Ranking of raw search candidates against what is known about a title."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping

from ..config import Settings
from ..models import RawCandidate, ScoredCandidate, SearchContext
from ..overrides import TITLE_ALIASES
from ..titles import normalize_base_title
from ..utils import slugify

logger = logging.getLogger(__name__)

LEGACY_NOISE_RE = re.compile(
    r"\b(special|specials|episode|ova|oad|recap|behind the scenes|making of)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ScoringWeights:
    """Additive contributions of each scoring factor."""

    exact_title: float = 100.0
    prefix_title: float = 50.0
    partial_title: float = 30.0
    base_title: float = 40.0
    year_exact: float = 30.0
    year_close: float = 20.0
    year_tolerated: float = 10.0
    year_mismatch: float = -25.0
    animation_genre: float = 25.0
    japan_origin: float = 20.0
    japanese_language: float = 15.0
    media_type_mismatch: float = -20.0
    episode_count_close: float = 20.0
    episode_count_near: float = 10.0
    episode_count_far: float = -15.0
    popularity_cap: float = 10.0
    legacy_exact: float = 50.0
    legacy_partial: float = 20.0
    legacy_year: float = 20.0
    legacy_year_close: float = 10.0
    legacy_type: float = 15.0
    legacy_noise: float = -40.0


class CandidateScorer:
    """Deterministically score and rank candidates from one search call."""

    def __init__(
        self,
        weights: ScoringWeights | None = None,
        *,
        year_tolerance: int = 2,
        cleaned_year_tolerance: int = 8,
        min_score: float = 60.0,
        min_cleaned_score: float = 40.0,
        min_legacy_score: float = 30.0,
        aliases: Mapping[str, str] = TITLE_ALIASES,
    ) -> None:
        self.weights = weights or ScoringWeights()
        self._year_tolerance = year_tolerance
        self._cleaned_year_tolerance = cleaned_year_tolerance
        self._min_score = min_score
        self._min_cleaned_score = min_cleaned_score
        self._min_legacy_score = min_legacy_score
        self._aliases = aliases

    @classmethod
    def from_settings(cls, settings: Settings) -> "CandidateScorer":
        return cls(
            year_tolerance=settings.year_tolerance,
            cleaned_year_tolerance=settings.cleaned_year_tolerance,
            min_score=settings.min_candidate_score,
            min_cleaned_score=settings.min_cleaned_candidate_score,
            min_legacy_score=settings.min_legacy_score,
        )

    def threshold(self, was_cleaned: bool) -> float:
        return self._min_cleaned_score if was_cleaned else self._min_score

    @property
    def legacy_threshold(self) -> float:
        return self._min_legacy_score

    def score(
        self,
        candidates: Iterable[RawCandidate],
        context: SearchContext,
        query_title: str,
        was_cleaned: bool = False,
    ) -> list[ScoredCandidate]:
        """Return accepted candidates sorted by descending score.

        Movie candidates for a series context are dropped entirely unless the
        title matches exactly and the candidate is animated.
        """

        scored: list[tuple[int, ScoredCandidate]] = []
        for index, candidate in enumerate(candidates):
            value = self.score_candidate(candidate, context, query_title, was_cleaned)
            if value is None:
                continue
            scored.append((index, ScoredCandidate(candidate=candidate, score=value)))
        scored.sort(key=lambda pair: (-pair[1].score, pair[0]))
        return [entry for _, entry in scored]

    def score_candidate(
        self,
        candidate: RawCandidate,
        context: SearchContext,
        query_title: str,
        was_cleaned: bool = False,
    ) -> float | None:
        weights = self.weights
        query_slug = slugify(query_title)
        candidate_slug = slugify(candidate.title)
        exact = bool(query_slug) and query_slug == candidate_slug
        animated = "Animation" in candidate.genres

        if context.expects_series and candidate.media_type == "movie":
            if not (exact and animated):
                return None

        score = self._title_score(query_slug, candidate_slug)
        if not exact and self._same_base_title(query_title, candidate.title):
            score += weights.base_title

        score += self._year_score(context.year, candidate.year, was_cleaned)

        if context.is_anime:
            if animated:
                score += weights.animation_genre
            if "JP" in candidate.origin:
                score += weights.japan_origin
            if candidate.original_language == "ja":
                score += weights.japanese_language

        if (
            context.subtype
            and context.subtype.lower() == "movie"
            and candidate.media_type == "tv"
        ):
            score += weights.media_type_mismatch

        episode_score = self._episode_count_score(
            context.episode_count, candidate.episode_count
        )
        if was_cleaned:
            # A cleaned query targets the whole base series, which outgrows one arc.
            episode_score = max(episode_score, 0.0)
        score += episode_score
        score += min(max(candidate.popularity, 0.0) / 10, weights.popularity_cap)
        return score

    def score_legacy(
        self,
        candidates: Iterable[RawCandidate],
        context: SearchContext,
        query_title: str,
    ) -> list[ScoredCandidate]:
        """Lighter scoring for unranked suggestion results."""

        weights = self.weights
        query_slug = slugify(query_title)
        scored: list[tuple[int, ScoredCandidate]] = []
        for index, candidate in enumerate(candidates):
            if candidate.media_type not in {"tv", "movie"}:
                continue
            candidate_slug = slugify(candidate.title)
            score = 0.0
            if query_slug and candidate_slug == query_slug:
                score += weights.legacy_exact
            elif query_slug and candidate_slug and (
                query_slug in candidate_slug or candidate_slug in query_slug
            ):
                score += weights.legacy_partial

            if context.year is not None and candidate.year is not None:
                delta = abs(context.year - candidate.year)
                if delta == 0:
                    score += weights.legacy_year
                elif delta == 1:
                    score += weights.legacy_year_close

            if context.expects_series and candidate.media_type == "tv":
                score += weights.legacy_type
            elif not context.expects_series and candidate.media_type == "movie":
                score += weights.legacy_type

            noise = f"{candidate.title} {candidate.kind_label or ''}"
            if LEGACY_NOISE_RE.search(noise):
                score += weights.legacy_noise

            scored.append((index, ScoredCandidate(candidate=candidate, score=score)))
        scored.sort(key=lambda pair: (-pair[1].score, pair[0]))
        return [entry for _, entry in scored]

    def _title_score(self, query_slug: str, candidate_slug: str) -> float:
        if not query_slug or not candidate_slug:
            return 0.0
        if query_slug == candidate_slug:
            return self.weights.exact_title
        if candidate_slug.startswith(f"{query_slug}-") or query_slug.startswith(
            f"{candidate_slug}-"
        ):
            return self.weights.prefix_title
        if query_slug in candidate_slug or candidate_slug in query_slug:
            return self.weights.partial_title
        return 0.0

    def _same_base_title(self, first: str, second: str) -> bool:
        left = normalize_base_title(first, self._aliases)
        return bool(left) and left == normalize_base_title(second, self._aliases)

    def _year_score(
        self, expected: int | None, actual: int | None, was_cleaned: bool
    ) -> float:
        if expected is None or actual is None:
            return 0.0
        tolerance = self._cleaned_year_tolerance if was_cleaned else self._year_tolerance
        delta = abs(expected - actual)
        if delta == 0:
            return self.weights.year_exact
        if delta == 1:
            return self.weights.year_close
        if delta <= tolerance:
            return self.weights.year_tolerated
        return self.weights.year_mismatch

    def _episode_count_score(self, expected: int | None, actual: int | None) -> float:
        if not expected or not actual:
            return 0.0
        ratio = abs(expected - actual) / max(expected, actual)
        if ratio <= 0.1:
            return self.weights.episode_count_close
        if ratio <= 0.3:
            return self.weights.episode_count_near
        if ratio > 0.5:
            return self.weights.episode_count_far
        return 0.0
