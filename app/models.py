"""Domain types shared by the identity resolution and rating lookup services."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

ContentType = Literal["movie", "series"]
Platform = Literal["imdb", "kitsu", "tmdb"]
MappingSource = Literal[
    "manual", "persistent_store", "discovery_tmdb", "discovery_imdb_fallback"
]
RatingKind = Literal["movie", "episode", "series_fallback"]
Confidence = Literal["exact", "series_fallback"]


@dataclass(frozen=True, slots=True)
class ContentReference:
    """Structured view of an opaque Stremio content id.

    ``season`` and ``episode`` follow the numbering of the source catalog and
    are either both set or both ``None``.
    """

    platform: Platform
    native_id: str
    content_type: ContentType
    original_id: str
    season: int | None = None
    episode: int | None = None

    def __post_init__(self) -> None:
        if (self.season is None) != (self.episode is None):
            raise ValueError("season and episode must be provided together")

    @property
    def is_episode(self) -> bool:
        return self.episode is not None

    @property
    def imdb_id(self) -> str | None:
        if self.platform != "imdb":
            return None
        return f"tt{self.native_id}"

    def to_id(self) -> str:
        """Rebuild the canonical id string for this reference."""

        if self.platform == "kitsu":
            base = f"kitsu:{self.native_id}"
            return f"{base}:{self.episode}" if self.is_episode else base
        base = f"tt{self.native_id}" if self.platform == "imdb" else f"tmdb:{self.native_id}"
        if self.is_episode:
            return f"{base}:{self.season}:{self.episode}"
        return base


@dataclass(frozen=True, slots=True)
class ManualMapping:
    """Compiled-in override for a foreign id with a known-bad automatic match."""

    foreign_id: str
    imdb_id: str
    season: int | None = None
    episode_offset: int = 0
    note: str = ""


@dataclass(slots=True)
class TitleMapping:
    """Resolved correspondence between a foreign id and an IMDb title."""

    foreign_id: str
    imdb_id: str
    source: MappingSource
    confidence: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_verified: datetime = field(default_factory=datetime.utcnow)
    season: int | None = None
    episode_offset: int = 0


@dataclass(frozen=True, slots=True)
class SeasonAlignment:
    """How a foreign catalog's local numbering maps onto IMDb numbering."""

    imdb_id: str
    episodes_per_season: tuple[int, ...] | None = None
    detected_season: int | None = None
    episode_offset: int = 0

    def __post_init__(self) -> None:
        if self.episode_offset < 0:
            raise ValueError("episode_offset must be non-negative")

    def apply(self, season: int, episode: int) -> tuple[int, int]:
        """Return the IMDb-relative ``(season, episode)`` for a foreign pair."""

        if self.episodes_per_season is not None:
            table = self.episodes_per_season
            if 1 <= season < len(table):
                absolute = sum(table[1:season]) + episode + self.episode_offset
                return 1, absolute
        target_season = self.detected_season or season
        return target_season, episode + self.episode_offset


@dataclass(frozen=True, slots=True)
class RatingRecord:
    """A rating as served by the rating store."""

    imdb_id: str
    rating: float
    votes: int = 0
    kind: RatingKind = "movie"
    episode_imdb_id: str | None = None
    season: int | None = None
    episode: int | None = None


@dataclass(slots=True)
class RawCandidate:
    """Normalized search result shared by every search capability."""

    id: str
    title: str
    media_type: str
    provider: str
    year: int | None = None
    genres: tuple[str, ...] = ()
    origin: tuple[str, ...] = ()
    original_language: str | None = None
    popularity: float = 0.0
    episode_count: int | None = None
    kind_label: str | None = None


@dataclass(slots=True)
class ScoredCandidate:
    """A candidate with a score comparable only within one search call."""

    candidate: RawCandidate
    score: float


@dataclass(slots=True)
class AnimeMetadata:
    """Subset of Kitsu anime attributes used for title discovery."""

    kitsu_id: str
    titles: list[str]
    canonical_title: str | None = None
    year: int | None = None
    subtype: str | None = None
    episode_count: int | None = None


@dataclass(slots=True)
class MappingHints:
    """Caller-supplied attributes that narrow a mapping search."""

    content_type: ContentType | None = None
    title: str | None = None
    year: int | None = None


@dataclass(slots=True)
class SearchContext:
    """Known attributes of the content being matched against candidates."""

    year: int | None = None
    subtype: str | None = None
    episode_count: int | None = None
    is_anime: bool = False
    content_type: ContentType | None = None

    @property
    def expects_series(self) -> bool:
        if self.subtype:
            return self.subtype.upper() in {"TV", "ONA", "OVA"}
        return self.content_type == "series"


class ResolutionResult(BaseModel):
    """Outcome handed to the presentation layer."""

    model_config = ConfigDict(populate_by_name=True)

    imdb_id: str | None = Field(default=None, serialization_alias="imdbId")
    season: int | None = None
    episode: int | None = None
    episode_imdb_id: str | None = Field(
        default=None, serialization_alias="episodeImdbId"
    )
    rating: float | None = None
    votes: int | None = None
    confidence: Confidence | None = None
    not_found: bool = Field(default=False, serialization_alias="notFound")
    reason: str | None = None

    @classmethod
    def missing(cls, reason: str, *, imdb_id: str | None = None) -> "ResolutionResult":
        return cls(not_found=True, reason=reason, imdb_id=imdb_id)

    @classmethod
    def from_record(
        cls,
        record: RatingRecord,
        *,
        imdb_id: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> "ResolutionResult":
        confidence: Confidence = (
            "series_fallback" if record.kind == "series_fallback" else "exact"
        )
        return cls(
            imdb_id=imdb_id,
            season=season,
            episode=episode,
            episode_imdb_id=record.episode_imdb_id,
            rating=record.rating,
            votes=record.votes,
            confidence=confidence,
        )

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class StreamConfig(BaseModel):
    """Display preferences passed by the client alongside stream requests."""

    model_config = ConfigDict(populate_by_name=True)

    show_votes: bool = Field(
        default=True, validation_alias=AliasChoices("showVotes", "show_votes")
    )
    format: Literal["multiline", "singleline"] = "multiline"
    stream_name: str = Field(
        default="IMDb Rating",
        max_length=80,
        validation_alias=AliasChoices("streamName", "stream_name"),
    )

    @classmethod
    def from_query(cls, raw: str | None) -> "StreamConfig":
        """Parse the ``config`` query parameter, falling back to defaults."""

        if not raw:
            return cls()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return cls()
        if not isinstance(payload, dict):
            return cls()
        try:
            return cls.model_validate(payload)
        except ValidationError:
            return cls()
