"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="IMDb Ratings", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    ratings_api_url: HttpUrl = Field(
        default="http://localhost:3001", alias="RATINGS_API_URL"
    )
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    kitsu_api_url: HttpUrl = Field(
        default="https://kitsu.io/api/edge", alias="KITSU_API_URL"
    )
    imdb_suggest_url: HttpUrl = Field(
        default="https://v2.sg.media-imdb.com/suggestion", alias="IMDB_SUGGEST_URL"
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./ratings.db", alias="DATABASE_URL"
    )

    response_cache_seconds: int = Field(default=3_600, alias="CACHE_TTL", ge=60)
    response_cache_size: int = Field(default=1_000, alias="CACHE_SIZE", ge=1)
    request_batch_size: int = Field(
        default=5, alias="REQUEST_BATCH_SIZE", ge=1, le=50
    )
    request_batch_delay: float = Field(
        default=0.25, alias="REQUEST_BATCH_DELAY", ge=0
    )

    max_title_variants: int = Field(
        default=3, alias="MAX_TITLE_VARIANTS", ge=1, le=10
    )
    episode_count_lookups: int = Field(
        default=3, alias="EPISODE_COUNT_LOOKUPS", ge=0, le=20
    )
    min_candidate_score: float = Field(default=60.0, alias="MIN_CANDIDATE_SCORE")
    min_cleaned_candidate_score: float = Field(
        default=40.0, alias="MIN_CLEANED_CANDIDATE_SCORE"
    )
    min_legacy_score: float = Field(default=30.0, alias="MIN_LEGACY_SCORE")
    year_tolerance: int = Field(default=2, alias="YEAR_TOLERANCE", ge=0)
    cleaned_year_tolerance: int = Field(
        default=8, alias="CLEANED_YEAR_TOLERANCE", ge=0
    )

    nominal_episodes_per_season: int = Field(
        default=25, alias="NOMINAL_EPISODES_PER_SEASON", ge=1
    )
    episode_estimate_window: int = Field(
        default=2, alias="EPISODE_ESTIMATE_WINDOW", ge=0, le=10
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _strip_blank_key(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        """Cleaned-title matches may only relax, never tighten, the original gates."""

        if self.min_cleaned_candidate_score > self.min_candidate_score:
            raise ValueError(
                "MIN_CLEANED_CANDIDATE_SCORE must not exceed MIN_CANDIDATE_SCORE"
            )
        if self.cleaned_year_tolerance < self.year_tolerance:
            raise ValueError(
                "CLEANED_YEAR_TOLERANCE must be at least YEAR_TOLERANCE"
            )
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
