from __future__ import annotations

import asyncio

from app.models import RatingRecord, RawCandidate
from app.seasons import SeasonInferenceEngine
from app.services.episodes import EpisodeRatingResolver
from app.services.ratings import RatingsApiClient
from app.services.search import CandidateSearchClient


class StubRatings(RatingsApiClient):
    """In-memory rating store recording the episode keys it was asked for."""

    def __init__(
        self,
        *,
        episodes: dict[tuple[str, int, int], float] | None = None,
        titles: dict[str, float] | None = None,
        by_id: dict[str, float] | None = None,
    ) -> None:
        self.episodes = episodes or {}
        self.titles = titles or {}
        self.by_id = by_id or {}
        self.lookups: list[tuple[int, int]] = []

    async def get_rating(self, imdb_id: str) -> RatingRecord | None:
        rating = self.titles.get(imdb_id)
        if rating is None:
            return None
        return RatingRecord(imdb_id=imdb_id, rating=rating, votes=1_000)

    async def get_episode_rating(
        self, series_id: str, season: int, episode: int
    ) -> RatingRecord | None:
        self.lookups.append((season, episode))
        rating = self.episodes.get((series_id, season, episode))
        if rating is None:
            return None
        return RatingRecord(
            imdb_id=series_id,
            rating=rating,
            votes=100,
            kind="episode",
            season=season,
            episode=episode,
        )

    async def get_episode_rating_by_id(self, episode_id: str) -> RatingRecord | None:
        rating = self.by_id.get(episode_id)
        if rating is None:
            return None
        return RatingRecord(
            imdb_id=episode_id, rating=rating, kind="episode", episode_imdb_id=episode_id
        )


class StubTitleSearch(CandidateSearchClient):
    def __init__(self, title: str | None, results: dict[str, list[str]]) -> None:
        # Deliberately skip super().__init__ to avoid touching external systems.
        self.title = title
        self.results = results
        self.queries: list[str] = []

    async def get_series_display_title(self, imdb_id: str) -> str | None:
        return self.title

    async def legacy_suggest_search(self, query: str) -> list[RawCandidate]:
        self.queries.append(query)
        return [
            RawCandidate(id=candidate_id, title=query, media_type="episode", provider="imdb")
            for candidate_id in self.results.get(query, [])
        ]


def _resolver(
    ratings: StubRatings, search: CandidateSearchClient | None = None
) -> EpisodeRatingResolver:
    return EpisodeRatingResolver(ratings, SeasonInferenceEngine(), search)


def test_direct_lookup_wins() -> None:
    ratings = StubRatings(episodes={("tt0903747", 1, 1): 8.2})

    record = asyncio.run(_resolver(ratings).resolve_episode_rating("tt0903747", 1, 1))

    assert record is not None
    assert record.rating == 8.2
    assert record.kind == "episode"
    assert ratings.lookups == [(1, 1)]


def test_hardcoded_alignment_is_tried_second() -> None:
    ratings = StubRatings(episodes={("tt0388629", 1, 82): 7.9})

    record = asyncio.run(_resolver(ratings).resolve_episode_rating("tt0388629", 3, 5))

    assert record is not None
    assert record.episode == 82
    assert ratings.lookups == [(3, 5), (1, 82)]


def test_numeric_estimate_tries_closest_offsets_first() -> None:
    ratings = StubRatings(episodes={("tt0000100", 1, 26): 7.0})

    record = asyncio.run(_resolver(ratings).resolve_episode_rating("tt0000100", 2, 3))

    assert record is not None
    assert ratings.lookups == [(2, 3), (1, 28), (1, 29), (1, 27), (1, 30), (1, 26)]


def test_estimates_skip_non_positive_episodes() -> None:
    resolver = EpisodeRatingResolver(
        StubRatings(), SeasonInferenceEngine(), nominal_episodes_per_season=1
    )

    assert list(resolver.estimated_episodes(2, 1)) == [2, 3, 1, 4]


def test_first_season_skips_estimation_and_falls_back_to_series() -> None:
    ratings = StubRatings(titles={"tt0903747": 9.5})

    record = asyncio.run(_resolver(ratings).resolve_episode_rating("tt0903747", 1, 99))

    assert record is not None
    assert record.kind == "series_fallback"
    assert record.rating == 9.5
    assert (record.season, record.episode) == (1, 99)
    assert ratings.lookups == [(1, 99)]


def test_title_search_skips_the_series_itself() -> None:
    ratings = StubRatings(titles={"tt0903747": 9.5}, by_id={"tt0959621": 9.0})
    search = StubTitleSearch(
        "Breaking Bad",
        {
            "Breaking Bad season 1 episode 1": ["tt0903747"],
            "Breaking Bad S01E01": ["tt0903747", "tt0959621"],
        },
    )

    record = asyncio.run(
        _resolver(ratings, search).resolve_episode_rating("tt0903747", 1, 1)
    )

    assert record is not None
    assert record.kind == "episode"
    assert record.episode_imdb_id == "tt0959621"
    assert search.queries == [
        "Breaking Bad season 1 episode 1",
        "Breaking Bad S01E01",
    ]


def test_episode_query_notations() -> None:
    assert EpisodeRatingResolver.episode_queries("Naruto", 2, 7) == [
        "Naruto season 2 episode 7",
        "Naruto S02E07",
        "Naruto 2x7",
    ]


def test_nothing_found_returns_none() -> None:
    ratings = StubRatings()
    search = StubTitleSearch(None, {})

    record = asyncio.run(
        _resolver(ratings, search).resolve_episode_rating("tt0000001", 4, 2)
    )

    assert record is None
    assert search.queries == []
