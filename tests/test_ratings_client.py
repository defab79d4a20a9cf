"""Tests for the rating store HTTP client."""

from __future__ import annotations

import httpx
import pytest

from app.services.ratings import RatingsApiClient


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/api/rating/tt0111161":
        return httpx.Response(200, json={"rating": "9.3", "votes": "2900000"})
    if path == "/api/episode/tt0903747/1/1":
        return httpx.Response(
            200,
            json={"rating": "8.2", "votes": "45000", "episodeId": "tt0959621"},
        )
    if path == "/api/episode/id/tt0959621":
        return httpx.Response(200, json={"rating": "8.2", "votes": "45000"})
    if path == "/api/rating/tt0000002":
        return httpx.Response(200, json={"rating": "n/a", "votes": "10"})
    if path == "/api/rating/tt0000003":
        return httpx.Response(500, text="boom")
    return httpx.Response(404, json={"error": "Not found"})


@pytest.mark.anyio("asyncio")
async def test_ratings_are_parsed_from_strings() -> None:
    transport = httpx.MockTransport(_handler)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://ratings.local"
    ) as http_client:
        client = RatingsApiClient(http_client)
        movie = await client.get_rating("tt0111161")
        episode = await client.get_episode_rating("tt0903747", 1, 1)
        by_id = await client.get_episode_rating_by_id("tt0959621")

    assert movie is not None
    assert movie.rating == 9.3
    assert movie.votes == 2_900_000
    assert movie.kind == "movie"

    assert episode is not None
    assert episode.kind == "episode"
    assert episode.episode_imdb_id == "tt0959621"
    assert (episode.season, episode.episode) == (1, 1)

    assert by_id is not None
    assert by_id.episode_imdb_id == "tt0959621"


@pytest.mark.anyio("asyncio")
async def test_missing_and_broken_entries_are_none() -> None:
    transport = httpx.MockTransport(_handler)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://ratings.local"
    ) as http_client:
        client = RatingsApiClient(http_client)
        assert await client.get_rating("tt9999999") is None
        assert await client.get_rating("tt0000002") is None
        assert await client.get_rating("tt0000003") is None
        assert await client.get_episode_rating("tt0903747", 9, 9) is None


@pytest.mark.anyio("asyncio")
async def test_unreachable_store_is_treated_as_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://ratings.local"
    ) as http_client:
        client = RatingsApiClient(http_client)
        assert await client.get_rating("tt0111161") is None
        assert await client.get_episode_rating_by_id("tt0959621") is None
