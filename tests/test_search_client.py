"""Tests for the cached, rate-limited search facade."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from app.config import Settings
from app.models import SearchContext
from app.services.search import CandidateSearchClient


def build_settings(**overrides: Any) -> Settings:
    base: dict[str, Any] = {"TMDB_API_KEY": "tmdb-key", "REQUEST_BATCH_DELAY": 0}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


TMDB_MULTI = {
    "results": [
        {
            "id": 1429,
            "name": "Attack on Titan",
            "media_type": "tv",
            "first_air_date": "2013-04-07",
            "genre_ids": [16, 10759],
            "origin_country": ["JP"],
            "original_language": "ja",
            "popularity": 120.5,
        },
        {"id": 5, "name": "Some Person", "media_type": "person"},
    ]
}


@pytest.mark.anyio("asyncio")
async def test_repeated_search_hits_network_once() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=TMDB_MULTI)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(build_settings(), http_client)
        first = await client.search("Attack on Titan")
        second = await client.search("Attack on Titan")

    assert len(requests) == 1
    assert client.network_calls == 1
    assert requests[0].url.path == "/3/search/multi"
    assert [candidate.id for candidate in first] == ["1429"]
    assert first == second
    candidate = first[0]
    assert candidate.media_type == "tv"
    assert candidate.year == 2013
    assert "Animation" in candidate.genres
    assert candidate.origin == ("JP",)


@pytest.mark.anyio("asyncio")
async def test_typed_search_forwards_year_hint() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"results": [{"id": 1396, "name": "Breaking Bad"}]})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(build_settings(), http_client)
        results = await client.search(
            "Breaking Bad", SearchContext(year=2008, content_type="series")
        )

    assert requests[0].url.path == "/3/search/tv"
    assert requests[0].url.params["first_air_date_year"] == "2008"
    assert results[0].media_type == "tv"


@pytest.mark.anyio("asyncio")
async def test_failures_degrade_to_empty_and_are_not_cached() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, json={"status_message": "unavailable"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(build_settings(), http_client)
        assert await client.search("Attack on Titan") == []
        assert await client.search("Attack on Titan") == []
        assert await client.get_external_id("tv", "1429") is None

    assert calls == 3


@pytest.mark.anyio("asyncio")
async def test_transport_errors_are_swallowed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(build_settings(), http_client)
        assert await client.search("Attack on Titan") == []
        assert await client.fetch_anime_metadata("7936") is None


@pytest.mark.anyio("asyncio")
async def test_legacy_search_used_without_tmdb_key() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "d": [
                    {
                        "id": "tt2560140",
                        "l": "Attack on Titan",
                        "q": "TV series",
                        "qid": "tvSeries",
                        "y": 2013,
                    },
                    {"id": "nm0000001", "l": "Someone"},
                ]
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(
            build_settings(TMDB_API_KEY=""), http_client
        )
        assert not client.primary_available
        results = await client.search("Attack on Titan")

    assert requests[0].url.host == "v2.sg.media-imdb.com"
    assert requests[0].url.path == "/suggestion/a/Attack on Titan.json"
    assert [candidate.id for candidate in results] == ["tt2560140"]
    assert results[0].media_type == "tv"
    assert results[0].provider == "imdb"


@pytest.mark.anyio("asyncio")
async def test_fetch_anime_metadata_reads_titles() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/edge/anime/7936"
        return httpx.Response(
            200,
            json={
                "data": {
                    "id": "7936",
                    "attributes": {
                        "canonicalTitle": "Shingeki no Kyojin",
                        "titles": {
                            "en": "Attack on Titan",
                            "en_jp": "Shingeki no Kyojin",
                            "ja_jp": "進撃の巨人",
                        },
                        "startDate": "2013-04-07",
                        "subtype": "TV",
                        "episodeCount": 25,
                    },
                }
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(build_settings(), http_client)
        metadata = await client.fetch_anime_metadata("7936")

    assert metadata is not None
    assert metadata.titles == ["Shingeki no Kyojin", "Attack on Titan", "進撃の巨人"]
    assert metadata.year == 2013
    assert metadata.subtype == "TV"
    assert metadata.episode_count == 25


@pytest.mark.anyio("asyncio")
async def test_attach_episode_counts_only_for_series() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/3/search/multi":
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"id": 1429, "name": "Attack on Titan", "media_type": "tv"},
                        {"id": 9, "title": "Attack on Titan", "media_type": "movie"},
                    ]
                },
            )
        assert request.url.path == "/3/tv/1429"
        return httpx.Response(200, json={"number_of_episodes": 89})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        client = CandidateSearchClient.from_settings(build_settings(), http_client)
        candidates = await client.search("Attack on Titan")
        await client.attach_episode_counts(candidates, limit=3)

    assert [candidate.episode_count for candidate in candidates] == [89, None]
