from __future__ import annotations

import pytest

from app.identifiers import ParseError, parse_content_id


@pytest.mark.parametrize(
    "raw_id",
    ["tt0111161", "tt0903747:1:1", "tt0388629:12:340", "tt1:2:3"],
)
def test_imdb_ids_round_trip(raw_id: str) -> None:
    reference = parse_content_id(raw_id)

    assert reference.platform == "imdb"
    assert reference.native_id == raw_id.split(":")[0][2:]
    assert reference.to_id() == raw_id
    assert reference.original_id == raw_id


def test_imdb_episode_reference_is_series() -> None:
    reference = parse_content_id("tt0903747:1:1")

    assert reference.content_type == "series"
    assert reference.imdb_id == "tt0903747"
    assert (reference.season, reference.episode) == (1, 1)


def test_imdb_title_reference_is_movie() -> None:
    reference = parse_content_id("tt0111161")

    assert reference.content_type == "movie"
    assert reference.season is None
    assert reference.episode is None


@pytest.mark.parametrize(
    ("raw_id", "native_id", "episode"),
    [
        ("kitsu:7936", "7936", None),
        ("kitsu:7936:12", "7936", 12),
        ("kitsu:anime45866:3", "45866", 3),
        ("kitsu:movie100", "100", None),
    ],
)
def test_kitsu_season_present_only_with_episode(
    raw_id: str, native_id: str, episode: int | None
) -> None:
    reference = parse_content_id(raw_id)

    assert reference.platform == "kitsu"
    assert reference.native_id == native_id
    assert reference.episode == episode
    assert (reference.season is None) == (reference.episode is None)
    if episode is not None:
        assert reference.season == 1
        assert reference.content_type == "series"
    else:
        assert reference.content_type == "movie"


def test_tmdb_ids_are_recognised() -> None:
    reference = parse_content_id("tmdb:1399:2:5")

    assert reference.platform == "tmdb"
    assert reference.native_id == "1399"
    assert (reference.season, reference.episode) == (2, 5)
    assert reference.to_id() == "tmdb:1399:2:5"


def test_url_encoded_ids_are_decoded() -> None:
    reference = parse_content_id("kitsu%3A7936%3A4")

    assert reference.original_id == "kitsu:7936:4"
    assert reference.episode == 4


@pytest.mark.parametrize(
    "raw_id",
    ["", "tt", "tt0903747:1", "kitsu:", "imdb:tt0111161", "tmdb:abc", "mal:123"],
)
def test_unsupported_ids_raise_parse_error(raw_id: str) -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_content_id(raw_id)

    assert excinfo.value.raw_id == raw_id
