"""Static lookup tables consulted before any automatic resolution."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .models import ManualMapping


@dataclass(frozen=True)
class EpisodeTable:
    """Per-season episode counts for a title IMDb lists as one long season.

    ``episodes_per_season[0]`` is a sentinel so that season ``n`` lives at
    index ``n``.
    """

    imdb_id: str
    title: str
    episodes_per_season: tuple[int, ...]


MANUAL_MAPPINGS: tuple[ManualMapping, ...] = (
    ManualMapping(
        foreign_id="kitsu:7936",
        imdb_id="tt0417299",
        note="Automatic search settles on an unrelated special.",
    ),
    ManualMapping(
        foreign_id="kitsu:45866",
        imdb_id="tt2560140",
        season=4,
        episode_offset=16,
        note="Second half of the final season continues IMDb season 4.",
    ),
)


EPISODE_TABLES: tuple[EpisodeTable, ...] = (
    EpisodeTable(
        imdb_id="tt0388629",
        title="One Piece",
        episodes_per_season=(
            0, 61, 16, 14, 39, 13, 52, 33, 35, 73, 45, 26,
            14, 101, 56, 100, 59, 42, 55, 94, 105, 66,
        ),
    ),
)


# Alternate names that refer to the same base title, keyed by slug.
TITLE_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "shingeki-no-kyojin": "attack-on-titan",
        "kimetsu-no-yaiba": "demon-slayer",
        "demon-slayer-kimetsu-no-yaiba": "demon-slayer",
        "boku-no-hero-academia": "my-hero-academia",
        "hunter-hunter": "hunter-x-hunter",
        "shingeki-no-bahamut": "rage-of-bahamut",
        "kaguya-sama-wa-kokurasetai": "kaguya-sama-love-is-war",
        "yakusoku-no-neverland": "the-promised-neverland",
        "tensei-shitara-slime-datta-ken": "that-time-i-got-reincarnated-as-a-slime",
        "ore-dake-level-up-na-ken": "solo-leveling",
        "sousou-no-frieren": "frieren-beyond-journey-s-end",
        "kono-subarashii-sekai-ni-shukufuku-wo": "konosuba",
    }
)


# Franchise fragments whose sequels are commonly numbered with a bare integer.
SEQUEL_PRONE_KEYWORDS: tuple[str, ...] = (
    "attack on titan",
    "shingeki no kyojin",
    "demon slayer",
    "kimetsu no yaiba",
    "my hero academia",
    "boku no hero",
    "overlord",
    "haikyu",
    "mob psycho",
    "one punch man",
    "tokyo ghoul",
    "dr. stone",
    "re:zero",
    "sword art online",
    "made in abyss",
    "food wars",
    "shokugeki",
    "konosuba",
    "danmachi",
    "mushoku tensei",
    "bungo stray dogs",
    "psycho-pass",
    "the rising of the shield hero",
    "tate no yuusha",
    "kaguya-sama",
    "k-on",
    "gintama",
    "natsume",
    "durarara",
    "toaru",
)


def manual_mapping_index(
    entries: tuple[ManualMapping, ...] = MANUAL_MAPPINGS,
) -> Mapping[str, ManualMapping]:
    return MappingProxyType({entry.foreign_id: entry for entry in entries})


def episode_table_index(
    entries: tuple[EpisodeTable, ...] = EPISODE_TABLES,
) -> Mapping[str, tuple[int, ...]]:
    return MappingProxyType(
        {entry.imdb_id: entry.episodes_per_season for entry in entries}
    )
