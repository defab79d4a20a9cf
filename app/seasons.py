"""Season detection from titles and IMDb episode-numbering alignment."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .models import SeasonAlignment
from .overrides import SEQUEL_PRONE_KEYWORDS, episode_table_index

logger = logging.getLogger(__name__)

ROMAN_VALUES: Mapping[str, int] = {
    "II": 2,
    "III": 3,
    "IV": 4,
    "V": 5,
    "VI": 6,
    "VII": 7,
    "VIII": 8,
    "IX": 9,
    "X": 10,
}

ORDINAL_WORDS: Mapping[str, int] = {
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
    "sixth": 6,
    "seventh": 7,
    "eighth": 8,
    "ninth": 9,
    "tenth": 10,
}

SEQUEL_CONTEXT_KEYWORDS: tuple[str, ...] = (
    "season",
    "saga",
    "generation",
    "series",
    "part",
    "arc",
    "chapter",
    "final",
    "sequel",
)

# Words that commonly precede a lone "X" as part of a proper name.
X_IDENTIFIER_WORDS: frozenset[str] = frozenset(
    {
        "generation",
        "project",
        "man",
        "mobile",
        "agent",
        "type",
        "model",
        "planet",
        "zone",
        "factor",
        "malcolm",
        "mr",
        "mr.",
        "ms",
        "dr",
        "dr.",
        "cyborg",
        "hunter",
        "zeta",
        "battle",
    }
)


def _first_int(match: re.Match[str]) -> int | None:
    for value in match.groups():
        if value and value.isdigit():
            return int(value)
    return None


def _ordinal_word(match: re.Match[str]) -> int | None:
    return ORDINAL_WORDS.get(match.group(1).lower())


def _roman(match: re.Match[str]) -> int | None:
    return ROMAN_VALUES.get(match.group(1))


def _always(_: re.Match[str], __: str) -> bool:
    return True


@dataclass(frozen=True)
class SeasonRule:
    """One entry of the ordered season detection table."""

    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], int | None]
    validate: Callable[[re.Match[str], str], bool] = _always


def _roman_is_season(match: re.Match[str], title: str) -> bool:
    """Reject a lone trailing "X" that reads as part of a name.

    A single "X" right after words such as "Generation" or "Mobile", or in a
    title of at most two words, is only accepted when another sequel keyword
    appears elsewhere in the title.
    """

    if match.group(1) != "X":
        return True
    words = title[: match.start(1)].split()
    if not words:
        return False
    previous = words[-1].lower()
    looks_like_name = len(words) < 2 or previous in X_IDENTIFIER_WORDS
    if not looks_like_name:
        return True
    context = " ".join(word.lower() for word in words[:-1])
    return any(
        re.search(rf"\b{re.escape(keyword)}\b", context)
        for keyword in SEQUEL_CONTEXT_KEYWORDS
    )


def _make_trailing_number_validator(
    keywords: Iterable[str],
) -> Callable[[re.Match[str], str], bool]:
    vocabulary = tuple(keyword.lower() for keyword in keywords)

    def _validate(match: re.Match[str], title: str) -> bool:
        value = int(match.group(1))
        if not 2 <= value <= 10:
            return False
        lowered = title.lower()
        return any(keyword in lowered for keyword in vocabulary)

    return _validate


def build_season_rules(
    sequel_keywords: Iterable[str] = SEQUEL_PRONE_KEYWORDS,
) -> tuple[SeasonRule, ...]:
    """Return the detection table, most specific rule first."""

    return (
        SeasonRule(
            "explicit",
            re.compile(r"\b(?:season|part|book|chapter|cour)\s*(\d+)\b", re.IGNORECASE),
            _first_int,
        ),
        SeasonRule(
            "cjk",
            re.compile(r"第\s*(\d+)\s*[期季部]|(\d+)\s*(?:期|季)"),
            _first_int,
        ),
        SeasonRule(
            "ordinal",
            re.compile(r"\b(\d+)(?:st|nd|rd|th)\s+(?:season|series)\b", re.IGNORECASE),
            _first_int,
        ),
        SeasonRule(
            "ordinal_word",
            re.compile(
                r"\b(second|third|fourth|fifth|sixth|seventh|eighth|ninth|tenth)"
                r"\s+(?:season|series)\b",
                re.IGNORECASE,
            ),
            _ordinal_word,
        ),
        SeasonRule(
            "roman",
            re.compile(r"(?:^|\s)(II|III|IV|V|VI|VII|VIII|IX|X)\s*$"),
            _roman,
            _roman_is_season,
        ),
        SeasonRule(
            "trailing_number",
            re.compile(r"\s(\d{1,2})\s*$"),
            _first_int,
            _make_trailing_number_validator(sequel_keywords),
        ),
    )


SEASON_RULES = build_season_rules()


class SeasonInferenceEngine:
    """Derive IMDb-relative season numbering for episodic content."""

    def __init__(
        self,
        episode_tables: Mapping[str, tuple[int, ...]] | None = None,
        rules: tuple[SeasonRule, ...] = SEASON_RULES,
    ) -> None:
        self._episode_tables = (
            episode_tables if episode_tables is not None else episode_table_index()
        )
        self._rules = rules

    def detect(self, title: str) -> tuple[str, int] | None:
        """Return ``(rule name, season)`` for the first rule that fires."""

        text = (title or "").strip()
        if not text:
            return None
        for rule in self._rules:
            match = rule.pattern.search(text)
            if not match:
                continue
            value = rule.extract(match)
            if value is None or value < 1:
                continue
            if not rule.validate(match, text):
                logger.debug("Season rule %s rejected for %r", rule.name, text)
                continue
            return rule.name, value
        return None

    def infer_season(self, title: str) -> int:
        detected = self.detect(title)
        return detected[1] if detected else 1

    def infer_from_titles(self, titles: Iterable[str]) -> int:
        """Return the first season signal found across several title variants."""

        for title in titles:
            detected = self.detect(title)
            if detected:
                return detected[1]
        return 1

    def get_hardcoded_alignment(
        self, imdb_id: str, season: int, episode: int
    ) -> tuple[int, int] | None:
        """Convert a per-arc pair into IMDb's single-season absolute numbering."""

        table = self._episode_tables.get(imdb_id)
        if not table or not 1 <= season < len(table):
            return None
        return SeasonAlignment(imdb_id=imdb_id, episodes_per_season=table).apply(
            season, episode
        )
