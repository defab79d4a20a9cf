"""Title cleaning and ordering used to widen external search recall."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from .overrides import TITLE_ALIASES
from .utils import is_ascii, slugify

ROMAN_SUFFIX = r"(?:II|III|IV|V|VI|VII|VIII|IX|X)"

# Ordered from most to least specific; each entry strips one marker.
CLEANING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s*[:\-]\s*season\s*\d+\b", re.IGNORECASE),
    re.compile(r"\s+season\s+\d+\b", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s+\d+(?:st|nd|rd|th)\s+season\b", re.IGNORECASE),
    re.compile(r"\s*[:\-]\s*(?:part|vol\.?|volume|cour)\s*\d+\b", re.IGNORECASE),
    re.compile(r"\s+part\s+\d+\b", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s*(?:book|chapter)\s+\d+\b", re.IGNORECASE),
    re.compile(r"\s*[:\-]?\s*第\s*\d+\s*[期季部]"),
    re.compile(rf"\s+{ROMAN_SUFFIX}$"),
    re.compile(r"\s+\d{1,2}(?:st|nd|rd|th)?$", re.IGNORECASE),
)

DESCRIPTIVE_MARKERS = re.compile(r"[:\-–—(\[]")
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")


def clean_variants(title: str) -> list[str]:
    """Return ``title`` followed by one cleaned variant per matching marker.

    Every variant removes a single marker from the original title; markers are
    never chained, so ``"Foo Season 2 Part 1"`` yields separate variants for the
    season and the part marker.
    """

    original = (title or "").strip()
    if not original:
        return []
    variants = [original]
    for pattern in CLEANING_PATTERNS:
        cleaned = _strip(pattern, original)
        if cleaned and cleaned not in variants:
            variants.append(cleaned)
    return variants


def _strip(pattern: re.Pattern[str], title: str) -> str | None:
    cleaned = pattern.sub("", title, count=1).strip(" \t:-–—")
    if not cleaned or cleaned == title.strip():
        return None
    return cleaned


def prioritize_titles(titles: Iterable[str | None], *, limit: int | None = None) -> list[str]:
    """Order known title variants so the most search-friendly comes first.

    Short plain-ASCII names beat localized or subtitle-laden ones; ties keep
    the caller's order.
    """

    unique: list[str] = []
    seen: set[str] = set()
    for title in titles:
        if not title:
            continue
        stripped = title.strip()
        key = stripped.casefold()
        if not stripped or key in seen:
            continue
        seen.add(key)
        unique.append(stripped)

    ranked = sorted(
        enumerate(unique),
        key=lambda pair: (-_commonness(pair[1]), pair[0]),
    )
    ordered = [title for _, title in ranked]
    if limit is not None:
        return ordered[:limit]
    return ordered


def _commonness(title: str) -> float:
    score = 0.0
    if is_ascii(title):
        score += 20
    if CJK_RE.search(title):
        score -= 30
    if DESCRIPTIVE_MARKERS.search(title):
        score -= 8
    words = len(title.split())
    score -= max(words - 2, 0) * 2
    score -= len(title) / 10
    return score


def normalize_base_title(
    title: str, aliases: Mapping[str, str] = TITLE_ALIASES
) -> str:
    """Return a comparison key with known alternate names folded together."""

    slug = slugify(title)
    if slug.startswith("the-"):
        slug = slug[4:]
    aliased = aliases.get(slug)
    if aliased is None:
        for alias, target in aliases.items():
            if slug.startswith(f"{alias}-"):
                aliased = target
                break
    return aliased or slug


def titles_equivalent(first: str, second: str) -> bool:
    left = normalize_base_title(first)
    return bool(left) and left == normalize_base_title(second)
