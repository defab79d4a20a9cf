"""Utility helpers for the ratings service."""

from __future__ import annotations

import re
import unicodedata
from typing import Any


YEAR_RE = re.compile(r"(19|20|21)\d{2}")


def slugify(value: str) -> str:
    """Return a lowercase ASCII slug, or an empty string when nothing survives."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower()


def is_ascii(value: str) -> bool:
    return all(ord(char) < 128 for char in value)


def parse_year(value: Any) -> int | None:
    """Extract a plausible release year from ints, dates or free text."""

    if isinstance(value, int) and not isinstance(value, bool):
        return value if 1900 <= value <= 2100 else None
    if not value:
        return None
    match = YEAR_RE.search(str(value))
    if not match:
        return None
    year = int(match.group(0))
    if 1900 <= year <= 2100:
        return year
    return None


def coerce_int(value: Any, *, default: int | None = None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def coerce_float(value: Any, *, default: float | None = None) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
