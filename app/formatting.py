"""Render resolution results as Stremio stream objects."""

from __future__ import annotations

from typing import Any

from .models import ResolutionResult, StreamConfig

STAR = "⭐"
RULE = "─" * 15
NOT_AVAILABLE = f"{STAR} IMDb Rating: Not Available"
IMDB_TITLE_URL = "https://www.imdb.com/title/{imdb_id}/"

KIND_LABELS = {
    "episode": "(Episode Rating)",
    "series_fallback": "(Series Rating)",
}


def result_kind(result: ResolutionResult) -> str:
    if result.confidence == "series_fallback":
        return "series_fallback"
    if result.episode is not None:
        return "episode"
    return "movie"


def format_description(result: ResolutionResult, config: StreamConfig) -> str:
    """Return the text shown under the stream name."""

    if result.not_found or result.rating is None:
        if config.format == "singleline":
            return NOT_AVAILABLE
        return "\n".join([RULE, NOT_AVAILABLE, "", RULE])

    rating = f"{result.rating:.1f}"
    votes = ""
    if config.show_votes and result.votes:
        votes = f" ({result.votes:,} votes)"

    if config.format == "singleline":
        return f"{STAR} IMDb: {rating}/10{votes}"

    lines = [RULE, f"{STAR} IMDb        : {rating}/10", votes.strip(), RULE]
    label = KIND_LABELS.get(result_kind(result))
    if label:
        lines.insert(2, label)
    return "\n".join(lines)


def build_stream(
    result: ResolutionResult, config: StreamConfig, original_id: str
) -> dict[str, Any]:
    """Build the single rating stream returned for ``original_id``."""

    stream: dict[str, Any] = {
        "name": config.stream_name,
        "description": format_description(result, config),
        "behaviorHints": {
            "notWebReady": True,
            "bingeGroup": f"ratings-{original_id}",
        },
        "type": "other",
    }
    target = result.episode_imdb_id or result.imdb_id
    if target:
        stream["externalUrl"] = IMDB_TITLE_URL.format(imdb_id=target)
    return stream
