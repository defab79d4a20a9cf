"""Repository-level integrity checks."""

from __future__ import annotations

import re
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
CONFLICT_PATTERN = re.compile(r"^(<<<<<<<|=======|>>>>>>>)( |$)", re.MULTILINE)
IGNORED_PARTS = {".git", "__pycache__", ".mypy_cache", ".pytest_cache", ".venv"}
CHECKED_SUFFIXES = {".py", ".toml", ".md", ".txt", ".cfg", ".ini"}


def _source_files() -> list[Path]:
    return [
        path
        for path in REPO_ROOT.rglob("*")
        if path.is_file()
        and path.suffix in CHECKED_SUFFIXES
        and not any(part in IGNORED_PARTS for part in path.parts)
    ]


def test_repository_has_no_merge_conflict_markers() -> None:
    """Ensure no source or document still contains git conflict markers."""

    offending_files = [
        path.relative_to(REPO_ROOT)
        for path in _source_files()
        if CONFLICT_PATTERN.search(path.read_text(encoding="utf-8", errors="ignore"))
    ]

    assert not offending_files, (
        "The following files still contain git conflict markers: "
        + ", ".join(str(path) for path in offending_files)
    )


def test_application_modules_postpone_annotations() -> None:
    """Every non-empty application module defers annotation evaluation."""

    missing = []
    for package in ("app", "imdbratings"):
        for path in (REPO_ROOT / package).rglob("*.py"):
            contents = path.read_text(encoding="utf-8")
            if contents.strip() and "from __future__ import annotations" not in contents:
                missing.append(path.relative_to(REPO_ROOT))

    assert not missing, f"Modules missing postponed annotations: {missing}"
