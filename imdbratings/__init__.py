"""Installable entry point for the IMDb ratings Stremio addon."""

from __future__ import annotations

from app.main import app, create_app

__version__ = "2.0.0"

__all__ = ["__version__", "app", "create_app"]
