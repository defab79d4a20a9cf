"""IMDb ratings addon application package.

The FastAPI objects are imported lazily so that the resolution core can be
used without building the web application.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_EXPORTS = {
    "app": "app.main",
    "create_app": "app.main",
    "RatingService": "app.services.rating_service",
    "parse_content_id": "app.identifiers",
}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module 'app' has no attribute {name}")
    return getattr(import_module(module_name), name)
