"""Cached, rate-limited JSON fetching shared by the search capabilities."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from .cache import RequestQueue, ResponseCache

logger = logging.getLogger(__name__)


class JsonFetcher:
    """GET JSON documents through the shared cache and request queue.

    Every failure (transport error, HTTP error status, malformed body) is
    logged and reported as ``None``; nothing is raised to the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ResponseCache,
        queue: RequestQueue,
    ) -> None:
        self._client = http_client
        self._cache = cache
        self._queue = queue
        self.network_calls = 0

    @staticmethod
    def cache_key(url: str, params: Mapping[str, Any] | None = None) -> str:
        return str(httpx.URL(url, params=dict(params) if params else None))

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any | None:
        key = self.cache_key(url, params)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        async def _request() -> httpx.Response:
            self.network_calls += 1
            return await self._client.get(
                url,
                params=dict(params) if params else None,
                headers=dict(headers) if headers else None,
            )

        try:
            response = await self._queue.submit(_request)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", _redact(url), exc)
            return None

        if response.status_code >= 400:
            logger.debug(
                "Request to %s returned HTTP %s", _redact(url), response.status_code
            )
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Non-JSON payload returned by %s", _redact(url))
            return None
        if payload is None:
            return None

        self._cache.set(key, payload)
        return payload


def _redact(url: str) -> str:
    return url.split("?", 1)[0]
