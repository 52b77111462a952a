"""Rate-limited, retrying and optionally caching HTTP client for remote reference data."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from ldsync.config.storage import get_storage_config

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from ldsync.config.http import HttpCacheConfig, HttpClientConfig, RetryPolicy

log = getLogger(__name__)

READ_METHODS: tuple[str, ...] = ("GET", "HEAD")


class _ClientOptions(TypedDict):
    timeout: float
    headers: dict[str, str]
    transport: httpx.AsyncBaseTransport
    follow_redirects: bool


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.attempts,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        allowed_methods=READ_METHODS,
        status_forcelist=tuple(sorted(policy.statuses)),
        retry_on_exceptions=policy.exceptions,
    )


def build_cache_storage(config: HttpCacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None:
        return None
    match config.backend:
        case "memory":
            database_path = ":memory:"
        case "sqlite":
            database_path = config.path or str(get_storage_config().http_cache_path())
        case _:
            raise ValueError(f"Unsupported cache backend: {config.backend}")
    log.debug("HTTP cache at %s (ttl=%s)", database_path, config.ttl_seconds)
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.ttl_seconds,
        refresh_ttl_on_access=config.refresh_on_access,
    )


class ResilientClient:
    """GET requests behind a rate limiter, retries and an optional response cache."""

    def __init__(self, config: HttpClientConfig) -> None:
        self.config = config
        limit = config.ratelimit
        self._limiter = AsyncLimiter(limit.max_calls, limit.per_seconds) if limit else None
        options: _ClientOptions = {
            "timeout": config.timeout_seconds,
            "headers": dict(config.headers),
            "transport": RetryTransport(retry=build_retry(config.retry)),
            "follow_redirects": True,
        }
        storage = build_cache_storage(config.cache)
        self._client: httpx.AsyncClient = (
            httpx.AsyncClient(**options)
            if storage is None
            else AsyncCacheClient(**options, storage=storage)
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> httpx.Response:
        log.debug("[%s] GET %s", self.config.name, url)
        if self._limiter is None:
            return await self._client.get(url, headers=headers)
        async with self._limiter:
            return await self._client.get(url, headers=headers)
