"""HTTP client for the predefined code lists published alongside the ontology."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from ldsync.adapters.http_client import ResilientClient
from ldsync.config.codelists import CodeListConfig

from .parsing import parse_code_list

if TYPE_CHECKING:
    from collections.abc import Callable

    from ldsync.config.http import HttpClientConfig
    from ldsync.domain.ports import CodeListEntry

log = getLogger(__name__)


class CodeListClient:
    """Fetch and parse code lists; any failure degrades to an empty list.

    Responses are cached by the resilient client (24h by default), so repeated
    validations within a day do not hit the network.
    """

    def __init__(
        self,
        config: CodeListConfig | None = None,
        *,
        client_factory: Callable[[HttpClientConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config or CodeListConfig()
        self._client_factory = client_factory or ResilientClient

    async def fetch_code_list(self, url: str) -> list[CodeListEntry]:
        try:
            client = self._client_factory(self._config.http)
        except (ImportError, OSError, ValueError):
            log.exception("Cannot set up an HTTP client for code list %s", url)
            return []
        async with client:
            return await self._fetch(client, url)

    async def _fetch(self, client: ResilientClient, url: str) -> list[CodeListEntry]:
        text = await self._download(client, url)
        if text is None:
            return []
        try:
            entries = parse_code_list(text, url=url)
        except Exception:
            log.exception("Failed to parse code list %s", url)
            return []
        if not entries:
            log.warning("Parsed 0 entries from %s", url)
        return entries

    async def _download(self, client: ResilientClient, url: str) -> str | None:
        candidates = [url]
        fallback = self._config.fallback_url_for(url)
        if fallback is not None:
            candidates.append(fallback)
        for candidate in candidates:
            try:
                response = await client.get(candidate)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                log.warning("Fetching code list %s failed: %s", candidate, exc)
                continue
            return response.text
        return None
