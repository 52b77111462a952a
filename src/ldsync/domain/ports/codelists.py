"""Port for predefined code lists (sectors, localities, ...)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class CodeListEntry:
    id: str
    identifier: str
    name: str
    description: str | None = None


@runtime_checkable
class CodeListFetcher(Protocol):
    async def fetch_code_list(self, url: str) -> list[CodeListEntry]:
        """Return the entries published at ``url``; an empty list when unavailable."""
        ...
