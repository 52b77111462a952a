"""Code-list fetch configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from .http import HttpCacheConfig, HttpClientConfig, RateLimit
from .storage import get_storage_config

CODELIST_BASE_URL: Final[str] = "https://codelist.commonapproach.org"
CODELIST_FALLBACK_BASE_URL: Final[str] = (
    "https://raw.githubusercontent.com/commonapproach/CodeLists/main"
)
CODELIST_CACHE_TTL_SECONDS: Final[float] = 24 * 60 * 60

# Code-list table name -> paths relative to the base URL. Sector merges three lists.
CODELIST_PATHS: Final[dict[str, tuple[str, ...]]] = {
    "Sector": (
        "ICNPOsector/ICNPOsector.owl",
        "StatsCanSector/StatsCanSector.owl",
        "IRISImpactThemes/IRISImpactCategories.ttl",
    ),
    "PopulationServed": ("PopulationServed/PopulationServed.owl",),
    "ProvinceTerritory": ("ProvinceTerritory/ProvinceTerritory.owl",),
    "OrganizationType": ("OrgTypeGOC/OrgTypeGOC.owl",),
    "Locality": ("Locality/LocalityStatsCan.owl",),
    "CorporateRegistrar": (
        "CanadianCorporateRegistries/CanadianCorporateRegistries.ttl",
    ),
}

# Lists the mirror keeps under a different path than the primary site.
CODELIST_FALLBACK_PATHS: Final[dict[str, str]] = {
    "IRISImpactThemes/IRISImpactCategories.ttl": "IRISImpactCategories/IRISImpactCategories.ttl",
}


@dataclass(frozen=True, slots=True)
class CodeListConfig:
    base_url: str = CODELIST_BASE_URL
    fallback_base_url: str | None = CODELIST_FALLBACK_BASE_URL
    paths: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(CODELIST_PATHS))
    fallback_paths: dict[str, str] = field(
        default_factory=lambda: dict(CODELIST_FALLBACK_PATHS)
    )
    http: HttpClientConfig = field(default_factory=lambda: HttpClientConfig(name="codelists"))

    def urls_for(self, table_name: str) -> tuple[str, ...]:
        base = self.base_url.rstrip("/")
        return tuple(f"{base}/{path}" for path in self.paths.get(table_name, ()))

    def fallback_url_for(self, url: str) -> str | None:
        base = self.base_url.rstrip("/")
        if self.fallback_base_url is None or not url.startswith(f"{base}/"):
            return None
        path = url[len(base) + 1 :]
        path = self.fallback_paths.get(path, path)
        return f"{self.fallback_base_url.rstrip('/')}/{path}"


def get_codelist_config(*, cache_path: str | None = None) -> CodeListConfig:
    base_url = os.getenv("LDSYNC_CODELIST_BASE_URL") or CODELIST_BASE_URL
    http = HttpClientConfig(
        name="codelists",
        ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
        cache=HttpCacheConfig(
            backend="sqlite",
            path=cache_path or str(get_storage_config().http_cache_path()),
            ttl_seconds=CODELIST_CACHE_TTL_SECONDS,
        ),
        headers={"Accept": "application/rdf+xml, text/turtle;q=0.9, */*;q=0.5"},
    )
    return CodeListConfig(base_url=base_url, http=http)
