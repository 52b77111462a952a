"""Typed readers for ldsync settings taken from the environment."""

from __future__ import annotations

import os

from ldsync.domain.errors import LdSyncError


class ConfigurationError(LdSyncError, ValueError):
    """Raised when an environment setting is present but unusable."""


def optional_int_env(name: str, default: int, *, minimum: int = 1) -> int:
    """Read ``name`` as an integer no smaller than ``minimum``; unset or blank gives ``default``."""

    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
    return value
