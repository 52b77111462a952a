"""Environment-driven configuration for ldsync."""

from __future__ import annotations

from .codelists import CodeListConfig, get_codelist_config
from .env import ConfigurationError
from .http import HttpCacheConfig, HttpClientConfig, RateLimit, RetryPolicy
from .logging import configure_logging
from .pipeline import PipelineConfig, get_pipeline_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CodeListConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "HttpCacheConfig",
    "HttpClientConfig",
    "PipelineConfig",
    "RateLimit",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_codelist_config",
    "get_database_config",
    "get_pipeline_config",
    "get_storage_config",
]
