"""Shared fixtures for code-list adapter tests."""

from __future__ import annotations

import pytest

from ldsync.config.codelists import CodeListConfig
from ldsync.config.http import HttpClientConfig, RetryPolicy


@pytest.fixture
def codelist_config() -> CodeListConfig:
    return CodeListConfig(http=HttpClientConfig(name="codelists", retry=RetryPolicy(attempts=0)))
