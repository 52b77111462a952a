from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003

import pytest

from ldsync.config import (
    CodeListConfig,
    ConfigurationError,
    PipelineConfig,
    get_codelist_config,
    get_database_config,
    get_pipeline_config,
    get_storage_config,
)
from ldsync.config.codelists import CODELIST_BASE_URL


def test_pipeline_config_reads_batch_size(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LDSYNC_BATCH_SIZE", raising=False)
    assert get_pipeline_config() == PipelineConfig()

    monkeypatch.setenv("LDSYNC_BATCH_SIZE", "10")
    assert get_pipeline_config().batch_size == 10


@pytest.mark.parametrize("raw", ["ten", "0", "-3"])
def test_pipeline_config_rejects_bad_batch_sizes(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("LDSYNC_BATCH_SIZE", raw)

    with pytest.raises(ConfigurationError, match="LDSYNC_BATCH_SIZE"):
        get_pipeline_config()


def test_storage_config_uses_env_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("LDSYNC_DATA_DIR", str(data_dir))

    config = get_storage_config()

    assert config.data_dir == data_dir
    assert not data_dir.exists()
    assert config.http_cache_path() == data_dir.resolve() / "http_cache.db"
    assert data_dir.is_dir()


@pytest.mark.skipif(os.name == "nt", reason="XDG_DATA_HOME is ignored on Windows")
def test_default_data_dir_follows_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("LDSYNC_DATA_DIR", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert get_storage_config().data_dir == tmp_path / "ldsync"


def test_database_config_prefers_env_uri(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"

    monkeypatch.delenv("DATABASE_URI")
    monkeypatch.setenv("LDSYNC_DATA_DIR", str(tmp_path))
    expected = f"sqlite+pysqlite:///{tmp_path.resolve() / 'ldsync.db'}"
    assert get_database_config().uri == expected


def test_codelist_config_builds_urls_and_cache(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("LDSYNC_CODELIST_BASE_URL", raising=False)
    config = get_codelist_config(cache_path=str(tmp_path / "cache.db"))

    assert config.base_url == CODELIST_BASE_URL
    assert config.urls_for("Sector")[0] == f"{CODELIST_BASE_URL}/ICNPOsector/ICNPOsector.owl"
    assert len(config.urls_for("Sector")) == 3
    assert config.urls_for("Unknown") == ()
    assert config.http.cache is not None
    assert config.http.cache.path == str(tmp_path / "cache.db")


def test_codelist_base_url_can_be_overridden(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("LDSYNC_CODELIST_BASE_URL", "https://mirror.example/lists/")
    config = get_codelist_config(cache_path=str(tmp_path / "cache.db"))

    assert config.urls_for("Locality") == (
        "https://mirror.example/lists/Locality/LocalityStatsCan.owl",
    )
    assert isinstance(config, CodeListConfig)

