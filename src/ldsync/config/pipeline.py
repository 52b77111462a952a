"""Import/export pipeline defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_int_env

DEFAULT_BATCH_SIZE = 50
DEFAULT_REQUIRED_ENTITY_TYPES: tuple[str, ...] = ("Organization",)


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    required_entity_types: tuple[str, ...] = DEFAULT_REQUIRED_ENTITY_TYPES


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig(batch_size=optional_int_env("LDSYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE))
