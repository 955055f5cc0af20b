"""
seeder/config.py

Environment-driven settings for seed runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files, project_root

DEFAULT_BATCH_SIZE = 1000

INTROSPECTION_MODES = {"textual", "metadata"}


def _get_int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _resolve_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (project_root() / candidate).resolve()


@dataclass(frozen=True)
class SeederSettings:
    """
    Runtime settings shared by the config resolver and the orchestrator.
    """

    data_path: Path
    models_path: Path
    batch_size: int = DEFAULT_BATCH_SIZE
    created_at_field: str = "createdAt"
    updated_at_field: str = "updatedAt"
    introspection: str = "textual"


@lru_cache(maxsize=1)
def get_seeder_settings() -> SeederSettings:
    """
    Return cached seeder settings from environment variables.
    """

    load_env_files()
    introspection = _get_str_env("SEEDER_INTROSPECTION", "textual").lower()
    if introspection not in INTROSPECTION_MODES:
        raise RuntimeError(
            f"SEEDER_INTROSPECTION '{introspection}' is not valid. "
            f"Allowed values: {sorted(INTROSPECTION_MODES)}."
        )
    return SeederSettings(
        data_path=_resolve_path(_get_str_env("SEEDER_DATA_PATH", "data")),
        models_path=_resolve_path(_get_str_env("SEEDER_MODELS_PATH", "db/models")),
        batch_size=max(1, _get_int_env("SEEDER_BATCH_SIZE", DEFAULT_BATCH_SIZE)),
        created_at_field=_get_str_env("SEEDER_CREATED_AT_FIELD", "createdAt"),
        updated_at_field=_get_str_env("SEEDER_UPDATED_AT_FIELD", "updatedAt"),
        introspection=introspection,
    )
