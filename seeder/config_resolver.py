"""
seeder/config_resolver.py

Builds EntityConfig records by merging auto-discovered defaults with
caller-supplied overrides.

Resolution order for the table name:

    1. ``table_name`` override
    2. static alias table (e.g. "Users" -> "People")
    3. introspector (``__tablename__`` literal, then pluralized model name)
    4. the entity name verbatim

Overrides are validated before any discovery runs, so a bad batch size
fails without touching the filesystem.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from seeder.config import SeederSettings, get_seeder_settings
from seeder.domain import EntityConfig, synthetic_fields
from seeder.errors import InvalidConfigError
from seeder.introspection import (
    MetadataSchemaIntrospector,
    SchemaIntrospector,
    TextualModelIntrospector,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLE_ALIASES: dict[str, str] = {
    "Users": "People",
    "User": "People",
}

DEFAULT_UNIQUE_FIELDS: dict[str, tuple[str, ...]] = {
    "Users": ("userName", "email"),
    "User": ("userName", "email"),
}

FALLBACK_UNIQUE_FIELDS: tuple[str, ...] = ("name",)

_FIELD_LIST_KEYS = ("valid_fields", "unique_fields", "required_fields")
ALLOWED_OVERRIDE_KEYS = frozenset({"table_name", "data_file", "batch_size", *_FIELD_LIST_KEYS})


def build_introspector(settings: SeederSettings) -> SchemaIntrospector:
    """
    Return the introspector selected by ``settings.introspection``.
    """

    excluded = synthetic_fields(settings.created_at_field, settings.updated_at_field)
    if settings.introspection == "metadata":
        from db.models import Base

        return MetadataSchemaIntrospector(Base, excluded_fields=excluded)
    return TextualModelIntrospector(settings.models_path, excluded_fields=excluded)


class ConfigCache:
    """
    In-memory cache of resolved configs keyed by (entity, overrides).

    Entries live as long as the cache object. Access is lock-guarded so one
    resolver may be shared across threads.
    """

    def __init__(self) -> None:
        self._entries: dict[str, EntityConfig] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(entity_type: str, overrides: Mapping[str, Any]) -> str:
        return json.dumps([entity_type, dict(overrides)], sort_keys=True, default=str)

    def get(self, key: str) -> EntityConfig | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, config: EntityConfig) -> None:
        with self._lock:
            self._entries[key] = config

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EntityConfigResolver:
    """
    Resolves and memoizes per-entity seeding configuration.
    """

    def __init__(
        self,
        *,
        settings: SeederSettings | None = None,
        introspector: SchemaIntrospector | None = None,
        cache: ConfigCache | None = None,
        table_aliases: Mapping[str, str] | None = None,
        unique_fields: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        self._settings = settings or get_seeder_settings()
        self._introspector = introspector or build_introspector(self._settings)
        self._cache = cache if cache is not None else ConfigCache()
        self._table_aliases = dict(
            DEFAULT_TABLE_ALIASES if table_aliases is None else table_aliases
        )
        self._unique_fields = {
            entity: tuple(fields)
            for entity, fields in (
                DEFAULT_UNIQUE_FIELDS if unique_fields is None else unique_fields
            ).items()
        }

    @property
    def cache(self) -> ConfigCache:
        return self._cache

    def resolve(
        self,
        entity_type: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> EntityConfig:
        """
        Return the configuration for ``entity_type`` with ``overrides`` applied.

        Raises:
            InvalidConfigError: unknown override keys or an invalid value.
        """
        overrides = dict(overrides or {})
        _validate_overrides(entity_type, overrides)

        key = self._cache.make_key(entity_type, overrides)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        config = EntityConfig(
            entity_type=entity_type,
            table_name=overrides.get("table_name") or self._discover_table_name(entity_type),
            data_file=self._resolve_data_file(entity_type, overrides.get("data_file")),
            batch_size=overrides.get("batch_size", self._settings.batch_size),
            valid_fields=self._field_list(
                overrides, "valid_fields", self._introspector.discover_valid_fields, entity_type
            ),
            unique_fields=self._field_list(
                overrides, "unique_fields", self._discover_unique_fields, entity_type
            ),
            required_fields=self._field_list(
                overrides, "required_fields", self._introspector.discover_required_fields, entity_type
            ),
        )
        logger.debug(
            "Resolved entity config entity=%r table=%r data_file=%s batch_size=%s "
            "valid_fields=%d unique_fields=%s",
            entity_type,
            config.table_name,
            config.data_file,
            config.batch_size,
            len(config.valid_fields),
            list(config.unique_fields),
        )
        self._cache.set(key, config)
        return config

    def clear_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _discover_table_name(self, entity_type: str) -> str:
        alias = self._table_aliases.get(entity_type)
        if alias:
            return alias
        discovered = self._introspector.discover_table_name(entity_type)
        return discovered or entity_type

    def _discover_unique_fields(self, entity_type: str) -> list[str]:
        return list(self._unique_fields.get(entity_type, FALLBACK_UNIQUE_FIELDS))

    def _resolve_data_file(self, entity_type: str, override: str | Path | None) -> Path:
        if override:
            return Path(override).resolve()
        return self._settings.data_path / f"{entity_type.lower()}.json"

    @staticmethod
    def _field_list(
        overrides: Mapping[str, Any],
        key: str,
        discover: Callable[[str], list[str]],
        entity_type: str,
    ) -> tuple[str, ...]:
        if key in overrides:
            return tuple(overrides[key])
        return tuple(discover(entity_type))


def _validate_overrides(entity_type: str, overrides: Mapping[str, Any]) -> None:
    unknown = sorted(set(overrides) - ALLOWED_OVERRIDE_KEYS)
    if unknown:
        raise InvalidConfigError(
            f"Unknown configuration keys for {entity_type}: {', '.join(unknown)}. "
            f"Allowed: {sorted(ALLOWED_OVERRIDE_KEYS)}."
        )

    if "batch_size" in overrides:
        batch_size = overrides["batch_size"]
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
            raise InvalidConfigError(
                f"Batch size must be a positive integer, got {batch_size!r}."
            )

    table_name = overrides.get("table_name")
    if table_name is not None and (not isinstance(table_name, str) or not table_name.strip()):
        raise InvalidConfigError("table_name must be a non-empty string.")

    data_file = overrides.get("data_file")
    if data_file is not None and not isinstance(data_file, (str, Path)):
        raise InvalidConfigError("data_file must be a path string.")

    for key in _FIELD_LIST_KEYS:
        if key not in overrides:
            continue
        value = overrides[key]
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise InvalidConfigError(f"{key} must be a list of field names.")
        if not all(isinstance(item, str) for item in value):
            raise InvalidConfigError(f"{key} must contain only strings.")
