"""
seeder/introspection.py

Schema introspection used by the config resolver to auto-discover table
names and field lists.

Two implementations share the SchemaIntrospector protocol:

    TextualModelIntrospector:   regex scan over SQLAlchemy model source files
    MetadataSchemaIntrospector: reads the declarative registry of a Base

Discovery is advisory. Every read or parse failure degrades to "no
information" (None or an empty list) and is logged at DEBUG level.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

from seeder.domain import SYNTHETIC_FIELDS

logger = logging.getLogger(__name__)

# Entities whose model module does not follow the naming convention.
DEFAULT_MODEL_ALIASES: dict[str, str] = {
    "Users": "person",
    "User": "person",
}

_TABLE_NAME_RE = re.compile(r"""__tablename__\s*(?::\s*[^=\n]+)?=\s*['"]([^'"]+)['"]""")
_MODEL_NAME_RE = re.compile(r"^class\s+(\w+)\s*\([^)]*\bBase\b", re.MULTILINE)
_FIELD_RE = re.compile(
    r"^\s*(\w+)\s*(?::\s*Mapped\[[^\n]*?\])?\s*=\s*(?:\w+\.)?(?:mapped_column|Column)\(",
    re.MULTILINE,
)
_NOT_NULLABLE_RE = re.compile(r"\bnullable\s*=\s*False\b")


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def pluralize(word: str) -> str:
    if word.endswith("y"):
        return word[:-1] + "ies"
    if word.endswith("s"):
        return word + "es"
    return word + "s"


def singularize(word: str) -> str:
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("s"):
        return word[:-1]
    return word


def camel_case(value: str) -> str:
    """Convert hyphenated names to camelCase ("order-items" -> "orderItems")."""
    return re.sub(r"-([a-z])", lambda match: match.group(1).upper(), value)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class SchemaIntrospector(Protocol):
    """
    Narrow interface the config resolver uses for auto-discovery.
    """

    def discover_table_name(self, entity_type: str) -> str | None:
        ...

    def discover_valid_fields(self, entity_type: str) -> list[str]:
        ...

    def discover_required_fields(self, entity_type: str) -> list[str]:
        ...


# ---------------------------------------------------------------------------
# Textual heuristic
# ---------------------------------------------------------------------------


class TextualModelIntrospector:
    """
    Best-effort regex scan of one model module per entity.

    Recognises the declarative conventions used under db/models:
    ``__tablename__ = "..."``, ``class Name(Base, ...)``,
    ``field: Mapped[...] = mapped_column(...)`` / ``field = Column(...)``
    and ``nullable=False`` markers inside a field definition.
    """

    def __init__(
        self,
        models_path: str | Path,
        *,
        model_aliases: Mapping[str, str] | None = None,
        excluded_fields: Iterable[str] | None = None,
    ) -> None:
        self._models_path = Path(models_path)
        self._excluded_fields = frozenset(SYNTHETIC_FIELDS if excluded_fields is None else excluded_fields)
        self._model_aliases = dict(
            DEFAULT_MODEL_ALIASES if model_aliases is None else model_aliases
        )

    def find_model_file(self, entity_type: str) -> Path | None:
        """
        Return the first existing model module among the naming candidates.
        """

        lowered = entity_type.lower()
        singular = singularize(entity_type).lower()
        candidates = [lowered, singular, camel_case(lowered), camel_case(singular)]

        alias = self._model_aliases.get(entity_type)
        if alias:
            candidates.insert(0, alias)

        for name in candidates:
            file_path = self._models_path / f"{name}.py"
            if file_path.exists():
                return file_path
        return None

    def discover_table_name(self, entity_type: str) -> str | None:
        source = self._read_model_source(entity_type)
        if source is None:
            return None

        table_match = _TABLE_NAME_RE.search(source)
        if table_match:
            return table_match.group(1)

        model_match = _MODEL_NAME_RE.search(source)
        if model_match:
            return pluralize(model_match.group(1))
        return None

    def discover_valid_fields(self, entity_type: str) -> list[str]:
        source = self._read_model_source(entity_type)
        if source is None:
            return []

        fields: list[str] = []
        for match in _FIELD_RE.finditer(source):
            name = match.group(1)
            if name in self._excluded_fields or name in fields:
                continue
            fields.append(name)
        return fields

    def discover_required_fields(self, entity_type: str) -> list[str]:
        source = self._read_model_source(entity_type)
        if source is None:
            return []

        required: list[str] = []
        current_field: str | None = None
        for line in source.splitlines():
            field_match = _FIELD_RE.match(line)
            if field_match:
                current_field = field_match.group(1)

            if current_field and _NOT_NULLABLE_RE.search(line):
                if current_field not in self._excluded_fields and current_field not in required:
                    required.append(current_field)
                current_field = None
        return required

    def _read_model_source(self, entity_type: str) -> str | None:
        try:
            model_file = self.find_model_file(entity_type)
            if model_file is None:
                return None
            return model_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug(
                "Model source unavailable entity=%r models_path=%s: %s",
                entity_type,
                self._models_path,
                exc,
            )
            return None


# ---------------------------------------------------------------------------
# Structured metadata
# ---------------------------------------------------------------------------


class MetadataSchemaIntrospector:
    """
    Discovery backed by SQLAlchemy's declarative registry.

    A mapped class matches an entity when its class name or table name equals
    the entity name, its singular form, or a configured model alias
    (case-insensitive).
    """

    def __init__(
        self,
        base: Any,
        *,
        model_aliases: Mapping[str, str] | None = None,
        excluded_fields: Iterable[str] | None = None,
    ) -> None:
        self._base = base
        self._excluded_fields = frozenset(SYNTHETIC_FIELDS if excluded_fields is None else excluded_fields)
        self._model_aliases = dict(
            DEFAULT_MODEL_ALIASES if model_aliases is None else model_aliases
        )

    def discover_table_name(self, entity_type: str) -> str | None:
        table = self._find_table(entity_type)
        return table.name if table is not None else None

    def discover_valid_fields(self, entity_type: str) -> list[str]:
        table = self._find_table(entity_type)
        if table is None:
            return []
        return [
            column.name
            for column in table.columns
            if column.name not in self._excluded_fields
        ]

    def discover_required_fields(self, entity_type: str) -> list[str]:
        table = self._find_table(entity_type)
        if table is None:
            return []
        return [
            column.name
            for column in table.columns
            if column.name not in self._excluded_fields
            and not column.nullable
            and not column.primary_key
            and column.default is None
            and column.server_default is None
        ]

    def _find_table(self, entity_type: str) -> Any | None:
        names = {entity_type.lower(), singularize(entity_type).lower()}
        alias = self._model_aliases.get(entity_type)
        if alias:
            names.add(alias.lower())

        try:
            mappers = list(self._base.registry.mappers)
        except AttributeError as exc:
            logger.debug("Declarative registry unavailable entity=%r: %s", entity_type, exc)
            return None

        for mapper in sorted(mappers, key=lambda item: item.class_.__name__):
            table = mapper.local_table
            if mapper.class_.__name__.lower() in names or table.name.lower() in names:
                return table
        return None
