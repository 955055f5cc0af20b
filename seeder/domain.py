"""
seeder/domain.py

Domain records used by the seeding flow.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Field names that belong to the persistence layer, never to seed data.
SYNTHETIC_FIELDS = frozenset({"id", "createdAt", "updatedAt", "created_at", "updated_at"})


def synthetic_fields(created_at_field: str, updated_at_field: str) -> frozenset[str]:
    """Synthetic field names including the configured timestamp columns."""
    return SYNTHETIC_FIELDS | {created_at_field, updated_at_field}

RawRecord = dict[str, Any]
NormalizedRecord = dict[str, Any]


@dataclass(frozen=True)
class EntityConfig:
    """
    Resolved configuration for one entity/table.

    An empty ``valid_fields`` means no field filtering is applied.
    ``required_fields`` is informational only.
    """

    entity_type: str
    table_name: str
    data_file: Path
    batch_size: int = 1000
    valid_fields: tuple[str, ...] = ()
    unique_fields: tuple[str, ...] = ()
    required_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of one validation pass over a dataset.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_messages(
        cls,
        errors: list[str],
        warnings: list[str] | None = None,
    ) -> ValidationResult:
        return cls(is_valid=not errors, errors=list(errors), warnings=list(warnings or []))

    @classmethod
    def failure(cls, message: str) -> ValidationResult:
        return cls(is_valid=False, errors=[message], warnings=[])


@dataclass(frozen=True)
class ValidationReport:
    """
    Aggregate of several validation results.
    """

    is_valid: bool
    total_validations: int
    passed_validations: int
    failed_validations: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def value_key(value: Any) -> Any:
    """
    Equality key for seed values.

    Booleans never compare equal to 1 / 0, and unhashable values (lists,
    objects) are keyed by their canonical JSON text.
    """

    try:
        hash(value)
    except TypeError:
        return ("json", json.dumps(value, sort_keys=True, default=str))
    return (type(value) is bool, value)
