"""
seeder/normalizer.py

Generic per-record cleaning applied to every seed record before insertion.
"""

from __future__ import annotations

import numbers
from collections.abc import Mapping
from datetime import date
from typing import Any

from seeder.domain import NormalizedRecord
from seeder.errors import InvalidRecordError

_PASSTHROUGH_TYPES = (bool, numbers.Number, date, list, tuple, Mapping)


def normalize_record(record: Any, index: int = 0) -> NormalizedRecord:
    """Clean one raw record field by field.

    - ``None`` values are dropped.
    - Strings are stripped; strings that end up empty are dropped.
    - Booleans, numbers, dates, lists and nested mappings pass through.
    - Anything else is converted with ``str()``.

    Normalizing an already-normalized record returns an equal record.

    Args:
        record: One element of the seed data array.
        index: Position of the record, used in the error message.

    Returns:
        A new dict; the input is not modified.

    Raises:
        InvalidRecordError: If ``record`` is not a mapping.
    """
    if not isinstance(record, Mapping):
        raise InvalidRecordError(index, record)

    normalized: NormalizedRecord = {}
    for key, value in record.items():
        if value is None:
            continue
        if isinstance(value, str):
            cleaned = value.strip()
            if cleaned:
                normalized[key] = cleaned
        elif isinstance(value, _PASSTHROUGH_TYPES):
            normalized[key] = value
        else:
            normalized[key] = str(value)
    return normalized


def project_fields(record: Mapping[str, Any], fields: tuple[str, ...]) -> NormalizedRecord:
    """Keep only ``fields`` that are present on ``record``; missing ones are not defaulted."""
    return {name: record[name] for name in fields if name in record}
