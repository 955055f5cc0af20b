"""
seeder/utils.py

Stateless helpers usable without an orchestrator instance: batching,
timestamp stamping, presence checks and the run summary table.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from seeder.base import QueryInterface
from seeder.domain import ValidationResult
from seeder.errors import DatabaseOperationError, InvalidConfigError, InvalidDataShapeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 1000
_SUMMARY_WIDTH = 72


def chunk(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split ``items`` into contiguous slices of ``size``; the last may be shorter."""
    if size <= 0:
        raise InvalidConfigError("Batch size must be greater than 0")
    return [items[start : start + size] for start in range(0, len(items), size)]


def bulk_insert_in_batches(
    query_interface: QueryInterface,
    table_name: str,
    data: Sequence[Mapping[str, Any]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    **options: Any,
) -> int:
    """Insert ``data`` into ``table_name`` one batch at a time.

    Batches run strictly in order; the next batch starts only after the
    previous call returned. The first failing batch aborts the run and the
    error propagates. Batches that already completed are left in place.

    Args:
        query_interface: Target database.
        table_name: Table receiving the rows.
        data: Records to insert.
        batch_size: Records per bulk insert call.
        **options: Passed to ``bulk_insert``; ``ignore_duplicates`` defaults
            to False.

    Returns:
        Number of records submitted.

    Raises:
        InvalidConfigError: If ``batch_size`` is not positive.
        DatabaseOperationError: If a batch is rejected.
    """
    if not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        raise InvalidDataShapeError("Data must be a list of records.")
    if not data:
        logger.warning("No data to insert table=%s", table_name)
        return 0

    batches = chunk(data, batch_size)
    insert_options = {"ignore_duplicates": False, **options}
    logger.info(
        "Inserting records table=%s records=%d batches=%d batch_size=%d",
        table_name,
        len(data),
        len(batches),
        batch_size,
    )

    started = time.monotonic()
    inserted = 0
    for number, batch in enumerate(batches, start=1):
        batch_started = time.monotonic()
        try:
            query_interface.bulk_insert(table_name, list(batch), **insert_options)
        except DatabaseOperationError as exc:
            logger.error(
                "Bulk insert failed table=%s batch=%d/%d inserted_before_failure=%d "
                "error=%s statement=%s cause=%r",
                table_name,
                number,
                len(batches),
                inserted,
                exc,
                exc.statement,
                exc.cause,
            )
            raise
        inserted += len(batch)
        logger.info(
            "Batch completed table=%s batch=%d/%d records=%d elapsed_ms=%d",
            table_name,
            number,
            len(batches),
            len(batch),
            int((time.monotonic() - batch_started) * 1000),
        )

    logger.info(
        "Inserted records table=%s records=%d elapsed_ms=%d",
        table_name,
        inserted,
        int((time.monotonic() - started) * 1000),
    )
    return inserted


def add_timestamps(
    data: Sequence[Mapping[str, Any]],
    timestamp: datetime | None = None,
    *,
    created_at_field: str = "createdAt",
    updated_at_field: str = "updatedAt",
) -> list[dict[str, Any]]:
    """
    Return copies of ``data`` stamped with one creation/update timestamp.

    ``timestamp`` defaults to the current UTC time, computed once.
    """

    if not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        raise InvalidDataShapeError("Data must be a list of records.")

    now = timestamp or datetime.now(timezone.utc)
    stamped = [
        {**item, created_at_field: now, updated_at_field: now}
        for item in data
    ]
    logger.debug("Added timestamps records=%d timestamp=%s", len(stamped), now.isoformat())
    return stamped


def validate_required_fields(
    data: Any,
    required_fields: Any = (),
) -> ValidationResult:
    """
    Presence-only check: every record must carry a non-null value for
    each required field.
    """

    if not isinstance(data, (list, tuple)):
        return ValidationResult.failure("Data must be a list")
    if not isinstance(required_fields, (list, tuple)):
        return ValidationResult.failure("Required fields must be a list")

    errors: list[str] = []
    for index, item in enumerate(data):
        for field_name in required_fields:
            if not isinstance(item, Mapping) or item.get(field_name) is None:
                errors.append(f"Record {index}: Missing required field '{field_name}'")

    if errors:
        logger.warning("Required field validation failed errors=%d", len(errors))
    else:
        logger.info("Required field validation passed records=%d", len(data))
    return ValidationResult.from_messages(errors)


def create_summary_report(operations: Mapping[str, Mapping[str, int]]) -> str:
    """
    Format a per-table summary of a seeding run.

    ``operations`` maps table name to ``{"inserted": n, "errors": m}``;
    missing counts are treated as 0. The table is logged and returned.
    """

    lines = ["SEEDING SUMMARY REPORT", "=" * _SUMMARY_WIDTH]
    total_inserted = 0
    total_errors = 0

    for table_name, result in operations.items():
        inserted = int(result.get("inserted") or 0)
        errors = int(result.get("errors") or 0)
        lines.append(_summary_row(table_name, inserted, errors))
        total_inserted += inserted
        total_errors += errors

    lines.append("-" * _SUMMARY_WIDTH)
    lines.append(_summary_row("TOTAL", total_inserted, total_errors))
    lines.append("=" * _SUMMARY_WIDTH)

    report = "\n".join(lines)
    logger.info("Seeding summary\n%s", report)
    return report


def _summary_row(label: str, inserted: int, errors: int) -> str:
    status = "PASSED" if errors == 0 else "FAILED"
    return f"{label:<30} | Inserted: {inserted:>6} | Errors: {errors:>3} | {status}"
