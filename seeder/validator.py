"""
seeder/validator.py

Dataset-level validation for seed data: per-field schema rules,
cross-references between two datasets, in-dataset uniqueness, and an
aggregate report.

These checks are opt-in; the orchestrator never runs them on its own.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError

from seeder.domain import ValidationReport, ValidationResult, value_key
from seeder.schemas import FieldSchema

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %Z",
)


# ---------------------------------------------------------------------------
# Schema validation
# ---------------------------------------------------------------------------


def validate_schema(
    data: Any,
    schema: Any,
    entity_name: str = "Entity",
) -> ValidationResult:
    """Validate every record of ``data`` against ``schema``.

    For each declared field the checks run in order: required presence,
    type, string length, numeric range, enum membership, pattern. A missing
    required value or a type mismatch skips the remaining checks for that
    field. Fields not declared in the schema produce a warning.

    Args:
        data: List of records.
        schema: Mapping of field name to FieldSchema (or a plain dict of
            rules, e.g. ``{"type": "email", "required": True}``).
        entity_name: Label used in messages.

    Returns:
        ValidationResult with one message per failed check.
    """
    if not isinstance(data, (list, tuple)):
        return ValidationResult.failure(f"{entity_name} data must be an array")
    if not isinstance(schema, Mapping):
        return ValidationResult.failure(f"{entity_name} schema must be an object")

    try:
        field_schemas = {
            name: rules if isinstance(rules, FieldSchema) else FieldSchema.model_validate(rules)
            for name, rules in schema.items()
        }
    except ValidationError as exc:
        return ValidationResult.failure(f"{entity_name} schema is invalid: {exc}")

    errors: list[str] = []
    warnings: list[str] = []

    for index, item in enumerate(data):
        prefix = f"{entity_name} item at index {index}"
        if not isinstance(item, Mapping):
            errors.append(f"{prefix}: Must be an object")
            continue

        for field_name, field_schema in field_schemas.items():
            errors.extend(_validate_field(item.get(field_name), field_schema, field_name, prefix))

        unexpected = [name for name in item if name not in field_schemas]
        if unexpected:
            warnings.append(f"{prefix}: Unexpected fields: {', '.join(unexpected)}")

    if errors:
        logger.warning(
            "Schema validation failed entity=%s errors=%d", entity_name, len(errors)
        )
    else:
        logger.info(
            "Schema validation passed entity=%s records=%d warnings=%d",
            entity_name,
            len(data),
            len(warnings),
        )
    return ValidationResult.from_messages(errors, warnings)


def _validate_field(
    value: Any,
    field_schema: FieldSchema,
    field_name: str,
    prefix: str,
) -> list[str]:
    label = f"{prefix}: Field '{field_name}'"
    if value is None or value == "":
        if field_schema.required:
            return [f"{label} is required"]
        return []

    if field_schema.type:
        type_error = _check_type(value, field_schema.type, field_name, prefix)
        if type_error:
            return [type_error]

    errors: list[str] = []
    if isinstance(value, str):
        if field_schema.min_length is not None and len(value) < field_schema.min_length:
            errors.append(f"{label} must be at least {field_schema.min_length} characters long")
        if field_schema.max_length is not None and len(value) > field_schema.max_length:
            errors.append(f"{label} must be no more than {field_schema.max_length} characters long")

    if _is_number(value):
        if field_schema.min is not None and value < field_schema.min:
            errors.append(f"{label} must be at least {_format_bound(field_schema.min)}")
        if field_schema.max is not None and value > field_schema.max:
            errors.append(f"{label} must be no more than {_format_bound(field_schema.max)}")

    if field_schema.enum is not None and value not in field_schema.enum:
        allowed = ", ".join(str(option) for option in field_schema.enum)
        errors.append(f"{label} must be one of: {allowed}")

    if field_schema.pattern and isinstance(value, str):
        if not re.search(field_schema.pattern, value):
            errors.append(f"{label} does not match required pattern")

    return errors


def _check_type(value: Any, expected_type: str, field_name: str, prefix: str) -> str | None:
    label = f"{prefix}: Field '{field_name}'"

    if expected_type == "string":
        return None if isinstance(value, str) else f"{label} must be a string"

    if expected_type == "number":
        if _is_number(value) and not (isinstance(value, float) and math.isnan(value)):
            return None
        return f"{label} must be a number"

    if expected_type == "integer":
        if isinstance(value, int) and not isinstance(value, bool):
            return None
        if isinstance(value, float) and value.is_integer():
            return None
        return f"{label} must be an integer"

    if expected_type == "boolean":
        return None if isinstance(value, bool) else f"{label} must be a boolean"

    if expected_type == "email":
        if isinstance(value, str) and EMAIL_RE.match(value):
            return None
        return f"{label} must be a valid email address"

    if expected_type == "url":
        return None if _is_url(value) else f"{label} must be a valid URL"

    if expected_type == "json":
        if isinstance(value, str):
            try:
                json.loads(value)
            except ValueError:
                return f"{label} must be valid JSON"
            return None
        if isinstance(value, (Mapping, list, tuple)):
            return None
        return f"{label} must be an object or JSON string"

    if expected_type == "array":
        return None if isinstance(value, (list, tuple)) else f"{label} must be an array"

    if expected_type == "date":
        return None if _is_date(value) else f"{label} must be a valid date"

    return f"{prefix}: Unknown field type '{expected_type}' for field '{field_name}'"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


def _is_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str):
        return False

    text = value.strip()
    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        datetime.fromisoformat(candidate)
        return True
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            datetime.strptime(text, fmt)
            return True
        except ValueError:
            continue
    return False


# ---------------------------------------------------------------------------
# Dataset-level checks
# ---------------------------------------------------------------------------


def validate_cross_references(
    source_data: Any,
    target_data: Any,
    source_field: str,
    target_field: str,
    source_name: str,
    target_name: str,
) -> ValidationResult:
    """
    Check that every non-null ``source_field`` value exists among the
    ``target_field`` values of ``target_data``.
    """

    if not isinstance(source_data, (list, tuple)) or not isinstance(target_data, (list, tuple)):
        return ValidationResult.failure("Source and target data must be arrays")

    target_values = _collect_values(target_data, target_field)

    errors: list[str] = []
    for index, item in enumerate(source_data):
        reference = item.get(source_field) if isinstance(item, Mapping) else None
        if reference is None:
            continue
        if not _contains(target_values, reference):
            errors.append(
                f"{source_name} item at index {index}: Reference '{source_field}' value "
                f"'{reference}' not found in {target_name}.{target_field}"
            )

    if errors:
        logger.warning(
            "Cross-reference validation failed source=%s target=%s errors=%d",
            source_name,
            target_name,
            len(errors),
        )
    else:
        logger.info(
            "Cross-reference validation passed source=%s target=%s",
            source_name,
            target_name,
        )
    return ValidationResult.from_messages(errors)


def validate_uniqueness(
    data: Any,
    unique_fields: Sequence[str],
    entity_name: str = "Entity",
) -> ValidationResult:
    """
    Report repeated values per field; null and empty-string values are ignored.
    """

    if not isinstance(data, (list, tuple)):
        return ValidationResult.failure(f"{entity_name} data must be an array")

    errors: list[str] = []
    for field_name in unique_fields:
        first_seen: dict[Any, int] = {}
        for index, item in enumerate(data):
            value = item.get(field_name) if isinstance(item, Mapping) else None
            if value is None or value == "":
                continue
            key = value_key(value)
            if key in first_seen:
                errors.append(
                    f"{entity_name}: Duplicate value '{value}' for field '{field_name}' "
                    f"found at indices {first_seen[key]} and {index}"
                )
            else:
                first_seen[key] = index

    if errors:
        logger.warning(
            "Uniqueness validation failed entity=%s errors=%d", entity_name, len(errors)
        )
    else:
        logger.info("Uniqueness validation passed entity=%s", entity_name)
    return ValidationResult.from_messages(errors)


def generate_validation_report(results: Sequence[ValidationResult]) -> ValidationReport:
    """
    Aggregate several validation results; the report passes only when no
    result carries an error.
    """

    all_errors: list[str] = []
    all_warnings: list[str] = []
    passed = 0
    for result in results:
        if result.is_valid:
            passed += 1
        all_errors.extend(result.errors)
        all_warnings.extend(result.warnings)

    total = len(results)
    report = ValidationReport(
        is_valid=not all_errors,
        total_validations=total,
        passed_validations=passed,
        failed_validations=total - passed,
        errors=all_errors,
        warnings=all_warnings,
    )

    logger.info(
        "Validation report total=%d passed=%d failed=%d errors=%d warnings=%d status=%s",
        report.total_validations,
        report.passed_validations,
        report.failed_validations,
        len(report.errors),
        len(report.warnings),
        "PASSED" if report.is_valid else "FAILED",
    )
    for number, error in enumerate(report.errors, start=1):
        logger.info("Validation error %d. %s", number, error)
    for number, warning in enumerate(report.warnings, start=1):
        logger.info("Validation warning %d. %s", number, warning)
    return report


def _collect_values(records: Sequence[Any], field_name: str) -> set[Any]:
    return {
        value_key(item.get(field_name))
        for item in records
        if isinstance(item, Mapping)
    }


def _contains(values: set[Any], value: Any) -> bool:
    return value_key(value) in values
