"""
seeder/schemas.py

Declarative per-field validation rules for seed datasets.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_FIELD_TYPES = (
    "string",
    "number",
    "integer",
    "boolean",
    "email",
    "url",
    "json",
    "array",
    "date",
)


class FieldSchema(BaseModel):
    """
    Validation rules for one field.

    ``type`` is kept as free text so an unsupported type name surfaces as a
    validation error on the dataset rather than a schema parse failure.
    Camel-case aliases (``minLength``, ``maxLength``) are accepted.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    required: bool = False
    type: str | None = None
    min_length: int | None = Field(default=None, alias="minLength", ge=0)
    max_length: int | None = Field(default=None, alias="maxLength", ge=0)
    min: float | None = None
    max: float | None = None
    enum: list[Any] | None = None
    pattern: str | None = None
