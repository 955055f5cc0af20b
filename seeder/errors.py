"""
seeder/errors.py

Exception taxonomy for seed loading and persistence.
"""

from __future__ import annotations

from pathlib import Path


class SeederError(Exception):
    """Base exception for seeding failures."""


class DataFileNotFoundError(SeederError):
    """Raised when a seed data file does not exist."""

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"Data file not found: {path}")
        self.path = Path(path)


class InvalidJsonError(SeederError):
    """Raised when a seed data file is not valid JSON."""

    def __init__(self, path: str | Path, detail: str | None = None) -> None:
        message = f"Invalid JSON in data file: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.path = Path(path)


class InvalidDataShapeError(SeederError):
    """Raised when parsed seed data is not a list of objects."""


class InvalidRecordError(InvalidDataShapeError):
    """Raised when one seed record is not a mapping."""

    def __init__(self, index: int, value: object) -> None:
        super().__init__(
            f"Invalid item at index {index}: must be an object, got {type(value).__name__}"
        )
        self.index = index


class InvalidConfigError(SeederError):
    """Raised when caller-supplied configuration is structurally invalid."""


class DatabaseOperationError(SeederError):
    """
    Raised when a bulk insert or bulk delete is rejected by the database.
    """

    def __init__(
        self,
        message: str,
        *,
        table_name: str | None = None,
        statement: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.statement = statement
        self.cause = cause
