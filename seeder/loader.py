"""
seeder/loader.py

JSON seed data file loading.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from seeder.config import get_seeder_settings
from seeder.errors import DataFileNotFoundError, InvalidDataShapeError, InvalidJsonError

logger = logging.getLogger(__name__)


def load_data_file(data_file: str | Path) -> list[Any]:
    """
    Read a UTF-8 JSON file whose top-level value must be an array.

    Raises:
        DataFileNotFoundError: the file does not exist.
        InvalidJsonError: the content is not valid JSON.
        InvalidDataShapeError: the parsed value is not an array.
    """

    path = Path(data_file)
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise DataFileNotFoundError(path) from exc
    except UnicodeDecodeError as exc:
        raise InvalidJsonError(path, "file must be UTF-8 encoded") from exc

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(path, f"line {exc.lineno} column {exc.colno}: {exc.msg}") from exc

    if not isinstance(parsed, list):
        raise InvalidDataShapeError(
            f"Data file {path.name} must contain an array, got {type(parsed).__name__}."
        )
    return parsed


def load_data(filename: str, *, data_path: str | Path | None = None) -> list[Any]:
    """
    Load ``<data_path>/<filename>.json``.

    ``data_path`` defaults to the configured seed data directory.
    """

    directory = Path(data_path) if data_path is not None else get_seeder_settings().data_path
    file_path = directory / f"{filename}.json"
    try:
        records = load_data_file(file_path)
    except (DataFileNotFoundError, InvalidJsonError, InvalidDataShapeError) as exc:
        logger.error("Failed to load seed data filename=%r: %s", filename, exc)
        raise

    logger.info("Loaded seed data filename=%r records=%d", f"{filename}.json", len(records))
    return records
