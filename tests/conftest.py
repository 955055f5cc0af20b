"""
tests/conftest.py

Shared fixtures: an isolated settings object pointing at tmp_path, and a
query interface double that records every bulk call.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from seeder.config import SeederSettings
from seeder.config_resolver import EntityConfigResolver
from seeder.errors import DatabaseOperationError
from seeder.predicates import Predicate


class RecordingQueryInterface:
    """In-memory QueryInterface that records calls and can fail on demand."""

    def __init__(self, *, fail_on_insert_call: int | None = None) -> None:
        self.insert_calls: list[tuple[str, list[dict[str, Any]], dict[str, Any]]] = []
        self.delete_calls: list[tuple[str, Predicate | None, dict[str, Any]]] = []
        self._fail_on_insert_call = fail_on_insert_call

    def bulk_insert(self, table_name: str, records: Any, **options: Any) -> int:
        call_number = len(self.insert_calls) + 1
        if call_number == self._fail_on_insert_call:
            raise DatabaseOperationError(
                f"Bulk insert failed for {table_name}: duplicate key",
                table_name=table_name,
                statement=f'INSERT INTO "{table_name}" ...',
                cause=RuntimeError("duplicate key value violates unique constraint"),
            )
        self.insert_calls.append((table_name, [dict(record) for record in records], options))
        return len(records)

    def bulk_delete(self, table_name: str, where: Predicate | None, **options: Any) -> int:
        self.delete_calls.append((table_name, where, options))
        return 0


@pytest.fixture()
def settings(tmp_path: Path) -> SeederSettings:
    data_path = tmp_path / "data"
    models_path = tmp_path / "models"
    data_path.mkdir()
    models_path.mkdir()
    return SeederSettings(data_path=data_path, models_path=models_path)


@pytest.fixture()
def resolver(settings: SeederSettings) -> EntityConfigResolver:
    return EntityConfigResolver(settings=settings)


@pytest.fixture()
def query_interface() -> RecordingQueryInterface:
    return RecordingQueryInterface()


@pytest.fixture()
def failing_query_interface():
    """Return a factory for query interfaces that fail on the Nth insert call."""

    def _build(fail_on_insert_call: int) -> RecordingQueryInterface:
        return RecordingQueryInterface(fail_on_insert_call=fail_on_insert_call)

    return _build


@pytest.fixture()
def write_data(settings: SeederSettings):
    """Write ``payload`` as JSON to ``<data_path>/<name>.json`` and return the path."""

    def _write(name: str, payload: Any) -> Path:
        path = settings.data_path / f"{name}.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def write_model(settings: SeederSettings):
    """Write model source text to ``<models_path>/<name>.py`` and return the path."""

    def _write(name: str, source: str) -> Path:
        path = settings.models_path / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        return path

    return _write
