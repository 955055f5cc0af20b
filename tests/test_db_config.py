"""
tests/test_db_config.py

Pytest unit tests for env file parsing and database URL resolution.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from db.config import (
    load_env_files,
    mask_database_url,
    parse_env_line,
    resolve_database_url,
    with_psycopg_driver,
)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("DATABASE_URL=sqlite://", ("DATABASE_URL", "sqlite://")),
        ("export LOG_LEVEL = debug", ("LOG_LEVEL", "debug")),
        ('NAME="quoted value"', ("NAME", "quoted value")),
        ("# comment", None),
        ("", None),
        ("no-equals-sign", None),
        ("=value", None),
    ],
)
def test_parse_env_line(line: str, expected: tuple[str, str] | None) -> None:
    assert parse_env_line(line) == expected


def test_env_files_do_not_override_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / ".env").write_text("SEEDER_X=from-file\nSEEDER_Y=from-file\n", encoding="utf-8")
    (tmp_path / ".env.local").write_text("SEEDER_Y=from-local\n", encoding="utf-8")
    monkeypatch.setenv("SEEDER_X", "from-env")
    monkeypatch.delenv("SEEDER_Y", raising=False)

    load_env_files(tmp_path)

    assert os.environ["SEEDER_X"] == "from-env"
    assert os.environ["SEEDER_Y"] == "from-file"
    monkeypatch.delenv("SEEDER_Y")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgres://u:p@db:5432/app", "postgresql+psycopg://u:p@db:5432/app"),
        ("postgresql://u:p@db/app", "postgresql+psycopg://u:p@db/app"),
        ("postgresql+psycopg://u:p@db/app", "postgresql+psycopg://u:p@db/app"),
        ("sqlite:///seed.db", "sqlite:///seed.db"),
    ],
)
def test_with_psycopg_driver(url: str, expected: str) -> None:
    assert with_psycopg_driver(url) == expected


def test_seed_url_takes_priority(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEED_DATABASE_URL", "postgresql://u:p@seed/app")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@main/app")
    assert resolve_database_url() == "postgresql+psycopg://u:p@seed/app"


def test_missing_url_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEED_DATABASE_URL", " ")
    monkeypatch.setenv("DATABASE_URL", "")
    with pytest.raises(RuntimeError, match="SEED_DATABASE_URL"):
        resolve_database_url()


def test_mask_database_url_hides_password() -> None:
    masked = mask_database_url("postgresql+psycopg://seed:secret@db/app")
    assert "secret" not in masked
    assert masked.startswith("postgresql+psycopg://seed:")
