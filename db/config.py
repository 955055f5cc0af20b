"""
db/config.py

Locating the project, reading `.env` files and resolving the database URL
seed runs write to.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

ENV_FILES = (".env", ".env.local")

# First non-empty variable wins.
DATABASE_URL_VARS = ("SEED_DATABASE_URL", "DATABASE_URL")

_POSTGRES_DRIVERNAMES = {"postgres", "postgresql"}


def project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def parse_env_line(line: str) -> tuple[str, str] | None:
    """
    Parse one ``KEY=VALUE`` line; ``export`` prefixes and quotes are stripped.
    Returns None for blanks, comments and malformed lines.
    """

    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    if stripped.startswith("export "):
        stripped = stripped[len("export ") :]

    key, value = (part.strip() for part in stripped.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        value = value[1:-1]
    return key, value


def load_env_files(root: Path | None = None) -> None:
    """
    Copy ``.env`` / ``.env.local`` entries into the process environment
    without overwriting variables that are already set.
    """

    base = root or project_root()
    for filename in ENV_FILES:
        env_path = base / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def with_psycopg_driver(url: str) -> str:
    """
    Pin bare PostgreSQL URLs to the psycopg 3 driver; other URLs pass through.
    """

    try:
        parsed: URL = make_url(url)
    except ArgumentError:
        return url
    if parsed.drivername in _POSTGRES_DRIVERNAMES:
        parsed = parsed.set(drivername="postgresql+psycopg")
    return parsed.render_as_string(hide_password=False)


def resolve_database_url() -> str:
    """
    Return the seed target URL from SEED_DATABASE_URL, then DATABASE_URL.

    Raises:
        RuntimeError: neither variable is set.
    """

    load_env_files()
    for name in DATABASE_URL_VARS:
        value = (os.getenv(name) or "").strip()
        if value:
            return with_psycopg_driver(value)

    raise RuntimeError(
        f"No database URL configured. Set one of: {', '.join(DATABASE_URL_VARS)}."
    )


def mask_database_url(url: str) -> str:
    """
    Render a database URL with its password hidden, for log lines.
    """

    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable database url>"
