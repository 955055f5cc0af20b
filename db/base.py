"""
db/base.py

Declarative base for the tables seed runs write to.

Timestamp columns use the camelCase names the seeder stamps on every
record (SEEDER_CREATED_AT_FIELD / SEEDER_UPDATED_AT_FIELD defaults), so a
reflected insert lines up with the mapped model.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Declarative base for every seedable model.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
    type_annotation_map: dict[Any, Any] = {dict[str, Any]: JSON}


def _stamp_column(column_name: str) -> Any:
    return mapped_column(
        column_name,
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class TimestampMixin:
    """
    Adds createdAt / updatedAt. Seed runs write both with the same value;
    rows inserted outside a seed run fall back to the database clock.
    """

    created_at: Mapped[datetime] = _stamp_column("createdAt")
    updated_at: Mapped[datetime] = _stamp_column("updatedAt")
