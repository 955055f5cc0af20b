"""
db/models/person.py

Person model: application user accounts, seeded from data/users.json.

Attribute names are the camelCase column names used by the seed files.
"""

from typing import Any

from sqlalchemy import JSON, Boolean, Index, Integer, String, true
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Person(Base, TimestampMixin):
    __tablename__ = "People"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    userName: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        unique=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    firstName: Mapped[str | None] = mapped_column(String(120), nullable=True)
    lastName: Mapped[str | None] = mapped_column(String(120), nullable=True)

    isActive: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=true(),
        comment="Soft-disable an account without deletion",
    )

    profile: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        comment="Free-form profile attributes",
    )

    __table_args__ = (
        Index("ix_people_is_active", "isActive"),
    )

    def __repr__(self) -> str:
        return f"<Person id={self.id} userName={self.userName!r}>"
