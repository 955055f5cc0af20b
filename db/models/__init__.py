"""
Model package exports.

Import all SQLAlchemy models here so they are registered on Base.metadata
before metadata introspection or create_all runs.
"""

from db.base import Base
from db.models.person import Person

__all__ = [
    "Base",
    "Person",
]
