"""
seeder/base.py

Interface the seeding layer expects from the target database.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from seeder.predicates import Predicate


class QueryInterface(Protocol):
    """
    Bulk insert / bulk delete primitives of the target database.

    Implementations raise DatabaseOperationError when the database rejects
    a call. Each call is expected to be durable once it returns.
    """

    def bulk_insert(
        self,
        table_name: str,
        records: Sequence[Mapping[str, Any]],
        **options: Any,
    ) -> int:
        ...

    def bulk_delete(
        self,
        table_name: str,
        where: Predicate | None,
        **options: Any,
    ) -> int:
        ...
