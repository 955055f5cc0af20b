"""
seeder/predicates.py

Database-agnostic delete predicates used for targeted rollback.

Only the vocabulary rollback needs is supported: "field value in set" and
"logical OR of sub-predicates". Query interfaces translate these into their
own expression language.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from seeder.domain import value_key


@dataclass(frozen=True)
class FieldIn:
    """Matches rows whose ``field`` value is one of ``values``."""

    field: str
    values: tuple[Any, ...]

    def matches(self, row: dict[str, Any]) -> bool:
        if self.field not in row:
            return False
        target = value_key(row[self.field])
        return any(value_key(value) == target for value in self.values)


@dataclass(frozen=True)
class AnyOf:
    """Matches rows matched by at least one clause."""

    clauses: tuple[Predicate, ...]

    def matches(self, row: dict[str, Any]) -> bool:
        return any(clause.matches(row) for clause in self.clauses)


Predicate = Union[FieldIn, AnyOf]


def flatten(predicate: Predicate) -> list[FieldIn]:
    """Return the FieldIn leaves of ``predicate``; their OR is equivalent to it."""
    if isinstance(predicate, FieldIn):
        return [predicate]
    leaves: list[FieldIn] = []
    for clause in predicate.clauses:
        leaves.extend(flatten(clause))
    return leaves


def split_predicate(predicate: Predicate, max_values: int) -> list[Predicate]:
    """
    Split ``predicate`` into parts carrying at most ``max_values`` values each.

    The OR of the parts matches exactly the rows ``predicate`` matches, so
    deleting part by part removes the same rows as one combined delete.
    """

    if max_values <= 0:
        raise ValueError("max_values must be greater than 0")

    pieces = [
        FieldIn(field=leaf.field, values=leaf.values[start : start + max_values])
        for leaf in flatten(predicate)
        for start in range(0, len(leaf.values), max_values)
    ]

    parts: list[Predicate] = []
    group: list[FieldIn] = []
    group_size = 0
    for piece in pieces:
        if group and group_size + len(piece.values) > max_values:
            parts.append(_combine(group))
            group, group_size = [], 0
        group.append(piece)
        group_size += len(piece.values)
    if group:
        parts.append(_combine(group))
    return parts


def _combine(pieces: list[FieldIn]) -> Predicate:
    return pieces[0] if len(pieces) == 1 else AnyOf(clauses=tuple(pieces))
