"""
db/query_interface.py

SQLAlchemy implementation of the seeding QueryInterface.

Tables are reflected from the live database on first use, so seeding works
for any table the connection can see, mapped or not. Every bulk call runs in
its own transaction: it commits on success, and on failure the session is
rolled back and the error re-raised as DatabaseOperationError carrying the
statement text and the driver-level cause.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from itertools import groupby
from typing import Any

from sqlalchemy import ColumnElement, MetaData, Table, delete, insert, or_
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.orm import Session

from seeder.errors import DatabaseOperationError, InvalidConfigError
from seeder.predicates import AnyOf, FieldIn, Predicate, split_predicate

logger = logging.getLogger(__name__)

_INSERT_OPTIONS = frozenset({"ignore_duplicates"})

DEFAULT_MAX_BIND_PARAMS = 30000


class SQLAlchemyQueryInterface:
    """
    Bulk insert / bulk delete over a SQLAlchemy Session.

    The caller owns the session lifecycle; this class only commits or rolls
    back the transactions it starts.
    """

    def __init__(
        self,
        session: Session,
        *,
        schema: str | None = None,
        max_bind_params: int = DEFAULT_MAX_BIND_PARAMS,
    ) -> None:
        if max_bind_params <= 0:
            raise InvalidConfigError("max_bind_params must be greater than 0.")
        self._session = session
        self._max_bind_params = max_bind_params
        self._metadata = MetaData(schema=schema)
        self._tables: dict[str, Table] = {}

    def get_table(self, table_name: str) -> Table:
        """
        Return the reflected table, loading it once per interface.
        """

        table = self._tables.get(table_name)
        if table is not None:
            return table

        try:
            table = Table(table_name, self._metadata, autoload_with=self._session.connection())
        except NoSuchTableError as exc:
            raise DatabaseOperationError(
                f"Table not found: {table_name}",
                table_name=table_name,
                cause=exc,
            ) from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _wrap_error("reflect", table_name, exc) from exc

        self._tables[table_name] = table
        return table

    def bulk_insert(
        self,
        table_name: str,
        records: Sequence[Mapping[str, Any]],
        **options: Any,
    ) -> int:
        unknown = sorted(set(options) - _INSERT_OPTIONS)
        if unknown:
            raise InvalidConfigError(f"Unsupported bulk insert options: {', '.join(unknown)}.")
        if not records:
            return 0

        table = self.get_table(table_name)
        statement = self._insert_statement(table, ignore_duplicates=bool(options.get("ignore_duplicates")))

        try:
            # Records may omit different optional fields; rows are grouped by
            # key set so each executemany sees homogeneous parameters.
            for _, group in groupby(records, key=lambda record: tuple(record)):
                self._session.execute(statement, [dict(record) for record in group])
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _wrap_error("insert", table_name, exc) from exc

        logger.debug("Bulk insert committed table=%s rows=%d", table_name, len(records))
        return len(records)

    def bulk_delete(
        self,
        table_name: str,
        where: Predicate | None,
        **options: Any,
    ) -> int:
        if options:
            raise InvalidConfigError(f"Unsupported bulk delete options: {', '.join(sorted(options))}.")

        table = self.get_table(table_name)
        if where is None:
            statements = [delete(table)]
        else:
            # Drivers cap bind parameters per statement (65535 for psycopg),
            # so large value sets run as several deletes in one transaction.
            statements = [
                delete(table).where(compile_predicate(table, part))
                for part in split_predicate(where, self._max_bind_params)
            ]

        removed = 0
        try:
            for statement in statements:
                removed += self._session.execute(statement).rowcount
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _wrap_error("delete", table_name, exc) from exc

        logger.debug(
            "Bulk delete committed table=%s statements=%d rows=%s",
            table_name,
            len(statements),
            removed,
        )
        return removed

    def _insert_statement(self, table: Table, *, ignore_duplicates: bool) -> Any:
        if not ignore_duplicates:
            return insert(table)

        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql_insert(table).on_conflict_do_nothing()
        if dialect == "sqlite":
            return sqlite_insert(table).on_conflict_do_nothing()
        raise InvalidConfigError(f"ignore_duplicates is not supported for dialect '{dialect}'.")


def compile_predicate(table: Table, predicate: Predicate) -> ColumnElement[bool]:
    """
    Translate a seeding predicate into a SQLAlchemy boolean expression.
    """

    if isinstance(predicate, FieldIn):
        if predicate.field not in table.c:
            raise InvalidConfigError(
                f"Unknown column '{predicate.field}' on table {table.name}."
            )
        return table.c[predicate.field].in_(list(predicate.values))
    if isinstance(predicate, AnyOf):
        return or_(*(compile_predicate(table, clause) for clause in predicate.clauses))
    raise InvalidConfigError(f"Unsupported predicate type: {type(predicate).__name__}.")


def _wrap_error(operation: str, table_name: str, exc: SQLAlchemyError) -> DatabaseOperationError:
    statement = getattr(exc, "statement", None)
    cause = getattr(exc, "orig", None) or exc
    return DatabaseOperationError(
        f"Bulk {operation} failed for {table_name}: {cause}",
        table_name=table_name,
        statement=str(statement) if statement is not None else None,
        cause=cause,
    )
