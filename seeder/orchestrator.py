"""
seeder/orchestrator.py

Coordinates one seed unit: load the JSON data file, normalize and filter
records, stamp timestamps, and drive sequential bulk inserts / deletes
against a QueryInterface.

Rollback is approximate. Targeted removal deletes every row whose unique
field values appear in the data file, including rows that existed before
the seed ran. Without unique fields or a readable data file the whole
table is cleared.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from seeder.base import QueryInterface
from seeder.config import SeederSettings, get_seeder_settings
from seeder.config_resolver import EntityConfigResolver
from seeder.domain import EntityConfig, NormalizedRecord, value_key
from seeder.errors import SeederError
from seeder.loader import load_data_file
from seeder.normalizer import normalize_record, project_fields
from seeder.predicates import AnyOf, FieldIn
from seeder.utils import add_timestamps, bulk_insert_in_batches

logger = logging.getLogger(__name__)


class SeedingOrchestrator:
    """Loads, cleans, inserts and removes seed data for one database.

    The orchestrator owns its EntityConfigResolver (and therefore its config
    cache); two orchestrators never share resolved configuration unless a
    resolver is passed in explicitly.
    """

    def __init__(
        self,
        query_interface: QueryInterface,
        *,
        resolver: EntityConfigResolver | None = None,
        settings: SeederSettings | None = None,
    ) -> None:
        """
        Args:
            query_interface: Target database primitives.
            resolver: Config resolver; a fresh one is built when omitted.
            settings: Seeder settings; read from the environment when omitted.
        """
        self._query_interface = query_interface
        self._settings = settings or get_seeder_settings()
        self._resolver = resolver or EntityConfigResolver(settings=self._settings)

    @property
    def resolver(self) -> EntityConfigResolver:
        return self._resolver

    def get_config(
        self,
        entity_type: str,
        custom_config: Mapping[str, Any] | None = None,
    ) -> EntityConfig:
        return self._resolver.resolve(entity_type, custom_config)

    def process_data(
        self,
        entity_type: str,
        *,
        custom_config: Mapping[str, Any] | None = None,
        filter_valid_fields: bool = True,
    ) -> list[NormalizedRecord]:
        """Load and clean the data file of ``entity_type``.

        Args:
            entity_type: Entity name, e.g. "Users".
            custom_config: Overrides merged over auto-discovered config.
            filter_valid_fields: Project records onto ``valid_fields`` when
                that list is non-empty.

        Returns:
            Normalized records in file order.

        Raises:
            InvalidConfigError: Invalid overrides.
            DataFileNotFoundError: The data file does not exist.
            InvalidJsonError: The data file is not valid JSON.
            InvalidDataShapeError: The file is not an array of objects.
        """
        config = self._resolver.resolve(entity_type, custom_config)
        logger.info(
            "Processing entity=%s data_file=%s table=%s batch_size=%d",
            entity_type,
            config.data_file,
            config.table_name,
            config.batch_size,
        )

        data = load_data_file(config.data_file)
        logger.info("Loaded records entity=%s records=%d", entity_type, len(data))

        use_filter = filter_valid_fields and bool(config.valid_fields)
        processed: list[NormalizedRecord] = []
        for index, item in enumerate(data):
            record = normalize_record(item, index)
            if use_filter:
                record = project_fields(record, config.valid_fields)
            processed.append(record)

        logger.info(
            "Processed records entity=%s records=%d fields=%s",
            entity_type,
            len(processed),
            ", ".join(config.valid_fields) if use_filter else "all",
        )
        return processed

    def insert_data(
        self,
        entity_type: str,
        records: Sequence[Mapping[str, Any]],
        *,
        custom_config: Mapping[str, Any] | None = None,
    ) -> int:
        """Stamp and insert ``records`` in sequential batches.

        One timestamp is computed per call and shared by every record.

        Returns:
            Number of records inserted.

        Raises:
            InvalidConfigError: Invalid overrides.
            DatabaseOperationError: A batch was rejected. Earlier batches
                are not rolled back.
        """
        config = self._resolver.resolve(entity_type, custom_config)
        logger.info("Inserting entity=%s records=%d", entity_type, len(records))

        stamped = add_timestamps(
            records,
            datetime.now(timezone.utc),
            created_at_field=self._settings.created_at_field,
            updated_at_field=self._settings.updated_at_field,
        )
        try:
            inserted = bulk_insert_in_batches(
                self._query_interface,
                config.table_name,
                stamped,
                config.batch_size,
            )
        except SeederError as exc:
            logger.error("Failed to insert entity=%s: %s", entity_type, exc)
            raise

        logger.info("Inserted entity=%s records=%d table=%s", entity_type, inserted, config.table_name)
        return inserted

    def remove_data(
        self,
        entity_type: str,
        *,
        custom_config: Mapping[str, Any] | None = None,
    ) -> int:
        """Remove seeded rows of ``entity_type``.

        With unique fields configured, the data file is reloaded and one
        delete is issued for rows where any unique field matches a value from
        the file. When the file cannot be read or carries no usable values,
        the whole table is cleared instead.

        Returns:
            Row count reported by the query interface.

        Raises:
            InvalidConfigError: Invalid overrides.
            DatabaseOperationError: The delete was rejected.
        """
        config = self._resolver.resolve(entity_type, custom_config)
        logger.info("Removing entity=%s table=%s", entity_type, config.table_name)

        if config.unique_fields:
            predicate = self._build_targeting_predicate(config)
            if predicate is not None:
                removed = self._delete(entity_type, config.table_name, predicate)
                logger.info(
                    "Removed entity=%s rows=%s using unique fields=%s",
                    entity_type,
                    removed,
                    list(config.unique_fields),
                )
                return removed

        logger.warning(
            "Falling back to unconditional delete entity=%s table=%s",
            entity_type,
            config.table_name,
        )
        removed = self._delete(entity_type, config.table_name, None)
        logger.info("Removed all rows entity=%s table=%s rows=%s", entity_type, config.table_name, removed)
        return removed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_targeting_predicate(self, config: EntityConfig) -> AnyOf | None:
        try:
            records = [
                normalize_record(item, index)
                for index, item in enumerate(load_data_file(config.data_file))
            ]
        except SeederError as exc:
            logger.warning(
                "Could not load data file for targeted removal entity=%s: %s",
                config.entity_type,
                exc,
            )
            return None

        clauses: list[FieldIn] = []
        for field_name in config.unique_fields:
            values = _distinct_values(records, field_name)
            if values:
                clauses.append(FieldIn(field=field_name, values=values))

        if not clauses:
            return None
        return AnyOf(clauses=tuple(clauses))

    def _delete(self, entity_type: str, table_name: str, predicate: AnyOf | None) -> int:
        try:
            return self._query_interface.bulk_delete(table_name, predicate)
        except SeederError as exc:
            logger.error("Failed to remove entity=%s: %s", entity_type, exc)
            raise


def _distinct_values(records: Sequence[Mapping[str, Any]], field_name: str) -> tuple[Any, ...]:
    seen: dict[Any, Any] = {}
    for record in records:
        value = record.get(field_name)
        if value is None or not isinstance(value, Hashable):
            continue
        seen.setdefault(value_key(value), value)
    return tuple(seen.values())
