"""
seeder/seed_unit.py

Apply / rollback entry points for one JSON-backed seed.

A seed module exposes one ``JsonSeed`` instance named ``seed``::

    seed = JsonSeed(
        "Users",
        custom_config={"table_name": "People", "batch_size": 100},
    )
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping
from typing import Any

from seeder.base import QueryInterface
from seeder.config import SeederSettings
from seeder.config_resolver import EntityConfigResolver
from seeder.errors import InvalidConfigError
from seeder.orchestrator import SeedingOrchestrator

logger = logging.getLogger(__name__)


class JsonSeed:
    """
    Seeds one entity from its JSON data file and removes it again.
    """

    def __init__(
        self,
        entity_name: str,
        *,
        custom_config: Mapping[str, Any] | None = None,
        filter_valid_fields: bool = True,
    ) -> None:
        self.entity_name = entity_name
        self.custom_config = dict(custom_config or {})
        self.filter_valid_fields = filter_valid_fields

    def up(
        self,
        query_interface: QueryInterface,
        *,
        resolver: EntityConfigResolver | None = None,
        settings: SeederSettings | None = None,
    ) -> int:
        """
        Load, process and insert the seed data. Returns the inserted count.
        """

        logger.info("Starting seed entity=%s", self.entity_name)
        orchestrator = SeedingOrchestrator(query_interface, resolver=resolver, settings=settings)
        records = orchestrator.process_data(
            self.entity_name,
            custom_config=self.custom_config,
            filter_valid_fields=self.filter_valid_fields,
        )
        if not records:
            logger.warning("No data to seed entity=%s", self.entity_name)
            return 0

        inserted = orchestrator.insert_data(
            self.entity_name,
            records,
            custom_config=self.custom_config,
        )
        logger.info("Seed completed entity=%s inserted=%d", self.entity_name, inserted)
        return inserted

    def down(
        self,
        query_interface: QueryInterface,
        *,
        resolver: EntityConfigResolver | None = None,
        settings: SeederSettings | None = None,
    ) -> int:
        """
        Remove the seeded rows. Returns the row count reported by the database.
        """

        logger.info("Rolling back seed entity=%s", self.entity_name)
        orchestrator = SeedingOrchestrator(query_interface, resolver=resolver, settings=settings)
        removed = orchestrator.remove_data(self.entity_name, custom_config=self.custom_config)
        logger.info("Rollback completed entity=%s removed=%s", self.entity_name, removed)
        return removed


def load_seed(module_path: str) -> JsonSeed:
    """
    Import ``module_path`` and return its ``seed`` attribute.

    Raises:
        InvalidConfigError: the module has no JsonSeed named ``seed``.
    """

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise InvalidConfigError(f"Unable to import seed module '{module_path}': {exc}") from exc

    seed = getattr(module, "seed", None)
    if not isinstance(seed, JsonSeed):
        raise InvalidConfigError(f"Seed module '{module_path}' must define 'seed = JsonSeed(...)'.")
    return seed
