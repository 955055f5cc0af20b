"""
tests/test_config_resolver.py

Pytest unit tests for EntityConfigResolver and the schema introspectors.

Coverage
--------
- Table name resolution order (override, alias, __tablename__, pluralized
  class name, entity name)
- Data file path convention and override
- Valid / required field discovery from model source text
- Model file candidate lookup (alias, singular, camel-cased)
- Discovery errors degrade to "no information"
- Override validation happens before any discovery
- Config caching keyed by (entity, overrides)
- Metadata-backed introspection from the declarative registry
"""

from __future__ import annotations

from pathlib import Path

import pytest

from db.base import Base
from db.models.person import Person  # noqa: F401  (registers the mapper)
from seeder.config import SeederSettings
from seeder.config_resolver import ConfigCache, EntityConfigResolver, build_introspector
from seeder.errors import InvalidConfigError
from seeder.introspection import (
    MetadataSchemaIntrospector,
    TextualModelIntrospector,
    camel_case,
    pluralize,
    singularize,
)

PRODUCT_MODEL = '''
from sqlalchemy import JSON, Column, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "catalog_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
    )
    sku: Mapped[str] = mapped_column(String(32), nullable=False)
    price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    tags = Column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
'''

CATEGORY_MODEL = '''
class Category(Base):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(80))
'''


class CountingIntrospector:
    """Introspector double that counts discovery calls."""

    def __init__(self) -> None:
        self.calls = 0

    def discover_table_name(self, entity_type: str) -> str | None:
        self.calls += 1
        return None

    def discover_valid_fields(self, entity_type: str) -> list[str]:
        self.calls += 1
        return ["name"]

    def discover_required_fields(self, entity_type: str) -> list[str]:
        self.calls += 1
        return []


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


class TestNamingHelpers:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [("Category", "Categories"), ("Address", "Addresses"), ("Product", "Products")],
    )
    def test_pluralize(self, word: str, expected: str) -> None:
        assert pluralize(word) == expected

    @pytest.mark.parametrize(
        ("word", "expected"),
        [("Categories", "Category"), ("Users", "User"), ("Staff", "Staff")],
    )
    def test_singularize(self, word: str, expected: str) -> None:
        assert singularize(word) == expected

    def test_camel_case_joins_hyphenated_words(self) -> None:
        assert camel_case("order-items") == "orderItems"


# ---------------------------------------------------------------------------
# Table name
# ---------------------------------------------------------------------------


class TestTableName:
    def test_override_wins(self, resolver: EntityConfigResolver, write_model) -> None:
        write_model("product", PRODUCT_MODEL)
        config = resolver.resolve("Products", {"table_name": "legacy_products"})
        assert config.table_name == "legacy_products"

    def test_alias_table(self, resolver: EntityConfigResolver) -> None:
        assert resolver.resolve("Users").table_name == "People"

    def test_declared_tablename(self, resolver: EntityConfigResolver, write_model) -> None:
        write_model("product", PRODUCT_MODEL)
        assert resolver.resolve("Products").table_name == "catalog_products"

    def test_pluralized_class_name(self, resolver: EntityConfigResolver, write_model) -> None:
        write_model("category", CATEGORY_MODEL)
        assert resolver.resolve("Categories").table_name == "Categories"

    def test_falls_back_to_entity_name(self, resolver: EntityConfigResolver) -> None:
        assert resolver.resolve("Widgets").table_name == "Widgets"


# ---------------------------------------------------------------------------
# Other discovered fields
# ---------------------------------------------------------------------------


class TestDiscovery:
    def test_default_data_file_uses_lowercased_entity(
        self, resolver: EntityConfigResolver, settings: SeederSettings
    ) -> None:
        config = resolver.resolve("Products")
        assert config.data_file == settings.data_path / "products.json"

    def test_data_file_override(self, resolver: EntityConfigResolver, tmp_path: Path) -> None:
        target = tmp_path / "fixtures" / "people.json"
        config = resolver.resolve("Users", {"data_file": str(target)})
        assert config.data_file == target.resolve()

    def test_default_batch_size(self, resolver: EntityConfigResolver) -> None:
        assert resolver.resolve("Widgets").batch_size == 1000

    def test_valid_fields_skip_synthetic_columns(
        self, resolver: EntityConfigResolver, write_model
    ) -> None:
        write_model("product", PRODUCT_MODEL)
        assert resolver.resolve("Products").valid_fields == ("name", "sku", "price", "tags")

    def test_required_fields_follow_nullable_markers(
        self, resolver: EntityConfigResolver, write_model
    ) -> None:
        write_model("product", PRODUCT_MODEL)
        assert resolver.resolve("Products").required_fields == ("name", "sku")

    def test_configured_timestamp_fields_are_excluded(
        self, settings: SeederSettings, write_model
    ) -> None:
        write_model(
            "event",
            "class Event(Base):\n"
            "    title: Mapped[str] = mapped_column(String(80), nullable=False)\n"
            "    insertedAt: Mapped[datetime] = mapped_column(DateTime, nullable=False)\n"
            "    modifiedAt: Mapped[datetime] = mapped_column(DateTime, nullable=False)\n",
        )
        custom = SeederSettings(
            data_path=settings.data_path,
            models_path=settings.models_path,
            created_at_field="insertedAt",
            updated_at_field="modifiedAt",
        )
        config = EntityConfigResolver(settings=custom).resolve("Events")

        assert config.valid_fields == ("title",)
        assert config.required_fields == ("title",)

    def test_no_model_means_no_filtering(self, resolver: EntityConfigResolver) -> None:
        config = resolver.resolve("Widgets")
        assert config.valid_fields == ()
        assert config.required_fields == ()

    def test_unique_fields_alias_and_default(self, resolver: EntityConfigResolver) -> None:
        assert resolver.resolve("Users").unique_fields == ("userName", "email")
        assert resolver.resolve("Widgets").unique_fields == ("name",)

    def test_unreadable_model_is_ignored(
        self, resolver: EntityConfigResolver, settings: SeederSettings
    ) -> None:
        # A directory with the candidate name exists but cannot be read as text.
        (settings.models_path / "gadget.py").mkdir()
        config = resolver.resolve("Gadgets")
        assert config.table_name == "Gadgets"
        assert config.valid_fields == ()


class TestModelLookup:
    def test_alias_candidate_is_tried_first(self, settings: SeederSettings, write_model) -> None:
        write_model("users", CATEGORY_MODEL)
        person = write_model("person", PRODUCT_MODEL)
        introspector = TextualModelIntrospector(settings.models_path)
        assert introspector.find_model_file("Users") == person

    def test_camel_cased_candidate(self, settings: SeederSettings, write_model) -> None:
        model = write_model("orderItem", CATEGORY_MODEL)
        introspector = TextualModelIntrospector(settings.models_path)
        assert introspector.find_model_file("order-items") == model

    def test_missing_model_returns_none(self, settings: SeederSettings) -> None:
        introspector = TextualModelIntrospector(settings.models_path)
        assert introspector.find_model_file("Nothing") is None


# ---------------------------------------------------------------------------
# Overrides and caching
# ---------------------------------------------------------------------------


class TestOverridesAndCache:
    @pytest.mark.parametrize("batch_size", [0, -5, 2.5, "100", True])
    def test_invalid_batch_size_rejected_before_discovery(
        self, settings: SeederSettings, batch_size: object
    ) -> None:
        introspector = CountingIntrospector()
        resolver = EntityConfigResolver(settings=settings, introspector=introspector)
        with pytest.raises(InvalidConfigError):
            resolver.resolve("Widgets", {"batch_size": batch_size})
        assert introspector.calls == 0

    def test_unknown_override_key_rejected(self, resolver: EntityConfigResolver) -> None:
        with pytest.raises(InvalidConfigError, match="tableName"):
            resolver.resolve("Widgets", {"tableName": "x"})

    def test_field_list_must_be_a_list(self, resolver: EntityConfigResolver) -> None:
        with pytest.raises(InvalidConfigError):
            resolver.resolve("Widgets", {"unique_fields": "email"})

    def test_overrides_replace_discovered_lists(self, resolver: EntityConfigResolver) -> None:
        config = resolver.resolve(
            "Users",
            {"unique_fields": ["email"], "valid_fields": ["email", "userName"], "batch_size": 10},
        )
        assert config.unique_fields == ("email",)
        assert config.valid_fields == ("email", "userName")
        assert config.batch_size == 10

    def test_identical_requests_hit_the_cache(self, settings: SeederSettings) -> None:
        introspector = CountingIntrospector()
        resolver = EntityConfigResolver(settings=settings, introspector=introspector)

        first = resolver.resolve("Widgets", {"batch_size": 50})
        calls_after_first = introspector.calls
        second = resolver.resolve("Widgets", {"batch_size": 50})

        assert first == second
        assert introspector.calls == calls_after_first
        assert len(resolver.cache) == 1

    def test_different_overrides_are_cached_separately(self, settings: SeederSettings) -> None:
        introspector = CountingIntrospector()
        resolver = EntityConfigResolver(settings=settings, introspector=introspector)

        resolver.resolve("Widgets", {"batch_size": 50})
        resolver.resolve("Widgets", {"batch_size": 60})
        assert len(resolver.cache) == 2

    def test_clear_cache_forces_rediscovery(self, settings: SeederSettings) -> None:
        introspector = CountingIntrospector()
        resolver = EntityConfigResolver(settings=settings, introspector=introspector)

        resolver.resolve("Widgets")
        resolver.clear_cache()
        calls_before = introspector.calls
        resolver.resolve("Widgets")
        assert introspector.calls > calls_before

    def test_resolvers_do_not_share_cache(self, settings: SeederSettings) -> None:
        first = EntityConfigResolver(settings=settings)
        second = EntityConfigResolver(settings=settings)
        first.resolve("Widgets")
        assert len(second.cache) == 0

    def test_cache_key_ignores_override_order(self) -> None:
        assert ConfigCache.make_key("Users", {"a": 1, "b": 2}) == ConfigCache.make_key(
            "Users", {"b": 2, "a": 1}
        )


# ---------------------------------------------------------------------------
# Metadata introspection
# ---------------------------------------------------------------------------


class TestMetadataIntrospector:
    def test_users_resolve_through_person_model(self, settings: SeederSettings) -> None:
        resolver = EntityConfigResolver(
            settings=settings,
            introspector=MetadataSchemaIntrospector(Base),
            table_aliases={},
        )
        config = resolver.resolve("Users")

        assert config.table_name == "People"
        assert config.valid_fields == (
            "userName",
            "email",
            "firstName",
            "lastName",
            "isActive",
            "profile",
        )
        assert config.required_fields == ("userName", "email")

    def test_unknown_entity_has_no_information(self) -> None:
        introspector = MetadataSchemaIntrospector(Base)
        assert introspector.discover_table_name("Invoices") is None
        assert introspector.discover_valid_fields("Invoices") == []

    def test_settings_select_the_introspector(self, settings: SeederSettings) -> None:
        metadata_settings = SeederSettings(
            data_path=settings.data_path,
            models_path=settings.models_path,
            introspection="metadata",
        )
        assert isinstance(build_introspector(metadata_settings), MetadataSchemaIntrospector)
        assert isinstance(build_introspector(settings), TextualModelIntrospector)
