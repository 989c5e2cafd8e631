"""Catalog store contract: seed-once, merge semantics, not-found errors."""

import json

import pytest

from switchfinder.database import CatalogError, CatalogStore, OptionNotFound, ProductNotFound


# =============================================================================
# SEEDING
# =============================================================================

class TestInitialize:
    def test_first_run_seeds(self, empty_store):
        assert empty_store.initialize() is True
        assert len(empty_store.list_products()) == 10
        assert len(empty_store.list_options()) > 0
        assert empty_store.get("db_version") == "test-1"

    def test_second_run_is_noop(self, store):
        assert store.initialize() is False

    def test_existing_data_never_overwritten(self, tmp_path, store):
        store.delete_all_products()
        upgraded = CatalogStore(db_path=str(store.path), seed_path=str(store.seed_path), seed_version="test-2")
        upgraded.initialize()
        assert upgraded.list_products() == []
        assert upgraded.get("db_version") == "test-2"

    def test_missing_file_reads_empty(self, empty_store):
        assert empty_store.list_products() == []
        assert empty_store.snapshot().products == ()

    def test_file_is_json(self, store):
        with open(store.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        assert set(data) == {"products", "options", "db_version"}


# =============================================================================
# PRODUCTS
# =============================================================================

class TestProducts:
    def test_get_product(self, store):
        assert store.get_product("hercules")["series"] == "Hercules"

    def test_get_missing_product(self, store):
        with pytest.raises(ProductNotFound):
            store.get_product("nope")

    def test_upsert_merges(self, store):
        merged = store.upsert_product({"id": "hercules", "ip": "IP68"})
        assert merged["ip"] == "IP68"
        assert merged["series"] == "Hercules"
        assert len(store.list_products()) == 10

    def test_upsert_creates(self, store):
        store.upsert_product({"id": "new-one", "series": "New"})
        assert store.get_product("new-one")["series"] == "New"
        assert len(store.list_products()) == 11

    def test_upsert_requires_id(self, store):
        with pytest.raises(CatalogError):
            store.upsert_product({"series": "Nameless"})

    def test_bulk_upsert_skips_rows_without_id(self, store):
        total = store.upsert_products([{"id": "x1"}, {"series": "no id"}, {"id": "atlas", "flagship": True}])
        assert total == 11
        assert store.get_product("atlas")["flagship"] is True

    def test_delete_product(self, store):
        store.delete_product("atlas")
        with pytest.raises(ProductNotFound):
            store.get_product("atlas")

    def test_delete_missing_product(self, store):
        with pytest.raises(ProductNotFound):
            store.delete_product("nope")

    def test_bulk_update(self, store):
        updated = store.bulk_update(["atlas", "dolphin", "nope"], "duty", "medium")
        assert updated == 2
        assert store.get_product("dolphin")["duty"] == "medium"

    def test_bulk_update_list_field_from_string(self, store):
        store.bulk_update(["atlas"], "features", "shield, twin")
        assert store.get_product("atlas")["features"] == ["shield", "twin"]

    def test_bulk_update_rejects_unknown_field(self, store):
        with pytest.raises(CatalogError):
            store.bulk_update(["atlas"], "id", "renamed")


# =============================================================================
# OPTIONS & SNAPSHOT
# =============================================================================

class TestOptions:
    def test_by_category(self, store):
        ids = [o["id"] for o in store.list_options("environment")]
        assert ids == ["dry", "damp", "wet"]

    def test_upsert_option(self, store):
        store.upsert_option({"id": "wet", "category": "environment", "label": "Washdown"})
        wet = [o for o in store.list_options("environment") if o["id"] == "wet"][0]
        assert wet["label"] == "Washdown"
        assert wet["sort_order"] == 3

    def test_delete_option(self, store):
        store.delete_option("wet")
        assert [o["id"] for o in store.list_options("environment")] == ["dry", "damp"]

    def test_delete_missing_option(self, store):
        with pytest.raises(OptionNotFound):
            store.delete_option("nope")


class TestWriteFailure:
    def test_failed_write_leaves_no_temp_file(self, store, tmp_path):
        with pytest.raises(TypeError):
            store.set("products", {object()})
        assert list(tmp_path.glob(".catalog-*")) == []
        assert len(store.list_products()) == 10


class TestSnapshot:
    def test_snapshot_normalizes(self, store):
        catalog = store.snapshot()
        assert catalog.get_product("hercules").connector_type == "3-prong"

    def test_snapshot_rebuilt_after_write(self, store):
        first = store.snapshot()
        store.upsert_product({"id": "hercules", "duty": "light"})
        second = store.snapshot()
        assert first is not second
        assert second.get_product("hercules").duty == "light"

    def test_snapshot_cached_between_reads(self, store):
        assert store.snapshot() is store.snapshot()
