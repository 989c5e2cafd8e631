"""Finder configuration: YAML loading, derived tables, overrides, fallbacks."""

from unittest.mock import patch

import pytest

from switchfinder import config_loader
from switchfinder.config_loader import (
    get_config,
    get_config_summary,
    get_loaded_config,
    load_finder_config,
    reload_config,
    reset_config,
)
from switchfinder.logic import tables


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


class TestLoadBundledConfig:
    def test_meta(self):
        config = load_finder_config()
        assert config.meta.id == "switchfinder"
        assert config.config_path.endswith("finder.yaml")

    def test_environment_table(self):
        config = load_finder_config()
        assert config.environment_ip_ratings == {
            "damp": frozenset({"IP56", "IP68"}),
            "wet": frozenset({"IP68"}),
        }
        assert config.unconstrained_environments == frozenset({"dry", "any"})

    def test_relaxed_messages_cover_ladder(self):
        config = load_finder_config()
        for tag in tables.RELAXATION_ORDER + (tables.RELAXED_ALL,):
            assert tag in config.relaxed_messages

    def test_browse_settings(self):
        config = load_finder_config()
        assert config.default_sort_mode == "relevance"
        assert "prong" in config.corded_keywords

    def test_resolve_relative_path(self):
        config = load_finder_config()
        seed = config.resolve_path(config.catalog.seed_path)
        assert seed.name == "seed_catalog.json"
        assert seed.exists()


class TestOverrides:
    def test_custom_file(self, tmp_path):
        path = tmp_path / "finder.yaml"
        path.write_text(
            "environments:\n"
            "  - name: wet\n"
            "    accepted_ip: [ip69k]\n"
            "browse:\n"
            "  default_sort_mode: ip\n",
            encoding="utf-8",
        )
        config = load_finder_config(str(path))
        assert config.environment_ip_ratings == {"wet": frozenset({"IP69K"})}
        assert config.default_sort_mode == "ip"
        assert config.relaxed_messages == {}

    def test_finder_config_env(self, tmp_path):
        path = tmp_path / "other.yaml"
        path.write_text("finder:\n  name: Other Finder\n", encoding="utf-8")
        with patch.dict("os.environ", {"FINDER_CONFIG": str(path)}):
            assert load_finder_config().meta.name == "Other Finder"

    def test_db_path_env(self, tmp_path):
        with patch.dict("os.environ", {"CATALOG_DB_PATH": str(tmp_path / "db.json")}):
            config = load_finder_config()
        assert config.catalog.db_path == str(tmp_path / "db.json")

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        config = load_finder_config(str(path))
        assert config.meta.name == "Foot Switch Finder"
        assert config.environments == []


class TestSingleton:
    def test_lazy_load(self):
        assert get_loaded_config() is None
        config = get_config()
        assert get_loaded_config() is config
        assert get_config() is config

    def test_reload_replaces(self):
        first = get_config()
        assert reload_config() is not first

    def test_summary(self):
        summary = get_config_summary()
        assert summary["finder"]["id"] == "switchfinder"
        assert "wet" in [e["name"] for e in summary["environments"]]
        assert config_loader.get_loaded_config() is not None


class TestTableFallbacks:
    def test_builtin_tables_without_config(self):
        assert get_loaded_config() is None
        assert tables.get_environment_ip_ratings() == tables.ENVIRONMENT_IP_RATINGS
        assert tables.get_default_sort_mode() == tables.DEFAULT_SORT_MODE
        assert tables.get_relaxed_message("duty") == tables.RELAXED_MESSAGES["duty"]

    def test_config_tables_when_loaded(self, tmp_path):
        path = tmp_path / "finder.yaml"
        path.write_text(
            "environments:\n"
            "  - name: wet\n"
            "    accepted_ip: [IP69K]\n"
            "relaxed_messages:\n"
            "  duty: Try another duty class.\n",
            encoding="utf-8",
        )
        reload_config(str(path))
        assert tables.get_environment_ip_ratings() == {"wet": frozenset({"IP69K"})}
        assert tables.get_relaxed_message("duty") == "Try another duty class."
        # Tags missing from the file keep the built-in text
        assert tables.get_relaxed_message("material") == tables.RELAXED_MESSAGES["material"]
