"""Shared fixtures for the foot switch finder test suite.

Loads the REAL seed catalog (data/seed_catalog.json) for end-to-end style
assertions, plus a two-product catalog that pins the documented matching scenarios.
"""

import json
from pathlib import Path

import pytest

from switchfinder.config_loader import get_config, reset_config
from switchfinder.database import CatalogStore
from switchfinder.logic.catalog import Catalog, Product

PACKAGE_DIR = Path(__file__).resolve().parent.parent
SEED_PATH = PACKAGE_DIR / "data" / "seed_catalog.json"


def make_product(product_id: str, **fields) -> Product:
    """Product with sensible defaults; override only what the test cares about."""
    data = {
        "id": product_id,
        "technology": "electrical",
        "duty": "medium",
        "ip": "IP20",
        "actions": ["momentary"],
        "applications": ["industrial"],
        "material": "Steel",
        "features": [],
    }
    data.update(fields)
    return Product.from_dict(data)


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def config():
    """Load real FinderConfig from the bundled finder.yaml (not mocked)."""
    return get_config()


@pytest.fixture
def no_config():
    """Run with built-in tables only; restores nothing (config reloads lazily)."""
    reset_config()
    yield
    reset_config()


# =============================================================================
# CATALOG FIXTURES
# =============================================================================

@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def product_a():
    """Heavy, sealed, shielded steel switch."""
    return make_product("a", duty="heavy", ip="IP68", material="Steel", features=["shield"])


@pytest.fixture
def product_b():
    """Light, open polymer switch."""
    return make_product("b", duty="light", ip="IP20", material="Polymer", features=[])


@pytest.fixture
def scenario_products(product_a, product_b):
    return [product_a, product_b]


@pytest.fixture
def scenario_catalog(scenario_products):
    return Catalog(products=tuple(scenario_products))


@pytest.fixture
def seed_data():
    with open(SEED_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def seed_catalog(seed_data):
    """Full seed catalog (10 products, wizard options)."""
    return Catalog.from_records(seed_data["products"], seed_data["options"])


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def store(tmp_path):
    """Seeded catalog store backed by a temp file."""
    catalog_store = CatalogStore(
        db_path=str(tmp_path / "catalog_db.json"),
        seed_path=str(SEED_PATH),
        seed_version="test-1",
    )
    catalog_store.initialize()
    return catalog_store


@pytest.fixture
def empty_store(tmp_path):
    """Unseeded store; nothing on disk yet."""
    return CatalogStore(
        db_path=str(tmp_path / "empty_db.json"),
        seed_path=str(SEED_PATH),
        seed_version="test-1",
    )
