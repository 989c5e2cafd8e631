"""Catalog store: products and wizard options in a JSON key/value file.

Keys: ``products``, ``options``, ``db_version``. The store seeds itself from the
bundled seed catalog on first run only; once data exists it is never overwritten,
even when the seed version changes.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from switchfinder.config_loader import get_config
from switchfinder.logic.catalog import Catalog, Product, LIST_FIELDS

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for catalog store failures."""


class ProductNotFound(CatalogError):
    def __init__(self, product_id: str):
        super().__init__(f"Product '{product_id}' not found")
        self.product_id = product_id


class OptionNotFound(CatalogError):
    def __init__(self, option_id: str):
        super().__init__(f"Option '{option_id}' not found")
        self.option_id = option_id


# Product fields an admin may set in bulk
BULK_UPDATE_FIELDS = {
    "technology", "duty", "ip", "material", "connector_type", "flagship",
    "actions", "applications", "features", "recommended_for",
    "voltage", "amperage", "certifications", "circuitry", "description",
}


class CatalogStore:
    def __init__(self, db_path: Optional[str] = None, seed_path: Optional[str] = None,
                 seed_version: Optional[str] = None):
        self._db_path = db_path
        self._seed_path = seed_path
        self._seed_version = seed_version
        self._lock = threading.RLock()
        self._snapshot: Optional[Catalog] = None

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        if self._db_path:
            return Path(self._db_path)
        config = get_config()
        return config.resolve_path(config.catalog.db_path)

    @property
    def seed_path(self) -> Path:
        if self._seed_path:
            return Path(self._seed_path)
        config = get_config()
        return config.resolve_path(config.catalog.seed_path)

    @property
    def seed_version(self) -> str:
        if self._seed_version:
            return self._seed_version
        return get_config().catalog.seed_version

    def _read(self) -> dict:
        path = self.path
        if not path.exists():
            return {}
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f) or {}

    def _write(self, data: dict) -> None:
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".catalog-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        self._snapshot = None

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def initialize(self) -> bool:
        """Seed products and options on first run. Returns True if anything was seeded."""
        with self._lock:
            data = self._read()
            if data.get("db_version") == self.seed_version:
                logger.info(f"[CATALOG] Store already initialized (version {self.seed_version})")
                return False

            with open(self.seed_path, 'r', encoding='utf-8') as f:
                seed = json.load(f)

            seeded = False
            if data.get("products") is None:
                data["products"] = seed.get("products", [])
                logger.info(f"[CATALOG] Seeded {len(data['products'])} products")
                seeded = True
            else:
                logger.info(f"[CATALOG] Found {len(data['products'])} existing products, preserving")

            if data.get("options") is None:
                data["options"] = seed.get("options", [])
                logger.info(f"[CATALOG] Seeded {len(data['options'])} options")
                seeded = True
            else:
                logger.info(f"[CATALOG] Found {len(data['options'])} existing options, preserving")

            data["db_version"] = self.seed_version
            self._write(data)
            return seeded

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(self) -> list[dict]:
        return self.get("products", []) or []

    def get_product(self, product_id: str) -> dict:
        for product in self.list_products():
            if product.get("id") == product_id:
                return product
        raise ProductNotFound(product_id)

    def upsert_product(self, product: dict) -> dict:
        """Merge one product into the store by id."""
        product_id = str(product.get("id") or "").strip()
        if not product_id:
            raise CatalogError("Product id is required")
        with self._lock:
            products = self.list_products()
            for i, existing in enumerate(products):
                if existing.get("id") == product_id:
                    products[i] = {**existing, **product}
                    merged = products[i]
                    break
            else:
                merged = dict(product)
                products.append(merged)
            self.set("products", products)
        logger.info(f"[CATALOG] Saved product '{product_id}'")
        return merged

    def upsert_products(self, products: list[dict]) -> int:
        """Bulk merge by id; rows without an id are skipped. Returns the new total."""
        with self._lock:
            current = self.list_products()
            by_id = {p.get("id"): p for p in current}
            skipped = 0
            for product in products:
                product_id = product.get("id")
                if not product_id:
                    skipped += 1
                    continue
                by_id[product_id] = {**by_id.get(product_id, {}), **product}
            merged = list(by_id.values())
            self.set("products", merged)
        logger.info(f"[CATALOG] Bulk saved {len(products) - skipped} products "
                    f"({skipped} skipped without id), total {len(merged)}")
        return len(merged)

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            products = self.list_products()
            remaining = [p for p in products if p.get("id") != product_id]
            if len(remaining) == len(products):
                raise ProductNotFound(product_id)
            self.set("products", remaining)
        logger.info(f"[CATALOG] Deleted product '{product_id}'")

    def delete_all_products(self) -> None:
        self.set("products", [])
        logger.warning("[CATALOG] Deleted all products")

    def bulk_update(self, product_ids: list[str], field_name: str, value: Any) -> int:
        """Set one attribute on many products. Returns the number updated."""
        if field_name not in BULK_UPDATE_FIELDS:
            raise CatalogError(f"Field '{field_name}' cannot be bulk updated")
        if field_name in LIST_FIELDS and isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        wanted = set(product_ids)
        updated = 0
        with self._lock:
            products = self.list_products()
            for product in products:
                if product.get("id") in wanted:
                    product[field_name] = value
                    updated += 1
            self.set("products", products)
        logger.info(f"[CATALOG] Bulk update {field_name}={value!r} on {updated} products")
        return updated

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def list_options(self, category: Optional[str] = None) -> list[dict]:
        options = self.get("options", []) or []
        if category is None:
            return options
        return [o for o in options if o.get("category") == category]

    def upsert_option(self, option: dict) -> dict:
        option_id = str(option.get("id") or "").strip()
        if not option_id:
            raise CatalogError("Option id is required")
        with self._lock:
            options = self.list_options()
            for i, existing in enumerate(options):
                if existing.get("id") == option_id:
                    options[i] = {**existing, **option}
                    merged = options[i]
                    break
            else:
                merged = dict(option)
                options.append(merged)
            self.set("options", options)
        return merged

    def delete_option(self, option_id: str) -> None:
        with self._lock:
            options = self.list_options()
            remaining = [o for o in options if o.get("id") != option_id]
            if len(remaining) == len(options):
                raise OptionNotFound(option_id)
            self.set("options", remaining)
        logger.info(f"[CATALOG] Deleted option '{option_id}'")

    # ------------------------------------------------------------------
    # Snapshot for the matching core
    # ------------------------------------------------------------------

    def snapshot(self) -> Catalog:
        """Normalized, read-only catalog; rebuilt after every write."""
        with self._lock:
            if self._snapshot is None:
                data = self._read()
                self._snapshot = Catalog.from_records(data.get("products") or [], data.get("options") or [])
                logger.debug(f"[CATALOG] Snapshot rebuilt: {len(self._snapshot.products)} products")
            return self._snapshot

    def products(self) -> list[Product]:
        return list(self.snapshot().products)


db = CatalogStore()
