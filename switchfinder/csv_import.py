"""CSV bulk import and export of the product catalog.

Import rules:
1. Headers are matched loosely: lowercased, non-alphanumerics stripped, exact
   matches first, then a header containing the key
2. Comma, semicolon or tab delimited; quoted fields may contain the delimiter
3. The id comes from the part number when present, else from the id column
4. Rows merge into existing products (matched by id or part number); empty cells
   keep the existing value
5. ``guard`` / ``shield`` = yes adds the ``shield`` feature
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from switchfinder.database import CatalogError
from switchfinder.logic.catalog import as_bool, SHIELD_FEATURE

logger = logging.getLogger(__name__)


class CSVImportError(CatalogError):
    """The uploaded file could not be read as a product sheet."""


TEMPLATE_COLUMNS = [
    "id", "series", "technology", "duty", "ip", "actions", "material", "description",
    "applications", "features", "recommended_for", "connector_type", "certifications",
    "voltage", "amperage", "circuitry", "flagship", "image", "link", "Part",
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_IMAGE_URL = re.compile(r"\.(png|jpg|jpeg|webp|gif)($|\?)", re.IGNORECASE)

# product field -> header keys, in priority order
SCALAR_COLUMNS = {
    "series": ("series",),
    "technology": ("technology", "tech"),
    "duty": ("duty",),
    "ip": ("ip", "rating"),
    "material": ("material",),
    "description": ("description", "desc"),
    "connector_type": ("connectortype", "connector", "connection", "cord", "termination"),
    "certifications": ("certifications", "certs", "approval"),
    "voltage": ("voltage", "volts", "vac"),
    "amperage": ("amperage", "amps"),
    "link": ("link", "url", "website", "productpage"),
    "circuitry": ("circuitry", "circuits", "circuitscontrolled"),
    "color": ("color", "colour"),
    "stages": ("stages", "stage"),
}
LIST_COLUMNS = {
    "actions": ("actions", "action"),
    "applications": ("applications", "application", "apps"),
    "recommended_for": ("recommendedfor", "recommended"),
}
# Yes/no columns that add a feature tag
FLAG_FEATURES = {
    "guard": SHIELD_FEATURE,
    "shield": SHIELD_FEATURE,
    "gated": "gated",
    "interlock": "interlock",
}


def clean_header(header: str) -> str:
    return _NON_ALNUM.sub("", (header or "").lower())


def slugify_id(value: str) -> str:
    return _NON_ALNUM.sub("-", value.strip().lower())


def sniff_delimiter(first_line: str) -> str:
    if "\t" in first_line:
        return "\t"
    if first_line.count(";") > first_line.count(","):
        return ";"
    return ","


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass
class ImportReport:
    """Outcome of one CSV import."""
    products: list[dict] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "count": len(self.products),
        }


class _Row:
    """One data row with loose header lookup."""

    def __init__(self, headers: dict[str, int], values: list[str]):
        self.headers = headers
        self.values = values

    def get(self, *keys: str) -> str:
        has_exact = False
        for key in keys:
            idx = self.headers.get(clean_header(key))
            if idx is None:
                continue
            has_exact = True
            if idx < len(self.values) and self.values[idx].strip():
                return self.values[idx].strip()
        # An exact column with an empty cell keeps the existing value
        if has_exact:
            return ""
        for key in keys:
            cleaned = clean_header(key)
            # Short keys (ip, id) would hit unrelated headers like "description"
            if len(cleaned) < 4:
                continue
            for header, idx in self.headers.items():
                if cleaned in header and idx < len(self.values) and self.values[idx].strip():
                    return self.values[idx].strip()
        return ""


def parse_products(text: str, existing: Iterable[dict] = ()) -> ImportReport:
    """Parse CSV text into product records merged onto ``existing``."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise CSVImportError("CSV file is empty")

    delimiter = sniff_delimiter(lines[0])
    reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)
    raw_headers = [h.strip() for h in next(reader)]
    headers: dict[str, int] = {}
    for idx, header in enumerate(raw_headers):
        headers.setdefault(clean_header(header), idx)
    if not any(k in headers for k in ("id", "part", "partnumber", "sku")):
        raise CSVImportError(f"CSV needs an 'id' or 'Part' column, found: {raw_headers}")

    index: dict[str, dict] = {}
    for product in existing:
        if product.get("id"):
            index[str(product["id"]).lower()] = product
        if product.get("part_number"):
            index[str(product["part_number"]).lower()] = product

    report = ImportReport()
    seen: dict[str, dict] = {}
    for line_no, values in enumerate(reader, start=2):
        if len(values) < 2:
            report.skipped += 1
            continue
        row = _Row(headers, values)
        part_number = row.get("part", "partnumber", "partno")
        raw_id = row.get("id", "sku", "productid")
        product_id = slugify_id(part_number or raw_id)
        if not product_id.strip("-"):
            report.skipped += 1
            report.errors.append(f"Line {line_no}: no id or part number")
            continue

        base = seen.get(product_id) or index.get(product_id) or index.get(part_number.lower() if part_number else "")
        is_update = base is not None
        product = dict(base) if base else {
            "id": product_id, "series": "", "technology": "electrical", "duty": "medium", "ip": "",
            "actions": [], "material": "", "description": "", "applications": [], "features": [],
            "flagship": False, "image": "", "link": "",
        }

        for field_name, keys in SCALAR_COLUMNS.items():
            value = row.get(*keys)
            if value:
                product[field_name] = value.lower() if field_name in ("technology", "duty") else value
        if part_number:
            product["part_number"] = part_number

        image = row.get("image", "img", "photo", "picture", "thumbnail", "imageurl")
        if not image:
            image = next((v.strip() for v in values
                          if v.strip().lower().startswith("http") and _IMAGE_URL.search(v.strip())), "")
        if image:
            product["image"] = image

        flagship = row.get("flagship")
        if flagship:
            product["flagship"] = as_bool(flagship)

        for field_name, keys in LIST_COLUMNS.items():
            value = row.get(*keys)
            if value:
                product[field_name] = _split_list(value)

        feature_value = row.get("features", "feature")
        features = _split_list(feature_value) if feature_value else list(product.get("features") or [])
        for column, feature in FLAG_FEATURES.items():
            idx = headers.get(column)
            if idx is not None and idx < len(values) and values[idx].strip().lower() == "yes":
                features.append(feature)
        product["features"] = list(dict.fromkeys(features))

        if product_id not in seen:
            if is_update:
                report.updated += 1
            else:
                report.created += 1
        seen[product_id] = product

    report.products = list(seen.values())
    logger.info(f"[IMPORT] Parsed {len(report.products)} products "
                f"({report.created} new, {report.updated} updated, {report.skipped} skipped)")
    return report


def import_csv(store, data: bytes, encoding: str = "utf-8-sig") -> ImportReport:
    """Parse an uploaded file and merge it into the catalog store."""
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as e:
        raise CSVImportError(f"CSV must be UTF-8 encoded: {e}") from e
    report = parse_products(text, store.list_products())
    if report.products:
        store.upsert_products(report.products)
    return report


def export_csv(products: Iterable[dict], columns: Optional[list[str]] = None) -> str:
    """Serialize products with the import template columns."""
    columns = columns or TEMPLATE_COLUMNS
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(columns)
    for product in products:
        row = []
        for column in columns:
            value = product.get("part_number", "") if column == "Part" else product.get(column, "")
            if isinstance(value, (list, tuple)):
                value = ",".join(str(v) for v in value)
            elif isinstance(value, bool):
                value = "true" if value else "false"
            elif value is None:
                value = ""
            row.append(value)
        writer.writerow(row)
    return out.getvalue()
