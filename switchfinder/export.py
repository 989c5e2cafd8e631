"""Recommendation sheet export (XLSX).

One workbook with a "Requirements" block (the user's answers, by option label)
followed by the recommended products table.
"""

import io
import logging
from datetime import date
from typing import Optional

import openpyxl
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from switchfinder.config_loader import get_config
from switchfinder.logic.availability import FACET_CATEGORIES
from switchfinder.logic.catalog import Catalog, Product
from switchfinder.logic.selection import FacetSelection, SINGLE_FACETS, FEATURES

logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True, size=11)
TITLE_FONT = Font(bold=True, size=14)
GREEN_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
ORANGE_FILL = PatternFill(start_color="FFDAB9", end_color="FFDAB9", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"), right=Side(style="thin"),
    top=Side(style="thin"), bottom=Side(style="thin"),
)

REQUIREMENT_LABELS = {
    "application": "Application",
    "technology": "Technology",
    "action": "Action Type",
    "environment": "Environment",
    "duty": "Duty Class",
    "material": "Material",
    "connection": "Connection",
    "guard": "Safety Guard",
    FEATURES: "Additional Features",
}

PRODUCT_HEADERS = ["#", "Series", "Part Number", "Description", "Technology", "Duty", "IP Rating",
                   "Material", "Connection", "Features", "Link"]


def _label(catalog: Catalog, facet: str, value: str) -> str:
    category = FACET_CATEGORIES.get(facet)
    if category:
        option = catalog.get_option(category, value)
        if option and option.label:
            return option.label
    if facet == "guard":
        return "Required" if value == "yes" else "Not needed"
    return value


def requirement_rows(catalog: Catalog, selection: FacetSelection) -> list[tuple[str, str]]:
    """(label, answer) for every answered question, in wizard order."""
    rows = []
    for facet in SINGLE_FACETS:
        value = selection.value(facet)
        if value:
            rows.append((REQUIREMENT_LABELS[facet], _label(catalog, facet, value)))
    if selection.features:
        labels = [_label(catalog, FEATURES, f) for f in selection.features]
        rows.append((REQUIREMENT_LABELS[FEATURES], ", ".join(labels)))
    return rows


def _product_row(idx: int, product: Product) -> list:
    return [
        idx,
        product.display_name,
        product.part_number,
        product.description,
        product.technology,
        product.duty,
        product.ip,
        product.material,
        (product.connector_type or "").replace("-", " "),
        ", ".join(product.features),
        product.link,
    ]


def generate_recommendation_excel(
    catalog: Catalog,
    selection: FacetSelection,
    products: list[Product],
    relaxed_message: str = "",
    best_match: Optional[Product] = None,
) -> bytes:
    """Build the recommendation workbook and return it as bytes."""
    settings = get_config().export
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = settings.sheet_title[:31]  # Excel sheet name limit

    ws.cell(row=1, column=1, value=settings.company_line or "Foot Switch Recommendation").font = TITLE_FONT
    ws.cell(row=2, column=1, value=f"Generated: {date.today().isoformat()}")

    row = 4
    ws.cell(row=row, column=1, value="Your Requirements").font = HEADER_FONT
    row += 1
    for label, answer in requirement_rows(catalog, selection):
        ws.cell(row=row, column=1, value=label).border = THIN_BORDER
        ws.cell(row=row, column=2, value=answer).border = THIN_BORDER
        row += 1

    row += 1
    if relaxed_message:
        cell = ws.cell(row=row, column=1, value=relaxed_message)
        cell.fill = ORANGE_FILL
        row += 2

    ws.cell(row=row, column=1, value=f"Recommended Products ({len(products)})").font = HEADER_FONT
    row += 1
    header_row = row
    for col, h in enumerate(PRODUCT_HEADERS, 1):
        cell = ws.cell(row=row, column=col, value=h)
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.fill = GREEN_FILL

    for idx, product in enumerate(products, 1):
        row += 1
        for col, val in enumerate(_product_row(idx, product), 1):
            cell = ws.cell(row=row, column=col, value=val)
            cell.border = THIN_BORDER
            if best_match is not None and product.id == best_match.id:
                cell.font = HEADER_FONT

    if settings.contact_line:
        ws.cell(row=row + 2, column=1, value=settings.contact_line)

    # Auto-width
    for col in range(1, len(PRODUCT_HEADERS) + 1):
        max_len = max(
            (len(str(ws.cell(row=r, column=col).value or "")) for r in range(header_row, row + 1)),
            default=10,
        )
        ws.column_dimensions[get_column_letter(col)].width = min(max(max_len + 2, 10), 40)
    ws.column_dimensions["A"].width = max(ws.column_dimensions["A"].width or 0, 22)

    output = io.BytesIO()
    wb.save(output)
    logger.info(f"[EXPORT] Recommendation sheet with {len(products)} products")
    return output.getvalue()
