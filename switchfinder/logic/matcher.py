"""Exact matcher: AND of every facet predicate over the catalog."""

from typing import Iterable

from .catalog import Product
from .predicates import PREDICATES
from .selection import FacetSelection, ALL_FACETS


def product_matches(product: Product, selection: FacetSelection) -> bool:
    return all(PREDICATES[facet](product, selection.value(facet)) for facet in ALL_FACETS)


def match(products: Iterable[Product], selection: FacetSelection) -> list[Product]:
    """Products satisfying every active facet, in catalog order."""
    return [p for p in products if product_matches(p, selection)]
