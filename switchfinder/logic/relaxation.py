"""Relaxation engine: recover alternatives when nothing matches exactly.

Facets are dropped one at a time in ``RELAXATION_ORDER``; each step keeps the
facets dropped before it. The first non-empty result wins and is tagged with the
facet whose removal produced it. If the whole ladder comes up empty, the final
fallback is every product for the selected application, tagged ``all``.
Application anchors the search and is never relaxed.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .catalog import Product
from .matcher import match
from .selection import FacetSelection
from .tables import RELAXATION_ORDER, RELAXED_ALL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelaxationResult:
    """Alternative result set and how it was obtained."""
    products: list[Product]
    relaxed: str                                   # facet tag, or "all"
    dropped: tuple[str, ...] = ()                  # facets removed, in order
    selection: Optional[FacetSelection] = field(default=None, compare=False)


@dataclass(frozen=True)
class SearchOutcome:
    """Exact matches, plus alternatives when there were none."""
    exact: list[Product]
    alternatives: Optional[RelaxationResult] = None

    @property
    def has_exact_matches(self) -> bool:
        return bool(self.exact)

    @property
    def products(self) -> list[Product]:
        if self.exact:
            return self.exact
        return self.alternatives.products if self.alternatives else []

    @property
    def relaxed(self) -> Optional[str]:
        return self.alternatives.relaxed if self.alternatives else None


def relax(products: Sequence[Product], selection: FacetSelection) -> RelaxationResult:
    """Walk the relaxation ladder for a selection with no exact matches.

    Unset facets are skipped: dropping them cannot change the result.
    """
    current = selection
    dropped: list[str] = []

    for facet in RELAXATION_ORDER:
        if not selection.is_set(facet):
            continue
        current = current.cleared(facet)
        dropped.append(facet)
        found = match(products, current)
        if found:
            logger.info(f"[RELAX] Relaxed '{facet}' -> {len(found)} alternatives (dropped: {dropped})")
            return RelaxationResult(products=found, relaxed=facet, dropped=tuple(dropped), selection=current)

    anchor = FacetSelection(application=selection.application)
    found = match(products, anchor)
    logger.info(f"[RELAX] Falling back to application '{selection.application}' -> {len(found)} products")
    return RelaxationResult(products=found, relaxed=RELAXED_ALL, dropped=tuple(dropped), selection=anchor)


def find_products(products: Sequence[Product], selection: FacetSelection) -> SearchOutcome:
    """Exact match first; relax only when the exact set is empty."""
    exact = match(products, selection)
    if exact:
        return SearchOutcome(exact=exact)
    return SearchOutcome(exact=[], alternatives=relax(products, selection))
