"""Result ordering for the results page and the product browser.

All sorts are stable and return new lists; equal items keep catalog order.
"""

import logging
import re
from typing import Iterable, Optional

from .catalog import Product
from .predicates import environment_matches, duty_in, cord_matches, search_matches
from .tables import DUTY_RANK, UNKNOWN_DUTY_RANK, SORT_MODES, DEFAULT_SORT_MODE

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def ip_value(ip: str) -> int:
    """Numeric part of an IP rating: IP68 -> 68; anything else -> 0."""
    digits = _NON_DIGITS.sub("", ip or "")
    return int(digits) if digits else 0


def duty_rank(duty: str) -> int:
    return DUTY_RANK.get(duty, UNKNOWN_DUTY_RANK)


def matches_pinned_environment(product: Product, environment: Optional[str]) -> bool:
    """Environment priority for sorting; no pinned environment matches nothing."""
    if not environment:
        return False
    return environment_matches(product, environment)


def normalize_sort_mode(mode: Optional[str]) -> str:
    if mode in SORT_MODES:
        return mode
    if mode:
        logger.debug(f"[RANK] Unknown sort mode '{mode}', using {DEFAULT_SORT_MODE}")
    return DEFAULT_SORT_MODE


def sort_products(
    products: Iterable[Product],
    mode: Optional[str] = DEFAULT_SORT_MODE,
    pinned_environment: Optional[str] = None,
) -> list[Product]:
    """Order a result set by ``relevance``, ``duty`` or ``ip``.

    With a pinned environment, products meeting it come first in every mode;
    the mode's own ordering applies within each group.
    """
    mode = normalize_sort_mode(mode)

    def env_miss(p: Product) -> int:
        if not pinned_environment:
            return 0
        return 0 if matches_pinned_environment(p, pinned_environment) else 1

    if mode == "duty":
        key = lambda p: (env_miss(p), duty_rank(p.duty))
    elif mode == "ip":
        key = lambda p: (env_miss(p), -ip_value(p.ip))
    else:
        key = lambda p: (env_miss(p), 0 if p.flagship else 1)

    return sorted(products, key=key)


def rank_matches(products: Iterable[Product], selected_duty: str = "") -> list[Product]:
    """Top-pick order: flagship first, then the selected duty class, then catalog order."""
    def key(p: Product):
        duty_miss = 1 if selected_duty and p.duty != selected_duty else 0
        return (0 if p.flagship else 1, duty_miss)
    return sorted(products, key=key)


def pick_best_match(products: Iterable[Product], selected_duty: str = "") -> Optional[Product]:
    ranked = rank_matches(products, selected_duty)
    return ranked[0] if ranked else None


def browse_products(
    products: Iterable[Product],
    search: str = "",
    duties: Iterable[str] = (),
    cord: str = "all",
    sort_by: Optional[str] = DEFAULT_SORT_MODE,
    environment: Optional[str] = None,
) -> list[Product]:
    """Product browser pipeline: search, duty filter, corded filter, then sort."""
    duties = list(duties)
    filtered = [
        p for p in products
        if search_matches(p, search) and duty_in(p, duties) and cord_matches(p, cord)
    ]
    return sort_products(filtered, sort_by, environment)
