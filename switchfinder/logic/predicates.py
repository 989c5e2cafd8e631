"""Predicate library: one pure ``(product, value) -> bool`` per facet.

An unset value ("" or no features) is always satisfied. Predicates never raise;
a value that no product carries simply matches nothing.
"""

from typing import Callable, Iterable

from .catalog import Product, PSEUDO_FEATURES, SHIELD_FEATURE
from .tables import get_environment_ip_ratings, get_unconstrained_environments, get_connector_keywords


def application_matches(product: Product, value: str) -> bool:
    return not value or value in product.applications


def technology_matches(product: Product, value: str) -> bool:
    return not value or product.technology == value


def action_matches(product: Product, value: str) -> bool:
    return not value or value in product.actions


def environment_matches(product: Product, value: str) -> bool:
    """dry/any accept every rating; damp needs IP56+; wet needs IP68."""
    if value in get_unconstrained_environments():
        return True
    accepted = get_environment_ip_ratings().get(value)
    if accepted is None:
        return False
    return product.ip in accepted


def duty_matches(product: Product, value: str) -> bool:
    return not value or product.duty == value


def material_matches(product: Product, value: str) -> bool:
    return not value or product.material == value


def connection_matches(product: Product, value: str) -> bool:
    return not value or product.connector_type == value


def guard_matches(product: Product, value: str) -> bool:
    if value == "yes":
        return product.has_shield
    if value == "no":
        return not product.has_shield
    return True


def hardware_features(selected: Iterable[str]) -> list[str]:
    """Selected features minus the custom-solution pseudo-features."""
    return [f for f in selected if f not in PSEUDO_FEATURES]


def features_match(product: Product, selected: Iterable[str]) -> bool:
    """Product must carry every selected hardware feature (AND)."""
    wanted = hardware_features(selected)
    if not wanted:
        return True
    return all(f in product.features for f in wanted)


def search_matches(product: Product, term: str) -> bool:
    """Case-insensitive substring search over the product's descriptive fields."""
    if not term or not term.strip():
        return True
    needle = term.lower()
    haystack = (
        product.series,
        product.description,
        product.material,
        product.ip,
        product.part_number,
        product.id,
        *product.features,
    )
    return any(needle in text.lower() for text in haystack if text)


PREDICATES: dict[str, Callable[[Product, object], bool]] = {
    "application": application_matches,
    "technology": technology_matches,
    "action": action_matches,
    "environment": environment_matches,
    "duty": duty_matches,
    "material": material_matches,
    "connection": connection_matches,
    "guard": guard_matches,
    "features": features_match,
    "search": search_matches,
}


def facet_matches(product: Product, facet: str, value) -> bool:
    return PREDICATES[facet](product, value)


# =============================================================================
# BROWSE-MODE FILTERS (product list page, not the wizard)
# =============================================================================

def duty_in(product: Product, duties: Iterable[str]) -> bool:
    duties = list(duties)
    return not duties or product.duty in duties


def cord_matches(product: Product, mode: str) -> bool:
    """corded / cordless filter on connector wording.

    Products without connector data are shown under both until the catalog is
    filled in.
    """
    if mode not in ("corded", "cordless"):
        return True
    if not product.connector_type:
        return True
    connection = product.connector_type.lower()
    corded, cordless = get_connector_keywords()
    if mode == "corded":
        return any(k in connection for k in corded)
    return any(k in connection for k in cordless)
