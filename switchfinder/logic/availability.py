"""Option availability counter: live "N products" counts per wizard choice.

For a target facet and a candidate value, every *other* facet keeps its current
selection and the target facet is pinned to the candidate. A choice with a zero
count is disabled, unless it is already the active selection (it must stay
clickable so the user can deselect it).

Counts are a plain re-scan per candidate; catalogs are a few hundred products.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from .catalog import Catalog, Option, Product
from .matcher import match
from .selection import FacetSelection, FEATURES
from .tables import DUTY_RANK, GUARD_VALUES, FEATURE_STEP_EXCLUDED

# Facet -> option category in the catalog store
FACET_CATEGORIES = {
    "application": "application",
    "technology": "technology",
    "action": "action",
    "environment": "environment",
    "connection": "connector",
    "features": "feature",
}

# Option category -> facet whose value its available_for / hide_for lists refer to
PARENT_FACETS = {
    "technology": "application",
    "action": "technology",
    "connector": "technology",
    "feature": "technology",
}

DEFAULT_ENVIRONMENTS = ("dry", "damp", "wet")


@dataclass(frozen=True)
class OptionAvailability:
    """One offered choice with its live count."""
    value: str
    label: str
    count: int
    selected: bool
    option: Optional[Option] = None

    @property
    def disabled(self) -> bool:
        return self.count == 0 and not self.selected

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "label": self.label,
            "count": self.count,
            "selected": self.selected,
            "disabled": self.disabled,
            "option": self.option.to_dict() if self.option else None,
        }


def count_option(
    products: Sequence[Product],
    selection: FacetSelection,
    facet: str,
    value: Union[str, Iterable[str]],
) -> int:
    """How many products remain with ``facet`` pinned to ``value``.

    For ``features`` a single id is added to the features already selected
    (an id that is already selected counts the current selection); a list of
    ids is taken as the full feature selection.
    """
    if facet == FEATURES and isinstance(value, str):
        current = selection.features
        value = current if value in current else current + (value,)
    return len(match(products, selection.with_value(facet, value)))


def option_counts(
    products: Sequence[Product],
    selection: FacetSelection,
    facet: str,
    values: Iterable[str],
) -> dict[str, int]:
    return {value: count_option(products, selection, facet, value) for value in values}


def is_offered(option: Option, selection: FacetSelection) -> bool:
    """Apply an option's eligibility rules to the current selection."""
    parent = PARENT_FACETS.get(option.category)
    if parent is None:
        return True
    parent_value = selection.value(parent)
    if not parent_value:
        return True
    if option.available_for and parent_value not in option.available_for:
        return False
    if option.hide_for and parent_value in option.hide_for:
        return False
    return True


def offered_options(catalog: Catalog, selection: FacetSelection, facet: str) -> list[tuple[str, str, Optional[Option]]]:
    """(value, label, option) for each choice currently offered for ``facet``."""
    category = FACET_CATEGORIES.get(facet)
    if category:
        options = [o for o in catalog.options_for(category) if is_offered(o, selection)]
        if facet == FEATURES:
            options = [o for o in options if o.value not in FEATURE_STEP_EXCLUDED]
        if options:
            return [(o.value, o.label or o.value, o) for o in options]
        if facet == "environment":
            return [(env, env.title(), None) for env in DEFAULT_ENVIRONMENTS]
        return []
    if facet == "duty":
        return [(duty, duty.title(), None) for duty in DUTY_RANK]
    if facet == "material":
        return [(m, m, None) for m in catalog.distinct("material")]
    if facet == "guard":
        return [(g, g.title(), None) for g in GUARD_VALUES]
    return []


def _is_selected(selection: FacetSelection, facet: str, value: str) -> bool:
    if facet == FEATURES:
        return value in selection.features
    return selection.value(facet) == value


def facet_availability(catalog: Catalog, selection: FacetSelection, facet: str) -> list[OptionAvailability]:
    """Offered choices for one facet, each annotated with its live count."""
    result = []
    for value, label, option in offered_options(catalog, selection, facet):
        result.append(OptionAvailability(
            value=value,
            label=label,
            count=count_option(catalog.products, selection, facet, value),
            selected=_is_selected(selection, facet, value),
            option=option,
        ))
    return result
