"""Wizard Controller: step sequencing and the single owner of the current selection.

The controller drives two flows:
1. ``standard``: one facet per step (see ``STEP_FACETS``), then the results page
2. ``medical``: console style, pedal count, medical features and accessories,
   ending in a quote request instead of catalog matching

Every update swaps in a new ``FacetSelection``; the matching core only ever sees
immutable snapshots. The controller round-trips through ``to_dict`` / ``from_dict``
so the HTTP layer can stay stateless.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from switchfinder import analytics

from .availability import facet_availability, OptionAvailability
from .catalog import Catalog, Product, PSEUDO_FEATURES, Technology
from .ranking import sort_products, rank_matches, normalize_sort_mode
from .relaxation import find_products, RelaxationResult
from .selection import FacetSelection, FEATURES, SEARCH
from .tables import DEFAULT_SORT_MODE, get_relaxed_message

logger = logging.getLogger(__name__)

# Wizard step index -> facet it asks about
STEP_FACETS = {
    0: "application",
    1: "technology",
    2: "action",
    3: "environment",
    4: "duty",
    5: "material",
    6: "connection",
    7: "guard",
    8: "features",
}
RESULTS_STEP = len(STEP_FACETS)
CONNECTION_STEP = 6

# Medical flow slots in step order; the step after the last one is the quote request
MEDICAL_STEPS = {
    1: "console_style",
    2: "pedal_count",
    3: "medical_features",
    4: "accessories",
}
MEDICAL_QUOTE_STEP = len(MEDICAL_STEPS) + 1
MEDICAL_MULTI_SLOTS = ("medical_features", "accessories")

# Option category for each medical slot
MEDICAL_CATEGORIES = {
    "console_style": "console_style",
    "pedal_count": "pedal_count",
    "medical_features": "medical_feature",
    "accessories": "accessory",
}

FLOW_STANDARD = "standard"
FLOW_MEDICAL = "medical"

OUTCOME_EXACT = "exact"
OUTCOME_ALTERNATIVES = "alternatives"
OUTCOME_CUSTOM = "custom_solution"

# Facets whose later answers depend on this one; changing it clears them
DOWNSTREAM_FACETS = {
    "application": ("technology", "action", "connection", FEATURES),
    "technology": ("action", "connection", FEATURES),
}


def needs_custom_solution(selection: FacetSelection) -> bool:
    """True when the user explicitly asked for a custom cable or connector."""
    return any(f in PSEUDO_FEATURES for f in selection.features)


@dataclass
class ResultsView:
    """What the results page shows for one selection."""
    outcome: str
    products: list[Product] = field(default_factory=list)
    best_match: Optional[Product] = None
    others: list[Product] = field(default_factory=list)
    relaxed: Optional[str] = None
    message: str = ""
    dropped: tuple[str, ...] = ()
    sort_by: str = DEFAULT_SORT_MODE

    @property
    def total(self) -> int:
        return len(self.products)

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "total": self.total,
            "products": [p.to_dict() for p in self.products],
            "best_match": self.best_match.to_dict() if self.best_match else None,
            "others": [p.to_dict() for p in self.others],
            "relaxed": self.relaxed,
            "message": self.message,
            "dropped": list(self.dropped),
            "sort_by": self.sort_by,
        }


def build_results(
    catalog: Catalog,
    selection: FacetSelection,
    sort_by: Optional[str] = DEFAULT_SORT_MODE,
) -> ResultsView:
    """Exact matches, alternatives, or the custom-solution short-circuit."""
    sort_by = normalize_sort_mode(sort_by)

    if needs_custom_solution(selection):
        logger.info(f"[WIZARD] Custom solution requested: {list(selection.features)}")
        return ResultsView(outcome=OUTCOME_CUSTOM, sort_by=sort_by)

    outcome = find_products(catalog.products, selection)
    pinned = selection.environment or None

    if outcome.has_exact_matches:
        ranked = rank_matches(outcome.exact, selection.duty)
        best = ranked[0]
        others = sort_products([p for p in outcome.exact if p is not best], sort_by, pinned)
        return ResultsView(
            outcome=OUTCOME_EXACT,
            products=sort_products(outcome.exact, sort_by, pinned),
            best_match=best,
            others=others,
            sort_by=sort_by,
        )

    alternatives: RelaxationResult = outcome.alternatives
    analytics.track_no_results(selection.to_dict(), relaxed=alternatives.relaxed, alternatives=len(alternatives.products))
    return ResultsView(
        outcome=OUTCOME_ALTERNATIVES,
        products=sort_products(alternatives.products, sort_by, pinned),
        relaxed=alternatives.relaxed,
        message=get_relaxed_message(alternatives.relaxed),
        dropped=alternatives.dropped,
        sort_by=sort_by,
    )


@dataclass
class WizardController:
    """Mutable wizard session; holds the only current ``FacetSelection``."""
    catalog: Catalog = field(default_factory=Catalog)
    flow: str = FLOW_STANDARD
    step: int = 0
    selection: FacetSelection = field(default_factory=FacetSelection)
    sort_by: str = DEFAULT_SORT_MODE

    # Medical flow slots (never fed to the matcher)
    console_style: str = ""
    pedal_count: str = ""
    medical_features: list[str] = field(default_factory=list)
    accessories: list[str] = field(default_factory=list)

    # ---------------------------------------------------------------------
    # Step navigation
    # ---------------------------------------------------------------------

    @property
    def current_facet(self) -> Optional[str]:
        if self.flow != FLOW_STANDARD:
            return None
        return STEP_FACETS.get(self.step)

    @property
    def on_results(self) -> bool:
        return self.flow == FLOW_STANDARD and self.step >= RESULTS_STEP

    def _skips_connection(self) -> bool:
        return self.selection.technology == Technology.PNEUMATIC

    def next_step(self) -> int:
        if self.flow == FLOW_MEDICAL:
            self.step = min(self.step + 1, MEDICAL_QUOTE_STEP)
        else:
            new_step = self.step + 1
            if new_step == CONNECTION_STEP and self._skips_connection():
                new_step += 1
            self.step = min(new_step, RESULTS_STEP)
        analytics.track_wizard_step(self.step, self.flow, self.selection.to_dict())
        return self.step

    def back(self) -> int:
        if self.step == 0:
            return self.step
        if self.flow == FLOW_MEDICAL and self.step == 1:
            self.flow = FLOW_STANDARD
            self.step = 0
            self.selection = self.selection.cleared("application")
            return self.step
        prev_step = self.step - 1
        if self.flow == FLOW_STANDARD and prev_step == CONNECTION_STEP and self._skips_connection():
            prev_step -= 1
        self.step = prev_step
        return self.step

    def go_to(self, step: int) -> int:
        """Jump to a step, e.g. from an "edit" link on the results page."""
        last = MEDICAL_QUOTE_STEP if self.flow == FLOW_MEDICAL else RESULTS_STEP
        if step < 0 or step > last:
            raise ValueError(f"Step {step} out of range 0..{last}")
        if self.flow == FLOW_STANDARD and step == CONNECTION_STEP and self._skips_connection():
            step += 1
        self.step = step
        return self.step

    def reset(self) -> None:
        self.flow = FLOW_STANDARD
        self.step = 0
        self.selection = FacetSelection.empty()
        self.sort_by = DEFAULT_SORT_MODE
        self.console_style = ""
        self.pedal_count = ""
        self.medical_features = []
        self.accessories = []

    def total_steps(self) -> int:
        """Number of question steps the user will see in the current flow."""
        if self.flow == FLOW_MEDICAL:
            return len(MEDICAL_STEPS)
        steps = len(STEP_FACETS)
        if self._skips_connection():
            steps -= 1
        return steps

    # ---------------------------------------------------------------------
    # Selection updates
    # ---------------------------------------------------------------------

    def select(self, facet: str, value: str) -> FacetSelection:
        """Set a facet; picking the active value again deselects it.

        ``features`` toggles a single feature id. Changing application or
        technology clears the answers that depend on it.
        """
        if facet == FEATURES:
            if value:
                self.selection = self.selection.toggle_feature(value)
            return self.selection

        current = self.selection.value(facet)
        if current == value:
            self.selection = self.selection.cleared(facet)
            return self.selection

        new_selection = self.selection.with_value(facet, value)
        if current and facet in DOWNSTREAM_FACETS:
            new_selection = new_selection.cleared(*DOWNSTREAM_FACETS[facet])
        if facet == "technology" and value == Technology.PNEUMATIC:
            new_selection = new_selection.cleared("connection")
        self.selection = new_selection

        if facet == "application":
            option = self.catalog.get_option("application", value)
            if option is not None and option.is_medical:
                self.flow = FLOW_MEDICAL
                self.step = 1
                logger.info(f"[WIZARD] Application '{value}' switches to the medical flow")
        return self.selection

    def clear(self, facet: str) -> FacetSelection:
        """Remove one filter chip."""
        self.selection = self.selection.cleared(facet)
        return self.selection

    def set_search(self, term: str) -> FacetSelection:
        self.selection = self.selection.with_value(SEARCH, (term or "").strip())
        return self.selection

    def set_sort(self, mode: str) -> str:
        self.sort_by = normalize_sort_mode(mode)
        return self.sort_by

    def select_medical(self, slot: str, value: str) -> None:
        """Set a medical slot; multi-valued slots toggle."""
        if slot not in MEDICAL_CATEGORIES:
            raise KeyError(f"Unknown medical slot '{slot}'")
        if slot in MEDICAL_MULTI_SLOTS:
            values: list[str] = getattr(self, slot)
            if value in values:
                values.remove(value)
            else:
                values.append(value)
            return
        setattr(self, slot, "" if getattr(self, slot) == value else value)

    def view_medical_products(self) -> int:
        """Leave the medical flow for the standard results page."""
        self.flow = FLOW_STANDARD
        self.step = RESULTS_STEP
        analytics.track_wizard_step(self.step, self.flow, {"application": self.selection.application, "source": "medical_bypass"})
        return self.step

    def quote_request(self) -> dict:
        """Medical flow summary handed to sales."""
        summary = {
            "application": self.selection.application,
            "console_style": self.console_style,
            "pedal_count": self.pedal_count,
            "medical_features": list(self.medical_features),
            "accessories": list(self.accessories),
        }
        analytics.track_quote_request(summary)
        return summary

    # ---------------------------------------------------------------------
    # Views
    # ---------------------------------------------------------------------

    def step_options(self, step: Optional[int] = None) -> list[OptionAvailability]:
        """Offered choices and live counts for a standard-flow step."""
        step = self.step if step is None else step
        facet = STEP_FACETS.get(step)
        if facet is None:
            return []
        return facet_availability(self.catalog, self.selection, facet)

    def medical_options(self, slot: str) -> list[dict]:
        category = MEDICAL_CATEGORIES[slot]
        chosen = getattr(self, slot)
        result = []
        for option in self.catalog.options_for(category):
            selected = option.id in chosen if slot in MEDICAL_MULTI_SLOTS else option.id == chosen
            result.append({"option": option.to_dict(), "selected": selected})
        return result

    def results(self) -> ResultsView:
        return build_results(self.catalog, self.selection, self.sort_by)

    # ---------------------------------------------------------------------
    # Serialization (catalog is not part of the session state)
    # ---------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "flow": self.flow,
            "step": self.step,
            "selection": self.selection.to_dict(),
            "sort_by": self.sort_by,
            "console_style": self.console_style,
            "pedal_count": self.pedal_count,
            "medical_features": list(self.medical_features),
            "accessories": list(self.accessories),
        }

    @classmethod
    def from_dict(cls, data: dict, catalog: Optional[Catalog] = None) -> "WizardController":
        data = data or {}
        flow = data.get("flow", FLOW_STANDARD)
        if flow not in (FLOW_STANDARD, FLOW_MEDICAL):
            flow = FLOW_STANDARD
        return cls(
            catalog=catalog or Catalog(),
            flow=flow,
            step=int(data.get("step", 0) or 0),
            selection=FacetSelection.from_dict(data.get("selection", {})),
            sort_by=normalize_sort_mode(data.get("sort_by")),
            console_style=data.get("console_style", "") or "",
            pedal_count=data.get("pedal_count", "") or "",
            medical_features=list(data.get("medical_features", []) or []),
            accessories=list(data.get("accessories", []) or []),
        )
