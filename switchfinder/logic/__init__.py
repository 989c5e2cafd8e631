"""Matching core: predicates, exact matcher, relaxation, availability counts, ranking."""

from .catalog import Catalog, Product, Option, Technology, DutyClass
from .selection import FacetSelection
from .matcher import match
from .relaxation import relax, find_products, RelaxationResult, SearchOutcome
from .availability import count_option, facet_availability, OptionAvailability
from .ranking import sort_products, pick_best_match, browse_products
from .wizard import WizardController, build_results, needs_custom_solution, STEP_FACETS

__all__ = [
    'Catalog',
    'Product',
    'Option',
    'Technology',
    'DutyClass',
    'FacetSelection',
    'match',
    'relax',
    'find_products',
    'RelaxationResult',
    'SearchOutcome',
    'count_option',
    'facet_availability',
    'OptionAvailability',
    'sort_products',
    'pick_best_match',
    'browse_products',
    'WizardController',
    'build_results',
    'needs_custom_solution',
    'STEP_FACETS',
]
