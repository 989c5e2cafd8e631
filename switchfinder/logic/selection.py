"""Facet selection value object.

The wizard's current answers. A selection is never mutated: every update returns
a new ``FacetSelection``, so the matching core can take it as a plain value and the
Wizard Controller stays the only owner of "the current one".
"""

from dataclasses import dataclass, replace, fields
from typing import Iterable, Union

# Single-valued facets in wizard order
SINGLE_FACETS = (
    "application",
    "technology",
    "action",
    "environment",
    "duty",
    "material",
    "connection",
    "guard",
)

FEATURES = "features"
SEARCH = "search"

ALL_FACETS = SINGLE_FACETS + (FEATURES, SEARCH)

FacetValue = Union[str, tuple[str, ...]]


def _feature_tuple(value: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    ordered: list[str] = []
    for item in value:
        if item and item not in ordered:
            ordered.append(item)
    return tuple(ordered)


@dataclass(frozen=True)
class FacetSelection:
    """Current facet values. Empty string means "no constraint"."""
    application: str = ""
    technology: str = ""
    action: str = ""
    environment: str = ""
    duty: str = ""
    material: str = ""
    connection: str = ""
    guard: str = ""
    features: tuple[str, ...] = ()
    search: str = ""

    @classmethod
    def empty(cls) -> "FacetSelection":
        return cls()

    def value(self, facet: str) -> FacetValue:
        if facet not in ALL_FACETS:
            raise KeyError(f"Unknown facet '{facet}'")
        return getattr(self, facet)

    def is_set(self, facet: str) -> bool:
        value = self.value(facet)
        if facet == SEARCH:
            return bool(value.strip())
        return bool(value)

    def with_value(self, facet: str, value: Union[str, Iterable[str], None]) -> "FacetSelection":
        """Return a copy with ``facet`` set to ``value`` (None clears it)."""
        if facet not in ALL_FACETS:
            raise KeyError(f"Unknown facet '{facet}'")
        if facet == FEATURES:
            return replace(self, features=_feature_tuple(value))
        return replace(self, **{facet: value or ""})

    def cleared(self, *facets: str) -> "FacetSelection":
        changes = {}
        for facet in facets:
            if facet not in ALL_FACETS:
                raise KeyError(f"Unknown facet '{facet}'")
            changes[facet] = () if facet == FEATURES else ""
        return replace(self, **changes)

    def toggle_feature(self, feature_id: str) -> "FacetSelection":
        if feature_id in self.features:
            return replace(self, features=tuple(f for f in self.features if f != feature_id))
        return replace(self, features=self.features + (feature_id,))

    @property
    def active_count(self) -> int:
        """Number of active chips: set single facets plus each selected feature."""
        count = sum(1 for facet in SINGLE_FACETS if getattr(self, facet))
        return count + len(self.features)

    @property
    def is_empty(self) -> bool:
        return not any(self.is_set(facet) for facet in ALL_FACETS)

    def active_facets(self) -> list[str]:
        return [facet for facet in ALL_FACETS if self.is_set(facet)]

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data[FEATURES] = list(self.features)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "FacetSelection":
        """Build from an API payload; unknown keys are ignored, None means unset."""
        data = data or {}
        values = {}
        for facet in SINGLE_FACETS + (SEARCH,):
            raw = data.get(facet)
            values[facet] = str(raw).strip() if raw is not None else ""
        values[FEATURES] = _feature_tuple(data.get(FEATURES))
        return cls(**values)
