"""Catalog data model for the foot switch finder.

Products and options arrive from the catalog store as loose dicts (seed JSON,
admin edits, CSV imports). Everything passes through ``Product.from_dict`` /
``Option.from_dict`` before it reaches the matching core, so the core can rely on:
1. List fields (actions, applications, features, ...) are always lists
2. Legacy field names (``connection``, ``Part``) are folded into the canonical ones
3. Feature option ids use the same tokens as product feature tags

The ``Catalog`` is a read-only snapshot for the duration of a wizard session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Technology(str, Enum):
    """Actuation technologies."""
    ELECTRICAL = "electrical"
    PNEUMATIC = "pneumatic"
    WIRELESS = "wireless"


class DutyClass(str, Enum):
    """Robustness tier, most robust first."""
    HEAVY = "heavy"
    MEDIUM = "medium"
    LIGHT = "light"


# Pseudo-features: never present on a product, they request custom engineering
CUSTOM_CABLE = "custom_cable"
CUSTOM_CONNECTOR = "custom_connector"
PSEUDO_FEATURES = frozenset({CUSTOM_CABLE, CUSTOM_CONNECTOR})

SHIELD_FEATURE = "shield"

LIST_FIELDS = ("actions", "applications", "features", "recommended_for")

_TRUE_STRINGS = {"true", "1", "yes", "y"}


def as_list(value: Any) -> list[str]:
    """Coerce a raw list-ish value into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return []


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_feature_id(option_id: str) -> str:
    """Map a feature option id to the tag used on products.

    ``feature-custom-cable`` -> ``custom_cable``, ``feature-multi_stage`` -> ``multi_stage``.
    """
    token = (option_id or "").strip().lower()
    if token.startswith("feature-"):
        token = token[len("feature-"):]
    return token.replace("-", "_")


@dataclass(frozen=True)
class Product:
    """A catalog item. Build through ``from_dict``."""
    id: str
    technology: str = ""
    duty: str = ""
    ip: str = ""
    material: str = ""
    connector_type: Optional[str] = None
    actions: tuple[str, ...] = ()
    applications: tuple[str, ...] = ()
    features: tuple[str, ...] = ()
    flagship: bool = False

    # Presentation only, never read by the matching core (except search)
    series: str = ""
    description: str = ""
    part_number: str = ""
    image: str = ""
    link: str = ""
    voltage: str = ""
    amperage: str = ""
    certifications: str = ""
    circuitry: str = ""
    recommended_for: tuple[str, ...] = ()

    # Fields the catalog carries that the finder does not model
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        """Normalize a raw product record."""
        known = {
            "id", "technology", "duty", "ip", "material", "connector_type", "connection",
            "flagship", "series", "description", "part_number", "Part", "image", "link",
            "voltage", "amperage", "certifications", "circuitry", *LIST_FIELDS,
        }
        connector = data.get("connector_type") or data.get("connection")
        connector = _as_text(connector)
        if connector.lower() in ("", "undefined", "none", "null"):
            connector = None

        return cls(
            id=_as_text(data.get("id")),
            technology=_as_text(data.get("technology")).lower(),
            duty=_as_text(data.get("duty")).lower(),
            ip=_as_text(data.get("ip")).upper(),
            material=_as_text(data.get("material")),
            connector_type=connector,
            actions=tuple(as_list(data.get("actions"))),
            applications=tuple(as_list(data.get("applications"))),
            features=tuple(dict.fromkeys(normalize_feature_id(f) for f in as_list(data.get("features")))),
            flagship=as_bool(data.get("flagship")),
            series=_as_text(data.get("series")),
            description=_as_text(data.get("description")),
            part_number=_as_text(data.get("part_number") or data.get("Part")),
            image=_as_text(data.get("image")),
            link=_as_text(data.get("link")),
            voltage=_as_text(data.get("voltage")),
            amperage=_as_text(data.get("amperage")),
            certifications=_as_text(data.get("certifications")),
            circuitry=_as_text(data.get("circuitry")),
            recommended_for=tuple(as_list(data.get("recommended_for"))),
            extra={k: v for k, v in data.items() if k not in known},
        )

    @property
    def has_shield(self) -> bool:
        return SHIELD_FEATURE in self.features

    @property
    def display_name(self) -> str:
        return self.series or self.id

    def to_dict(self) -> dict:
        """Serialize for API responses and the catalog store."""
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "series": self.series,
            "technology": self.technology,
            "duty": self.duty,
            "ip": self.ip,
            "actions": list(self.actions),
            "material": self.material,
            "description": self.description,
            "applications": list(self.applications),
            "features": list(self.features),
            "recommended_for": list(self.recommended_for),
            "connector_type": self.connector_type,
            "part_number": self.part_number,
            "certifications": self.certifications,
            "voltage": self.voltage,
            "amperage": self.amperage,
            "circuitry": self.circuitry,
            "flagship": self.flagship,
            "image": self.image,
            "link": self.link,
        })
        return data


@dataclass(frozen=True)
class Option:
    """A selectable value within a wizard facet."""
    id: str
    category: str
    label: str = ""
    description: str = ""
    icon: str = ""
    is_medical: bool = False
    available_for: tuple[str, ...] = ()
    hide_for: tuple[str, ...] = ()
    sort_order: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Option":
        sort_order = data.get("sort_order", data.get("sortOrder", 0))
        try:
            sort_order = int(sort_order)
        except (TypeError, ValueError):
            sort_order = 0
        return cls(
            id=_as_text(data.get("id")),
            category=_as_text(data.get("category")).lower(),
            label=_as_text(data.get("label")),
            description=_as_text(data.get("description")),
            icon=_as_text(data.get("icon")),
            is_medical=as_bool(data.get("is_medical", data.get("isMedical"))),
            available_for=tuple(as_list(data.get("available_for", data.get("availableFor")))),
            hide_for=tuple(as_list(data.get("hide_for", data.get("hideFor")))),
            sort_order=sort_order,
        )

    @property
    def value(self) -> str:
        """The facet token this option selects."""
        if self.category == "feature":
            return normalize_feature_id(self.id)
        return self.id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "label": self.label,
            "description": self.description,
            "icon": self.icon,
            "is_medical": self.is_medical,
            "available_for": list(self.available_for),
            "hide_for": list(self.hide_for),
            "sort_order": self.sort_order,
        }


@dataclass(frozen=True)
class Catalog:
    """Read-only snapshot of products and options for one wizard session."""
    products: tuple[Product, ...] = ()
    options: tuple[Option, ...] = ()

    @classmethod
    def from_records(cls, products: list[dict], options: Optional[list[dict]] = None) -> "Catalog":
        return cls(
            products=tuple(Product.from_dict(p) for p in products or [] if p),
            options=tuple(Option.from_dict(o) for o in options or [] if o),
        )

    def options_for(self, category: str) -> list[Option]:
        """Options of one category in display order."""
        found = [o for o in self.options if o.category == category]
        return sorted(found, key=lambda o: o.sort_order)

    def get_option(self, category: str, value: str) -> Optional[Option]:
        for option in self.options:
            if option.category == category and option.value == value:
                return option
        return None

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def distinct(self, attribute: str) -> list[str]:
        """Distinct non-empty values of a scalar product attribute, first-seen order."""
        seen: list[str] = []
        for product in self.products:
            value = getattr(product, attribute, None)
            if value and value not in seen:
                seen.append(value)
        return seen
