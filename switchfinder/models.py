"""Pydantic schemas for the foot switch finder API."""

from pydantic import BaseModel, Field
from typing import Any, Optional, Union

from switchfinder.logic.selection import FacetSelection


# ========================================
# Catalog Schemas
# ========================================

class ProductIn(BaseModel):
    """Product record as sent by the admin UI; unknown fields are kept."""
    model_config = {"extra": "allow"}

    id: str = Field(..., min_length=1, description="Unique product id (e.g., 'hercules')")
    series: Optional[str] = None
    technology: Optional[str] = None
    duty: Optional[str] = None
    ip: Optional[str] = None
    actions: Optional[list[str]] = None
    material: Optional[str] = None
    description: Optional[str] = None
    applications: Optional[list[str]] = None
    features: Optional[list[str]] = None
    recommended_for: Optional[list[str]] = None
    connector_type: Optional[str] = None
    part_number: Optional[str] = None
    certifications: Optional[str] = None
    voltage: Optional[str] = None
    amperage: Optional[str] = None
    circuitry: Optional[str] = None
    flagship: Optional[bool] = None
    image: Optional[str] = None
    link: Optional[str] = None

    def to_record(self) -> dict:
        """Only the fields the caller actually sent, so merges keep stored values."""
        return self.model_dump(exclude_unset=True)


class OptionIn(BaseModel):
    """Wizard option as sent by the admin UI."""
    model_config = {"extra": "allow"}

    id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="application, technology, action, environment, connector, feature, ...")
    label: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    is_medical: Optional[bool] = None
    available_for: Optional[list[str]] = None
    hide_for: Optional[list[str]] = None
    sort_order: Optional[int] = None

    def to_record(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BulkUpdateRequest(BaseModel):
    """Set one attribute on many products."""
    product_ids: list[str] = Field(..., min_length=1)
    field: str
    value: Any


# ========================================
# Wizard Schemas
# ========================================

class SelectionIn(BaseModel):
    """Current wizard answers. Empty string means unconstrained."""
    application: str = ""
    technology: str = ""
    action: str = ""
    environment: str = ""
    duty: str = ""
    material: str = ""
    connection: str = ""
    guard: str = ""
    features: list[str] = Field(default_factory=list)
    search: str = ""

    def to_selection(self) -> FacetSelection:
        return FacetSelection.from_dict(self.model_dump())


class ResultsRequest(BaseModel):
    selection: SelectionIn = Field(default_factory=SelectionIn)
    sort_by: Optional[str] = None


class OptionsRequest(BaseModel):
    """Ask for one facet's offered options; give ``facet`` or a wizard ``step``."""
    selection: SelectionIn = Field(default_factory=SelectionIn)
    facet: Optional[str] = None
    step: Optional[int] = None


class BrowseRequest(BaseModel):
    search: str = ""
    duties: list[str] = Field(default_factory=list)
    cord: str = Field("all", description="all, corded or cordless")
    sort_by: Optional[str] = None
    environment: Optional[str] = None


class ExportRequest(BaseModel):
    selection: SelectionIn = Field(default_factory=SelectionIn)
    sort_by: Optional[str] = None


class WizardSession(BaseModel):
    """Full controller state for stateless step transitions."""
    flow: str = "standard"
    step: int = 0
    selection: SelectionIn = Field(default_factory=SelectionIn)
    sort_by: Optional[str] = None
    console_style: str = ""
    pedal_count: str = ""
    medical_features: list[str] = Field(default_factory=list)
    accessories: list[str] = Field(default_factory=list)


class WizardAction(BaseModel):
    """One user action applied to a wizard session."""
    session: WizardSession = Field(default_factory=WizardSession)
    action: str = Field(..., description="select, clear, next, back, go_to, reset, search, sort, medical, view_products")
    facet: Optional[str] = None
    value: Optional[Union[str, int]] = None


# ========================================
# Response Schemas
# ========================================

class OptionCount(BaseModel):
    value: str
    label: str
    count: int
    selected: bool
    disabled: bool
    option: Optional[dict] = None


class OptionsResponse(BaseModel):
    facet: str
    options: list[OptionCount]


class ResultsResponse(BaseModel):
    outcome: str
    total: int
    products: list[dict]
    best_match: Optional[dict] = None
    others: list[dict] = Field(default_factory=list)
    relaxed: Optional[str] = None
    message: str = ""
    dropped: list[str] = Field(default_factory=list)
    sort_by: str


class ImportResponse(BaseModel):
    created: int
    updated: int
    skipped: int
    errors: list[str]
    count: int
    total: int
