import logging
from typing import Optional, Union

from fastapi import FastAPI, HTTPException, UploadFile, File, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse, Response

from switchfinder import analytics
from switchfinder.auth import LoginRequest, TokenResponse, login, get_current_user
from switchfinder.config_loader import get_config, get_config_summary
from switchfinder.csv_import import CSVImportError, import_csv, export_csv
from switchfinder.database import db, CatalogStore, CatalogError, ProductNotFound, OptionNotFound
from switchfinder.export import generate_recommendation_excel
from switchfinder.logic.ranking import browse_products
from switchfinder.logic.selection import FEATURES
from switchfinder.logic.tables import get_default_sort_mode
from switchfinder.logic.wizard import (
    WizardController,
    build_results,
    STEP_FACETS,
    MEDICAL_STEPS,
    MEDICAL_QUOTE_STEP,
    FLOW_MEDICAL,
)
from switchfinder.logic.availability import facet_availability
from switchfinder.models import (
    ProductIn,
    OptionIn,
    BulkUpdateRequest,
    ResultsRequest,
    ResultsResponse,
    OptionsRequest,
    OptionsResponse,
    BrowseRequest,
    ExportRequest,
    WizardAction,
    ImportResponse,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Foot Switch Finder API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> CatalogStore:
    """Catalog store dependency (overridden in tests)."""
    return db


@app.on_event("startup")
async def startup_event():
    """Load config and seed the catalog store on first run."""
    config = get_config()
    logger.info(f"[STARTUP] {config.meta.name} v{config.meta.version}")
    db.initialize()
    logger.info(f"[STARTUP] Catalog ready: {len(db.snapshot().products)} products")


@app.get("/")
async def root():
    return {"message": "Foot Switch Finder API is running", **get_config_summary()}


@app.get("/health")
async def health():
    return {"status": "healthy"}


# =============================================================================
# Authentication Endpoints (Public)
# =============================================================================

@app.post("/auth/login", response_model=TokenResponse)
async def auth_login(request: LoginRequest):
    """Authenticate the admin and return a JWT token."""
    return login(request)


@app.get("/auth/verify")
async def auth_verify(user: str = Depends(get_current_user)):
    """Verify that the current token is valid."""
    return {"valid": True, "username": user}


# =============================================================================
# Catalog Endpoints (Public reads)
# =============================================================================

@app.get("/products")
def list_products(store: CatalogStore = Depends(get_store)):
    products = store.list_products()
    return {"products": products, "count": len(products)}


@app.get("/products/export")
def export_products(store: CatalogStore = Depends(get_store), _user: str = Depends(get_current_user)):
    """Download the catalog as CSV in the import template layout."""
    csv_text = export_csv(store.list_products())
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=products.csv"},
    )


@app.get("/products/{product_id}")
def get_product(product_id: str, source: Optional[str] = None, store: CatalogStore = Depends(get_store)):
    try:
        product = store.get_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    if source:
        analytics.track_product_view(product_id, source)
    return {"product": product}


@app.get("/options")
def list_options(store: CatalogStore = Depends(get_store)):
    return {"options": store.list_options()}


@app.get("/options/{category}")
def list_options_by_category(category: str, store: CatalogStore = Depends(get_store)):
    return {"options": store.list_options(category)}


# =============================================================================
# Catalog Endpoints (Admin)
# =============================================================================

@app.post("/products")
def upsert_products(
    body: Union[list[ProductIn], ProductIn],
    store: CatalogStore = Depends(get_store),
    _user: str = Depends(get_current_user),
):
    """Create or merge one product, or a list of products."""
    try:
        if isinstance(body, list):
            total = store.upsert_products([p.to_record() for p in body])
            return {"success": True, "count": total}
        return {"product": store.upsert_product(body.to_record())}
    except CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/products")
def delete_all_products(store: CatalogStore = Depends(get_store), _user: str = Depends(get_current_user)):
    store.delete_all_products()
    return {"success": True, "message": "All products have been deleted"}


@app.delete("/products/{product_id}")
def delete_product(product_id: str, store: CatalogStore = Depends(get_store), _user: str = Depends(get_current_user)):
    try:
        store.delete_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}


@app.post("/products/bulk-update")
def bulk_update_products(
    request: BulkUpdateRequest,
    store: CatalogStore = Depends(get_store),
    _user: str = Depends(get_current_user),
):
    try:
        updated = store.bulk_update(request.product_ids, request.field, request.value)
    except CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "updated": updated}


@app.post("/products/import", response_model=ImportResponse)
async def import_products(
    file: UploadFile = File(...),
    store: CatalogStore = Depends(get_store),
    _user: str = Depends(get_current_user),
):
    """Upload a CSV product sheet; rows merge into the catalog."""
    file_bytes = await file.read()
    try:
        report = import_csv(store, file_bytes)
    except CSVImportError as e:
        raise HTTPException(status_code=400, detail=f"Failed to parse file: {e}")
    if not report.products:
        raise HTTPException(status_code=400, detail="No valid products found in file")
    return {**report.to_dict(), "total": len(store.list_products())}


@app.post("/options")
def upsert_option(option: OptionIn, store: CatalogStore = Depends(get_store), _user: str = Depends(get_current_user)):
    try:
        return {"option": store.upsert_option(option.to_record())}
    except CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/options/{option_id}")
def delete_option(option_id: str, store: CatalogStore = Depends(get_store), _user: str = Depends(get_current_user)):
    try:
        store.delete_option(option_id)
    except OptionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}


# =============================================================================
# Wizard Endpoints (Public)
# =============================================================================

@app.post("/wizard/results", response_model=ResultsResponse)
def wizard_results(request: ResultsRequest, store: CatalogStore = Depends(get_store)):
    """Exact matches, relaxed alternatives, or the custom-solution outcome."""
    view = build_results(store.snapshot(), request.selection.to_selection(), request.sort_by or get_default_sort_mode())
    return view.to_dict()


@app.post("/wizard/options", response_model=OptionsResponse)
def wizard_options(request: OptionsRequest, store: CatalogStore = Depends(get_store)):
    """Offered options for one facet with live product counts."""
    facet = request.facet
    if facet is None and request.step is not None:
        facet = STEP_FACETS.get(request.step)
    if facet not in STEP_FACETS.values():
        raise HTTPException(status_code=422, detail=f"Unknown facet or step: {request.facet or request.step}")
    options = facet_availability(store.snapshot(), request.selection.to_selection(), facet)
    return {"facet": facet, "options": [o.to_dict() for o in options]}


@app.post("/wizard/browse")
def wizard_browse(request: BrowseRequest, store: CatalogStore = Depends(get_store)):
    """Product browser: search, duty and corded filters, sorting."""
    products = browse_products(
        store.snapshot().products,
        search=request.search,
        duties=request.duties,
        cord=request.cord,
        sort_by=request.sort_by or get_default_sort_mode(),
        environment=request.environment,
    )
    return {"products": [p.to_dict() for p in products], "count": len(products)}


@app.post("/wizard/step")
def wizard_step(request: WizardAction, store: CatalogStore = Depends(get_store)):
    """Apply one user action to a wizard session and return the next view."""
    catalog = store.snapshot()
    controller = WizardController.from_dict(request.session.model_dump(), catalog=catalog)

    try:
        _apply_action(controller, request)
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e).strip("'\""))

    response = {
        "session": controller.to_dict(),
        "total_steps": controller.total_steps(),
        "current_facet": controller.current_facet,
        "active_filters": controller.selection.active_count,
    }
    if controller.flow == FLOW_MEDICAL:
        slot = MEDICAL_STEPS.get(controller.step)
        response["medical_slot"] = slot
        if slot:
            response["options"] = controller.medical_options(slot)
        elif controller.step == MEDICAL_QUOTE_STEP:
            response["quote"] = controller.quote_request()
    elif controller.on_results:
        response["results"] = controller.results().to_dict()
    else:
        response["options"] = [o.to_dict() for o in controller.step_options()]
    return response


def _apply_action(controller: WizardController, request: WizardAction) -> None:
    action = request.action
    value = "" if request.value is None else str(request.value)
    if action == "select":
        if not request.facet:
            raise ValueError("select needs a facet")
        controller.select(request.facet, value)
    elif action == "clear":
        if not request.facet:
            raise ValueError("clear needs a facet")
        if request.facet == FEATURES and value:
            controller.select(FEATURES, value)
        else:
            controller.clear(request.facet)
    elif action == "next":
        controller.next_step()
    elif action == "back":
        controller.back()
    elif action == "go_to":
        controller.go_to(int(value))
    elif action == "reset":
        controller.reset()
    elif action == "search":
        controller.set_search(value)
    elif action == "sort":
        controller.set_sort(value)
    elif action == "medical":
        controller.select_medical(request.facet or "", value)
    elif action == "view_products":
        controller.view_medical_products()
    else:
        raise ValueError(f"Unknown action '{action}'")


@app.post("/wizard/export")
def wizard_export(request: ExportRequest, store: CatalogStore = Depends(get_store)):
    """Download the recommendation sheet for a selection as XLSX."""
    catalog = store.snapshot()
    selection = request.selection.to_selection()
    view = build_results(catalog, selection, request.sort_by or get_default_sort_mode())
    excel_bytes = generate_recommendation_excel(
        catalog, selection, view.products, relaxed_message=view.message, best_match=view.best_match,
    )
    analytics.track_export("standard", selection.to_dict())
    return StreamingResponse(
        iter([excel_bytes]),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=footswitch_recommendation.xlsx"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
