"""API endpoint integration tests: FastAPI endpoints over a temp catalog store.

Tests the HTTP layer: request/response shapes, admin guards, error mapping.
The store is a seeded temp file; auth is bypassed except where a test checks it.
"""

import io
from unittest.mock import patch

import openpyxl
import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(store):
    """FastAPI test client over the temp store with auth disabled."""
    with patch.dict("os.environ", {
        "JWT_SECRET_KEY": "test-secret",
        "AUTH_DISABLED": "true",
    }):
        # Force reload auth module to pick up AUTH_DISABLED
        import importlib
        import switchfinder.auth
        importlib.reload(switchfinder.auth)

        from switchfinder import main
        main.app.dependency_overrides[main.get_store] = lambda: store
        main.app.dependency_overrides[main.get_current_user] = lambda: "test_user"
        yield TestClient(main.app)
        main.app.dependency_overrides.clear()
    importlib.reload(switchfinder.auth)


# =============================================================================
# HEALTH & BASIC ENDPOINTS
# =============================================================================

class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}

    def test_root_includes_config_summary(self, client):
        data = client.get("/").json()
        assert data["finder"]["id"] == "switchfinder"
        assert "environments" in data


# =============================================================================
# CATALOG READS
# =============================================================================

class TestCatalogReads:
    def test_list_products(self, client):
        data = client.get("/products").json()
        assert data["count"] == 10

    def test_get_product(self, client):
        resp = client.get("/products/hercules")
        assert resp.status_code == 200
        assert resp.json()["product"]["series"] == "Hercules"

    def test_get_missing_product(self, client):
        assert client.get("/products/nope").status_code == 404

    def test_product_view_tracked_with_source(self, client):
        with patch("switchfinder.main.analytics.track_product_view") as mock_track:
            client.get("/products/atlas?source=browse")
        mock_track.assert_called_once_with("atlas", "browse")

    def test_options_by_category(self, client):
        options = client.get("/options/environment").json()["options"]
        assert [o["id"] for o in options] == ["dry", "damp", "wet"]


# =============================================================================
# CATALOG ADMIN
# =============================================================================

class TestCatalogAdmin:
    def test_upsert_single_merges(self, client, store):
        resp = client.post("/products", json={"id": "hercules", "ip": "IP68"})
        assert resp.status_code == 200
        assert store.get_product("hercules")["series"] == "Hercules"
        assert store.get_product("hercules")["ip"] == "IP68"

    def test_upsert_list(self, client):
        resp = client.post("/products", json=[{"id": "nova"}, {"id": "atlas", "flagship": True}])
        assert resp.json() == {"success": True, "count": 11}

    def test_upsert_rejects_empty_id(self, client):
        assert client.post("/products", json={"id": ""}).status_code == 422

    def test_delete_product(self, client):
        assert client.delete("/products/atlas").status_code == 200
        assert client.delete("/products/atlas").status_code == 404

    def test_delete_all(self, client):
        client.delete("/products")
        assert client.get("/products").json()["count"] == 0

    def test_bulk_update(self, client, store):
        resp = client.post("/products/bulk-update",
                           json={"product_ids": ["atlas", "dolphin"], "field": "duty", "value": "medium"})
        assert resp.json()["updated"] == 2
        assert store.get_product("atlas")["duty"] == "medium"

    def test_bulk_update_bad_field(self, client):
        resp = client.post("/products/bulk-update", json={"product_ids": ["atlas"], "field": "id", "value": "x"})
        assert resp.status_code == 400

    def test_import_csv(self, client):
        files = {"file": ("products.csv", b"id,series,ip\nnova,Nova,IP68\natlas,,IP56\n", "text/csv")}
        data = client.post("/products/import", files=files).json()
        assert data["created"] == 1
        assert data["updated"] == 1
        assert data["total"] == 11

    def test_import_bad_file(self, client):
        files = {"file": ("products.csv", b"series,ip\nNova,IP68\n", "text/csv")}
        assert client.post("/products/import", files=files).status_code == 400

    def test_export_csv(self, client):
        resp = client.get("/products/export")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.text.splitlines()[0].startswith("id,series,")

    def test_options_admin(self, client):
        client.post("/options", json={"id": "arctic", "category": "environment", "label": "Arctic"})
        ids = [o["id"] for o in client.get("/options/environment").json()["options"]]
        assert "arctic" in ids
        assert client.delete("/options/arctic").status_code == 200
        assert client.delete("/options/arctic").status_code == 404

    def test_admin_requires_token(self, client):
        from switchfinder import main
        del main.app.dependency_overrides[main.get_current_user]
        with patch("switchfinder.auth.AUTH_DISABLED", False):
            assert client.delete("/products/atlas").status_code == 401


# =============================================================================
# WIZARD
# =============================================================================

class TestWizardResults:
    def test_exact(self, client):
        data = client.post("/wizard/results", json={"selection": {"application": "industrial", "duty": "heavy"}}).json()
        assert data["outcome"] == "exact"
        assert data["total"] == 4
        assert data["best_match"]["id"] == "hercules"

    def test_alternatives(self, client):
        selection = {"application": "tattoo", "environment": "wet", "material": "Cast Zinc"}
        data = client.post("/wizard/results", json={"selection": selection}).json()
        assert data["outcome"] == "alternatives"
        assert data["relaxed"] == "environment"
        assert [p["id"] for p in data["products"]] == ["gem-v"]

    def test_custom_solution(self, client):
        data = client.post("/wizard/results",
                           json={"selection": {"application": "industrial", "features": ["custom_cable"]}}).json()
        assert data["outcome"] == "custom_solution"
        assert data["products"] == []


class TestWizardOptions:
    def test_by_facet(self, client):
        data = client.post("/wizard/options",
                           json={"selection": {"application": "tattoo"}, "facet": "technology"}).json()
        assert [o["value"] for o in data["options"]] == ["electrical"]

    def test_by_step(self, client):
        data = client.post("/wizard/options", json={"step": 4}).json()
        assert data["facet"] == "duty"
        assert [o["value"] for o in data["options"]] == ["heavy", "medium", "light"]

    def test_unknown_facet(self, client):
        assert client.post("/wizard/options", json={"facet": "colour"}).status_code == 422


class TestWizardBrowse:
    def test_search_and_duty(self, client):
        data = client.post("/wizard/browse", json={"search": "hercules", "duties": ["heavy"]}).json()
        assert {p["id"] for p in data["products"]} == {"hercules", "wireless-hercules", "airval-hercules"}


class TestWizardStep:
    def test_select_then_next(self, client):
        resp = client.post("/wizard/step", json={"action": "select", "facet": "application", "value": "industrial"})
        session = resp.json()["session"]
        assert session["selection"]["application"] == "industrial"

        data = client.post("/wizard/step", json={"session": session, "action": "next"}).json()
        assert data["current_facet"] == "technology"
        assert data["active_filters"] == 1
        assert "electrical" in [o["value"] for o in data["options"]]

    def test_go_to_results(self, client):
        session = {"selection": {"application": "woodworking"}}
        data = client.post("/wizard/step", json={"session": session, "action": "go_to", "value": 9}).json()
        assert data["results"]["outcome"] == "exact"

    def test_medical_flow(self, client):
        data = client.post("/wizard/step", json={"action": "select", "facet": "application", "value": "medical"}).json()
        assert data["session"]["flow"] == "medical"
        assert data["medical_slot"] == "console_style"

    def test_unknown_action(self, client):
        assert client.post("/wizard/step", json={"action": "dance"}).status_code == 422

    def test_unknown_facet(self, client):
        resp = client.post("/wizard/step", json={"action": "select", "facet": "colour", "value": "red"})
        assert resp.status_code == 422


class TestWizardExport:
    def test_xlsx_download(self, client):
        resp = client.post("/wizard/export", json={"selection": {"application": "industrial"}})
        assert resp.status_code == 200
        assert "spreadsheetml" in resp.headers["content-type"]
        wb = openpyxl.load_workbook(io.BytesIO(resp.content))
        assert wb.active.max_row > 5
