import pytest
from fastapi.testclient import TestClient

from api.main import app

ROWS = [
    {"Material": "M1", "Branch": "B1", "Product": "Fridge", "Aug RFC": 10},
    {"Material": "M2", "Branch": "B1", "Product": "Oven", "Aug RFC": 20},
]


@pytest.fixture
def api():
    return TestClient(app)


def test_meta_period(api):
    body = api.get("/meta/period").json()
    assert len(body["months"]) == 12
    assert len(body["years"]) == 11
    assert body["month"] in {m["value"] for m in body["months"]}


def test_columns(api):
    body = api.post("/columns", json={"rows": ROWS}).json()
    assert [c["key"] for c in body["columns"]] == ["Branch", "Material", "Product", "Aug RFC"]
    assert body["rfc_columns"] == ["Aug RFC"]


def test_filter(api):
    body = api.post("/filter", json={"rows": ROWS, "filters": {"Product": ["Oven"]}}).json()
    assert [r["Material"] for r in body["rows"]] == ["M2"]
    assert body["active_filters"] == 1
    assert body["options"] == {"Product": ["Fridge", "Oven"]}


def test_reconcile_partial_edit(api):
    body = api.post("/reconcile", json={"rows": ROWS, "edits": {"M1_B1": {"Aug RFC": "15"}}}).json()
    assert body["changed_records"] == [{"material": "M1", "rfc": 15}]
    assert body["modified_keys"] == ["M1_B1"]
    assert body["can_save"] is True
    assert body["can_post"] is False


def test_post_snapshot_validation(api):
    resp = api.post("/post-snapshot", json={"rows": ROWS, "edits": {"M1_B1": {"Aug RFC": "15"}}})
    assert resp.status_code == 422
    assert resp.json()["type"] == "ValidationError"

    edits = {"M1_B1": {"Aug RFC": "15"}, "M2_B1": {"Aug RFC": 25}}
    resp = api.post("/post-snapshot", json={"rows": ROWS, "edits": edits})
    assert resp.status_code == 200
    assert [r["Aug RFC"] for r in resp.json()["data"]] == ["15", "25"]


def test_summary(api):
    body = api.post("/summary", json={"rows": ROWS, "edits": {"M1_B1": {"Aug RFC": "15"}}}).json()
    assert body["summary"] == [
        {"Product": "Fridge", "Aug RFC": 15, "materials": 1},
        {"Product": "Oven", "Aug RFC": 20, "materials": 1},
    ]
    assert body["totals"] == {"Aug RFC": 35.0}
    assert "rfc_by_product" in body["charts"]


def test_export_changes_csv(api):
    resp = api.post("/export/changes", json={"rows": ROWS, "edits": {"M2_B1": {"Aug RFC": "abc"}}})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.splitlines() == ["material,rfc", "M2,0"]
