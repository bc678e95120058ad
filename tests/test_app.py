from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from core.client import Branch
from core.session import RfcSession
from tests.fakes import FakeClient

APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")

ROWS_BY_BRANCH = {
    "B1": [
        {"Material": "M1", "Branch": "B1", "Product": "Fridge", "Aug RFC": 10},
        {"Material": "M2", "Branch": "B1", "Product": "Oven", "Aug RFC": 20},
    ],
    "B2": [
        {"Material": "M7", "Branch": "B2", "Product": "Fridge", "Aug RFC": 7},
    ],
}


@pytest.fixture
def app(fake_timer):
    client = FakeClient(
        rows_by_branch=ROWS_BY_BRANCH,
        branches=[Branch("B1", "Branch One"), Branch("B2", "Branch Two")],
    )
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.session_state["rfc_session"] = RfcSession(client, timer_factory=fake_timer)
    at.run()
    assert not at.exception
    return at


def _session(at) -> RfcSession:
    return at.session_state["rfc_session"]


def _button(at, prefix: str):
    return next(b for b in at.button if b.label.startswith(prefix))


def test_branch_selection_loads_rows(app):
    app.sidebar.selectbox[0].select("B1").run()

    assert not app.exception
    session = _session(app)
    assert [r["Material"] for r in session.rows] == ["M1", "M2"]
    assert session.client.calls_named("fetch")[0][1] == "B1"


def test_edit_enables_save_and_save_refreshes(app):
    app.sidebar.selectbox[0].select("B1").run()
    session = _session(app)
    session.edit(session.rows[0], "Aug RFC", "15")
    app.run()

    save = _button(app, "Save")
    assert save.label == "Save (1)"
    assert not save.disabled
    assert _button(app, "Post").disabled

    save.click().run()
    assert not app.exception
    assert session.client.calls_named("save")[0][4] == [{"material": "M1", "rfc": 15}]
    assert not session.ledger


def test_product_filter_narrows_visible_rows(app):
    app.sidebar.selectbox[0].select("B1").run()
    app.sidebar.multiselect[0].select("Oven").run()

    assert not app.exception
    session = _session(app)
    assert session.filters == {"Product": ("Oven",)}
    assert [r["Material"] for r in session.visible_rows()] == ["M2"]
    assert any("1 filter active" in m.value for m in app.markdown)


def test_branch_change_drops_filter_values_missing_from_new_rows(app):
    app.sidebar.selectbox[0].select("B1").run()
    app.sidebar.multiselect[0].select("Oven").run()
    app.sidebar.selectbox[0].select("B2").run()

    assert not app.exception
    session = _session(app)
    assert [r["Material"] for r in session.rows] == ["M7"]
    assert session.filters == {"Product": ()}
    assert app.sidebar.multiselect[0].value == []
