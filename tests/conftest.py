from __future__ import annotations

from typing import Any, Dict, List

import pytest

from tests.fakes import FakeTimer


@pytest.fixture
def fake_timer():
    FakeTimer.created = []
    return FakeTimer


@pytest.fixture
def forecast_rows() -> List[Dict[str, Any]]:
    return [
        {"Material": "M1", "Branch": "B1", "Product": "Fridge", "Last RFC": 8, "Aug RFC": 10},
        {"Material": "M2", "Branch": "B1", "Product": "Fridge", "Last RFC": 18, "Aug RFC": 20},
        {"Material": "M3", "Branch": "B1", "Product": "Oven", "Last RFC": 3, "Aug RFC": 5},
    ]
