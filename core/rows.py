from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping

Row = Mapping[str, Any]

MATERIAL_FIELD = "Material"
BRANCH_FIELD = "Branch"
PRODUCT_FIELD = "Product"

PREFERRED_COLUMN_ORDER = ["Branch", "Material", "Material Description", "Product", "Last RFC"]
_RFC_EXCLUDED_TOKENS = ("Branch", "Marketing", "Last")


def as_text(value: object) -> str:
    """Render a cell value the way it is shown and compared in the grid."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def row_key(row: Row) -> str:
    return f"{as_text(row.get(MATERIAL_FIELD))}_{as_text(row.get(BRANCH_FIELD))}"


def is_editable_rfc_column(key: str) -> bool:
    """Month-year forecast columns such as "Aug 2025 RFC".

    "Last RFC", "Branch RFC" and "Marketing RFC" are reference values, not inputs.
    """
    if "RFC" not in key or not key.endswith(" RFC"):
        return False
    return not any(token in key for token in _RFC_EXCLUDED_TOKENS)


def rfc_columns(columns: Iterable[str]) -> List[str]:
    return [c for c in columns if is_editable_rfc_column(c)]


def _dynamic_sort_key(key: str):
    # Sales columns first, RFC columns last, alphabetical within each group.
    if "Sales" in key:
        group = 0
    elif "RFC" in key:
        group = 2
    else:
        group = 1
    return (group, key.lower(), key)


def order_columns(keys: Iterable[str], *, preferred: Iterable[str] = PREFERRED_COLUMN_ORDER) -> List[str]:
    preferred = list(preferred)
    keys = list(keys)
    known = sorted([k for k in keys if k in preferred], key=preferred.index)
    dynamic = sorted([k for k in keys if k not in preferred], key=_dynamic_sort_key)
    return known + dynamic


def generate_columns(rows: List[Row]) -> List[Dict[str, str]]:
    """Column configs ({"key", "label"}) derived from the first row of a fetch."""
    if not rows:
        return []
    return [{"key": k, "label": k} for k in order_columns(rows[0].keys())]
