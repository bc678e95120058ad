from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from core.rows import Row, as_text

ColumnFilters = Dict[str, Tuple[str, ...]]

DEFAULT_FILTERABLE_COLUMNS: Tuple[str, ...] = ("Product",)


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        text = as_text(v).strip()
        if text not in out:
            out.append(text)
    return tuple(out)


def normalize_column_filters(
    raw: Optional[Mapping[str, Iterable[object]]],
    *,
    filterable: Optional[Iterable[str]] = None,
) -> ColumnFilters:
    if not raw:
        return {}
    allowed = set(filterable) if filterable is not None else None
    out: ColumnFilters = {}
    for column, values in raw.items():
        if allowed is not None and column not in allowed:
            continue
        out[str(column)] = _as_str_tuple(values)
    return out


def has_active_filters(filters: Mapping[str, Iterable[str]]) -> bool:
    return any(len(tuple(values)) > 0 for values in filters.values())


def active_filter_count(filters: Mapping[str, Iterable[str]]) -> int:
    return sum(len(tuple(values)) for values in filters.values())


def apply_filters(rows: List[Row], filters: Mapping[str, Iterable[str]]) -> List[Row]:
    """Keep rows whose value is allowed by every non-empty column allow-list.

    With no active allow-list the input list itself is returned.
    """
    active = {column: set(values) for column, values in filters.items() if values}
    if not rows or not active:
        return rows
    return [
        row
        for row in rows
        if all(as_text(row.get(column)).strip() in allowed for column, allowed in active.items())
    ]


def filter_options(rows: List[Row], column: str) -> List[str]:
    values = {as_text(row.get(column)).strip() for row in rows}
    values.discard("")
    return sorted(values)
