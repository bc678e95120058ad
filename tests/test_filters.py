from core.filters import (
    active_filter_count,
    apply_filters,
    filter_options,
    has_active_filters,
    normalize_column_filters,
)


def test_empty_filters_return_rows_unchanged(forecast_rows):
    assert apply_filters(forecast_rows, {}) is forecast_rows
    assert apply_filters(forecast_rows, {"Product": ()}) == forecast_rows


def test_filter_excludes_values_not_allowed():
    rows = [{"Product": "A"}, {"Product": "B"}]
    assert apply_filters(rows, {"Product": ["A"]}) == [{"Product": "A"}]


def test_filter_compares_trimmed_text_and_keeps_order():
    rows = [
        {"Product": " Oven ", "n": 1},
        {"Product": "Fridge", "n": 2},
        {"Product": "Oven", "n": 3},
        {"n": 4},
    ]
    out = apply_filters(rows, {"Product": ["Oven"]})
    assert [r["n"] for r in out] == [1, 3]


def test_blank_allow_list_imposes_no_constraint():
    rows = [{"Product": "A", "Series": "X"}, {"Product": "B", "Series": "Y"}]
    out = apply_filters(rows, {"Product": [], "Series": ["Y"]})
    assert out == [{"Product": "B", "Series": "Y"}]


def test_filters_do_not_mutate_inputs(forecast_rows):
    original = [dict(r) for r in forecast_rows]
    filters = {"Product": ["Oven"]}
    apply_filters(forecast_rows, filters)
    assert forecast_rows == original
    assert filters == {"Product": ["Oven"]}


def test_normalize_column_filters():
    raw = {"Product": [" Oven", "Oven", None, "Fridge"], "Series": ["X"]}
    assert normalize_column_filters(raw, filterable=["Product"]) == {"Product": ("Oven", "Fridge")}
    assert normalize_column_filters(None) == {}
    assert normalize_column_filters({"Product": "Oven"}) == {"Product": ("Oven",)}


def test_active_filter_counts():
    assert not has_active_filters({"Product": ()})
    assert has_active_filters({"Product": ("A",)})
    assert active_filter_count({"Product": ("A", "B"), "Series": ("X",)}) == 3


def test_filter_options(forecast_rows):
    assert filter_options(forecast_rows, "Product") == ["Fridge", "Oven"]
    assert filter_options(forecast_rows, "Missing") == []
