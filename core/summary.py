from __future__ import annotations

from typing import Any, Dict, Sequence

import pandas as pd

from core.charts import rfc_summary_chart, to_vega_spec
from core.ledger import EditLedger
from core.reconcile import parse_rfc_number
from core.rows import PRODUCT_FIELD, Row, as_text


def compute_product_summary(
    ledger: EditLedger,
    rows: Sequence[Row],
    rfc_cols: Sequence[str],
    *,
    group_by: str = PRODUCT_FIELD,
) -> pd.DataFrame:
    """Total RFC per product, counting pending edits over the fetched values."""
    columns = [group_by, *rfc_cols, "materials"]
    if not rows or not rfc_cols:
        return pd.DataFrame(columns=columns)
    records = []
    for row in rows:
        record = {group_by: as_text(row.get(group_by)).strip() or "Unassigned"}
        for col in rfc_cols:
            record[col] = parse_rfc_number(ledger.get_cell_value(row, col, row.get(col)))
        records.append(record)
    df = pd.DataFrame.from_records(records)
    for col in rfc_cols:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
    summary = (
        df.groupby(group_by)
        .agg(**{col: (col, "sum") for col in rfc_cols}, materials=(rfc_cols[0], "size"))
        .reset_index()
        .sort_values(group_by)
        .reset_index(drop=True)
    )
    return summary[columns]


def compute_summary_payload(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> Dict[str, Any]:
    summary = compute_product_summary(ledger, rows, rfc_cols)
    charts = {}
    if not summary.empty:
        charts["rfc_by_product"] = to_vega_spec(rfc_summary_chart(summary, rfc_cols))
    totals = {col: float(summary[col].sum()) for col in rfc_cols if col in summary.columns}
    return {"summary": summary.to_dict(orient="records"), "totals": totals, "charts": charts}
