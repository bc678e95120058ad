from __future__ import annotations

from typing import Any, Dict, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def rfc_summary_chart(summary: pd.DataFrame, rfc_cols: Sequence[str], *, group_by: str = "Product") -> alt.Chart:
    value_cols = [c for c in rfc_cols if c in summary.columns]
    long = summary.melt(id_vars=[group_by], value_vars=value_cols, var_name="period", value_name="rfc")
    return (
        alt.Chart(long)
        .mark_bar()
        .encode(
            x=alt.X(f"{group_by}:N", title=group_by, sort="-y"),
            y=alt.Y("rfc:Q", title="RFC Units", axis=alt.Axis(format="~s")),
            color=alt.Color("period:N", title="Period"),
            tooltip=[group_by, "period", alt.Tooltip("rfc:Q", format=",")],
        )
    )
