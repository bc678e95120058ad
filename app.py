import logging
from typing import Dict, List

import altair as alt
import pandas as pd
import streamlit as st

from core.client import RfcApiClient
from core.config import ApiConfig
from core.filters import active_filter_count, has_active_filters
from core.periods import MONTHS, month_label, year_options
from core.reconcile import parse_rfc_number
from core.rows import row_key
from core.session import RfcSession
from core.summary import compute_product_summary
from core.charts import rfc_summary_chart

alt.data_transformers.disable_max_rows()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .chip.active {background: #dbeafe;border-color: #93c5fd;color: #1d4ed8;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def format_status_chips(session: RfcSession) -> str:
    status = session.status()
    period = f"{month_label(session.month)} {session.year}"
    chips = [
        ("Branch: " + (session.branch or "All"), False),
        ("Period: " + period, False),
        (f"Modified rows: {status.modified_rows}", status.modified_rows > 0),
    ]
    if has_active_filters(session.filters):
        n_filters = active_filter_count(session.filters)
        chips.append((f"{n_filters} filter{'s' if n_filters != 1 else ''} active", True))
    return "".join(f"<span class='chip{' active' if active else ''}'>{txt}</span>" for txt, active in chips)


def get_session() -> RfcSession:
    session = st.session_state.get("rfc_session")
    if session is None:
        client = RfcApiClient(ApiConfig.from_env())
        session = RfcSession(client, autosave=False)
        st.session_state["rfc_session"] = session
    return session


def grid_frame(session: RfcSession, rows: List[Dict]) -> pd.DataFrame:
    keys = [c["key"] for c in session.columns]
    records = []
    for row in rows:
        record = {k: row.get(k) for k in keys}
        for col in session.rfc_columns:
            record[col] = session.cell_value(row, col)
        record["_key"] = row_key(row)
        records.append(record)
    return pd.DataFrame.from_records(records, columns=[*keys, "_key"]).set_index("_key")


def sync_grid_edits(session: RfcSession, before: pd.DataFrame, after: pd.DataFrame, rows: List[Dict]) -> int:
    """Push every changed RFC cell of the editor into the session ledger."""
    by_key = {row_key(r): r for r in rows}
    changed = 0
    for col in session.rfc_columns:
        if col not in after.columns:
            continue
        diff = before[col].astype(str) != after[col].astype(str)
        for key in after.index[diff]:
            row = by_key.get(key)
            if row is None:
                continue
            value = after.at[key, col]
            session.edit(row, col, "" if pd.isna(value) else value)
            changed += 1
    return changed


def summary_frame(session: RfcSession, summary: pd.DataFrame) -> pd.DataFrame:
    """Product summary with queued product-level RFCs shown over the computed totals."""
    col = session.rfc_columns[0]
    frame = summary.set_index("Product", drop=False).rename_axis(None).astype({col: "float64"})
    for product, value in session.product_edits.items():
        if product in frame.index:
            frame.at[product, col] = parse_rfc_number(value)
    return frame


def sync_summary_edits(session: RfcSession, before: pd.DataFrame, after: pd.DataFrame) -> int:
    col = session.rfc_columns[0]
    diff = before[col].astype(str) != after[col].astype(str)
    for product in after.index[diff]:
        value = after.at[product, col]
        session.edit_product_rfc(product, "" if pd.isna(value) else value)
    return int(diff.sum())


# ---------- UI setup ----------
st.set_page_config(page_title="RFC Workbench", layout="wide")
inject_base_styles()
st.title("Branch RFC")
st.caption("Edit requested forecast changes, save drafts and post the full forecast.")

session = get_session()

with st.sidebar:
    st.markdown("### Period")
    branches_result = st.session_state.get("branches_result")
    if branches_result is None:
        branches_result = session.client.branches()
        st.session_state["branches_result"] = branches_result
    if not branches_result.ok:
        st.warning(branches_result.error)
    branch_options = {b.sales_office: b.sales_branch for b in (branches_result.data or [])}
    branch = st.selectbox(
        "Branch",
        options=[""] + list(branch_options),
        format_func=lambda code: branch_options.get(code, "Select a Branch") if code else "Select a Branch",
    )
    month_values = [m["value"] for m in MONTHS]
    month = st.selectbox(
        "Month",
        options=month_values,
        index=month_values.index(session.month),
        format_func=month_label,
    )
    years = year_options()
    year = st.selectbox("Year", options=years, index=years.index(int(session.year)) if int(session.year) in years else 5)

    if (branch, month, str(year)) != (session.branch, session.month, session.year):
        session.select(branch, month, str(year))
        if session.period_ready():
            with st.spinner("Loading data..."):
                session.load()

    st.markdown("---")
    st.markdown("### Filters")
    raw_filters = {}
    for col in session.filterable_columns:
        query = st.text_input(f"Search {col}", key=f"filter_search_{col}")
        selected = session.filter_defaults(col)
        choices = session.filter_choices(col, query)
        options = choices + [v for v in selected if v not in choices]
        raw_filters[col] = st.multiselect(col, options=options, default=selected)
    session.set_filters(raw_filters)

    st.markdown("---")
    session.autosave_enabled = st.checkbox("Autosave edits", value=session.autosave_enabled)


st.markdown(f"<div class='chip-row'>{format_status_chips(session)}</div>", unsafe_allow_html=True)
if session.last_error:
    st.error(session.last_error)

visible = session.visible_rows()
if not session.rows:
    st.info("No data available. Please select branch, month, and year to view RFC data.")
    st.stop()

before = grid_frame(session, visible)
disabled_cols = [c for c in before.columns if c not in session.rfc_columns]
after = st.data_editor(
    before,
    disabled=disabled_cols,
    hide_index=True,
    use_container_width=True,
    key=f"rfc_grid_{session.generation}",
)
if sync_grid_edits(session, before, after, visible):
    logger.info("recorded grid edits; %s rows modified", session.status().modified_rows)

status = session.status()
c1, c2, c3 = st.columns([6, 1, 1])
with c1:
    st.caption(f"Showing {len(visible)} of {len(session.rows)} rows")
with c2:
    if st.button(f"Save ({status.modified_rows})", disabled=not status.can_save or session.busy):
        with st.spinner("Saving..."):
            result = session.save()
        if result.ok:
            st.success("RFC data saved.")
            st.rerun()
        else:
            st.error(result.error)
with c3:
    if st.button("Post", type="primary", disabled=not status.can_post or session.busy):
        with st.spinner("Posting..."):
            result = session.post()
        if result.ok:
            st.success("RFC data posted.")
            st.rerun()
        else:
            st.error(result.error)

if session.rfc_columns:
    st.subheader(f"Summary - {month_label(session.month)} {session.year}")
    summary = compute_product_summary(session.ledger, session.rows, session.rfc_columns)
    if not summary.empty:
        st.altair_chart(rfc_summary_chart(summary, session.rfc_columns), use_container_width=True)
        if len(session.rfc_columns) == 1:
            summary_before = summary_frame(session, summary)
            summary_after = st.data_editor(
                summary_before,
                disabled=[c for c in summary_before.columns if c != session.rfc_columns[0]],
                hide_index=True,
                key=f"rfc_summary_{session.generation}",
            )
            sync_summary_edits(session, summary_before, summary_after)
        else:
            st.dataframe(summary, hide_index=True)
        st.download_button(
            "Export CSV",
            data=summary.to_csv(index=False).encode("utf-8"),
            file_name="rfc_summary.csv",
            mime="text/csv",
        )
