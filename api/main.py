from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ColumnsResponse, FilterRequestModel, LedgerRequestModel, MetaPeriodResponse, RowsModel
from core.filters import (
    DEFAULT_FILTERABLE_COLUMNS,
    active_filter_count,
    apply_filters,
    filter_options,
    normalize_column_filters,
)
from core.ledger import EditLedger
from core.periods import MONTHS, next_month_and_year, year_options
from core.reconcile import ValidationError, changed_records, post_snapshot, reconcile_status, validate_post
from core.rows import generate_columns, rfc_columns
from core.summary import compute_summary_payload


app = FastAPI(title="RFC Workbench API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _dataset(model: RowsModel):
    rows = model.rows
    rfc_cols = rfc_columns(c["key"] for c in generate_columns(rows))
    return rows, rfc_cols


@app.get("/meta/period")
def meta_period():
    try:
        month, year = next_month_and_year()
        payload = MetaPeriodResponse(month=month, year=year, months=MONTHS, years=year_options())
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_period failed")
        return _error(exc)


@app.post("/columns")
def columns(model: RowsModel):
    try:
        cols = generate_columns(model.rows)
        payload = ColumnsResponse(columns=cols, rfc_columns=rfc_columns(c["key"] for c in cols))
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("columns failed")
        return _error(exc)


@app.post("/filter")
def filter_rows(model: FilterRequestModel):
    try:
        filterable = model.filterable if model.filterable is not None else list(DEFAULT_FILTERABLE_COLUMNS)
        filters = normalize_column_filters(model.filters, filterable=filterable)
        rows = apply_filters(model.rows, filters)
        return _json(
            {
                "rows": rows,
                "total": len(model.rows),
                "visible": len(rows),
                "active_filters": active_filter_count(filters),
                "options": {col: filter_options(model.rows, col) for col in filterable},
            }
        )
    except Exception as exc:
        logger.exception("filter failed")
        return _error(exc)


@app.post("/reconcile")
def reconcile(model: LedgerRequestModel):
    try:
        rows, rfc_cols = _dataset(model)
        ledger = EditLedger.from_mapping(model.edits)
        status = reconcile_status(ledger, rows, rfc_cols)
        return _json(
            {
                "rfc_columns": rfc_cols,
                "modified_keys": sorted(ledger.modified_rows()),
                "changed_records": status.changed_records,
                "modified_rows": status.modified_rows,
                "all_rows_fully_edited": status.all_rows_fully_edited,
                "can_save": status.can_save,
                "can_post": status.can_post,
            }
        )
    except Exception as exc:
        logger.exception("reconcile failed")
        return _error(exc)


@app.post("/post-snapshot")
def post_snapshot_endpoint(model: LedgerRequestModel):
    try:
        rows, rfc_cols = _dataset(model)
        ledger = EditLedger.from_mapping(model.edits)
        return _json({"data": validate_post(ledger, rows, rfc_cols)})
    except ValidationError as exc:
        return _error(exc, status_code=422)
    except Exception as exc:
        logger.exception("post_snapshot failed")
        return _error(exc)


@app.post("/summary")
def summary(model: LedgerRequestModel):
    try:
        rows, rfc_cols = _dataset(model)
        ledger = EditLedger.from_mapping(model.edits)
        return _json(compute_summary_payload(ledger, rows, rfc_cols))
    except Exception as exc:
        logger.exception("summary failed")
        return _error(exc)


@app.post("/export/{kind}")
def export(kind: Literal["changes", "snapshot"], model: LedgerRequestModel):
    rows, rfc_cols = _dataset(model)
    ledger = EditLedger.from_mapping(model.edits)
    if kind == "changes":
        export_df = pd.DataFrame(changed_records(ledger, rows, rfc_cols))
    else:
        export_df = pd.DataFrame(post_snapshot(ledger, rows))
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=rfc_{kind}.csv"},
    )
