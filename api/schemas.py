from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RowsModel(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class FilterRequestModel(RowsModel):
    filters: Dict[str, List[str]] = Field(default_factory=dict)
    filterable: Optional[List[str]] = None


class LedgerRequestModel(RowsModel):
    edits: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ColumnsResponse(BaseModel):
    columns: List[Dict[str, str]]
    rfc_columns: List[str]


class MetaPeriodResponse(BaseModel):
    month: str
    year: str
    months: List[Dict[str, str]]
    years: List[int]
