from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Union

from core.ledger import EditLedger
from core.rows import MATERIAL_FIELD, Row, as_text, row_key

logger = logging.getLogger(__name__)

Number = Union[int, float]


class ValidationError(ValueError):
    """A save/post request that must not reach the server."""


@dataclass(frozen=True)
class ReconcileStatus:
    changed_records: List[Dict[str, Any]] = field(default_factory=list)
    modified_rows: int = 0
    all_rows_fully_edited: bool = False
    can_save: bool = False
    can_post: bool = False


def parse_rfc_number(value: object) -> Number:
    """Parse an edited RFC cell; blank or non-numeric text counts as 0."""
    text = as_text(value).strip()
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    if number.is_integer():
        return int(number)
    return number


def _index_rows(rows: Sequence[Row]) -> Dict[str, Row]:
    index: Dict[str, Row] = {}
    for row in rows:
        index.setdefault(row_key(row), row)
    return index


def changed_records(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> List[Dict[str, Any]]:
    if not ledger or not rfc_cols:
        return []
    by_key = _index_rows(rows)
    records: List[Dict[str, Any]] = []
    for key in ledger:
        if not ledger.entry(key):
            continue
        row = by_key.get(key)
        if row is None:
            logger.debug("ledger key %s has no matching row", key)
            continue
        material = as_text(row.get(MATERIAL_FIELD))
        if not material:
            continue
        record: Dict[str, Any] = {"material": material}
        if len(rfc_cols) == 1:
            col = rfc_cols[0]
            record["rfc"] = parse_rfc_number(ledger.get_cell_value(row, col, row.get(col)))
        else:
            for idx, col in enumerate(rfc_cols):
                record[f"rfc{idx}"] = parse_rfc_number(ledger.get_cell_value(row, col, row.get(col)))
        records.append(record)
    return records


def all_rows_fully_edited(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> bool:
    if not rows or not rfc_cols:
        return False
    for row in rows:
        cells = ledger.entry(row_key(row))
        if not any(cells.get(col) for col in rfc_cols):
            return False
    return True


def can_save(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> bool:
    return bool(changed_records(ledger, rows, rfc_cols)) and not all_rows_fully_edited(ledger, rows, rfc_cols)


def can_post(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> bool:
    return all_rows_fully_edited(ledger, rows, rfc_cols)


def reconcile_status(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> ReconcileStatus:
    records = changed_records(ledger, rows, rfc_cols)
    full = all_rows_fully_edited(ledger, rows, rfc_cols)
    return ReconcileStatus(
        changed_records=records,
        modified_rows=len(ledger.modified_rows()),
        all_rows_fully_edited=full,
        can_save=bool(records) and not full,
        can_post=full,
    )


def post_snapshot(ledger: EditLedger, rows: Sequence[Row]) -> List[Dict[str, Any]]:
    """Every row with its pending edits applied, as new dicts."""
    snapshot: List[Dict[str, Any]] = []
    for row in rows:
        updated = dict(row)
        updated.update(ledger.entry(row_key(row)))
        snapshot.append(updated)
    return snapshot


def validate_save(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> List[Dict[str, Any]]:
    records = changed_records(ledger, rows, rfc_cols)
    if not records:
        raise ValidationError("No valid changes to save. Please edit some RFC values first.")
    if all_rows_fully_edited(ledger, rows, rfc_cols):
        raise ValidationError("Every row has been edited. Use Post to publish the full forecast.")
    return records


def validate_post(ledger: EditLedger, rows: Sequence[Row], rfc_cols: Sequence[str]) -> List[Dict[str, Any]]:
    if not rfc_cols:
        raise ValidationError("RFC columns not found.")
    if not all_rows_fully_edited(ledger, rows, rfc_cols):
        raise ValidationError("All RFC values must be filled before posting. You can use 0 but not leave any field empty.")
    return post_snapshot(ledger, rows)
