from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple

MONTHS: List[Dict[str, str]] = [
    {"value": "01", "label": "January"},
    {"value": "02", "label": "February"},
    {"value": "03", "label": "March"},
    {"value": "04", "label": "April"},
    {"value": "05", "label": "May"},
    {"value": "06", "label": "June"},
    {"value": "07", "label": "July"},
    {"value": "08", "label": "August"},
    {"value": "09", "label": "September"},
    {"value": "10", "label": "October"},
    {"value": "11", "label": "November"},
    {"value": "12", "label": "December"},
]


def next_month_and_year(today: Optional[date] = None) -> Tuple[str, str]:
    """The forecast period opened by default: the calendar month after `today`."""
    today = today or date.today()
    if today.month == 12:
        return "01", str(today.year + 1)
    return f"{today.month + 1:02d}", str(today.year)


def year_options(today: Optional[date] = None, span: int = 5) -> List[int]:
    current = (today or date.today()).year
    return list(range(current - span, current + span + 1))


def month_label(month: str) -> str:
    for m in MONTHS:
        if m["value"] == str(month).zfill(2):
            return m["label"]
    return ""
