import numbers
import re
import pandas as pd
from datetime import date, datetime, time, timedelta
from typing import Any, Union
from utils.constants import (
    DAYS_PER_WEEK,
    EXCEL_EPOCH_OFFSET_DAYS,
    SECONDS_PER_DAY,
    WEEK_START_WEEKDAY,
)

DateLike = Union[date, datetime, pd.Timestamp, str]

MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
NUMERIC_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")
NOON = time(12, 0)


def to_date(value: DateLike) -> date:
    """
    Date-only normalization: strip any time-of-day so two timestamps on the
    same calendar day compare equal.

    Accepts `date`, `datetime`, `pd.Timestamp` or an ISO-like string.
    """
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = pd.to_datetime(value.strip(), errors="raise")
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Could not parse date string '{value}': {e}")
        if pd.isna(parsed):
            raise ValueError(f"Could not parse date string '{value}'")
        return parsed.date()
    raise ValueError(f"Unsupported date type: {type(value)}")


def iso_date(value: DateLike) -> str:
    return to_date(value).isoformat()


def add_days(value: DateLike, n: int) -> date:
    return to_date(value) + timedelta(days=n)


def is_same_date(a: DateLike, b: DateLike) -> bool:
    return to_date(a) == to_date(b)


def _at_noon(value: DateLike) -> datetime:
    # Midday keeps a day shift from DST or UTC conversion on the same calendar day
    return datetime.combine(to_date(value), NOON)


def normalize_to_week_start(value: DateLike) -> str:
    """ISO date of the Saturday on or immediately before `value`."""
    pinned = _at_noon(value)
    days_back = (pinned.weekday() - WEEK_START_WEEKDAY) % DAYS_PER_WEEK
    return (pinned - timedelta(days=days_back)).date().isoformat()


# --- Month anchors ("YYYY-MM") ---
def month_anchor(value: DateLike) -> str:
    d = to_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def parse_month(anchor: str) -> tuple[int, int]:
    m = MONTH_RE.match(str(anchor).strip())
    if not m or not 1 <= int(m.group(2)) <= 12:
        raise ValueError(f"Invalid month anchor '{anchor}' (expected YYYY-MM)")
    return int(m.group(1)), int(m.group(2))


def _shift_month(anchor: str, step: int) -> str:
    year, month = parse_month(anchor)
    index = year * 12 + (month - 1) + step
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def prev_month(anchor: str) -> str:
    return _shift_month(anchor, -1)


def next_month(anchor: str) -> str:
    return _shift_month(anchor, 1)


def month_bounds(anchor: str) -> tuple[date, date]:
    """First and last calendar day of the anchor month."""
    year, month = parse_month(anchor)
    first = date(year, month, 1)
    next_year, next_mon = parse_month(next_month(anchor))
    return first, date(next_year, next_mon, 1) - timedelta(days=1)


# --- Spreadsheet cell coercion ---
def excel_serial_to_date(serial: float) -> date:
    """
    Convert a spreadsheet date serial (day 0 = 1899-12-30) to a calendar date.

    The serial is shifted by the Unix epoch offset and scaled to seconds, so
    45000 becomes 2023-03-15.
    """
    seconds = (float(serial) - EXCEL_EPOCH_OFFSET_DAYS) * SECONDS_PER_DAY
    return pd.to_datetime(seconds, unit="s").date()


def parse_date_value(value: Any) -> date:
    """
    Coerce one spreadsheet date cell to a calendar date.

    Numbers (and purely numeric strings from delimited text) are treated as
    spreadsheet serials; datetime-like cells are truncated to their day; any
    other string goes through the pandas/dateutil best-effort parser.

    Raises:
        ValueError: the value is not a recognisable date.
    """
    if isinstance(value, bool):
        raise ValueError(f"Unexpected date format {value!r}")
    if isinstance(value, numbers.Real):
        if pd.isna(value):
            raise ValueError("Missing date")
        return excel_serial_to_date(value)
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return to_date(value)
    if isinstance(value, str):
        text = value.strip()
        if NUMERIC_RE.match(text):
            return excel_serial_to_date(float(text))
        return to_date(text)
    raise ValueError(f"Unexpected date format {value!r}")
