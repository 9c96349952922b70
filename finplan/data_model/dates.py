from __future__ import annotations

from datetime import date, datetime
from typing import Any

import pandas as pd


def to_datetime(value: Any) -> datetime:
    """Coerce ISO strings, dates and pandas timestamps to a naive datetime.

    A zone suffix such as ``Z`` or ``+02:00`` is dropped and the wall-clock
    fields are kept, so every date compares against the naive clock and
    ledger dates on the calendar day it was written with.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        parsed = pd.Timestamp(value).to_pydatetime()
    return parsed.replace(tzinfo=None)


def to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def add_months(value: datetime, months: int) -> datetime:
    # DateOffset clamps to the last valid day (Jan 31 + 1 month -> Feb 28/29)
    return (pd.Timestamp(value) + pd.DateOffset(months=months)).to_pydatetime()


def start_of_month(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1, tzinfo=value.tzinfo)


def end_of_month(value: datetime) -> datetime:
    """Midnight of the last calendar day of ``value``'s month."""
    first = start_of_month(value)
    return (pd.Timestamp(first) + pd.DateOffset(months=1) - pd.Timedelta(days=1)).to_pydatetime()


def whole_months_between(start: datetime, end: datetime) -> int:
    if end < start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if add_months(start, months) > end:
        months -= 1
    return max(0, months)


def month_label(value: datetime) -> str:
    return f"{value.year}-{value.month:02d}"
