# calculation/dates.py
"""Calendar-day helpers.

A calendar day is a plain ``datetime.date``. All differences are taken on the
proleptic Gregorian ordinal, so no time-of-day or time zone can shift a count.
"""
import re
from datetime import date, datetime, timedelta
from typing import Any

from utils.error_handler import InvalidDateError

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def normalize(value: Any) -> date:
    """
    Truncates a date-like value to its calendar day.

    Accepts ``date`` objects, ``datetime`` objects (the day shown on the
    datetime's own clock is kept, without any time zone conversion), ISO
    ``YYYY-MM-DD`` strings and ``DD/MM/YYYY`` strings.

    Raises:
        InvalidDateError: If the value cannot be read as a calendar day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(f"Cannot interpret {value!r} as a date.", value=value)

    text = value.strip()
    # ISO strings may carry a time part, e.g. "2022-01-01T00:00:00Z"
    if "T" in text:
        text = text.split("T", 1)[0]

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
    else:
        match = _DAY_FIRST_DATE.match(text)
        if not match:
            raise InvalidDateError(f"Unrecognized date format: {value!r}", value=value)
        day, month, year = (int(part) for part in match.groups())

    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateError(f"Invalid calendar date {value!r}: {e}", value=value) from e


def days_between(start: date, end: date) -> int:
    """Whole days from start to end; negative when end precedes start."""
    return end.toordinal() - start.toordinal()


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def format_date(day: date) -> str:
    return day.isoformat()
