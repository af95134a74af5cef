"""Parsing of the requested date and time into a query window."""

from __future__ import annotations

import re
from datetime import date, time

from models.records import QueryWindow
from services.errors import InvalidParameter

_DATE_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIME_PATTERN = re.compile(r"([0-9]{2}):([0-9]{2})")


def resolve(date_str: str, time_str: str) -> QueryWindow:
    """Interpret ``YYYY-MM-DD`` and ``HH:MM`` as a WIB wall-clock moment."""
    date_match = _DATE_PATTERN.fullmatch(date_str)
    if date_match is None:
        raise InvalidParameter(f"Invalid date {date_str!r}; expected YYYY-MM-DD.")
    time_match = _TIME_PATTERN.fullmatch(time_str)
    if time_match is None:
        raise InvalidParameter(f"Invalid time {time_str!r}; expected HH:MM.")

    year, month, day = (int(part) for part in date_match.groups())
    hour, minute = (int(part) for part in time_match.groups())
    try:
        parsed_date = date(year, month, day)
    except ValueError as exc:
        raise InvalidParameter(f"Invalid date {date_str!r}: {exc}.") from exc
    try:
        parsed_time = time(hour, minute)
    except ValueError as exc:
        raise InvalidParameter(f"Invalid time {time_str!r}: {exc}.") from exc

    window = QueryWindow(date=parsed_date, time=parsed_time)
    try:
        window.previous_instant.timestamp()
        window.current_instant.timestamp()
    except (OverflowError, ValueError) as exc:
        raise InvalidParameter(
            f"Date {date_str!r} {time_str!r} is outside the supported range."
        ) from exc
    return window
