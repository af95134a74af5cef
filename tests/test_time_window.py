"""Unit tests for parsing the requested WIB date and time."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest

from services.errors import InvalidParameter
from services.time_window import resolve


def test_resolve_builds_wib_instants() -> None:
    window = resolve("2024-01-02", "10:00")

    assert window.date == date(2024, 1, 2)
    assert window.time == time(10, 0)
    assert window.current_instant.utcoffset() == timedelta(hours=7)
    assert window.current_instant == datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc)
    assert window.previous_instant == datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("date_str", "time_str"),
    [
        ("2024-03-01", "00:00"),
        ("2024-01-01", "06:59"),
        ("2023-12-31", "23:59"),
    ],
)
def test_previous_instant_is_exactly_one_day_earlier(date_str: str, time_str: str) -> None:
    window = resolve(date_str, time_str)

    delta = window.current_instant - window.previous_instant
    assert delta == timedelta(hours=24)
    assert window.current_instant.timestamp() - window.previous_instant.timestamp() == 86400


def test_previous_instant_crosses_leap_day() -> None:
    window = resolve("2024-03-01", "07:30")

    assert window.previous_instant.date() == date(2024, 2, 29)
    assert window.previous_instant.time() == time(7, 30)


@pytest.mark.parametrize(
    "date_str",
    ["2024/01/02", "2024-1-2", "24-01-02", "", "2024-01-02T10:00", "２０２４-01-02"],
)
def test_rejects_malformed_date(date_str: str) -> None:
    with pytest.raises(InvalidParameter, match="date"):
        resolve(date_str, "10:00")


@pytest.mark.parametrize("time_str", ["10", "10:00:00", "1:00", "10-00", " 10:00"])
def test_rejects_malformed_time(time_str: str) -> None:
    with pytest.raises(InvalidParameter, match="time"):
        resolve("2024-01-02", time_str)


@pytest.mark.parametrize(
    ("date_str", "time_str"),
    [
        ("2023-02-29", "10:00"),
        ("2024-13-01", "10:00"),
        ("2024-01-32", "10:00"),
        ("2024-01-02", "24:00"),
        ("2024-01-02", "10:60"),
    ],
)
def test_rejects_impossible_calendar_values(date_str: str, time_str: str) -> None:
    with pytest.raises(InvalidParameter):
        resolve(date_str, time_str)


@pytest.mark.parametrize(("date_str", "time_str"), [("0001-01-01", "10:00"), ("0001-01-01", "00:00")])
def test_rejects_dates_whose_previous_day_is_out_of_range(date_str: str, time_str: str) -> None:
    with pytest.raises(InvalidParameter, match="outside the supported range"):
        resolve(date_str, time_str)


def test_accepts_first_representable_previous_day() -> None:
    window = resolve("0001-01-02", "10:00")

    assert window.previous_instant == datetime(1, 1, 1, 3, 0, tzinfo=timezone.utc)
