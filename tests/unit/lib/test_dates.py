from datetime import date

import pytest

from fantrack.lib import clock
from fantrack.lib.dates import is_iso_date, parse_day, parse_month, shift_month_start


@pytest.fixture
def fixed_today(monkeypatch):
    monkeypatch.setattr(clock, "today", lambda: date(2024, 3, 15))


def test_is_iso_date():
    assert is_iso_date("2024-02-29")
    assert not is_iso_date("2023-02-29")
    assert not is_iso_date("2024-2-9")
    assert not is_iso_date(None)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("today", "2024-03-15"),
        ("Yesterday", "2024-03-14"),
        ("tomorrow", "2024-03-16"),
        ("3", "2024-03-03"),
        ("2024-01-31", "2024-01-31"),
    ],
)
def test_parse_day(fixed_today, raw, expected):
    assert parse_day(raw) == expected


def test_parse_day_invalid(fixed_today):
    assert parse_day("32") is None
    assert parse_day("not a day") is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("this", date(2024, 3, 1)),
        ("march", date(2024, 3, 1)),
        ("2023-11", date(2023, 11, 1)),
    ],
)
def test_parse_month(fixed_today, raw, expected):
    assert parse_month(raw) == expected


def test_parse_month_invalid(fixed_today):
    assert parse_month("smarch") is None


def test_shift_month_start_clamps_to_first():
    assert shift_month_start(date(2024, 1, 31), 1) == date(2024, 2, 1)
    assert shift_month_start(date(2024, 1, 31), -1) == date(2023, 12, 1)
