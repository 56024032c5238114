from datetime import date, datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError
from dateutil.relativedelta import relativedelta

from . import clock

__all__ = ["is_iso_date", "parse_day", "parse_month", "shift_month_start"]


def is_iso_date(value: str) -> bool:
    """True for a strict YYYY-MM-DD calendar date."""
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_day(day_str: str) -> str | None:
    """Parses a day reference ('today', 'yesterday', '14', 'YYYY-MM-DD', 'mar 3') to ISO."""
    day_lower = day_str.strip().lower()
    today = clock.today()

    if day_lower == "today":
        return today.isoformat()
    if day_lower == "yesterday":
        return (today - timedelta(days=1)).isoformat()
    if day_lower == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    if day_lower.isdigit() and len(day_lower) <= 2:
        try:
            return today.replace(day=int(day_lower)).isoformat()
        except ValueError:
            return None
    try:
        return (
            dateutil_parser.parse(day_str, default=datetime(today.year, today.month, today.day))
            .date()
            .isoformat()
        )
    except (ParserError, ValueError, OverflowError):
        return None


def parse_month(month_str: str) -> date | None:
    """Parses 'YYYY-MM' or a month name into the first day of that month."""
    s = month_str.strip().lower()
    first = clock.today().replace(day=1)
    if s in {"", "this", "current"}:
        return first
    try:
        parsed = dateutil_parser.parse(month_str, default=datetime(first.year, first.month, 1))
    except (ParserError, ValueError, OverflowError):
        return None
    return parsed.date().replace(day=1)


def shift_month_start(day: date, months: int) -> date:
    return day.replace(day=1) + relativedelta(months=months)
