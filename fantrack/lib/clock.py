import time
from datetime import date, datetime


def today() -> date:
    return date.today()


def now() -> datetime:
    return datetime.now()


def now_ms() -> int:
    """Wall-clock epoch milliseconds."""
    return time.time_ns() // 1_000_000
