"""
Time helpers for the Pomodoro application.
Minute/second conversion, clock formatting and local-day arithmetic.
"""

import math
from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, datetime]

DATE_KEY_FORMAT = "%Y-%m-%d"


def pad(value: int) -> str:
    """Zero-pad a number to two digits."""
    return f"{int(value):02d}"


def format_seconds(seconds: float) -> str:
    """Format a countdown as MM:SS. Negative values display as 00:00."""
    safe = max(0, math.floor(seconds))
    minutes = safe // 60
    secs = safe % 60
    return f"{pad(minutes)}:{pad(secs)}"


def minutes_to_seconds(minutes: float) -> int:
    return max(0, int(round(minutes * 60)))


def minutes_left(seconds: int) -> int:
    """Whole minutes left, rounded up (used for the "N min left" caption)."""
    return math.ceil(max(0, seconds) / 60)


def format_date_key(value: DateLike) -> str:
    """Return the canonical YYYY-MM-DD key for a local calendar day."""
    return f"{value.year:04d}-{pad(value.month)}-{pad(value.day)}"


def parse_date_key(key: str) -> date:
    """
    Parse a YYYY-MM-DD key.

    Raises:
        ValueError: if the key is not a real calendar date.
    """
    return datetime.strptime(key, DATE_KEY_FORMAT).date()


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def add_days(value: DateLike, offset: int) -> DateLike:
    return value + timedelta(days=offset)


def today() -> date:
    """Current local calendar day."""
    return datetime.now().date()
