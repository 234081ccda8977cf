"""
Statistics engine for the Pomodoro application.

Turns the sparse per-day history into a dense, gap-filled series for a
requested time range, plus aggregate totals. Every function here is pure:
the input history mapping is never mutated.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .models import DailyStat
from .time_utils import add_days, format_date_key, parse_date_key, today as local_today

logger = logging.getLogger(__name__)

DATE_KEY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# Stand-in start for the "all" range; replaced by the earliest history key.
EPOCH_START = date(1970, 1, 1)

TODAY_LABEL = "今天"
YESTERDAY_LABEL = "昨天"


def _as_day(value: Optional[date]) -> date:
    """Calendar day of a date or datetime; the current local day for None."""
    if value is None:
        return local_today()
    if isinstance(value, datetime):
        return value.date()
    return value


class TimeRange(str, Enum):
    SEVEN_DAYS = "7days"
    THIRTY_DAYS = "30days"
    ALL = "all"


TIME_RANGE_LABEL = {
    TimeRange.SEVEN_DAYS: "最近7天",
    TimeRange.THIRTY_DAYS: "最近30天",
    TimeRange.ALL: "全部",
}


@dataclass(frozen=True)
class StatisticsTotals:
    total_minutes: int = 0
    total_pomodoros: int = 0


def _clean_number(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(0, int(value))


def _read_field(stat: Any, attr: str, *wire_names: str) -> Any:
    if isinstance(stat, DailyStat):
        return getattr(stat, attr)
    for name in wire_names:
        if name in stat:
            return stat[name]
    return None


def validate_and_clean_history(history: Optional[Mapping[str, Any]]) -> Dict[str, DailyStat]:
    """
    Validate raw history data and return a cleaned copy.

    Entries whose key is not a real YYYY-MM-DD date, or whose value is not
    a record, are dropped. Missing or non-numeric counters become 0.
    Records written by older versions stored the session counter as
    ``sessions``; it is read as ``completedPomodoros``.
    """
    cleaned: Dict[str, DailyStat] = {}
    if not history:
        return cleaned

    for date_key, stat in history.items():
        if not isinstance(date_key, str) or not DATE_KEY_PATTERN.fullmatch(date_key):
            logger.warning("Invalid date format in history: %r", date_key)
            continue
        try:
            parse_date_key(date_key)
        except ValueError:
            logger.warning("Invalid calendar date in history: %s", date_key)
            continue
        if not isinstance(stat, (DailyStat, Mapping)):
            logger.warning("Invalid stat object for date: %s", date_key)
            continue

        cleaned[date_key] = DailyStat(
            date=date_key,
            focus_minutes=_clean_number(_read_field(stat, "focus_minutes", "focusMinutes")),
            completed_pomodoros=_clean_number(
                _read_field(stat, "completed_pomodoros", "completedPomodoros", "sessions")
            ),
        )

    return cleaned


def calculate_start_date(today: date, time_range: Union[TimeRange, str]) -> date:
    """
    First day of the inclusive window ending today.

    7days and 30days cover exactly 7 and 30 calendar days. "all" returns
    EPOCH_START; process_history_data replaces it with the earliest key.
    """
    today = _as_day(today)
    time_range = TimeRange(time_range)
    if time_range == TimeRange.SEVEN_DAYS:
        return add_days(today, -6)
    if time_range == TimeRange.THIRTY_DAYS:
        return add_days(today, -29)
    return EPOCH_START


def generate_date_range(start: date, end: date) -> List[date]:
    """Every calendar day from start to end inclusive, ascending."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current = add_days(current, 1)
    return days


def format_date(date_key: str, today: Optional[date] = None) -> str:
    """
    Friendly label for a date key: 今天, 昨天, or e.g. 1月15日.
    Comparison is by calendar day, not elapsed hours.
    """
    today = _as_day(today)
    day = parse_date_key(date_key)

    if format_date_key(day) == format_date_key(today):
        return TODAY_LABEL
    if format_date_key(day) == format_date_key(add_days(today, -1)):
        return YESTERDAY_LABEL
    return f"{day.month}月{day.day}日"


def process_history_data(
    history: Optional[Mapping[str, Any]],
    time_range: Union[TimeRange, str],
    today: Optional[date] = None
) -> List[DailyStat]:
    """
    Dense per-day series for the requested range, ascending by date.

    Args:
        history: Raw or cleaned history mapping; not modified.
        time_range: 7days, 30days or all.
        today: Local day the window ends on (defaults to the current day).

    Returns:
        One point per calendar day, with days absent from the history
        zero-filled. An empty history under "all" yields an empty list.
    """
    cleaned = validate_and_clean_history(history)
    today = _as_day(today)
    time_range = TimeRange(time_range)

    start = calculate_start_date(today, time_range)
    if time_range == TimeRange.ALL:
        if not cleaned:
            return []
        start = parse_date_key(min(cleaned))

    points = []
    for day in generate_date_range(start, today):
        key = format_date_key(day)
        stat = cleaned.get(key)
        points.append(DailyStat(
            date=key,
            focus_minutes=stat.focus_minutes if stat else 0,
            completed_pomodoros=stat.completed_pomodoros if stat else 0,
        ))
    return points


def calculate_totals(points: List[DailyStat]) -> StatisticsTotals:
    return StatisticsTotals(
        total_minutes=sum(p.focus_minutes for p in points),
        total_pomodoros=sum(p.completed_pomodoros for p in points),
    )


def newest_first(points: List[DailyStat]) -> List[DailyStat]:
    """History-list order: most recent day first."""
    return sorted(points, key=lambda p: p.date, reverse=True)


def today_stat(history: Mapping[str, DailyStat], today: Optional[date] = None) -> DailyStat:
    """Today's record, zero-valued if nothing has been logged yet."""
    key = format_date_key(_as_day(today))
    stat = history.get(key)
    if stat is None:
        return DailyStat(date=key)
    return stat
