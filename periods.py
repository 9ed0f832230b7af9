import calendar
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date


def local_today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


def month_period(year: int, month: int) -> Period:
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    if not MINYEAR <= year <= MAXYEAR:
        raise ValueError(f"Year must be between {MINYEAR} and {MAXYEAR}")
    last_day = calendar.monthrange(year, month)[1]
    return Period(
        f"{year:04d}-{month:02d}", date(year, month, 1), date(year, month, last_day)
    )


def current_month(today: Optional[date] = None) -> Period:
    today = today or local_today()
    return month_period(today.year, today.month)


def shift_month(year: int, month: int, count: int) -> tuple[int, int]:
    month_index = (year * 12) + (month - 1) + count
    return month_index // 12, (month_index % 12) + 1


def last_days(days: int, today: Optional[date] = None) -> Period:
    if days < 0:
        raise ValueError("Number of days cannot be negative")
    today = today or local_today()
    try:
        start = today - timedelta(days=days)
    except OverflowError as exc:
        raise ValueError("Number of days reaches before the earliest date") from exc
    return Period(f"last_{days}_days", start, today)


def trailing_months(months: int, today: Optional[date] = None) -> list[Period]:
    """Calendar months ending with the current one, oldest first."""
    if months < 1:
        raise ValueError("Number of months must be at least 1")
    today = today or local_today()
    periods: list[Period] = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        periods.append(month_period(year, month))
    return periods


def add_months(day: date, count: int) -> date:
    """Shift ``day`` by whole months, clamping to the target month's last day."""
    year, month = shift_month(day.year, day.month, count)
    last = month_period(year, month).end
    return date(year, month, min(day.day, last.day))
