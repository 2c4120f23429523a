"""Numeric truncation and date formatting shared by the data pipeline.

Prices are truncated toward negative infinity with ``floor(x * 10^n) / 10^n``
on plain floats. Downstream consumers compare against these exact values,
so the arithmetic must not be replaced with rounding or Decimal.
"""

import calendar
import math
from datetime import datetime


INTRADAY_DATE_FORMAT = "%Y-%m-%d %H:%M"
DAILY_DATE_FORMAT = "%Y-%m-%d"


def truncate(value: float, places: int) -> float:
    """Truncate a value to a fixed number of decimal places.

    Args:
        value: Value to truncate.
        places: Number of decimal places to keep.

    Returns:
        ``floor(value * 10**places) / 10**places``.
    """
    factor = 10 ** places
    return math.floor(value * factor) / factor


def truncate2(value: float) -> float:
    """Truncate to 2 decimal places (current price, sentiment values)."""
    return truncate(value, 2)


def truncate4(value: float) -> float:
    """Truncate to 4 decimal places (OHLC row values)."""
    return truncate(value, 4)


def format_intraday_date(timestamp: datetime) -> str:
    return timestamp.strftime(INTRADAY_DATE_FORMAT)


def format_daily_date(timestamp: datetime) -> str:
    return timestamp.strftime(DAILY_DATE_FORMAT)


def format_age(published_at: datetime, now: datetime) -> str:
    """Format the coarse age of a headline relative to ``now``.

    Args:
        published_at: Publish time of the item.
        now: Reference time, normally the fetch time.

    Returns:
        "Nd ago" when at least a day old, "Nh ago" when at least an hour
        old, otherwise "Nm ago" with a minimum of one minute.
    """
    seconds = max(int((now - published_at).total_seconds()), 0)
    days, remainder = divmod(seconds, 86400)
    hours = remainder // 3600
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    minutes = (remainder % 3600) // 60
    return f"{max(minutes, 1)}m ago"


def one_month_before(moment: datetime) -> datetime:
    """Return the same wall-clock time one calendar month earlier.

    The day is clamped to the length of the previous month, so March 31
    maps to the last day of February.
    """
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
