"""
Date Utilities Module

Normalises snapshot timestamps and provides the calendar-month primitive
used by loan accrual. All timestamps are compared as naive UTC datetimes.
"""

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Union
import calendar

from .errors import InvalidInputError


DateLike = Union[date, datetime, str]


class MonthOverflowPolicy(Enum):
    """How day-of-month overflow is resolved when adding months"""
    CLAMP = "clamp"          # Jan 31 + 1 month -> Feb 28/29
    ROLLOVER = "rollover"    # Jan 31 + 1 month -> Mar 3 (Mar 2 in leap years)


def to_datetime(value: Any, field: str) -> datetime:
    """
    Normalise a date, datetime or ISO-8601 string to a naive UTC datetime

    Plain dates become midnight. Aware datetimes are converted to UTC and
    stripped of tzinfo so that every comparison is between naive values.
    Reporting years therefore follow UTC: 2025-12-31T20:00-05:00 belongs to
    2026. Callers wanting local years pass naive local timestamps.

    Raises:
        InvalidInputError: If the value is missing or malformed
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(field, f"malformed date '{value}'", value)
        return to_datetime(parsed, field)

    raise InvalidInputError(field, "a date or datetime is required", value)


def add_months(value: datetime, months: int,
               policy: MonthOverflowPolicy = MonthOverflowPolicy.CLAMP) -> datetime:
    """
    Add calendar months to a timestamp, keeping the time of day

    Args:
        value: Starting timestamp (date or datetime)
        months: Number of months to add (may be negative)
        policy: Resolution for days that do not exist in the target month

    Returns:
        Shifted timestamp of the same type as value
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]

    if value.day <= last_day:
        return value.replace(year=year, month=month)

    if policy == MonthOverflowPolicy.CLAMP:
        return value.replace(year=year, month=month, day=last_day)

    # Rollover: surplus days spill into the following month
    first = value.replace(year=year, month=month, day=1)
    return first + timedelta(days=value.day - 1)


def year_of(value: Any, field: str) -> int:
    """Calendar year of a snapshot date"""
    return to_datetime(value, field).year


def step_month(anchor: datetime, previous: datetime, k: int,
               policy: MonthOverflowPolicy = MonthOverflowPolicy.CLAMP) -> datetime:
    """
    k-th monthly step of a schedule starting at anchor

    Clamped schedules are computed from the anchor so a day-31 schedule
    returns to day 31 after February. Rollover schedules advance a cursor
    one month from the previous step, so once Jan 31 has become Mar 3 the
    next step is Apr 3.
    """
    if policy == MonthOverflowPolicy.ROLLOVER:
        return add_months(previous, 1, policy)
    return add_months(anchor, k, policy)
