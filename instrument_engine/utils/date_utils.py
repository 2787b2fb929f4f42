"""Date manipulation utilities"""

from datetime import date, datetime
from typing import Union
from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]


def add_months(from_date: date, months: int) -> date:
    """Advance by calendar months, clamping to month end (Jan 31 + 1 month = Feb 28/29)"""
    return from_date + relativedelta(months=months)


def to_datetime(value: DateLike) -> datetime:
    """Promote a date to midnight of that day; datetimes pass through"""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def to_date(value: DateLike) -> date:
    """Truncate a datetime to its calendar date"""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from start to end (negative when end is earlier)"""
    return (to_date(end) - to_date(start)).days
