"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import Tuple

from dateutil.relativedelta import relativedelta


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end"""
    return (end - start).days


def shift_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def subtract_months(from_date: date, months: int) -> date:
    """Calendar month arithmetic; clamps to month end (Mar 31 - 1 month = Feb 28/29)"""
    return from_date - relativedelta(months=months)


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last day of the month containing `day`"""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)
