"""Date manipulation utilities for monthly billing periods"""

import calendar
from datetime import date, datetime


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month"""
    return calendar.monthrange(year, month)[1]


def billing_date_in_month(year: int, month: int, billing_day: int) -> date:
    """
    Resolve a billing day-of-month to a concrete date.

    Days past the end of the month clamp to the last valid day, so day 31
    lands on Apr 30 and on Feb 28/29 instead of spilling into the next month.
    """
    return date(year, month, min(billing_day, days_in_month(year, month)))


def add_billing_months(current: date, billing_day: int, months: int = 1) -> date:
    """
    Billing date `months` calendar months away from `current`.

    Re-anchored to `billing_day` on every step: Jan 31 -> Feb 28 -> Mar 31,
    not Mar 28.
    """
    month_index = current.month - 1 + months
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    return billing_date_in_month(year, month, billing_day)


def to_date(value: date | datetime) -> date:
    """Calendar date of a date or timestamp"""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(start: date, end: date) -> int:
    """Signed whole days from start to end (negative when end is earlier)"""
    return (to_date(end) - to_date(start)).days
