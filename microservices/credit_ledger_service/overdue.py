"""
Overdue detection and billing-cycle date helpers.

Pure functions: nothing here performs I/O or mutates a Debt.
"""

from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta

from .models import Debt, DebtStatusEnum


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def first_day_of_month(today: Union[date, datetime]) -> date:
    return _as_date(today).replace(day=1)


def add_months(start: Union[date, datetime], months: int) -> date:
    """Shift a date by whole calendar months, clamping the day (Jan 31 + 1 -> Feb 28/29)."""
    return _as_date(start) + relativedelta(months=months)


def is_overdue(debt: Debt, today: Union[date, datetime]) -> bool:
    """
    True iff the debt is ACTIVE and its due date falls strictly before the
    first day of today's month.
    """
    if debt.status != DebtStatusEnum.ACTIVE:
        return False
    return _as_date(debt.due_date) < first_day_of_month(today)


def effective_status(debt: Debt, today: Union[date, datetime]) -> DebtStatusEnum:
    """Status as seen by readers: an overdue ACTIVE debt reads as EXPIRED."""
    if is_overdue(debt, today):
        return DebtStatusEnum.EXPIRED
    return debt.status


__all__ = ["first_day_of_month", "add_months", "is_overdue", "effective_status"]
