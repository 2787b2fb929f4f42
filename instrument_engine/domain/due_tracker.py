"""Due dates, maturity countdowns and overdue checks"""

import math
from datetime import date
from typing import Iterable, List, Optional, Union

from instrument_engine.config import settings
from instrument_engine.domain.models import (
    FDStatus,
    FixedDeposit,
    Loan,
    LoanStatus,
    RDStatus,
    RecurringDeposit,
)
from instrument_engine.utils.date_utils import DateLike, add_months, to_date, to_datetime

SECONDS_PER_DAY = 24 * 60 * 60

Maturing = Union[FixedDeposit, RecurringDeposit]
Installable = Union[RecurringDeposit, Loan]


def maturity_date(open_date: date, tenure_months: int) -> date:
    """Open date advanced by the tenure in calendar months"""
    return add_months(open_date, tenure_months)


def days_to_maturity(maturity: DateLike, now: DateLike) -> int:
    """
    Days left until maturity, rounded up.

    A partial day counts as a full day remaining; zero or negative means
    the instrument has matured.
    """
    remaining = to_datetime(maturity) - to_datetime(now)
    return math.ceil(remaining.total_seconds() / SECONDS_PER_DAY)


def next_due_date(open_date: date, paid_installments: int) -> date:
    """Installment k (1-based) falls due k calendar months after opening"""
    return add_months(open_date, paid_installments + 1)


def is_overdue(open_date: date, paid_installments: int, now: DateLike) -> bool:
    """True when the next unpaid installment's due date has passed"""
    return to_date(now) > next_due_date(open_date, paid_installments)


def overdue_installments(open_date: date, paid_installments: int, tenure_months: int, now: DateLike) -> int:
    """
    Consecutive unpaid installments already past their due date.

    Installments are paid in order, so every installment after the last
    paid one whose due date is behind `now` is part of one overdue run.
    Callers compare this against their own default threshold.
    """
    today = to_date(now)
    count = 0
    for number in range(paid_installments + 1, tenure_months + 1):
        if today <= add_months(open_date, number):
            break
        count += 1
    return count


def maturing_within(
    instruments: Iterable[Maturing],
    now: DateLike,
    days_ahead: Optional[int] = None,
) -> List[Maturing]:
    """
    Deposits still open that mature within `days_ahead` days (already
    matured ones included), soonest first.
    """
    if days_ahead is None:
        days_ahead = settings.maturity_window_days

    open_statuses = (FDStatus.ACTIVE, FDStatus.MATURED, RDStatus.ACTIVE, RDStatus.MATURED)
    maturing = [
        inst
        for inst in instruments
        if inst.status in open_statuses and days_to_maturity(inst.maturity_date, now) <= days_ahead
    ]
    return sorted(maturing, key=lambda inst: inst.maturity_date)


def installments_due_within(
    instruments: Iterable[Installable],
    now: DateLike,
    days_ahead: Optional[int] = None,
) -> List[Installable]:
    """
    Active RDs and loans whose next installment falls due within
    `days_ahead` days (overdue ones included), earliest due first.
    """
    if days_ahead is None:
        days_ahead = settings.due_window_days

    due = [
        inst
        for inst in instruments
        if inst.status in (RDStatus.ACTIVE, LoanStatus.ACTIVE)
        and _paid_count(inst) < inst.tenure_months
        and days_to_maturity(next_due_date(inst.open_date, _paid_count(inst)), now) <= days_ahead
    ]
    return sorted(due, key=lambda inst: next_due_date(inst.open_date, _paid_count(inst)))


def _paid_count(inst: Installable) -> int:
    if isinstance(inst, Loan):
        return inst.paid_emis
    return inst.paid_installments
