"""Recurring deposit maturity value and installment ledger"""

import math
from dataclasses import replace
from datetime import date
from typing import List, Optional

from instrument_engine.config import settings
from instrument_engine.domain.due_tracker import next_due_date
from instrument_engine.domain.exceptions import LifecycleError
from instrument_engine.domain.faults import round_money, run_calculation
from instrument_engine.domain.models import (
    ClosureQuote,
    InstallmentEntry,
    RDStatus,
    RecurringDeposit,
    ScheduleStatus,
)
from instrument_engine.domain.validation import validate_payment_amount
from instrument_engine.utils.date_utils import DateLike, to_date


def compute_rd_maturity(monthly_amount: float, rate_pct: float, tenure_months: float) -> float:
    """
    Maturity value of a recurring deposit (future value of an annuity-due).

    maturity = m * [((1+r)^n - 1) / r] * (1+r), with r = rate_pct/1200

    Each installment is paid at the start of its month and earns a full
    month of interest. At a zero rate the deposit is simply the sum of
    installments, m * n.
    """

    def compute() -> float:
        r = rate_pct / 1200
        if r == 0:
            return monthly_amount * tenure_months
        return monthly_amount * (((1 + r) ** tenure_months - 1) / r) * (1 + r)

    return run_calculation(
        "rd_maturity", compute, monthly_amount=monthly_amount, rate_pct=rate_pct, tenure_months=tenure_months
    )


def installment_schedule(rd: RecurringDeposit, now: Optional[DateLike] = None) -> List[InstallmentEntry]:
    """Every installment of the deposit with its due date and payment status"""
    today = to_date(now) if now is not None else date.today()

    schedule = []
    for number in range(1, rd.tenure_months + 1):
        due_date = next_due_date(rd.open_date, number - 1)
        if number <= rd.paid_installments:
            status = ScheduleStatus.PAID
        elif today > due_date:
            status = ScheduleStatus.OVERDUE
        else:
            status = ScheduleStatus.PENDING
        schedule.append(
            InstallmentEntry(number=number, due_date=due_date, amount=rd.monthly_amount, status=status)
        )
    return schedule


def remaining_amount(rd: RecurringDeposit) -> float:
    """Installment money still expected before the deposit is fully paid"""
    return round_money(max(0.0, rd.monthly_amount * rd.tenure_months - rd.total_paid))


def record_installment(rd: RecurringDeposit, amount: Optional[float] = None) -> RecurringDeposit:
    """
    Record the next installment of an active deposit.

    `amount` defaults to the agreed monthly amount. Returns the deposit
    with the installment counted, total_paid increased and next_due_date
    advanced; maturity is decided by the lifecycle evaluation.

    Raises:
        DomainValidationError: amount is not positive
        LifecycleError: Deposit is not active or already fully paid
    """
    if rd.status != RDStatus.ACTIVE:
        raise LifecycleError(
            f"Recurring deposit {rd.id} is not active (status: {rd.status.value})",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": rd.id, "status": rd.status.value},
        )
    if rd.paid_installments >= rd.tenure_months:
        raise LifecycleError(
            f"All {rd.tenure_months} installments of recurring deposit {rd.id} are already paid",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": rd.id, "paid_installments": rd.paid_installments},
        )

    payment = validate_payment_amount(rd.monthly_amount if amount is None else amount)
    paid_installments = rd.paid_installments + 1

    return replace(
        rd,
        paid_installments=paid_installments,
        total_paid=round_money(rd.total_paid + payment),
        next_due_date=next_due_date(rd.open_date, paid_installments),
    )


def premature_closure_quote(rd: RecurringDeposit, penalty_rate: Optional[float] = None) -> ClosureQuote:
    """
    Amount payable when a deposit is closed before completing its term.

    Whole installments paid (total_paid / monthly_amount, rounded down)
    earn the penalised rate as a shorter annuity-due; any excess paid
    beyond those installments is returned as-is. A matured deposit is
    paid its full maturity amount.

    Raises:
        LifecycleError: Deposit is already closed
    """
    if rd.status == RDStatus.CLOSED:
        raise LifecycleError(
            f"Recurring deposit {rd.id} is already closed",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": rd.id, "status": rd.status.value},
        )

    if rd.status == RDStatus.MATURED:
        return ClosureQuote(amount=rd.maturity_amount, is_premature=False, effective_rate=rd.interest_rate)

    if penalty_rate is None:
        penalty_rate = settings.premature_penalty_rate

    effective_rate = max(0.0, rd.interest_rate - penalty_rate)
    # Epsilon keeps 0.3 / 0.1 from flooring to 2
    months_paid = math.floor(rd.total_paid / rd.monthly_amount + 1e-9)
    excess = max(0.0, rd.total_paid - months_paid * rd.monthly_amount)

    amount = compute_rd_maturity(rd.monthly_amount, effective_rate, months_paid) + excess
    return ClosureQuote(amount=round_money(amount), is_premature=True, effective_rate=effective_rate)
