"""Loan EMI, outstanding balance and amortization schedule"""

from dataclasses import replace
from datetime import date
from typing import List, Optional

from instrument_engine.config import settings
from instrument_engine.domain.due_tracker import next_due_date
from instrument_engine.domain.exceptions import DomainValidationError, LifecycleError
from instrument_engine.domain.faults import round_money, run_calculation
from instrument_engine.domain.models import (
    ClosureQuote,
    EmiEntry,
    Loan,
    LoanStatus,
    PaymentSplit,
    ScheduleStatus,
)
from instrument_engine.domain.validation import validate_paid_count, validate_payment_amount
from instrument_engine.utils.date_utils import DateLike, to_date


def monthly_rate(rate_pct: float) -> float:
    """Annual percentage rate -> monthly fraction (12% p.a. -> 0.01)"""
    return rate_pct / 1200


def compute_loan_emi(principal: float, rate_pct: float, tenure_months: float) -> float:
    """
    Equal monthly installment for a fully amortizing loan.

    emi = P * r * (1+r)^n / ((1+r)^n - 1), with r = rate_pct/1200

    At a zero rate the formula divides by zero; the EMI is then the
    principal spread evenly, P / n.

    Example:
        500000 at 12% for 60 months -> 11122.22
    """

    def compute() -> float:
        r = monthly_rate(rate_pct)
        if r == 0:
            return principal / tenure_months
        growth = (1 + r) ** tenure_months
        return principal * r * growth / (growth - 1)

    return run_calculation(
        "loan_emi", compute, principal=principal, rate_pct=rate_pct, tenure_months=tenure_months
    )


def amortization_outstanding(principal: float, rate_pct: float, tenure_months: float, paid_emis: int) -> float:
    """
    Principal still owed after `paid_emis` installments.

    outstanding = P * [(1+r)^n - (1+r)^k] / [(1+r)^n - 1]

    Equals P before any payment and 0 after the last one. At a zero rate
    the balance falls linearly: P * (n - k) / n.

    Raises:
        DomainValidationError: paid_emis outside 0..tenure_months
    """
    paid = validate_paid_count(paid_emis, tenure_months, "paid_emis")

    def compute() -> float:
        r = monthly_rate(rate_pct)
        if r == 0:
            return principal * (tenure_months - paid) / tenure_months
        growth_n = (1 + r) ** tenure_months
        growth_k = (1 + r) ** paid
        return principal * (growth_n - growth_k) / (growth_n - 1)

    outstanding = run_calculation(
        "loan_outstanding",
        compute,
        principal=principal,
        rate_pct=rate_pct,
        tenure_months=tenure_months,
        paid_emis=paid,
    )
    # Float residue on the final installment
    return 0.0 if abs(outstanding) < settings.rounding_tolerance else outstanding


def repayment_progress(paid_emis: int, tenure_months: int) -> int:
    """Share of installments paid, as a whole percentage for display"""
    if tenure_months <= 0:
        return 0
    return round(paid_emis / tenure_months * 100)


def split_emi_payment(outstanding: float, rate_pct: float, amount: float) -> PaymentSplit:
    """
    Allocate a payment between the month's interest and principal.

    Interest accrues on the outstanding principal for one month; whatever
    the payment leaves over reduces the principal.

    Raises:
        DomainValidationError: amount is not positive or exceeds what is owed
    """
    payment = validate_payment_amount(amount)
    interest = round_money(outstanding * monthly_rate(rate_pct))

    if payment > outstanding + interest + settings.rounding_tolerance:
        raise DomainValidationError(
            "Payment amount cannot exceed outstanding amount",
            kind=DomainValidationError.OUT_OF_RANGE,
            details={"amount": payment, "outstanding": outstanding, "interest": interest},
        )

    principal_part = round_money(max(0.0, payment - interest))
    outstanding_after = round_money(max(0.0, outstanding - principal_part))
    return PaymentSplit(
        interest=round_money(min(interest, payment)),
        principal=principal_part,
        outstanding_after=outstanding_after,
    )


def emi_schedule(loan: Loan, now: Optional[DateLike] = None) -> List[EmiEntry]:
    """
    Full amortization table for a loan.

    Row k falls due k months after the open date. The balance column
    uses the closed-form outstanding so the table always ends at 0;
    interest is one month's rate on the previous balance and the
    principal component is the drop in balance.
    """
    today = to_date(now) if now is not None else date.today()
    r = monthly_rate(loan.interest_rate)

    schedule = []
    previous_balance = loan.principal_amount
    for number in range(1, loan.tenure_months + 1):
        balance = amortization_outstanding(
            loan.principal_amount, loan.interest_rate, loan.tenure_months, number
        )
        due_date = next_due_date(loan.open_date, number - 1)

        if number <= loan.paid_emis:
            status = ScheduleStatus.PAID
        elif today > due_date:
            status = ScheduleStatus.OVERDUE
        else:
            status = ScheduleStatus.PENDING

        schedule.append(
            EmiEntry(
                number=number,
                due_date=due_date,
                emi_amount=loan.emi_amount,
                principal_component=round_money(previous_balance - balance),
                interest_component=round_money(previous_balance * r),
                outstanding_balance=balance,
                status=status,
            )
        )
        previous_balance = balance

    return schedule


def _require_active(loan: Loan) -> None:
    if loan.status != LoanStatus.ACTIVE:
        raise LifecycleError(
            f"Loan {loan.id} is not active (status: {loan.status.value})",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": loan.id, "status": loan.status.value},
        )


def record_emi_payment(loan: Loan) -> Loan:
    """
    Record one EMI against an active loan.

    Returns the loan with paid_emis advanced and the outstanding
    recomputed. Status is not changed here; evaluate the lifecycle
    afterwards to close a fully repaid loan.

    Raises:
        LifecycleError: Loan is not active or every EMI is already paid
    """
    _require_active(loan)
    if loan.paid_emis >= loan.tenure_months:
        raise LifecycleError(
            f"All {loan.tenure_months} EMIs of loan {loan.id} are already paid",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": loan.id, "paid_emis": loan.paid_emis},
        )

    paid_emis = loan.paid_emis + 1
    outstanding = amortization_outstanding(
        loan.principal_amount, loan.interest_rate, loan.tenure_months, paid_emis
    )
    return replace(loan, paid_emis=paid_emis, outstanding_amount=outstanding)


def foreclosure_quote(loan: Loan, charge_pct: Optional[float] = None) -> ClosureQuote:
    """
    Settlement amount to close an active loan early.

    The outstanding principal plus a foreclosure charge (percentage of
    the outstanding, 0 by default).

    Raises:
        LifecycleError: Loan is not active
    """
    _require_active(loan)

    if charge_pct is None:
        charge_pct = settings.foreclosure_charge_pct

    amount = round_money(loan.outstanding_amount * (1 + charge_pct / 100))
    return ClosureQuote(
        amount=amount,
        is_premature=loan.paid_emis < loan.tenure_months,
        effective_rate=loan.interest_rate,
    )
