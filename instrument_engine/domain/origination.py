"""Opening instruments: validate terms, derive figures, assign initial status"""

from dataclasses import replace
from datetime import date
from typing import Any, Optional

from instrument_engine.config import settings
from instrument_engine.domain.amortization import compute_loan_emi
from instrument_engine.domain.compound_interest import compute_fd_maturity
from instrument_engine.domain.due_tracker import maturity_date, next_due_date
from instrument_engine.domain.exceptions import LifecycleError
from instrument_engine.domain.models import (
    FDStatus,
    FDType,
    FixedDeposit,
    Loan,
    LoanStatus,
    LoanType,
    RDStatus,
    RDType,
    RecurringDeposit,
)
from instrument_engine.domain.recurring import compute_rd_maturity
from instrument_engine.domain.validation import (
    require_whole_months,
    validate_deposit_terms,
    validate_loan_terms,
    validate_optional_rate,
)


def open_fixed_deposit(
    id: str,
    customer_id: str,
    principal: Any,
    rate_pct: Any,
    tenure_months: Any,
    open_date: Optional[date] = None,
    fd_type: FDType = FDType.REGULAR,
    auto_renewal: bool = False,
    nominee_name: Optional[str] = None,
    nominee_relation: Optional[str] = None,
) -> FixedDeposit:
    """
    Open a fixed deposit from raw form values.

    Raises:
        DomainValidationError: Terms are non-numeric or out of range
    """
    terms = validate_deposit_terms(principal, rate_pct, tenure_months)
    tenure = require_whole_months(terms.tenure_months)
    opened = open_date or date.today()

    return FixedDeposit(
        id=id,
        customer_id=customer_id,
        principal_amount=terms.principal,
        interest_rate=terms.rate_pct,
        tenure_months=tenure,
        open_date=opened,
        maturity_date=maturity_date(opened, tenure),
        maturity_amount=compute_fd_maturity(terms.principal, terms.rate_pct, tenure),
        fd_type=FDType(fd_type),
        auto_renewal=auto_renewal,
        nominee_name=nominee_name,
        nominee_relation=nominee_relation,
        status=FDStatus.ACTIVE,
    )


def open_recurring_deposit(
    id: str,
    customer_id: str,
    monthly_amount: Any,
    rate_pct: Any,
    tenure_months: Any,
    open_date: Optional[date] = None,
    rd_type: RDType = RDType.REGULAR,
    auto_debit: bool = False,
    nominee_name: Optional[str] = None,
    nominee_relation: Optional[str] = None,
) -> RecurringDeposit:
    """
    Open a recurring deposit from raw form values.

    Raises:
        DomainValidationError: Terms are non-numeric or out of range
    """
    terms = validate_deposit_terms(monthly_amount, rate_pct, tenure_months)
    tenure = require_whole_months(terms.tenure_months)
    opened = open_date or date.today()

    return RecurringDeposit(
        id=id,
        customer_id=customer_id,
        monthly_amount=terms.principal,
        interest_rate=terms.rate_pct,
        tenure_months=tenure,
        open_date=opened,
        maturity_date=maturity_date(opened, tenure),
        maturity_amount=compute_rd_maturity(terms.principal, terms.rate_pct, tenure),
        next_due_date=next_due_date(opened, 0),
        rd_type=RDType(rd_type),
        auto_debit=auto_debit,
        nominee_name=nominee_name,
        nominee_relation=nominee_relation,
        status=RDStatus.ACTIVE,
    )


def open_loan(
    id: str,
    customer_id: str,
    principal: Any,
    rate_pct: Any,
    tenure_months: Any,
    open_date: Optional[date] = None,
    loan_type: LoanType = LoanType.PERSONAL,
) -> Loan:
    """
    Register a loan application. It stays pending until disbursed.

    Raises:
        DomainValidationError: Terms are non-numeric or out of range
    """
    terms = validate_loan_terms(principal, rate_pct, tenure_months)
    tenure = require_whole_months(terms.tenure_months)

    return Loan(
        id=id,
        customer_id=customer_id,
        principal_amount=terms.principal,
        interest_rate=terms.rate_pct,
        tenure_months=tenure,
        open_date=open_date or date.today(),
        emi_amount=compute_loan_emi(terms.principal, terms.rate_pct, tenure),
        outstanding_amount=terms.principal,
        loan_type=LoanType(loan_type),
        paid_emis=0,
        status=LoanStatus.PENDING,
    )


def revise_fixed_deposit(
    fd: FixedDeposit,
    rate_pct: Optional[Any] = None,
    tenure_months: Optional[Any] = None,
) -> FixedDeposit:
    """
    Change the rate and/or tenure of an active deposit.

    Maturity date and amount are recomputed from the original open date.

    Raises:
        LifecycleError: Deposit is not active
        DomainValidationError: New rate or tenure is out of range
    """
    if fd.status != FDStatus.ACTIVE:
        raise LifecycleError(
            f"Fixed deposit {fd.id} can only be revised while active (status: {fd.status.value})",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": fd.id, "status": fd.status.value},
        )

    new_rate = validate_optional_rate(rate_pct, settings.deposit_rate_ceiling)
    rate = fd.interest_rate if new_rate is None else new_rate

    tenure = fd.tenure_months
    if tenure_months is not None:
        terms = validate_deposit_terms(fd.principal_amount, rate, tenure_months)
        tenure = require_whole_months(terms.tenure_months)

    return replace(
        fd,
        interest_rate=rate,
        tenure_months=tenure,
        maturity_date=maturity_date(fd.open_date, tenure),
        maturity_amount=compute_fd_maturity(fd.principal_amount, rate, tenure),
    )
