"""Adapters from persisted instrument records (plain dicts) to domain models"""

from datetime import date
from typing import Any, Dict, Mapping

from instrument_engine.domain.amortization import amortization_outstanding, compute_loan_emi
from instrument_engine.domain.compound_interest import compute_fd_maturity
from instrument_engine.domain.due_tracker import maturity_date, next_due_date
from instrument_engine.domain.exceptions import DomainValidationError
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
from instrument_engine.domain.validation import parse_number, require_whole_months, validate_paid_count
from instrument_engine.infrastructure.observability.metrics import validation_failure_counter

# Status strings written by older back-office versions
LEGACY_FD_STATUSES: Dict[str, FDStatus] = {"closed_premature": FDStatus.CLOSED}
LEGACY_RD_STATUSES: Dict[str, RDStatus] = {"completed": RDStatus.ACTIVE, "closed_premature": RDStatus.CLOSED}
LEGACY_LOAN_STATUSES: Dict[str, LoanStatus] = {"foreclosed": LoanStatus.CLOSED}


def _malformed(record: Mapping[str, Any], error: Exception) -> DomainValidationError:
    validation_failure_counter.labels(kind=DomainValidationError.MALFORMED_RECORD).inc()
    return DomainValidationError(
        f"Invalid instrument record: {error}",
        kind=DomainValidationError.MALFORMED_RECORD,
        details={"id": record.get("id")},
    )


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    # Stored as ISO dates, sometimes with a time part
    return date.fromisoformat(str(value)[:10])


def _open_date(record: Mapping[str, Any]) -> date:
    return _parse_date(record["open_date"] if "open_date" in record else record["start_date"])


def _tenure(record: Mapping[str, Any]) -> int:
    tenure = parse_number(record["tenure_months"], "tenure_months")
    if tenure <= 0:
        raise ValueError(f"tenure_months must be positive, got {tenure:g}")
    return require_whole_months(tenure)


def _optional_date(record: Mapping[str, Any], key: str, default: date) -> date:
    value = record.get(key)
    return _parse_date(value) if value else default


def fixed_deposit_from_record(record: Mapping[str, Any]) -> FixedDeposit:
    """
    Build a FixedDeposit from a stored row.

    Derived fields (maturity date and amount) are recomputed when absent.

    Raises:
        DomainValidationError: kind "malformed-record" for missing keys, bad
            numbers or dates, or unknown enum values
    """
    try:
        principal = parse_number(record["principal_amount"], "principal_amount")
        rate = parse_number(record["interest_rate"], "interest_rate")
        tenure = _tenure(record)
        opened = _open_date(record)

        raw_status = record.get("status") or FDStatus.ACTIVE
        status = LEGACY_FD_STATUSES.get(raw_status) or FDStatus(raw_status)

        maturity_amount = record.get("maturity_amount")
        return FixedDeposit(
            id=str(record["id"]),
            customer_id=str(record["customer_id"]),
            principal_amount=principal,
            interest_rate=rate,
            tenure_months=tenure,
            open_date=opened,
            maturity_date=_optional_date(record, "maturity_date", maturity_date(opened, tenure)),
            maturity_amount=(
                parse_number(maturity_amount, "maturity_amount")
                if maturity_amount is not None
                else compute_fd_maturity(principal, rate, tenure)
            ),
            fd_type=FDType(record.get("fd_type") or FDType.REGULAR),
            auto_renewal=bool(record.get("auto_renewal", False)),
            nominee_name=record.get("nominee_name"),
            nominee_relation=record.get("nominee_relation"),
            status=status,
        )
    except (DomainValidationError, KeyError, ValueError, TypeError, ArithmeticError) as e:
        raise _malformed(record, e) from e


def recurring_deposit_from_record(record: Mapping[str, Any]) -> RecurringDeposit:
    """
    Build a RecurringDeposit from a stored row.

    When the installment count is not stored it is derived from
    total_paid in whole monthly amounts.

    Raises:
        DomainValidationError: kind "malformed-record" for missing keys, bad
            numbers or dates, or unknown enum values
    """
    try:
        monthly = parse_number(record["monthly_amount"], "monthly_amount")
        rate = parse_number(record["interest_rate"], "interest_rate")
        tenure = _tenure(record)
        opened = _open_date(record)
        total_paid = parse_number(record.get("total_paid", 0), "total_paid")

        if record.get("paid_installments") is not None:
            paid = validate_paid_count(record["paid_installments"], tenure, "paid_installments")
        else:
            paid = min(tenure, int(total_paid // monthly))

        raw_status = record.get("status") or RDStatus.ACTIVE
        status = LEGACY_RD_STATUSES.get(raw_status) or RDStatus(raw_status)

        maturity_amount = record.get("maturity_amount")
        return RecurringDeposit(
            id=str(record["id"]),
            customer_id=str(record["customer_id"]),
            monthly_amount=monthly,
            interest_rate=rate,
            tenure_months=tenure,
            open_date=opened,
            maturity_date=_optional_date(record, "maturity_date", maturity_date(opened, tenure)),
            maturity_amount=(
                parse_number(maturity_amount, "maturity_amount")
                if maturity_amount is not None
                else compute_rd_maturity(monthly, rate, tenure)
            ),
            next_due_date=next_due_date(opened, paid),
            rd_type=RDType(record.get("rd_type") or RDType.REGULAR),
            auto_debit=bool(record.get("auto_debit", False)),
            paid_installments=paid,
            total_paid=total_paid,
            nominee_name=record.get("nominee_name"),
            nominee_relation=record.get("nominee_relation"),
            status=status,
        )
    except (DomainValidationError, KeyError, ValueError, TypeError, ArithmeticError) as e:
        raise _malformed(record, e) from e


def loan_from_record(record: Mapping[str, Any]) -> Loan:
    """
    Build a Loan from a stored row.

    EMI and outstanding principal are recomputed from the terms when
    absent.

    Raises:
        DomainValidationError: kind "malformed-record" for missing keys, bad
            numbers or dates, or unknown enum values
    """
    try:
        principal = parse_number(record["principal_amount"], "principal_amount")
        rate = parse_number(record["interest_rate"], "interest_rate")
        tenure = _tenure(record)
        paid = validate_paid_count(record.get("paid_emis", 0), tenure, "paid_emis")

        raw_status = record.get("status") or LoanStatus.PENDING
        status = LEGACY_LOAN_STATUSES.get(raw_status) or LoanStatus(raw_status)

        emi = record.get("emi_amount")
        outstanding = record.get("outstanding_amount")
        return Loan(
            id=str(record["id"]),
            customer_id=str(record["customer_id"]),
            principal_amount=principal,
            interest_rate=rate,
            tenure_months=tenure,
            open_date=_open_date(record),
            emi_amount=(
                parse_number(emi, "emi_amount") if emi is not None else compute_loan_emi(principal, rate, tenure)
            ),
            outstanding_amount=(
                parse_number(outstanding, "outstanding_amount")
                if outstanding is not None
                else amortization_outstanding(principal, rate, tenure, paid)
            ),
            loan_type=LoanType(record.get("loan_type") or LoanType.PERSONAL),
            paid_emis=paid,
            status=status,
        )
    except (DomainValidationError, KeyError, ValueError, TypeError, ArithmeticError) as e:
        raise _malformed(record, e) from e
