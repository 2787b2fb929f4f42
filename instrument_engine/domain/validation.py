"""Input normalization and range checks, applied before any calculation runs"""

import math
from typing import Any, Optional

from instrument_engine.config import settings
from instrument_engine.domain.exceptions import DomainValidationError
from instrument_engine.domain.models import ValidatedTerms
from instrument_engine.infrastructure.observability.metrics import validation_failure_counter


def _reject(message: str, kind: str, **details: Any) -> DomainValidationError:
    validation_failure_counter.labels(kind=kind).inc()
    return DomainValidationError(message, kind=kind, details=details)


def parse_number(value: Any, field: str) -> float:
    """
    Convert a raw form/record value to a finite float.

    Accepts ints, floats and numeric strings (surrounding whitespace ignored).
    Booleans, None, NaN and infinities are treated as non-numeric.
    """
    if value is None or isinstance(value, bool):
        raise _reject(f"{field} must be a number", DomainValidationError.NON_NUMERIC, field=field, value=value)

    if isinstance(value, str):
        value = value.strip()

    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise _reject(
            f"{field} must be a number", DomainValidationError.NON_NUMERIC, field=field, value=value
        ) from e

    if not math.isfinite(number):
        raise _reject(f"{field} must be finite", DomainValidationError.NON_NUMERIC, field=field, value=value)

    return number


def validate_terms(principal: Any, rate_pct: Any, tenure_months: Any, rate_ceiling: float) -> ValidatedTerms:
    """
    Normalize and range-check a (principal, rate, tenure) triple.

    Rules:
    - principal > 0
    - 0 <= rate_pct <= rate_ceiling
    - tenure_months > 0

    Raises:
        DomainValidationError: kind "non-numeric" or "out-of-range"
    """
    principal_value = parse_number(principal, "principal")
    rate_value = parse_number(rate_pct, "interest_rate")
    tenure_value = parse_number(tenure_months, "tenure_months")

    if principal_value <= 0:
        raise _reject("Principal amount must be positive", DomainValidationError.OUT_OF_RANGE, principal=principal_value)
    if rate_value < 0:
        raise _reject("Interest rate cannot be negative", DomainValidationError.OUT_OF_RANGE, interest_rate=rate_value)
    if rate_value > rate_ceiling:
        raise _reject(
            f"Interest rate cannot exceed {rate_ceiling}%",
            DomainValidationError.OUT_OF_RANGE,
            interest_rate=rate_value,
            ceiling=rate_ceiling,
        )
    if tenure_value <= 0:
        raise _reject("Tenure must be positive", DomainValidationError.OUT_OF_RANGE, tenure_months=tenure_value)

    return ValidatedTerms(principal=principal_value, rate_pct=rate_value, tenure_months=tenure_value)


def validate_deposit_terms(principal: Any, rate_pct: Any, tenure_months: Any) -> ValidatedTerms:
    """Validate FD/RD terms against the deposit rate ceiling"""
    return validate_terms(principal, rate_pct, tenure_months, settings.deposit_rate_ceiling)


def validate_loan_terms(principal: Any, rate_pct: Any, tenure_months: Any) -> ValidatedTerms:
    """Validate loan terms against the loan rate ceiling"""
    return validate_terms(principal, rate_pct, tenure_months, settings.loan_rate_ceiling)


def require_whole_months(tenure_months: float) -> int:
    """Date arithmetic needs whole calendar months"""
    if not float(tenure_months).is_integer():
        raise _reject(
            "Tenure must be a whole number of months",
            DomainValidationError.OUT_OF_RANGE,
            tenure_months=tenure_months,
        )
    return int(tenure_months)


def validate_payment_amount(amount: Any) -> float:
    """Payments must be positive"""
    value = parse_number(amount, "amount")
    if value <= 0:
        raise _reject("Payment amount must be positive", DomainValidationError.OUT_OF_RANGE, amount=value)
    return value


def validate_paid_count(paid: Any, tenure_months: float, field: str = "paid_installments") -> int:
    """Payment counters are whole numbers in 0..tenure_months"""
    value = parse_number(paid, field)
    if not value.is_integer() or value < 0 or value > tenure_months:
        raise _reject(
            f"{field} must be a whole number between 0 and {tenure_months:g}",
            DomainValidationError.OUT_OF_RANGE,
            **{field: value, "tenure_months": tenure_months},
        )
    return int(value)


def validate_optional_rate(rate_pct: Optional[Any], rate_ceiling: float) -> Optional[float]:
    """Rate overrides may be omitted; when given they obey the same bounds"""
    if rate_pct is None:
        return None
    value = parse_number(rate_pct, "interest_rate")
    if value < 0 or value > rate_ceiling:
        raise _reject(
            f"Interest rate must be between 0 and {rate_ceiling}%",
            DomainValidationError.OUT_OF_RANGE,
            interest_rate=value,
            ceiling=rate_ceiling,
        )
    return value
