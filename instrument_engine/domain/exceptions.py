"""Domain-specific exceptions"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    kind = "domain-error"

    def __init__(self, message: str, kind: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DomainValidationError(DomainException):
    """Input value is non-numeric or outside its allowed range"""

    OUT_OF_RANGE = "out-of-range"
    NON_NUMERIC = "non-numeric"
    MALFORMED_RECORD = "malformed-record"

    kind = OUT_OF_RANGE


class CalculationFault(DomainException):
    """Calculation produced a non-finite result.

    Never escapes the calculators: it is resolved to a fallback value,
    logged and counted.
    """

    kind = "non-finite-result"


class LifecycleError(DomainException):
    """Requested status change is not allowed from the current status"""

    ILLEGAL_TRANSITION = "illegal-transition"
    NOT_ACTIVE = "not-active"

    kind = ILLEGAL_TRANSITION
