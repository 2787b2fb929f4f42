"""Resolution of non-finite calculation results to documented fallbacks"""

import math
from typing import Any, Callable

from instrument_engine.domain.exceptions import CalculationFault
from instrument_engine.infrastructure.observability.logging import log_calculation_fault
from instrument_engine.infrastructure.observability.metrics import calculation_fault_counter


def round_money(amount: float) -> float:
    """Round to 2 decimal places (paise/cents)"""
    return round(amount, 2)


def ensure_finite(value: float, calculator: str) -> float:
    """Raise CalculationFault for NaN, infinities and non-real results"""
    if isinstance(value, complex) or not math.isfinite(value):
        raise CalculationFault(f"{calculator} produced a non-finite result", details={"value": str(value)})
    return value


def run_calculation(calculator: str, compute: Callable[[], float], fallback: float = 0.0, **inputs: Any) -> float:
    """
    Evaluate a money calculation, resolving faults instead of raising.

    Division by zero, float overflow, malformed operands and non-finite
    results all resolve to `fallback`; the fault is logged and counted.
    Successful results are rounded to 2 decimals.
    """
    try:
        return round_money(ensure_finite(compute(), calculator))
    except (CalculationFault, ArithmeticError, TypeError, ValueError):
        calculation_fault_counter.labels(calculator=calculator).inc()
        log_calculation_fault(calculator, {k: repr(v) for k, v in inputs.items()}, fallback)
        return fallback
