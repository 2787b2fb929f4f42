"""Fixed deposit maturity value with quarterly compounding"""

from datetime import date
from typing import Optional

from instrument_engine.config import settings
from instrument_engine.domain.exceptions import LifecycleError
from instrument_engine.domain.faults import run_calculation
from instrument_engine.domain.models import ClosureQuote, FDStatus, FixedDeposit
from instrument_engine.utils.date_utils import DateLike, days_between, to_date

COMPOUNDING_PERIODS_PER_YEAR = 4
MONTHS_PER_PERIOD = 12 // COMPOUNDING_PERIODS_PER_YEAR


def compute_fd_maturity(principal: float, rate_pct: float, tenure_months: float) -> float:
    """
    Maturity value of a fixed deposit.

    maturity = principal * (1 + rate_pct/400) ^ (tenure_months/3)

    Interest compounds quarterly: the periodic rate is rate_pct/4/100 and
    there are tenure_months/3 periods, so partial quarters compound
    fractionally. A non-finite result resolves to 0.

    Example:
        100000 at 6.5% for 12 months -> 4 periods at 1.625% -> 106660.16
    """
    return run_calculation(
        "fd_maturity",
        lambda: principal
        * (1 + rate_pct / (COMPOUNDING_PERIODS_PER_YEAR * 100)) ** (tenure_months / MONTHS_PER_PERIOD),
        principal=principal,
        rate_pct=rate_pct,
        tenure_months=tenure_months,
    )


def premature_closure_quote(
    fd: FixedDeposit,
    on_date: Optional[DateLike] = None,
    penalty_rate: Optional[float] = None,
) -> ClosureQuote:
    """
    Amount payable if the deposit is closed on `on_date`.

    Before maturity the rate is cut by `penalty_rate` % p.a. (floored at 0)
    and interest accrues only for the months actually completed, measured
    as elapsed days / average month length. On or after maturity the full
    maturity amount is payable.

    Raises:
        LifecycleError: The deposit is already closed or prematurely settled
    """
    if fd.status not in (FDStatus.ACTIVE, FDStatus.MATURED):
        raise LifecycleError(
            f"Fixed deposit {fd.id} is not open for closure (status: {fd.status.value})",
            kind=LifecycleError.NOT_ACTIVE,
            details={"id": fd.id, "status": fd.status.value},
        )

    closing_on = to_date(on_date) if on_date is not None else date.today()

    if closing_on >= fd.maturity_date:
        return ClosureQuote(amount=fd.maturity_amount, is_premature=False, effective_rate=fd.interest_rate)

    if penalty_rate is None:
        penalty_rate = settings.premature_penalty_rate

    effective_rate = max(0.0, fd.interest_rate - penalty_rate)
    months_completed = max(0, days_between(fd.open_date, closing_on)) / settings.days_per_month

    amount = compute_fd_maturity(fd.principal_amount, effective_rate, months_completed)
    return ClosureQuote(amount=amount, is_premature=True, effective_rate=effective_rate)
