"""Instrument status state machine"""

from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

from instrument_engine.domain.due_tracker import is_overdue
from instrument_engine.domain.exceptions import LifecycleError
from instrument_engine.domain.models import (
    FDStatus,
    FixedDeposit,
    InstrumentType,
    LifecycleEvent,
    Loan,
    LoanStatus,
    RDStatus,
    RecurringDeposit,
)
from instrument_engine.infrastructure.observability.logging import log_transition
from instrument_engine.infrastructure.observability.metrics import (
    lifecycle_rejection_counter,
    record_transition,
)
from instrument_engine.utils.date_utils import DateLike, to_date

Instrument = Union[FixedDeposit, RecurringDeposit, Loan]

# Every permitted status change. Anything absent is illegal, including
# staying in place on an explicit command.
ALLOWED_TRANSITIONS: Dict[InstrumentType, Dict[Enum, Set[Enum]]] = {
    InstrumentType.FIXED_DEPOSIT: {
        FDStatus.ACTIVE: {FDStatus.MATURED, FDStatus.PREMATURE},
        FDStatus.MATURED: {FDStatus.CLOSED},
        FDStatus.PREMATURE: {FDStatus.CLOSED},
        FDStatus.CLOSED: set(),
    },
    InstrumentType.RECURRING_DEPOSIT: {
        RDStatus.ACTIVE: {RDStatus.MATURED, RDStatus.DEFAULTED, RDStatus.CLOSED},
        RDStatus.MATURED: {RDStatus.CLOSED},
        RDStatus.DEFAULTED: {RDStatus.CLOSED},
        RDStatus.CLOSED: set(),
    },
    InstrumentType.LOAN: {
        LoanStatus.PENDING: {LoanStatus.ACTIVE},
        LoanStatus.ACTIVE: {LoanStatus.CLOSED, LoanStatus.DEFAULTED},
        LoanStatus.DEFAULTED: set(),
        LoanStatus.CLOSED: set(),
    },
}

# Target status requested by each command event, per instrument type
COMMAND_TARGETS: Dict[InstrumentType, Dict[LifecycleEvent, Enum]] = {
    InstrumentType.FIXED_DEPOSIT: {
        LifecycleEvent.PREMATURE_CLOSE: FDStatus.PREMATURE,
        LifecycleEvent.CLOSE: FDStatus.CLOSED,
    },
    InstrumentType.RECURRING_DEPOSIT: {
        LifecycleEvent.CLOSE: RDStatus.CLOSED,
        LifecycleEvent.DEFAULT: RDStatus.DEFAULTED,
    },
    InstrumentType.LOAN: {
        LifecycleEvent.DISBURSE: LoanStatus.ACTIVE,
        LifecycleEvent.FORECLOSE: LoanStatus.CLOSED,
        LifecycleEvent.DEFAULT: LoanStatus.DEFAULTED,
    },
}


def instrument_type_of(instrument: Instrument) -> InstrumentType:
    if isinstance(instrument, FixedDeposit):
        return InstrumentType.FIXED_DEPOSIT
    if isinstance(instrument, RecurringDeposit):
        return InstrumentType.RECURRING_DEPOSIT
    if isinstance(instrument, Loan):
        return InstrumentType.LOAN
    raise TypeError(f"Unsupported instrument: {type(instrument).__name__}")


def _reject(instrument_type: InstrumentType, event: LifecycleEvent, message: str, **details) -> LifecycleError:
    lifecycle_rejection_counter.labels(instrument_type=instrument_type.value, event=event.value).inc()
    return LifecycleError(message, kind=LifecycleError.ILLEGAL_TRANSITION, details=details)


def _parse_event(instrument_type: InstrumentType, event: Any) -> LifecycleEvent:
    try:
        return LifecycleEvent(event)
    except ValueError as e:
        lifecycle_rejection_counter.labels(instrument_type=instrument_type.value, event=str(event)).inc()
        raise LifecycleError(
            f"Unknown lifecycle event: {event!r}",
            kind=LifecycleError.ILLEGAL_TRANSITION,
            details={"instrument_type": instrument_type.value, "event": str(event)},
        ) from e


def validate_transition(instrument_type: InstrumentType, from_status: Enum, to_status: Enum) -> None:
    """
    Check a status change against the transition table.

    Raises:
        LifecycleError: kind "illegal-transition"
    """
    allowed = ALLOWED_TRANSITIONS[instrument_type].get(from_status, set())
    if to_status not in allowed:
        raise LifecycleError(
            f"Cannot move {instrument_type.value} from {from_status.value} to {to_status.value}",
            kind=LifecycleError.ILLEGAL_TRANSITION,
            details={
                "instrument_type": instrument_type.value,
                "from_status": from_status.value,
                "to_status": to_status.value,
            },
        )


def _evaluated_status(instrument: Instrument, today: date) -> Enum:
    """Status implied by elapsed time and recorded payments"""
    if isinstance(instrument, FixedDeposit):
        if instrument.status == FDStatus.ACTIVE and today >= instrument.maturity_date:
            return FDStatus.MATURED

    elif isinstance(instrument, RecurringDeposit):
        if (
            instrument.status == RDStatus.ACTIVE
            and instrument.paid_installments >= instrument.tenure_months
            and today >= instrument.maturity_date
        ):
            return RDStatus.MATURED

    elif isinstance(instrument, Loan):
        if instrument.status == LoanStatus.ACTIVE and instrument.paid_emis >= instrument.tenure_months:
            return LoanStatus.CLOSED

    return instrument.status


def transition(instrument: Instrument, event: LifecycleEvent, now: Optional[DateLike] = None) -> Enum:
    """
    Status the instrument should hold after `event`.

    EVALUATE applies time- and payment-driven changes (FD/RD maturity,
    loan repayment) and returns the current status unchanged when no
    condition is met, so repeated evaluation is idempotent. Every other
    event is an explicit command and must name a legal transition.

    Raises:
        LifecycleError: Event does not apply to this instrument type or
            its current status
    """
    instrument_type = instrument_type_of(instrument)
    event = _parse_event(instrument_type, event)
    today = to_date(now) if now is not None else date.today()

    if event == LifecycleEvent.EVALUATE:
        target = _evaluated_status(instrument, today)
        if target != instrument.status:
            validate_transition(instrument_type, instrument.status, target)
        return target

    target = COMMAND_TARGETS[instrument_type].get(event)
    if target is None:
        raise _reject(
            instrument_type,
            event,
            f"Event {event.value} does not apply to {instrument_type.value}",
            id=instrument.id,
        )

    if event == LifecycleEvent.PREMATURE_CLOSE and today >= instrument.maturity_date:
        raise _reject(
            instrument_type,
            event,
            f"Fixed deposit {instrument.id} has reached maturity and cannot close prematurely",
            id=instrument.id,
            maturity_date=instrument.maturity_date.isoformat(),
        )

    if (
        isinstance(instrument, RecurringDeposit)
        and event == LifecycleEvent.DEFAULT
        and instrument.status == RDStatus.ACTIVE
        and not is_overdue(instrument.open_date, instrument.paid_installments, today)
    ):
        raise _reject(
            instrument_type,
            event,
            f"Recurring deposit {instrument.id} has no overdue installment",
            id=instrument.id,
            paid_installments=instrument.paid_installments,
        )

    try:
        validate_transition(instrument_type, instrument.status, target)
    except LifecycleError:
        lifecycle_rejection_counter.labels(instrument_type=instrument_type.value, event=event.value).inc()
        raise
    return target


def evaluate_status(instrument: Instrument, now: Optional[DateLike] = None) -> Enum:
    """Status as of `now`, for reads of records whose stored status may be stale"""
    return transition(instrument, LifecycleEvent.EVALUATE, now)


def advance(instrument: Instrument, event: LifecycleEvent, now: Optional[DateLike] = None) -> Instrument:
    """
    Apply `event` and return the updated record.

    Foreclosing a loan also settles its outstanding amount to 0.
    """
    event = _parse_event(instrument_type_of(instrument), event)
    new_status = transition(instrument, event, now)
    if new_status == instrument.status:
        return instrument

    instrument_type = instrument_type_of(instrument)
    record_transition(instrument_type.value, instrument.status.value, new_status.value)
    log_transition(instrument_type.value, instrument.id, instrument.status.value, new_status.value, event.value)

    if isinstance(instrument, Loan) and event == LifecycleEvent.FORECLOSE:
        return replace(instrument, status=new_status, outstanding_amount=0.0)
    return replace(instrument, status=new_status)
