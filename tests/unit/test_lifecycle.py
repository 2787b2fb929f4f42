"""Unit tests for the instrument status state machine"""

import logging
import pytest
from dataclasses import replace
from datetime import date, timedelta
from prometheus_client import REGISTRY

from instrument_engine.domain.exceptions import LifecycleError
from instrument_engine.domain.lifecycle import (
    ALLOWED_TRANSITIONS,
    advance,
    evaluate_status,
    instrument_type_of,
    transition,
    validate_transition,
)
from instrument_engine.domain.models import (
    FDStatus,
    InstrumentType,
    LifecycleEvent,
    LoanStatus,
    RDStatus,
)


class TestFixedDepositLifecycle:
    """Fixed deposit transitions"""

    def test_matures_on_maturity_date(self, fixed_deposit):
        """Test evaluation on the maturity date yields MATURED"""
        assert transition(fixed_deposit, LifecycleEvent.EVALUATE, fixed_deposit.maturity_date) == FDStatus.MATURED

    def test_stays_active_before_maturity(self, fixed_deposit):
        """Test evaluation one day early leaves the deposit ACTIVE"""
        day_before = fixed_deposit.maturity_date - timedelta(days=1)
        assert transition(fixed_deposit, LifecycleEvent.EVALUATE, day_before) == FDStatus.ACTIVE

    def test_evaluation_is_idempotent(self, fixed_deposit):
        """Test re-evaluating a matured deposit changes nothing"""
        now = date(2025, 6, 1)
        matured = advance(fixed_deposit, LifecycleEvent.EVALUATE, now)

        assert matured.status == FDStatus.MATURED
        assert advance(matured, LifecycleEvent.EVALUATE, now) is matured

    def test_premature_close_before_maturity(self, fixed_deposit):
        """Test early closure moves an active deposit to PREMATURE"""
        assert transition(fixed_deposit, LifecycleEvent.PREMATURE_CLOSE, date(2024, 7, 15)) == FDStatus.PREMATURE

    def test_premature_close_rejected_at_maturity(self, fixed_deposit):
        """Test a deposit past its maturity date cannot close prematurely"""
        with pytest.raises(LifecycleError) as exc_info:
            transition(fixed_deposit, LifecycleEvent.PREMATURE_CLOSE, fixed_deposit.maturity_date)

        assert exc_info.value.kind == LifecycleError.ILLEGAL_TRANSITION

    def test_close_after_maturity_or_premature(self, fixed_deposit):
        """Test both MATURED and PREMATURE deposits can be closed"""
        for status in (FDStatus.MATURED, FDStatus.PREMATURE):
            assert transition(replace(fixed_deposit, status=status), LifecycleEvent.CLOSE) == FDStatus.CLOSED

    def test_active_deposit_cannot_close_directly(self, fixed_deposit):
        """Test ACTIVE -> CLOSED skips a required step"""
        with pytest.raises(LifecycleError):
            transition(fixed_deposit, LifecycleEvent.CLOSE, date(2024, 7, 15))

    def test_closed_is_terminal(self, fixed_deposit):
        """Test nothing leaves CLOSED"""
        closed = replace(fixed_deposit, status=FDStatus.CLOSED)

        with pytest.raises(LifecycleError):
            transition(closed, LifecycleEvent.CLOSE)
        assert transition(closed, LifecycleEvent.EVALUATE, date(2030, 1, 1)) == FDStatus.CLOSED

    def test_loan_event_does_not_apply(self, fixed_deposit):
        """Test DISBURSE is meaningless for a deposit"""
        with pytest.raises(LifecycleError) as exc_info:
            transition(fixed_deposit, LifecycleEvent.DISBURSE)

        assert exc_info.value.kind == LifecycleError.ILLEGAL_TRANSITION


class TestRecurringDepositLifecycle:
    """Recurring deposit transitions"""

    def test_matures_when_fully_paid(self, recurring_deposit):
        """Test all installments paid plus maturity date reached yields MATURED"""
        paid_up = replace(recurring_deposit, paid_installments=12, total_paid=12000)
        assert transition(paid_up, LifecycleEvent.EVALUATE, recurring_deposit.maturity_date) == RDStatus.MATURED

    def test_does_not_mature_with_missing_installments(self, recurring_deposit):
        """Test an RD short of installments stays ACTIVE past its maturity date"""
        short = replace(recurring_deposit, paid_installments=11, total_paid=11000)
        assert transition(short, LifecycleEvent.EVALUATE, date(2025, 6, 1)) == RDStatus.ACTIVE

    def test_does_not_mature_early(self, recurring_deposit):
        """Test paying every installment ahead of time does not mature the RD"""
        paid_up = replace(recurring_deposit, paid_installments=12, total_paid=12000)
        assert transition(paid_up, LifecycleEvent.EVALUATE, date(2024, 12, 1)) == RDStatus.ACTIVE

    def test_default_when_overdue(self, recurring_deposit):
        """Test a default signal is accepted once an installment is overdue"""
        assert transition(recurring_deposit, LifecycleEvent.DEFAULT, date(2024, 3, 1)) == RDStatus.DEFAULTED

    def test_default_rejected_when_current(self, recurring_deposit):
        """Test a default signal is refused while installments are up to date"""
        with pytest.raises(LifecycleError) as exc_info:
            transition(recurring_deposit, LifecycleEvent.DEFAULT, date(2024, 2, 10))

        assert exc_info.value.details["paid_installments"] == 0

    def test_close_from_any_open_status(self, recurring_deposit):
        """Test ACTIVE, MATURED and DEFAULTED deposits can all be closed"""
        for status in (RDStatus.ACTIVE, RDStatus.MATURED, RDStatus.DEFAULTED):
            assert transition(replace(recurring_deposit, status=status), LifecycleEvent.CLOSE) == RDStatus.CLOSED

    def test_premature_close_does_not_apply(self, recurring_deposit):
        """Test PREMATURE_CLOSE is reserved for fixed deposits"""
        with pytest.raises(LifecycleError):
            transition(recurring_deposit, LifecycleEvent.PREMATURE_CLOSE, date(2024, 3, 1))


class TestLoanLifecycle:
    """Loan transitions"""

    def test_disburse_activates_pending_loan(self, loan):
        """Test PENDING -> ACTIVE on disbursement"""
        assert transition(loan, LifecycleEvent.DISBURSE) == LoanStatus.ACTIVE

    def test_closed_loan_cannot_be_disbursed(self, loan):
        """Test a closed loan rejects DISBURSE as illegal"""
        closed = replace(loan, status=LoanStatus.CLOSED)

        with pytest.raises(LifecycleError) as exc_info:
            transition(closed, LifecycleEvent.DISBURSE)

        assert exc_info.value.kind == LifecycleError.ILLEGAL_TRANSITION
        assert exc_info.value.details["from_status"] == "closed"
        assert exc_info.value.details["to_status"] == "active"

    def test_closes_after_final_emi(self, loan):
        """Test evaluation closes a loan once every EMI is paid"""
        repaid = replace(loan, status=LoanStatus.ACTIVE, paid_emis=60, outstanding_amount=0.0)
        assert evaluate_status(repaid) == LoanStatus.CLOSED

    def test_stays_active_with_emis_left(self, loan):
        """Test evaluation leaves a loan with EMIs outstanding ACTIVE"""
        active = replace(loan, status=LoanStatus.ACTIVE, paid_emis=59)
        assert evaluate_status(active) == LoanStatus.ACTIVE

    def test_pending_loan_cannot_default(self, loan):
        """Test an undisbursed loan cannot default"""
        with pytest.raises(LifecycleError):
            transition(loan, LifecycleEvent.DEFAULT)

    def test_defaulted_loan_is_terminal(self, loan):
        """Test a defaulted loan accepts no further commands"""
        defaulted = replace(loan, status=LoanStatus.DEFAULTED)

        for event in (LifecycleEvent.DISBURSE, LifecycleEvent.FORECLOSE, LifecycleEvent.DEFAULT):
            with pytest.raises(LifecycleError):
                transition(defaulted, event)

    def test_foreclose_settles_outstanding(self, loan):
        """Test foreclosure closes the loan and zeroes the balance"""
        active = advance(loan, LifecycleEvent.DISBURSE)
        closed = advance(active, LifecycleEvent.FORECLOSE)

        assert closed.status == LoanStatus.CLOSED
        assert closed.outstanding_amount == 0.0
        assert active.outstanding_amount == 500000.0


def test_events_accept_string_values(loan):
    """Test events may be passed as their string values"""
    assert transition(loan, "disburse") == LoanStatus.ACTIVE


def test_every_target_status_is_a_known_status():
    """Test the transition table only names statuses it also has as sources"""
    for table in ALLOWED_TRANSITIONS.values():
        for targets in table.values():
            assert targets <= set(table)


def test_validate_transition_rejects_self_loop():
    """Test staying in place is not a legal command"""
    with pytest.raises(LifecycleError):
        validate_transition(InstrumentType.LOAN, LoanStatus.ACTIVE, LoanStatus.ACTIVE)


def test_instrument_type_of_rejects_unknown_objects():
    """Test arbitrary objects are not instruments"""
    with pytest.raises(TypeError):
        instrument_type_of(object())


def test_advance_logs_and_counts_transition(fixed_deposit, caplog):
    """Test an applied transition is logged and counted"""
    labels = {"instrument_type": "fixed_deposit", "to_status": "premature"}
    before = REGISTRY.get_sample_value("engine_transitions_total", labels) or 0.0

    with caplog.at_level(logging.INFO, logger="instrument_engine"):
        updated = advance(fixed_deposit, LifecycleEvent.PREMATURE_CLOSE, date(2024, 7, 15))

    assert updated.status == FDStatus.PREMATURE
    assert fixed_deposit.status == FDStatus.ACTIVE
    assert REGISTRY.get_sample_value("engine_transitions_total", labels) == before + 1

    transitions = [r for r in caplog.records if getattr(r, "step", None) == "lifecycle_transition"]
    assert len(transitions) == 1
    assert transitions[0].instrument_id == "FD-001"
    assert transitions[0].from_status == "active"
    assert transitions[0].to_status == "premature"


def test_rejections_are_counted(loan):
    """Test refused commands increment the rejection counter"""
    labels = {"instrument_type": "loan", "event": "disburse"}
    before = REGISTRY.get_sample_value("engine_lifecycle_rejections_total", labels) or 0.0

    with pytest.raises(LifecycleError):
        transition(replace(loan, status=LoanStatus.CLOSED), LifecycleEvent.DISBURSE)

    assert REGISTRY.get_sample_value("engine_lifecycle_rejections_total", labels) == before + 1


def test_unknown_event_is_rejected(loan):
    """Test an unrecognised event string is an illegal transition"""
    labels = {"instrument_type": "loan", "event": "reopen"}
    before = REGISTRY.get_sample_value("engine_lifecycle_rejections_total", labels) or 0.0

    with pytest.raises(LifecycleError) as exc_info:
        transition(loan, "reopen")

    assert exc_info.value.kind == LifecycleError.ILLEGAL_TRANSITION
    assert exc_info.value.details["event"] == "reopen"
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert REGISTRY.get_sample_value("engine_lifecycle_rejections_total", labels) == before + 1


def test_advance_rejects_unknown_event(fixed_deposit):
    """Test advance leaves the record untouched on an unknown event"""
    with pytest.raises(LifecycleError):
        advance(fixed_deposit, "renew", date(2024, 7, 15))

    assert fixed_deposit.status == FDStatus.ACTIVE
