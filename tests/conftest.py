"""Pytest fixtures for testing"""

import pytest
from datetime import date

from instrument_engine.domain.models import FixedDeposit, Loan, RecurringDeposit
from instrument_engine.domain.origination import open_fixed_deposit, open_loan, open_recurring_deposit


OPEN_DATE = date(2024, 1, 15)


@pytest.fixture
def open_date() -> date:
    """Fixed opening date so due dates are deterministic"""
    return OPEN_DATE


@pytest.fixture
def fixed_deposit(open_date: date) -> FixedDeposit:
    """1-year regular FD of 100,000 at 6.5%"""
    return open_fixed_deposit("FD-001", "CUST-1", 100000, 6.5, 12, open_date=open_date)


@pytest.fixture
def recurring_deposit(open_date: date) -> RecurringDeposit:
    """12-month RD of 1,000/month at 6%"""
    return open_recurring_deposit("RD-001", "CUST-1", 1000, 6, 12, open_date=open_date)


@pytest.fixture
def loan(open_date: date) -> Loan:
    """Pending 5-year personal loan of 500,000 at 12%"""
    return open_loan("LN-001", "CUST-1", 500000, 12, 60, open_date=open_date)
