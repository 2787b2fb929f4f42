"""Portfolio statistics across instrument collections"""

from typing import Iterable, List, Sequence

from instrument_engine.domain.faults import round_money
from instrument_engine.domain.models import (
    FDPortfolioStats,
    FDStatus,
    FixedDeposit,
    Loan,
    LoanPortfolioStats,
    LoanStatus,
    RDPortfolioStats,
    RDStatus,
    RecurringDeposit,
)


def _average_rate(rates: Sequence[float]) -> float:
    return round(sum(rates) / len(rates), 2) if rates else 0.0


def summarize_fixed_deposits(deposits: Iterable[FixedDeposit]) -> FDPortfolioStats:
    """Counts by status plus principal and maturity value held in active deposits"""
    deposits = list(deposits)
    active = [fd for fd in deposits if fd.status == FDStatus.ACTIVE]

    return FDPortfolioStats(
        total=len(deposits),
        active=len(active),
        matured=sum(1 for fd in deposits if fd.status == FDStatus.MATURED),
        premature=sum(1 for fd in deposits if fd.status == FDStatus.PREMATURE),
        closed=sum(1 for fd in deposits if fd.status == FDStatus.CLOSED),
        total_active_principal=round_money(sum(fd.principal_amount for fd in active)),
        total_active_maturity=round_money(sum(fd.maturity_amount for fd in active)),
        avg_interest_rate=_average_rate([fd.interest_rate for fd in active]),
    )


def summarize_recurring_deposits(deposits: Iterable[RecurringDeposit]) -> RDPortfolioStats:
    """
    Counts by status plus money collected and owed at maturity.

    Totals cover deposits the bank still holds (active or matured).
    """
    deposits = list(deposits)
    held: List[RecurringDeposit] = [
        rd for rd in deposits if rd.status in (RDStatus.ACTIVE, RDStatus.MATURED)
    ]

    return RDPortfolioStats(
        total=len(deposits),
        active=sum(1 for rd in deposits if rd.status == RDStatus.ACTIVE),
        matured=sum(1 for rd in deposits if rd.status == RDStatus.MATURED),
        defaulted=sum(1 for rd in deposits if rd.status == RDStatus.DEFAULTED),
        closed=sum(1 for rd in deposits if rd.status == RDStatus.CLOSED),
        total_collected=round_money(sum(rd.total_paid for rd in held)),
        total_maturity=round_money(sum(rd.maturity_amount for rd in held)),
        avg_interest_rate=_average_rate([rd.interest_rate for rd in held]),
    )


def summarize_loans(loans: Iterable[Loan]) -> LoanPortfolioStats:
    """Counts by status plus principal disbursed and still outstanding on active loans"""
    loans = list(loans)
    active = [loan for loan in loans if loan.status == LoanStatus.ACTIVE]

    return LoanPortfolioStats(
        total=len(loans),
        pending=sum(1 for loan in loans if loan.status == LoanStatus.PENDING),
        active=len(active),
        defaulted=sum(1 for loan in loans if loan.status == LoanStatus.DEFAULTED),
        closed=sum(1 for loan in loans if loan.status == LoanStatus.CLOSED),
        total_disbursed=round_money(sum(loan.principal_amount for loan in active)),
        total_outstanding=round_money(sum(loan.outstanding_amount for loan in active)),
        avg_interest_rate=_average_rate([loan.interest_rate for loan in active]),
    )
