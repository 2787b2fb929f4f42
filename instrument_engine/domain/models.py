"""Domain models - pure Python dataclasses representing financial instruments"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class InstrumentType(str, Enum):
    FIXED_DEPOSIT = "fixed_deposit"
    RECURRING_DEPOSIT = "recurring_deposit"
    LOAN = "loan"


class FDStatus(str, Enum):
    ACTIVE = "active"
    MATURED = "matured"
    PREMATURE = "premature"
    CLOSED = "closed"


class RDStatus(str, Enum):
    ACTIVE = "active"
    MATURED = "matured"
    DEFAULTED = "defaulted"
    CLOSED = "closed"


class LoanStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DEFAULTED = "defaulted"
    CLOSED = "closed"


class FDType(str, Enum):
    REGULAR = "regular"
    SENIOR_CITIZEN = "senior_citizen"
    TAX_SAVER = "tax_saver"
    FLEXI = "flexi"


class RDType(str, Enum):
    REGULAR = "regular"
    SENIOR_CITIZEN = "senior_citizen"
    MINOR = "minor"
    NRI = "nri"


class LoanType(str, Enum):
    PERSONAL = "personal"
    BUSINESS = "business"
    HOME = "home"
    VEHICLE = "vehicle"
    EDUCATION = "education"
    GOLD = "gold"


class LifecycleEvent(str, Enum):
    """Events that can move an instrument between statuses"""

    EVALUATE = "evaluate"  # Time tick or post-payment re-check
    PREMATURE_CLOSE = "premature_close"
    CLOSE = "close"
    DISBURSE = "disburse"
    FORECLOSE = "foreclose"
    DEFAULT = "default"  # Caller-supplied delinquency signal


class ScheduleStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class FixedDeposit:
    """Lump-sum time deposit"""

    id: str
    customer_id: str
    principal_amount: float
    interest_rate: float
    tenure_months: int
    open_date: date
    maturity_date: date
    maturity_amount: float
    fd_type: FDType = FDType.REGULAR
    auto_renewal: bool = False
    nominee_name: Optional[str] = None
    nominee_relation: Optional[str] = None
    status: FDStatus = FDStatus.ACTIVE


@dataclass(frozen=True)
class RecurringDeposit:
    """Fixed monthly installments accumulating to a maturity value"""

    id: str
    customer_id: str
    monthly_amount: float
    interest_rate: float
    tenure_months: int
    open_date: date
    maturity_date: date
    maturity_amount: float
    next_due_date: date
    rd_type: RDType = RDType.REGULAR
    auto_debit: bool = False
    paid_installments: int = 0
    total_paid: float = 0.0
    nominee_name: Optional[str] = None
    nominee_relation: Optional[str] = None
    status: RDStatus = RDStatus.ACTIVE


@dataclass(frozen=True)
class Loan:
    """Amortizing loan repaid in equal monthly installments"""

    id: str
    customer_id: str
    principal_amount: float
    interest_rate: float
    tenure_months: int
    open_date: date
    emi_amount: float
    outstanding_amount: float
    loan_type: LoanType = LoanType.PERSONAL
    paid_emis: int = 0
    status: LoanStatus = LoanStatus.PENDING


@dataclass
class ValidatedTerms:
    """Normalized (principal, rate, tenure) triple"""

    principal: float
    rate_pct: float
    tenure_months: float


@dataclass
class InstallmentEntry:
    """Single RD installment in the ledger"""

    number: int
    due_date: date
    amount: float
    status: ScheduleStatus


@dataclass
class EmiEntry:
    """Single row of a loan amortization table"""

    number: int
    due_date: date
    emi_amount: float
    principal_component: float
    interest_component: float
    outstanding_balance: float
    status: ScheduleStatus


@dataclass
class PaymentSplit:
    """Interest/principal allocation of a loan payment"""

    interest: float
    principal: float
    outstanding_after: float


@dataclass
class ClosureQuote:
    """Amount payable when an instrument is closed"""

    amount: float
    is_premature: bool
    effective_rate: float


@dataclass
class FDPortfolioStats:
    total: int
    active: int
    matured: int
    premature: int
    closed: int
    total_active_principal: float
    total_active_maturity: float
    avg_interest_rate: float


@dataclass
class RDPortfolioStats:
    total: int
    active: int
    matured: int
    defaulted: int
    closed: int
    total_collected: float
    total_maturity: float
    avg_interest_rate: float


@dataclass
class LoanPortfolioStats:
    total: int
    pending: int
    active: int
    defaulted: int
    closed: int
    total_disbursed: float
    total_outstanding: float
    avg_interest_rate: float
