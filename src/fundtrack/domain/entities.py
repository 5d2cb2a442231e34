"""Domain model entities for fundtrack.

These are pure data classes representing business concepts, independent of
database schema. Goals deliberately have no balance attribute: the amount
saved towards a goal is always derived from its allocations.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

# Smallest unit every stored amount is a whole multiple of.
CENT = Decimal("0.01")


class TransactionKind(str, Enum):
    """Kinds of ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    FEE = "fee"
    INVESTMENT_DEPOSIT = "investment_deposit"
    INVESTMENT_WITHDRAWAL = "investment_withdrawal"
    INVESTMENT_RETURN = "investment_return"
    LENDING = "lending"
    REPAYMENT = "repayment"
    REVERSAL = "reversal"

    @property
    def reversal_reference_kind(self) -> str:
        """Reference kind carried by reversals of this kind."""
        return f"{self.value}_reversal"


class GoalStatus(str, Enum):
    """Goal lifecycle states."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ContributionKind(str, Enum):
    """Kinds of goal audit record."""

    CONTRIBUTION = "contribution"
    WITHDRAWAL = "withdrawal"
    REFUND = "refund"


class TrendGranularity(str, Enum):
    """Bucket size for trend reports."""

    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class Account:
    """Real store of value."""

    id: int
    name: str
    institution_name: str
    balance: Decimal
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class LedgerTransaction:
    """Immutable fund movement record."""

    id: int
    from_account_id: Optional[int]
    to_account_id: Optional[int]
    kind: TransactionKind
    amount: Decimal
    date: date
    category: Optional[str]
    description: Optional[str]
    reference_kind: Optional[str]
    reference_id: Optional[str]
    created_at: datetime

    @property
    def voided_key(self) -> str:
        """Key a reversal uses to void this transaction."""
        if self.reference_id:
            return self.reference_id
        return str(self.id)


@dataclass(frozen=True)
class Goal:
    """Virtual savings target linked to a real account."""

    id: int
    name: str
    target_amount: Decimal
    deadline: Optional[date]
    description: Optional[str]
    category: str
    status: GoalStatus
    linked_account_id: Optional[int]
    abandonment_reason: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class GoalAllocation:
    """Portion of a ledger transaction allocated to a goal.

    The id is assigned in creation order and is the FIFO key.
    """

    id: int
    goal_id: int
    ledger_transaction_id: int
    amount: Decimal
    created_at: datetime


@dataclass(frozen=True)
class GoalContributionRecord:
    """Write-once audit entry for a goal fund movement."""

    id: int
    goal_id: int
    kind: ContributionKind
    amount: Decimal
    date: date
    notes: Optional[str]
    account_id: Optional[int]
    ledger_transaction_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class GoalProgress:
    """Goal together with its derived balance."""

    goal: Goal
    current_amount: Decimal
    progress_percent: float
    display_status: GoalStatus


@dataclass(frozen=True)
class GoalsSummary:
    """Counts and totals across a list of goals."""

    total: int
    active: int
    paused: int
    completed: int
    abandoned: int
    total_target_amount: Decimal
    total_saved_amount: Decimal


@dataclass(frozen=True)
class KindTotal:
    """Non-voided transactions of one kind within a window."""

    kind: TransactionKind
    transactions: tuple[LedgerTransaction, ...]
    total: Decimal


@dataclass(frozen=True)
class CategoryTotal:
    """Spending in a single category."""

    category: str
    total: Decimal
    count: int
    average: Decimal
    percentage: float


@dataclass(frozen=True)
class CategoryBreakdown:
    """Spending grouped by category, largest first."""

    categories: tuple[CategoryTotal, ...]
    total: Decimal


@dataclass(frozen=True)
class TrendBucket:
    """Income and spending for one calendar month or year."""

    period: str
    income: Decimal
    expenses: Decimal
    fees: Decimal
    transaction_count: int
    income_change: float = 0.0
    expense_change: float = 0.0
    savings_change: float = 0.0

    @property
    def total_expenses(self) -> Decimal:
        return self.expenses + self.fees

    @property
    def savings(self) -> Decimal:
        return self.income - self.expenses - self.fees

    @property
    def savings_rate(self) -> float:
        if self.income == 0:
            return 0.0
        return float(self.savings / self.income * 100)


@dataclass(frozen=True)
class TrendReport:
    """Trend buckets in chronological order plus window totals."""

    granularity: TrendGranularity
    buckets: tuple[TrendBucket, ...]
    income: Decimal
    expenses: Decimal
    fees: Decimal

    @property
    def total_expenses(self) -> Decimal:
        return self.expenses + self.fees

    @property
    def savings(self) -> Decimal:
        return self.income - self.expenses - self.fees


@dataclass(frozen=True)
class CashFlowEntry:
    """Ledger transaction with its signed contribution to cash flow."""

    transaction: LedgerTransaction
    flow_amount: Decimal


@dataclass(frozen=True)
class DailyFlow:
    """Net cash flow for one day and the running total up to it."""

    date: date
    inflow: Decimal
    outflow: Decimal
    net: Decimal
    cumulative: Decimal


@dataclass(frozen=True)
class CashFlowReport:
    """Inflows versus outflows over a window."""

    inflows: Decimal
    outflows: Decimal
    entries: tuple[CashFlowEntry, ...]
    daily: tuple[DailyFlow, ...]

    @property
    def net_flow(self) -> Decimal:
        return self.inflows - self.outflows

    @property
    def inflow_outflow_ratio(self) -> Optional[float]:
        if self.outflows == 0:
            return None
        return float(self.inflows / self.outflows)


@dataclass(frozen=True)
class ReportSummary:
    """Headline figures for a reporting window."""

    total_income: Decimal
    total_expenses: Decimal
    total_transactions: int
    avg_daily_expense: Decimal
    top_category: Optional[CategoryTotal]

    @property
    def net_savings(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def savings_rate(self) -> float:
        if self.total_income == 0:
            return 0.0
        return float(self.net_savings / self.total_income * 100)


@dataclass(frozen=True)
class ExploredTransaction:
    """Ledger transaction flagged with whether a reversal voids it."""

    transaction: LedgerTransaction
    is_reversed: bool
