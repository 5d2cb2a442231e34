"""Reversal-aware reporting service.

Reports read the ledger only. Voided entries (those named by a reversal) are
removed before anything is summed, and reversal entries themselves are never
counted as income or spending.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from fundtrack.database.base import Database
from fundtrack.domain.entities import (
    CENT,
    CashFlowEntry,
    CashFlowReport,
    CategoryBreakdown,
    CategoryTotal,
    DailyFlow,
    ExploredTransaction,
    KindTotal,
    LedgerTransaction,
    ReportSummary,
    TransactionKind,
    TrendBucket,
    TrendGranularity,
    TrendReport,
)
from fundtrack.domain.reversal import ReversalResolver

UNCATEGORIZED = "Uncategorized"


def percent_change(current: Decimal, previous: Decimal, use_absolute: bool = False) -> float:
    """Percentage change from previous to current, 0 when previous is 0."""
    if previous == 0:
        return 0.0
    base = abs(previous) if use_absolute else previous
    return float((current - previous) / base * 100)


def _sum(transactions: Sequence[LedgerTransaction]) -> Decimal:
    return sum((t.amount for t in transactions), Decimal("0"))


class ReportingService:
    """Service for building income, spending and cash-flow reports."""

    def __init__(self, db: Database, resolver: Optional[ReversalResolver] = None):
        """Initialize reporting service.

        Args:
            db: Database instance
            resolver: Reversal resolver (built from db when omitted)
        """
        self.db = db
        self.resolver = resolver or ReversalResolver(db)

    def by_kind(self, kind: TransactionKind, start: Optional[date], end: Optional[date]) -> KindTotal:
        """Non-voided entries of one kind in [start, end] and their total."""
        kind = TransactionKind(kind)
        transactions = self.resolver.filter_kind(kind, start, end)
        return KindTotal(kind=kind, transactions=tuple(transactions), total=_sum(transactions))

    def category_breakdown(self, start: Optional[date], end: Optional[date]) -> CategoryBreakdown:
        """Group expenses and fees by category, largest total first."""
        expenses = self.by_kind(TransactionKind.EXPENSE, start, end)
        fees = self.by_kind(TransactionKind.FEE, start, end)
        return self.build_category_breakdown(expenses.transactions + fees.transactions)

    def build_category_breakdown(self, transactions: Sequence[LedgerTransaction]) -> CategoryBreakdown:
        """Build category totals from already filtered spending entries."""
        grand_total = _sum(transactions)
        if grand_total == 0:
            return CategoryBreakdown(categories=(), total=Decimal("0"))

        grouped: dict[str, list[LedgerTransaction]] = defaultdict(list)
        for txn in transactions:
            grouped[txn.category or UNCATEGORIZED].append(txn)

        categories = []
        for category, members in grouped.items():
            total = _sum(members)
            categories.append(
                CategoryTotal(
                    category=category,
                    total=total,
                    count=len(members),
                    average=(total / len(members)).quantize(CENT, rounding=ROUND_HALF_UP),
                    percentage=float(total / grand_total * 100),
                )
            )

        categories.sort(key=lambda c: (-c.total, c.category))
        return CategoryBreakdown(categories=tuple(categories), total=grand_total)

    def monthly_trend(self, start: Optional[date], end: Optional[date]) -> TrendReport:
        """Income, spending and savings per calendar month."""
        return self._trend(start, end, TrendGranularity.MONTH)

    def yearly_trend(self, start: Optional[date], end: Optional[date]) -> TrendReport:
        """Income, spending and savings per calendar year."""
        return self._trend(start, end, TrendGranularity.YEAR)

    def _trend(self, start: Optional[date], end: Optional[date], granularity: TrendGranularity) -> TrendReport:
        income = self.by_kind(TransactionKind.INCOME, start, end)
        expenses = self.by_kind(TransactionKind.EXPENSE, start, end)
        fees = self.by_kind(TransactionKind.FEE, start, end)

        buckets = self.build_trend_buckets(
            income.transactions, expenses.transactions, fees.transactions, granularity
        )
        return TrendReport(
            granularity=granularity,
            buckets=tuple(buckets),
            income=income.total,
            expenses=expenses.total,
            fees=fees.total,
        )

    def build_trend_buckets(
        self,
        income: Sequence[LedgerTransaction],
        expenses: Sequence[LedgerTransaction],
        fees: Sequence[LedgerTransaction],
        granularity: TrendGranularity,
    ) -> list[TrendBucket]:
        """Bucket filtered entries by period and compute period-over-period deltas."""
        period_format = "%Y-%m" if granularity == TrendGranularity.MONTH else "%Y"
        totals: dict[str, dict[str, Decimal]] = defaultdict(
            lambda: {"income": Decimal("0"), "expenses": Decimal("0"), "fees": Decimal("0")}
        )
        counts: dict[str, int] = defaultdict(int)

        for field, transactions in (("income", income), ("expenses", expenses), ("fees", fees)):
            for txn in transactions:
                period = txn.date.strftime(period_format)
                totals[period][field] += txn.amount
                counts[period] += 1

        buckets: list[TrendBucket] = []
        previous: Optional[TrendBucket] = None
        for period in sorted(totals):
            values = totals[period]
            bucket = TrendBucket(
                period=period,
                income=values["income"],
                expenses=values["expenses"],
                fees=values["fees"],
                transaction_count=counts[period],
            )
            if previous is not None:
                bucket = replace(
                    bucket,
                    income_change=percent_change(bucket.income, previous.income),
                    expense_change=percent_change(bucket.total_expenses, previous.total_expenses),
                    savings_change=percent_change(bucket.savings, previous.savings, use_absolute=True),
                )
            buckets.append(bucket)
            previous = bucket

        return buckets

    def cash_flow(self, start: Optional[date], end: Optional[date]) -> CashFlowReport:
        """Signed daily flows and running total across the window."""
        income = self.by_kind(TransactionKind.INCOME, start, end)
        expenses = self.by_kind(TransactionKind.EXPENSE, start, end)
        fees = self.by_kind(TransactionKind.FEE, start, end)

        entries = [CashFlowEntry(transaction=t, flow_amount=t.amount) for t in income.transactions]
        entries.extend(
            CashFlowEntry(transaction=t, flow_amount=-t.amount)
            for t in expenses.transactions + fees.transactions
        )
        entries.sort(key=lambda e: (e.transaction.date, e.transaction.id))

        inflow_by_day: dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
        outflow_by_day: dict[date, Decimal] = defaultdict(lambda: Decimal("0"))
        for entry in entries:
            day = entry.transaction.date
            if entry.flow_amount > 0:
                inflow_by_day[day] += entry.flow_amount
            else:
                outflow_by_day[day] -= entry.flow_amount

        daily = []
        cumulative = Decimal("0")
        for day in sorted(set(inflow_by_day) | set(outflow_by_day)):
            inflow = inflow_by_day[day]
            outflow = outflow_by_day[day]
            cumulative += inflow - outflow
            daily.append(
                DailyFlow(date=day, inflow=inflow, outflow=outflow, net=inflow - outflow, cumulative=cumulative)
            )

        return CashFlowReport(
            inflows=income.total,
            outflows=expenses.total + fees.total,
            entries=tuple(entries),
            daily=tuple(daily),
        )

    def report_summary(self, start: Optional[date], end: Optional[date]) -> ReportSummary:
        """Headline totals for the window."""
        income = self.by_kind(TransactionKind.INCOME, start, end)
        expenses = self.by_kind(TransactionKind.EXPENSE, start, end)
        fees = self.by_kind(TransactionKind.FEE, start, end)
        breakdown = self.build_category_breakdown(expenses.transactions + fees.transactions)

        total_expenses = expenses.total + fees.total
        spending_days = {t.date for t in expenses.transactions + fees.transactions}
        avg_daily = (total_expenses / max(len(spending_days), 1)).quantize(CENT, rounding=ROUND_HALF_UP)

        return ReportSummary(
            total_income=income.total,
            total_expenses=total_expenses,
            total_transactions=len(income.transactions) + len(expenses.transactions) + len(fees.transactions),
            avg_daily_expense=avg_daily,
            top_category=breakdown.categories[0] if breakdown.categories else None,
        )

    def explore_transactions(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        kinds: Optional[Sequence[TransactionKind]] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        include_reversals: bool = True,
    ) -> list[ExploredTransaction]:
        """List ledger entries newest first, flagging the ones a reversal voids.

        Reversals are looked up from ``start`` onward with no upper bound.
        """
        transactions = self.db.query_ledger(
            kinds=kinds, start_date=start, end_date=end, account_id=account_id, category=category
        )
        if not include_reversals:
            transactions = [t for t in transactions if t.kind != TransactionKind.REVERSAL]

        reversible = [k for k in TransactionKind if k != TransactionKind.REVERSAL]
        voided_by_kind = self.resolver.voided_by_kind(reversible, since=start)

        explored = [
            ExploredTransaction(
                transaction=t,
                is_reversed=t.kind != TransactionKind.REVERSAL and t.voided_key in voided_by_kind[t.kind],
            )
            for t in transactions
        ]
        explored.reverse()
        return explored
