"""Result and finding models produced by the engine.

Findings are recomputed on every request and carry no identity beyond it.
"""

from dataclasses import dataclass, field
import datetime
from decimal import Decimal


def _money(value: Decimal) -> str:
    return str(value)


@dataclass
class RowError:
    """A single import row that was not stored.

    Attributes:
        row_number: 1-based line number in the source file.
        reason: Human-readable explanation.
        kind: "parse" for malformed rows.
    """

    row_number: int
    reason: str
    kind: str = "parse"

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.reason}"


@dataclass
class ImportResult:
    """Outcome of one import call.

    Attributes:
        imported: Rows stored.
        skipped: Rows recognized as duplicates (already stored or repeated in the batch).
        errors: Malformed rows, one entry each.
        total_rows: Data rows in the input (header excluded).
    """

    imported: int = 0
    skipped: int = 0
    errors: list[RowError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def malformed(self) -> int:
        return len(self.errors)

    def is_consistent(self) -> bool:
        """True when every input row is accounted for exactly once."""
        return self.imported + self.skipped + self.malformed == self.total_rows

    def to_dict(self) -> dict[str, object]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": [str(e) for e in self.errors],
        }


@dataclass
class SubscriptionFinding:
    """A merchant charging at a regular period with a near-constant amount.

    Attributes:
        merchant: Normalized merchant name.
        amount: Median charge.
        frequency: Period label ("weekly", "monthly", "quarterly", "yearly").
        count: Occurrences in the lookback window.
        last_date: Most recent charge.
        currency: Currency of the charges.
        average_interval_days: Mean days between charges.
    """

    merchant: str
    amount: Decimal
    frequency: str
    count: int
    last_date: datetime.date
    currency: str = ""
    average_interval_days: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "merchant": self.merchant,
            "amount": _money(self.amount),
            "frequency": self.frequency,
            "count": self.count,
            "last_date": self.last_date.isoformat(),
            "currency": self.currency,
        }


@dataclass
class AnomalyFinding:
    """A target-month transaction that deviates from its group's baseline.

    Attributes:
        transaction_id: ID of the flagged transaction.
        merchant: Merchant of the transaction.
        category: Category name, or None when uncategorized.
        amount: Unsigned amount of the transaction.
        baseline: Mean amount of the matching group.
        reason: Human-readable deviation description.
        date: Transaction date.
        deviation_percent: How far above the baseline, in percent.
        basis: Which baseline matched ("category" or "merchant").
    """

    transaction_id: str
    merchant: str
    category: str | None
    amount: Decimal
    baseline: Decimal
    reason: str
    date: datetime.date | None = None
    deviation_percent: float = 0.0
    basis: str = "category"

    def to_dict(self) -> dict[str, object]:
        return {
            "transaction_id": self.transaction_id,
            "merchant": self.merchant,
            "category": self.category,
            "amount": _money(self.amount),
            "baseline": _money(self.baseline),
            "reason": self.reason,
            "date": self.date.isoformat() if self.date else None,
            "deviation_percent": self.deviation_percent,
            "basis": self.basis,
        }


@dataclass
class LeakFinding:
    """A category whose spending grew month over month.

    Attributes:
        category: Category name.
        previous_month: Total spent in the preceding month.
        current_month: Total spent in the target month.
        increase: Absolute increase.
        increase_percent: Relative increase; None when nothing was spent before.
        category_id: Category reference.
    """

    category: str
    previous_month: Decimal
    current_month: Decimal
    increase: Decimal
    increase_percent: float | None
    category_id: str | None = None

    @property
    def is_new_spend(self) -> bool:
        return self.previous_month == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category,
            "previous_month": _money(self.previous_month),
            "current_month": _money(self.current_month),
            "increase": _money(self.increase),
            "increase_percent": self.increase_percent,
        }


@dataclass
class BudgetProgress:
    """Spending against one monthly budget.

    Attributes:
        budget_id: Budget reference.
        category: Category name (or ID when the category is unknown).
        budgeted: Budget limit.
        spent: Expense total for the category in the budget month.
        month: Budget month.
        year: Budget year.
    """

    budget_id: str
    category: str
    budgeted: Decimal
    spent: Decimal
    month: int
    year: int

    @property
    def remaining(self) -> Decimal:
        """Budget left; negative when overspent."""
        return self.budgeted - self.spent

    @property
    def percent_used(self) -> float:
        if self.budgeted == 0:
            return 0.0 if self.spent == 0 else 100.0
        return float(round(self.spent / self.budgeted * 100, 1))

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.budgeted


@dataclass
class TrendPoint:
    """Expense total for one calendar month."""

    year: int
    month: int
    expense: Decimal

    @property
    def label(self) -> str:
        return f"{self.month}/{self.year}"


@dataclass
class MonthlySummary:
    """Income and expense totals for one month.

    Attributes:
        month: Calendar month.
        year: Calendar year.
        income: Total income.
        expense: Total expenses (positive).
        currency: Most common currency in the month, or "" when empty.
        top_categories: (category name, total) pairs, largest first.
    """

    month: int
    year: int
    income: Decimal = field(default_factory=lambda: Decimal("0"))
    expense: Decimal = field(default_factory=lambda: Decimal("0"))
    currency: str = ""
    top_categories: list[tuple[str, Decimal]] = field(default_factory=list)

    @property
    def net(self) -> Decimal:
        """Income minus expenses."""
        return self.income - self.expense

    @property
    def savings_rate(self) -> float:
        """Net as a percentage of income; 0 when there was no income."""
        if self.income <= 0:
            return 0.0
        return float(round(self.net / self.income * 100, 1))

    def to_dict(self) -> dict[str, object]:
        return {
            "month": self.month,
            "year": self.year,
            "income": _money(self.income),
            "expense": _money(self.expense),
            "net": _money(self.net),
            "savings_rate": self.savings_rate,
            "currency": self.currency,
            "top_categories": [{"name": n, "amount": _money(a)} for n, a in self.top_categories],
        }


@dataclass
class InsightsReport:
    """All detector output for one user and month, as handed to report assembly."""

    month: int
    year: int
    subscriptions: list[SubscriptionFinding] = field(default_factory=list)
    anomalies: list[AnomalyFinding] = field(default_factory=list)
    leaks: list[LeakFinding] = field(default_factory=list)
    summary: MonthlySummary | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "month": self.month,
            "year": self.year,
            "subscriptions": [s.to_dict() for s in self.subscriptions],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "leaks": [leak.to_dict() for leak in self.leaks],
            "summary": self.summary.to_dict() if self.summary else None,
        }
