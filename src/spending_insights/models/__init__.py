"""Data models for transactions, categories, budgets and findings."""

from spending_insights.models.category import Budget, Category
from spending_insights.models.report import (
    AnomalyFinding,
    BudgetProgress,
    ImportResult,
    InsightsReport,
    LeakFinding,
    MonthlySummary,
    RowError,
    SubscriptionFinding,
    TrendPoint,
)
from spending_insights.models.transaction import (
    Direction,
    NormalizedRow,
    Transaction,
    build_fingerprint_key,
)

__all__ = [
    "Direction",
    "NormalizedRow",
    "Transaction",
    "build_fingerprint_key",
    "Category",
    "Budget",
    "RowError",
    "ImportResult",
    "SubscriptionFinding",
    "AnomalyFinding",
    "LeakFinding",
    "BudgetProgress",
    "TrendPoint",
    "MonthlySummary",
    "InsightsReport",
]
