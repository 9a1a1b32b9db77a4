"""Report data generation: monthly summary and spending trend."""

from collections import Counter, defaultdict
from datetime import date
from decimal import Decimal

from spending_insights.models.report import MonthlySummary, TrendPoint
from spending_insights.models.transaction import Direction
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.date_utils import (
    generate_month_range,
    month_bounds,
    shift_month,
    validate_month,
)
from spending_insights.utils.decimal_utils import quantize_money, sum_amounts

UNCATEGORIZED = "Uncategorized"


def generate_monthly_summary(
    store: TransactionStore,
    user_id: str,
    month: int,
    year: int,
    top_n: int = 5,
) -> MonthlySummary:
    """Generate income/expense totals for one month.

    Single source of truth for the monthly figures shown by the CLI and
    handed to report assembly.

    Args:
        store: Transaction source.
        user_id: Owner.
        month: Calendar month.
        year: Calendar year.
        top_n: Number of expense categories to list.

    Returns:
        MonthlySummary with totals and the largest expense categories.
    """
    start, end = month_bounds(year, month)
    transactions = store.find_transactions(user_id, start, end)
    if not transactions:
        return MonthlySummary(month=month, year=year)

    category_names = store.category_names(user_id)
    by_category: dict[str, Decimal] = defaultdict(Decimal)
    income = Decimal("0")
    expense = Decimal("0")

    for t in transactions:
        if t.direction == Direction.INCOME:
            income += t.magnitude
        else:
            expense += t.magnitude
            name = category_names.get(t.category_id, UNCATEGORIZED) if t.category_id else UNCATEGORIZED
            by_category[name] += t.magnitude

    top_categories = sorted(by_category.items(), key=lambda item: (-item[1], item[0]))[:top_n]
    currency = Counter(t.currency for t in transactions).most_common(1)[0][0]

    return MonthlySummary(
        month=month,
        year=year,
        income=quantize_money(income),
        expense=quantize_money(expense),
        currency=currency,
        top_categories=[(name, quantize_money(total)) for name, total in top_categories],
    )


def generate_spending_trend(
    store: TransactionStore,
    user_id: str,
    month: int,
    year: int,
    months: int = 6,
) -> list[TrendPoint]:
    """Generate monthly expense totals ending at the given month.

    Args:
        store: Transaction source.
        user_id: Owner.
        month: Last month in the trend.
        year: Year of the last month.
        months: Number of months (including the last one).

    Returns:
        TrendPoints, oldest first. Months without expenses report zero.
    """
    validate_month(month, year)
    first_year, first_month = shift_month(year, month, -(months - 1))
    points = []
    for point_year, point_month in generate_month_range(date(first_year, first_month, 1), date(year, month, 1)):
        start, end = month_bounds(point_year, point_month)
        expenses = store.find_transactions(user_id, start, end, direction=Direction.EXPENSE)
        points.append(
            TrendPoint(
                year=point_year,
                month=point_month,
                expense=quantize_money(sum_amounts(t.magnitude for t in expenses)),
            )
        )
    return points
