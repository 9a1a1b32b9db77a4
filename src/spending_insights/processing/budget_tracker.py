"""Budget progress for a month."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from spending_insights.models.category import Budget
from spending_insights.models.report import BudgetProgress
from spending_insights.models.transaction import Direction
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.date_utils import month_bounds
from spending_insights.utils.decimal_utils import quantize_money
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


def track_budgets(
    store: TransactionStore,
    user_id: str,
    budgets: Iterable[Budget],
    month: int,
    year: int,
) -> list[BudgetProgress]:
    """Compare a month's category spending with its budgets.

    Budgets for other months, or owned by another user, are ignored. A budget
    whose category has no spending reports zero spent.

    Args:
        store: Transaction source.
        user_id: Owner.
        budgets: Budgets to evaluate.
        month: Calendar month.
        year: Calendar year.

    Returns:
        One BudgetProgress per applicable budget, most used first.
    """
    start, end = month_bounds(year, month)
    applicable = [
        b for b in budgets
        if b.month == month and b.year == year and b.user_id in ("", user_id)
    ]
    if not applicable:
        logger.info(f"No budgets for {month}/{year}")
        return []

    spent: dict[str, Decimal] = defaultdict(Decimal)
    for txn in store.find_transactions(user_id, start, end, direction=Direction.EXPENSE):
        if txn.category_id:
            spent[txn.category_id] += txn.magnitude

    category_names = store.category_names(user_id)
    progress = [
        BudgetProgress(
            budget_id=budget.id,
            category=category_names.get(budget.category_id, budget.category_id),
            budgeted=budget.amount,
            spent=quantize_money(spent.get(budget.category_id, Decimal("0"))),
            month=month,
            year=year,
        )
        for budget in applicable
    ]
    progress.sort(key=lambda p: (-p.percent_used, p.category))

    over = sum(1 for p in progress if p.is_over_budget)
    if over:
        logger.warning(f"{over} of {len(progress)} budgets exceeded in {month}/{year}")
    return progress
