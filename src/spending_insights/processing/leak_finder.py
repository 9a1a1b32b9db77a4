"""Month-over-month category spending increases ("leaks")."""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from spending_insights.config import LeakConfig
from spending_insights.models.report import LeakFinding
from spending_insights.models.transaction import Direction
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.date_utils import month_bounds, previous_month
from spending_insights.utils.decimal_utils import percent_change, quantize_money
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


class LeakFinder:
    """Ranks categories whose spending grew since the previous month.

    Ranking:
    - Categories with spend in both months, by increase_percent (largest first)
    - Then categories with no spend in the previous month, by absolute increase
      (only when include_new_categories is set)

    Decreases, unchanged categories and uncategorized spend are never reported.
    """

    def __init__(self, store: TransactionStore, config: Optional[LeakConfig] = None):
        """Initialize leak finder.

        Args:
            store: Transaction source (read only).
            config: Ranking options (defaults if None).
        """
        self.store = store
        self.config = config or LeakConfig()

    def find(self, user_id: str, month: int, year: int, limit: Optional[int] = None) -> list[LeakFinding]:
        """Find the top leaks for a month.

        Args:
            user_id: Owner.
            month: Target month (1-12).
            year: Target year.
            limit: Maximum findings (config top_n when None).

        Returns:
            Ordered, capped list of LeakFinding.

        Raises:
            ValueError: If month/year is not a valid calendar month.
        """
        limit = self.config.top_n if limit is None else limit
        prev_year, prev_month = previous_month(year, month)

        current_totals = self._category_totals(user_id, year, month)
        previous_totals = self._category_totals(user_id, prev_year, prev_month)
        category_names = self.store.category_names(user_id)

        percentage_leaks = []
        new_spend_leaks = []
        for category_id, current in current_totals.items():
            previous = previous_totals.get(category_id, Decimal("0"))
            increase = current - previous
            if increase <= 0:
                continue

            change = percent_change(previous, current)
            finding = LeakFinding(
                category=category_names.get(category_id, category_id),
                previous_month=quantize_money(previous),
                current_month=quantize_money(current),
                increase=quantize_money(increase),
                increase_percent=float(round(change, 1)) if change is not None else None,
                category_id=category_id,
            )

            if change is None:
                if self.config.include_new_categories:
                    new_spend_leaks.append(finding)
            elif change >= self.config.min_increase_percent:
                percentage_leaks.append(finding)

        percentage_leaks.sort(key=lambda f: (-f.increase_percent, -f.increase, f.category))
        new_spend_leaks.sort(key=lambda f: (-f.increase, f.category))

        leaks = (percentage_leaks + new_spend_leaks)[: max(0, limit)]
        logger.info(
            f"Found {len(percentage_leaks) + len(new_spend_leaks)} leaks in {month}/{year}, "
            f"returning {len(leaks)}"
        )
        return leaks

    def _category_totals(self, user_id: str, year: int, month: int) -> dict[str, Decimal]:
        """Sum expense magnitudes per category for one month."""
        start, end = month_bounds(year, month)
        totals: dict[str, Decimal] = defaultdict(Decimal)
        for txn in self.store.find_transactions(user_id, start, end, direction=Direction.EXPENSE):
            if txn.category_id:
                totals[txn.category_id] += txn.magnitude
        return totals


def find_top_leaks(
    store: TransactionStore,
    user_id: str,
    month: int,
    year: int,
    limit: Optional[int] = None,
    config: Optional[LeakConfig] = None,
) -> list[LeakFinding]:
    """Convenience function to rank a month's spending leaks.

    Args:
        store: Transaction source.
        user_id: Owner.
        month: Target month.
        year: Target year.
        limit: Maximum findings.
        config: Ranking options.

    Returns:
        List of LeakFinding, worst first.
    """
    finder = LeakFinder(store, config)
    return finder.find(user_id, month, year, limit)
