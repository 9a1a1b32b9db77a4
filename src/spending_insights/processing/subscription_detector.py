"""Recurring charge detection over a lookback window."""

import statistics
from collections import defaultdict
from datetime import date
from typing import Optional

from spending_insights.config import SubscriptionConfig
from spending_insights.models.report import SubscriptionFinding
from spending_insights.models.transaction import Direction, Transaction
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.date_utils import shift_month
from spending_insights.utils.decimal_utils import (
    coefficient_of_variation,
    median_amount,
    quantize_money,
)
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


class SubscriptionDetector:
    """Classifies merchants with regular, near-constant charges as subscriptions.

    A (merchant, currency) group qualifies when:
    - It has at least min_occurrences charges in the window
    - Its median interval falls inside one of the configured period bands
    - At least min_regular_fraction of its intervals fall inside that band
    - The coefficient of variation of its amounts is at most max_amount_variation

    Anything else is excluded outright; there is no partial confidence.
    """

    def __init__(self, store: TransactionStore, config: Optional[SubscriptionConfig] = None):
        """Initialize subscription detector.

        Args:
            store: Transaction source (read only).
            config: Detection thresholds (defaults if None).
        """
        self.store = store
        self.config = config or SubscriptionConfig()

    def detect(
        self, user_id: str, as_of: date, lookback_months: Optional[int] = None
    ) -> list[SubscriptionFinding]:
        """Detect subscriptions for a user.

        Args:
            user_id: Owner.
            as_of: Last day of the window (inclusive).
            lookback_months: Calendar months in the window, counting as_of's month.

        Returns:
            Findings sorted by amount, largest first.

        Raises:
            ValueError: If lookback_months is less than 1.
        """
        months = lookback_months if lookback_months is not None else self.config.lookback_months
        if months < 1:
            raise ValueError(f"lookback_months must be at least 1, got {months}")

        start_year, start_month = shift_month(as_of.year, as_of.month, -(months - 1))
        start = date(start_year, start_month, 1)

        expenses = self.store.find_transactions(
            user_id, start, as_of, direction=Direction.EXPENSE
        )

        groups: dict[tuple[str, str], list[Transaction]] = defaultdict(list)
        for txn in expenses:
            groups[(txn.merchant, txn.currency)].append(txn)

        findings = []
        for (merchant, currency), txns in groups.items():
            finding = self._classify(merchant, currency, txns)
            if finding is not None:
                findings.append(finding)

        findings.sort(key=lambda f: (-f.amount, f.merchant))
        logger.info(
            f"Found {len(findings)} subscriptions among {len(groups)} merchants "
            f"({start} to {as_of})"
        )
        return findings

    def _classify(
        self, merchant: str, currency: str, txns: list[Transaction]
    ) -> Optional[SubscriptionFinding]:
        """Return a finding if the group is a subscription, otherwise None."""
        if len(txns) < self.config.min_occurrences:
            return None

        txns = sorted(txns, key=lambda t: t.date)
        intervals = [(b.date - a.date).days for a, b in zip(txns, txns[1:])]
        median_interval = statistics.median(intervals)

        frequency = self._match_period(median_interval)
        if frequency is None:
            logger.debug(f"{merchant}: median interval {median_interval} days matches no period")
            return None

        low, high = self.config.periods[frequency]
        regular = sum(1 for days in intervals if low <= days <= high)
        if regular / len(intervals) < self.config.min_regular_fraction:
            logger.debug(f"{merchant}: only {regular}/{len(intervals)} intervals are {frequency}")
            return None

        amounts = [txn.magnitude for txn in txns]
        variation = coefficient_of_variation(amounts)
        if variation > self.config.max_amount_variation:
            logger.debug(f"{merchant}: amount variation {variation:.3f} too high")
            return None

        return SubscriptionFinding(
            merchant=merchant,
            amount=quantize_money(median_amount(amounts)),
            frequency=frequency,
            count=len(txns),
            last_date=txns[-1].date,
            currency=currency,
            average_interval_days=round(sum(intervals) / len(intervals), 1),
        )

    def _match_period(self, interval: float) -> Optional[str]:
        for label, (low, high) in self.config.periods.items():
            if low <= interval <= high:
                return label
        return None


def detect_subscriptions(
    store: TransactionStore,
    user_id: str,
    lookback_months: Optional[int],
    as_of: date,
    config: Optional[SubscriptionConfig] = None,
) -> list[SubscriptionFinding]:
    """Convenience function to detect a user's subscriptions.

    Args:
        store: Transaction source.
        user_id: Owner.
        lookback_months: Window length in calendar months (config default when None).
        as_of: Last day of the window.
        config: Detection thresholds.

    Returns:
        List of SubscriptionFinding, largest amount first.
    """
    detector = SubscriptionDetector(store, config)
    return detector.detect(user_id, as_of, lookback_months)
