"""Anomaly detection for a target month against trailing history."""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from spending_insights.config import AnomalyConfig
from spending_insights.models.report import AnomalyFinding
from spending_insights.models.transaction import Direction, Transaction
from spending_insights.processing.baseline import Baseline, InsufficientDataError, build_baseline
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.date_utils import month_bounds, months_before
from spending_insights.utils.decimal_utils import quantize_money
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)

# (kind, key, currency) where kind is "category" or "merchant"
GroupKey = tuple[str, str, str]


class AnomalyDetector:
    """Detects unusually large expenses in a month.

    Each target-month expense is compared with a baseline built from the
    baseline_months calendar months before the target month:
    - The category baseline is used when the transaction has a category with
      enough history
    - Otherwise the merchant baseline is used (if group_by_merchant)
    - Groups with fewer than min_samples transactions have no baseline and
      their transactions are never flagged

    A transaction is flagged when it is above the mean and either exceeds the
    mean by more than sigma_multiple standard deviations (and by at least
    min_deviation_ratio of the mean), or exceeds mean_multiple times the mean.
    """

    def __init__(self, store: TransactionStore, config: Optional[AnomalyConfig] = None):
        """Initialize anomaly detector.

        Args:
            store: Transaction source (read only).
            config: Detection thresholds (defaults if None).
        """
        self.store = store
        self.config = config or AnomalyConfig()

    def detect(self, user_id: str, month: int, year: int) -> list[AnomalyFinding]:
        """Detect anomalies for a user's month.

        Args:
            user_id: Owner.
            month: Target month (1-12).
            year: Target year.

        Returns:
            Findings sorted by deviation percent, largest first.

        Raises:
            ValueError: If month/year is not a valid calendar month.
        """
        month_start, month_end = month_bounds(year, month)
        history_start, history_end = months_before(year, month, self.config.baseline_months)

        history = self.store.find_transactions(
            user_id, history_start, history_end, direction=Direction.EXPENSE
        )
        current = self.store.find_transactions(
            user_id, month_start, month_end, direction=Direction.EXPENSE
        )
        if not current:
            logger.info(f"No expenses in {month}/{year}, nothing to check")
            return []

        baselines = self._build_baselines(history)
        category_names = self.store.category_names(user_id)

        findings = []
        for txn in current:
            finding = self._check_transaction(txn, baselines, category_names)
            if finding is not None:
                findings.append(finding)

        findings.sort(key=lambda f: (-f.deviation_percent, f.date or month_start, f.transaction_id))
        logger.info(
            f"Detected {len(findings)} anomalies in {month}/{year} "
            f"({len(baselines)} baselines from {len(history)} historical expenses)"
        )
        return findings

    def _build_baselines(self, history: list[Transaction]) -> dict[GroupKey, Baseline]:
        """Build a baseline for every group with enough history."""
        amounts: dict[GroupKey, list[Decimal]] = defaultdict(list)
        for txn in history:
            if txn.category_id:
                amounts[("category", txn.category_id, txn.currency)].append(txn.magnitude)
            if self.config.group_by_merchant:
                amounts[("merchant", txn.merchant, txn.currency)].append(txn.magnitude)

        baselines = {}
        for key, values in amounts.items():
            try:
                baselines[key] = build_baseline(key[1], values, self.config.min_samples)
            except InsufficientDataError as e:
                logger.debug(f"Skipping {key[0]} group: {e}")
        return baselines

    def _check_transaction(
        self,
        txn: Transaction,
        baselines: dict[GroupKey, Baseline],
        category_names: dict[str, str],
    ) -> Optional[AnomalyFinding]:
        """Compare one transaction with its matching baseline.

        Returns:
            AnomalyFinding if the transaction is anomalous, None otherwise.
        """
        basis = "category"
        baseline = None
        if txn.category_id:
            baseline = baselines.get(("category", txn.category_id, txn.currency))
        if baseline is None and self.config.group_by_merchant:
            basis = "merchant"
            baseline = baselines.get(("merchant", txn.merchant, txn.currency))
        if baseline is None:
            return None

        amount = txn.magnitude
        if not self._is_anomalous(amount, baseline):
            return None

        category = category_names.get(txn.category_id) if txn.category_id else None
        percent = baseline.deviation_percent(amount)
        if basis == "category":
            reason = f"{percent:.0f}% above typical for this category ({category or txn.category_id})"
        else:
            reason = f"{percent:.0f}% above typical for this merchant ({txn.merchant})"

        return AnomalyFinding(
            transaction_id=txn.id,
            merchant=txn.merchant,
            category=category,
            amount=amount,
            baseline=quantize_money(baseline.mean),
            reason=reason,
            date=txn.date,
            deviation_percent=float(round(percent, 1)),
            basis=basis,
        )

    def _is_anomalous(self, amount: Decimal, baseline: Baseline) -> bool:
        if baseline.mean <= 0 or amount <= baseline.mean:
            return False

        deviation = baseline.deviation(amount)
        beyond_sigma = (
            deviation > self.config.sigma_multiple * baseline.stdev
            and deviation >= self.config.min_deviation_ratio * baseline.mean
        )
        beyond_mean = amount > self.config.mean_multiple * baseline.mean
        return beyond_sigma or beyond_mean


def detect_anomalies(
    store: TransactionStore,
    user_id: str,
    month: int,
    year: int,
    config: Optional[AnomalyConfig] = None,
) -> list[AnomalyFinding]:
    """Convenience function to detect anomalies in a user's month.

    Args:
        store: Transaction source.
        user_id: Owner.
        month: Target month.
        year: Target year.
        config: Detection thresholds.

    Returns:
        List of AnomalyFinding, largest deviation first.
    """
    detector = AnomalyDetector(store, config)
    return detector.detect(user_id, month, year)
