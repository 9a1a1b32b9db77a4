"""Runs all detectors for one user and month."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional

from spending_insights.config import Config
from spending_insights.models.report import InsightsReport
from spending_insights.processing.anomaly_detector import detect_anomalies
from spending_insights.processing.leak_finder import find_top_leaks
from spending_insights.processing.report_generator import generate_monthly_summary
from spending_insights.processing.subscription_detector import detect_subscriptions
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.date_utils import month_bounds
from spending_insights.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)


def build_insights(
    store: TransactionStore,
    user_id: str,
    month: int,
    year: int,
    as_of: Optional[date] = None,
    config: Optional[Config] = None,
) -> InsightsReport:
    """Collect subscriptions, anomalies, leaks and the monthly summary.

    The detectors only read from the store, so they run side by side on a
    thread pool. The first detector error propagates to the caller.

    Args:
        store: Transaction source.
        user_id: Owner.
        month: Target month.
        year: Target year.
        as_of: End of the subscription window (last day of the month when None).
        config: Detector thresholds.

    Returns:
        InsightsReport for the month.
    """
    config = config or Config()
    if as_of is None:
        as_of = month_bounds(year, month)[1]

    with LogContext(logger, "insights", user_id=user_id, month=month, year=year):
        with ThreadPoolExecutor(max_workers=4, thread_name_prefix="insights") as pool:
            subscriptions = pool.submit(
                detect_subscriptions, store, user_id, None, as_of, config.subscriptions
            )
            anomalies = pool.submit(detect_anomalies, store, user_id, month, year, config.anomalies)
            leaks = pool.submit(find_top_leaks, store, user_id, month, year, None, config.leaks)
            summary = pool.submit(generate_monthly_summary, store, user_id, month, year)

            report = InsightsReport(
                month=month,
                year=year,
                subscriptions=subscriptions.result(),
                anomalies=anomalies.result(),
                leaks=leaks.result(),
                summary=summary.result(),
            )

    logger.info(
        f"Insights for {month}/{year}: {len(report.subscriptions)} subscriptions, "
        f"{len(report.anomalies)} anomalies, {len(report.leaks)} leaks"
    )
    return report
