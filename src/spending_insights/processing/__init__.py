"""Import pipeline and spending analytics."""

from spending_insights.processing.normalizer import (
    Normalizer,
    normalize_rows,
)
from spending_insights.processing.deduplicator import (
    Deduplicator,
    find_duplicates,
)
from spending_insights.processing.importer import (
    Importer,
    import_transactions,
)
from spending_insights.processing.baseline import (
    Baseline,
    InsufficientDataError,
    build_baseline,
)
from spending_insights.processing.subscription_detector import (
    SubscriptionDetector,
    detect_subscriptions,
)
from spending_insights.processing.anomaly_detector import (
    AnomalyDetector,
    detect_anomalies,
)
from spending_insights.processing.leak_finder import (
    LeakFinder,
    find_top_leaks,
)
from spending_insights.processing.budget_tracker import track_budgets
from spending_insights.processing.report_generator import (
    generate_monthly_summary,
    generate_spending_trend,
)
from spending_insights.processing.insights import build_insights

__all__ = [
    "Normalizer",
    "normalize_rows",
    "Deduplicator",
    "find_duplicates",
    "Importer",
    "import_transactions",
    "Baseline",
    "InsufficientDataError",
    "build_baseline",
    "SubscriptionDetector",
    "detect_subscriptions",
    "AnomalyDetector",
    "detect_anomalies",
    "LeakFinder",
    "find_top_leaks",
    "track_budgets",
    "generate_monthly_summary",
    "generate_spending_trend",
    "build_insights",
]
