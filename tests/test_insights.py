"""Tests for combined insights."""

from datetime import date
from decimal import Decimal

from spending_insights.config import Config, LeakConfig
from spending_insights.models.category import Category
from spending_insights.models.transaction import Direction, Transaction
from spending_insights.processing.insights import build_insights
from spending_insights.storage.memory import InMemoryTransactionStore

USER = "alice"


def add_transaction(
    store: InMemoryTransactionStore,
    txn_date: date,
    description: str,
    amount: str,
    category_id: str | None = None,
) -> None:
    """Helper to store a transaction; negative amounts are expenses."""
    value = Decimal(amount)
    store.create_transaction(
        Transaction(
            user_id=USER,
            date=txn_date,
            description=description,
            amount=value,
            direction=Direction.EXPENSE if value < 0 else Direction.INCOME,
            currency="TRY",
            category_id=category_id,
        )
    )


def create_history() -> InMemoryTransactionStore:
    """Six months of salary, Netflix and groceries, with a spike in June."""
    store = InMemoryTransactionStore()
    store.add_category(Category(id="groceries", user_id=USER, name="Groceries"))
    store.add_category(Category(id="dining", user_id=USER, name="Dining"))
    for month, grocery in zip(range(1, 6), ["480", "520", "500", "480", "520"]):
        add_transaction(store, date(2024, month, 1), "SALARY", "30000")
        add_transaction(store, date(2024, month, 15), "NETFLIX", "-99.90")
        add_transaction(store, date(2024, month, 10), f"MIGROS {month}", f"-{grocery}", "groceries")

    add_transaction(store, date(2024, 5, 20), "CAFE", "-200", "dining")
    add_transaction(store, date(2024, 6, 1), "SALARY", "30000")
    add_transaction(store, date(2024, 6, 15), "NETFLIX", "-99.90")
    add_transaction(store, date(2024, 6, 12), "MIGROS JUMBO", "-1200", "groceries")
    add_transaction(store, date(2024, 6, 21), "CAFE", "-600", "dining")
    return store


class TestBuildInsights:
    """Tests for build_insights."""

    def test_all_sections_populated(self) -> None:
        """Test a month with history yields every kind of finding."""
        report = build_insights(create_history(), USER, 6, 2024)

        assert (report.month, report.year) == (6, 2024)
        assert [s.merchant for s in report.subscriptions] == ["NETFLIX"]
        assert [a.merchant for a in report.anomalies] == ["MIGROS JUMBO"]
        assert report.leaks[0].category == "Dining"
        assert report.leaks[0].increase_percent == 200.0
        assert report.summary is not None
        assert report.summary.income == Decimal("30000.00")

    def test_default_as_of_is_month_end(self) -> None:
        """Test subscriptions include charges up to the last day of the month."""
        report = build_insights(create_history(), USER, 6, 2024)

        assert report.subscriptions[0].last_date == date(2024, 6, 15)
        assert report.subscriptions[0].count == 6

    def test_explicit_as_of(self) -> None:
        """Test an earlier as_of date shortens the subscription window."""
        report = build_insights(create_history(), USER, 6, 2024, as_of=date(2024, 3, 31))

        assert report.subscriptions[0].count == 3

    def test_config_applied(self) -> None:
        """Test detector thresholds come from the passed config."""
        config = Config(leaks=LeakConfig(top_n=0))

        report = build_insights(create_history(), USER, 6, 2024, config=config)

        assert report.leaks == []

    def test_empty_store(self) -> None:
        """Test a user without data gets an empty report."""
        report = build_insights(InMemoryTransactionStore(), USER, 6, 2024)

        assert report.subscriptions == []
        assert report.anomalies == []
        assert report.leaks == []
        assert report.summary is not None
        assert report.summary.expense == Decimal("0")

    def test_to_dict(self) -> None:
        """Test the report serializes to plain values."""
        data = build_insights(create_history(), USER, 6, 2024).to_dict()

        assert data["subscriptions"][0]["amount"] == "99.90"
        assert data["anomalies"][0]["baseline"] == "500.00"
        assert data["summary"]["month"] == 6
