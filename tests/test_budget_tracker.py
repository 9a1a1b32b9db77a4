"""Tests for budget progress tracking."""

from datetime import date
from decimal import Decimal

import pytest

from spending_insights.models.category import Budget, Category
from spending_insights.models.transaction import Direction, Transaction
from spending_insights.processing.budget_tracker import track_budgets
from spending_insights.storage.memory import InMemoryTransactionStore

USER = "alice"


def create_store() -> InMemoryTransactionStore:
    """Store with Dining and Groceries categories."""
    store = InMemoryTransactionStore()
    store.add_category(Category(id="dining", user_id=USER, name="Dining"))
    store.add_category(Category(id="groceries", user_id=USER, name="Groceries"))
    return store


def add_expense(store: InMemoryTransactionStore, txn_date: date, amount: str, category_id: str) -> None:
    """Helper to store one categorized expense."""
    store.create_transaction(
        Transaction(
            user_id=USER,
            date=txn_date,
            description=f"SHOP {amount}",
            amount=-Decimal(amount),
            direction=Direction.EXPENSE,
            currency="TRY",
            category_id=category_id,
        )
    )


class TestTrackBudgets:
    """Tests for track_budgets."""

    def test_over_budget(self) -> None:
        """Test spending 600 against a 500 budget."""
        store = create_store()
        add_expense(store, date(2024, 3, 5), "250", "dining")
        add_expense(store, date(2024, 3, 20), "350", "dining")
        budget = Budget(category_id="dining", amount=Decimal("500"), month=3, year=2024)

        (progress,) = track_budgets(store, USER, [budget], 3, 2024)

        assert progress.category == "Dining"
        assert progress.spent == Decimal("600.00")
        assert progress.remaining == Decimal("-100.00")
        assert progress.percent_used == 120.0
        assert progress.is_over_budget
        assert progress.budget_id == budget.id

    def test_other_months_ignored(self) -> None:
        """Test spending and budgets outside the month do not count."""
        store = create_store()
        add_expense(store, date(2024, 2, 28), "400", "groceries")
        add_expense(store, date(2024, 3, 1), "100", "groceries")
        budgets = [
            Budget(category_id="groceries", amount=Decimal("1000"), month=3, year=2024),
            Budget(category_id="groceries", amount=Decimal("50"), month=2, year=2024),
        ]

        (progress,) = track_budgets(store, USER, budgets, 3, 2024)

        assert progress.spent == Decimal("100.00")
        assert progress.percent_used == 10.0
        assert not progress.is_over_budget

    def test_zero_spent(self) -> None:
        """Test a budget without spending reports zero."""
        store = create_store()
        budget = Budget(category_id="groceries", amount=Decimal("800"), month=3, year=2024)

        (progress,) = track_budgets(store, USER, [budget], 3, 2024)

        assert progress.spent == Decimal("0.00")
        assert progress.remaining == Decimal("800")
        assert progress.percent_used == 0.0

    def test_sorted_by_percent_used(self) -> None:
        """Test the most used budget comes first."""
        store = create_store()
        add_expense(store, date(2024, 3, 5), "90", "dining")
        add_expense(store, date(2024, 3, 6), "300", "groceries")
        budgets = [
            Budget(category_id="groceries", amount=Decimal("1000"), month=3, year=2024),
            Budget(category_id="dining", amount=Decimal("100"), month=3, year=2024),
        ]

        progress = track_budgets(store, USER, budgets, 3, 2024)

        assert [p.category for p in progress] == ["Dining", "Groceries"]

    def test_other_users_budgets_ignored(self) -> None:
        """Test budgets owned by someone else are skipped."""
        store = create_store()
        budgets = [
            Budget(category_id="dining", amount=Decimal("100"), month=3, year=2024, user_id="bob"),
            Budget(category_id="groceries", amount=Decimal("100"), month=3, year=2024, user_id=USER),
        ]

        assert [p.category for p in track_budgets(store, USER, budgets, 3, 2024)] == ["Groceries"]

    def test_no_budgets(self) -> None:
        """Test no applicable budgets yields an empty list."""
        assert track_budgets(create_store(), USER, [], 3, 2024) == []


class TestBudgetModel:
    """Tests for Budget validation."""

    def test_from_dict(self) -> None:
        """Test loading a budget from YAML-style data."""
        budget = Budget.from_dict({"category_id": "dining", "amount": "500.00", "month": 3, "year": 2024})

        assert budget.amount == Decimal("500.00")
        assert budget.user_id == ""
        assert budget.id

    def test_missing_field(self) -> None:
        """Test a budget without an amount is rejected."""
        with pytest.raises(ValueError, match="amount"):
            Budget.from_dict({"category_id": "dining", "month": 3, "year": 2024})

    def test_invalid_month(self) -> None:
        """Test month 13 is rejected."""
        with pytest.raises(ValueError):
            Budget(category_id="dining", amount=Decimal("1"), month=13, year=2024)
