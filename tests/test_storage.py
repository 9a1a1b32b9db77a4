"""Tests for transaction stores."""

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from spending_insights.models.category import Category
from spending_insights.models.transaction import Direction, Transaction
from spending_insights.storage.base import ConflictError
from spending_insights.storage.memory import InMemoryTransactionStore
from spending_insights.storage.yaml_store import YamlTransactionStore


def create_transaction(
    description: str = "NETFLIX",
    amount: str = "-99.90",
    txn_date: date = date(2024, 3, 15),
    user_id: str = "alice",
    category_id: str | None = None,
    reference: str | None = None,
) -> Transaction:
    """Helper to create a Transaction for testing."""
    value = Decimal(amount)
    return Transaction(
        user_id=user_id,
        date=txn_date,
        description=description,
        amount=value,
        direction=Direction.EXPENSE if value < 0 else Direction.INCOME,
        currency="TRY",
        category_id=category_id,
        reference=reference,
    )


class TestInMemoryTransactionStore:
    """Tests for InMemoryTransactionStore."""

    def test_duplicate_fingerprint_rejected(self) -> None:
        """Test a second transaction with the same key raises ConflictError."""
        store = InMemoryTransactionStore()
        store.create_transaction(create_transaction())

        with pytest.raises(ConflictError) as exc_info:
            store.create_transaction(create_transaction(description="netflix "))

        assert exc_info.value.fingerprint is not None
        assert store.count("alice") == 1

    def test_same_event_for_other_user_allowed(self) -> None:
        """Test uniqueness is per user."""
        store = InMemoryTransactionStore()
        store.create_transaction(create_transaction())
        store.create_transaction(create_transaction(user_id="bob"))

        assert store.count() == 2

    def test_reference_distinguishes(self) -> None:
        """Test distinct references allow same-day repeats."""
        store = InMemoryTransactionStore()
        store.create_transaction(create_transaction(reference="A1"))
        store.create_transaction(create_transaction(reference="A2"))

        assert store.count("alice") == 2

    def test_has_fingerprint(self) -> None:
        """Test exact-key lookup is scoped to the user in the key."""
        store = InMemoryTransactionStore()
        txn = store.create_transaction(create_transaction())

        assert store.has_fingerprint("alice", txn.fingerprint_key)
        assert not store.has_fingerprint("bob", txn.fingerprint_key)
        assert not store.has_fingerprint("alice", create_transaction(amount="-1").fingerprint_key)

    def test_find_filters(self) -> None:
        """Test date range, direction and category filters."""
        store = InMemoryTransactionStore()
        store.create_transaction(create_transaction("A", txn_date=date(2024, 2, 29), category_id="dining"))
        store.create_transaction(create_transaction("B", txn_date=date(2024, 3, 1), category_id="dining"))
        store.create_transaction(create_transaction("C", amount="500", txn_date=date(2024, 3, 2)))
        store.create_transaction(create_transaction("D", txn_date=date(2024, 4, 1)))

        march = store.find_transactions("alice", date(2024, 3, 1), date(2024, 3, 31))
        expenses = store.find_transactions("alice", direction=Direction.EXPENSE)
        dining = store.find_transactions("alice", category_id="dining")

        assert [t.description for t in march] == ["B", "C"]
        assert [t.description for t in expenses] == ["A", "B", "D"]
        assert [t.description for t in dining] == ["A", "B"]
        assert store.find_transactions("bob") == []

    def test_results_sorted_by_date(self) -> None:
        """Test transactions come back oldest first regardless of insert order."""
        store = InMemoryTransactionStore()
        store.create_transaction(create_transaction("LATE", txn_date=date(2024, 5, 1)))
        store.create_transaction(create_transaction("EARLY", txn_date=date(2024, 1, 1)))

        assert [t.description for t in store.find_transactions("alice")] == ["EARLY", "LATE"]

    def test_category_names(self) -> None:
        """Test category ID to name mapping is per user."""
        store = InMemoryTransactionStore()
        store.add_category(Category(id="dining", user_id="alice", name="Dining"))
        store.add_category(Category(id="travel", user_id="bob", name="Travel"))

        assert store.category_names("alice") == {"dining": "Dining"}


class TestYamlTransactionStore:
    """Tests for YamlTransactionStore."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Test transactions and categories survive a reload."""
        path = tmp_path / "store.yaml"
        store = YamlTransactionStore(path)
        store.add_category(Category(id="subs", user_id="alice", name="Subscriptions"))
        original = store.create_transaction(create_transaction(category_id="subs", reference="TX-1"))

        reloaded = YamlTransactionStore(path)

        (txn,) = reloaded.find_transactions("alice")
        assert txn.id == original.id
        assert txn.amount == Decimal("-99.90")
        assert txn.direction is Direction.EXPENSE
        assert txn.reference == "TX-1"
        assert reloaded.category_names("alice") == {"subs": "Subscriptions"}

    def test_reloaded_store_rejects_duplicates(self, tmp_path: Path) -> None:
        """Test uniqueness holds across process restarts."""
        path = tmp_path / "store.yaml"
        YamlTransactionStore(path).create_transaction(create_transaction())

        with pytest.raises(ConflictError):
            YamlTransactionStore(path).create_transaction(create_transaction())

    def test_duplicate_rows_in_file_skipped(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Test a file holding the same transaction twice loads it once with a warning."""
        path = tmp_path / "store.yaml"
        first = create_transaction().to_dict()
        copy = dict(first, id="copied-row")
        path.write_text(yaml.safe_dump({"transactions": [first, copy]}), encoding="utf-8")
        caplog.set_level(logging.WARNING, logger="spending_insights")

        store = YamlTransactionStore(path)

        assert store.count("alice") == 1
        assert store.find_transactions("alice")[0].id == first["id"]
        assert "Skipping duplicate transaction copied-row" in caplog.text

    def test_manual_save(self, tmp_path: Path) -> None:
        """Test nothing is written until save() when autosave is off."""
        path = tmp_path / "store.yaml"
        store = YamlTransactionStore(path, autosave=False)
        store.create_transaction(create_transaction())

        assert not path.exists()
        store.save()
        assert YamlTransactionStore(path).count("alice") == 1

    def test_budget_data_preserved(self, tmp_path: Path) -> None:
        """Test budget entries are read and written back untouched."""
        path = tmp_path / "store.yaml"
        path.write_text(
            "budgets:\n  - category_id: dining\n    amount: '500'\n    month: 3\n    year: 2024\n",
            encoding="utf-8",
        )
        store = YamlTransactionStore(path)
        store.create_transaction(create_transaction())

        budgets = YamlTransactionStore(path).budget_data()
        assert budgets == [{"category_id": "dining", "amount": "500", "month": 3, "year": 2024}]

    def test_invalid_file(self, tmp_path: Path) -> None:
        """Test a file that is not a mapping is rejected."""
        path = tmp_path / "store.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ValueError):
            YamlTransactionStore(path)

    def test_missing_file_starts_empty(self, tmp_path: Path) -> None:
        """Test a new path gives an empty store without creating the file."""
        path = tmp_path / "new" / "store.yaml"
        store = YamlTransactionStore(path)

        assert store.count() == 0
        assert not path.exists()
