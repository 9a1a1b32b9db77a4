"""Tests for duplicate detection."""

from datetime import date
from decimal import Decimal

from spending_insights.models.transaction import Direction, NormalizedRow, Transaction
from spending_insights.processing.deduplicator import Deduplicator, find_duplicates
from spending_insights.storage.memory import InMemoryTransactionStore


def create_row(
    description: str = "NETFLIX",
    amount: str = "99.90",
    row_date: date = date(2024, 3, 15),
    direction: Direction = Direction.EXPENSE,
    currency: str = "TRY",
    reference: str | None = None,
    row_number: int = 2,
) -> NormalizedRow:
    """Helper to create a NormalizedRow for testing."""
    return NormalizedRow(
        row_number=row_number,
        date=row_date,
        description=description,
        amount=Decimal(amount),
        direction=direction,
        currency=currency,
        reference=reference,
    )


class TestDeduplicator:
    """Tests for Deduplicator."""

    def test_stored_transaction_is_duplicate(self) -> None:
        """Test a candidate matching a stored transaction is a duplicate."""
        store = InMemoryTransactionStore()
        store.create_transaction(Transaction.from_normalized(create_row(), "alice"))

        assert Deduplicator(store, "alice").is_duplicate(create_row())

    def test_other_user_is_not_duplicate(self) -> None:
        """Test fingerprints are scoped per user."""
        store = InMemoryTransactionStore()
        store.create_transaction(Transaction.from_normalized(create_row(), "alice"))

        assert not Deduplicator(store, "bob").is_duplicate(create_row())

    def test_is_duplicate_is_pure(self) -> None:
        """Test repeated calls without remember() give the same answer."""
        dedup = Deduplicator(InMemoryTransactionStore(), "alice")
        row = create_row()

        assert dedup.is_duplicate(row) is False
        assert dedup.is_duplicate(row) is False
        assert dedup.accepted_count == 0

    def test_batch_duplicates(self) -> None:
        """Test a remembered candidate makes later identical rows duplicates."""
        dedup = Deduplicator(InMemoryTransactionStore(), "alice")
        dedup.remember(create_row(row_number=2))

        assert dedup.is_duplicate(create_row(row_number=7))

    def test_description_case_and_spacing_ignored(self) -> None:
        """Test descriptions differing only in case/whitespace match."""
        dedup = Deduplicator(InMemoryTransactionStore(), "alice")
        dedup.remember(create_row(description="Netflix  Com"))

        assert dedup.is_duplicate(create_row(description="NETFLIX COM"))

    def test_key_fields_distinguish(self) -> None:
        """Test each key field separates otherwise identical rows."""
        dedup = Deduplicator(InMemoryTransactionStore(), "alice")
        dedup.remember(create_row())

        assert not dedup.is_duplicate(create_row(amount="99.91"))
        assert not dedup.is_duplicate(create_row(row_date=date(2024, 3, 16)))
        assert not dedup.is_duplicate(create_row(currency="USD"))
        assert not dedup.is_duplicate(create_row(direction=Direction.INCOME))
        assert not dedup.is_duplicate(create_row(reference="TX-2"))

    def test_amount_scale_ignored(self) -> None:
        """Test 99.9 and 99.90 are the same amount."""
        dedup = Deduplicator(InMemoryTransactionStore(), "alice")
        dedup.remember(create_row(amount="99.9"))

        assert dedup.is_duplicate(create_row(amount="99.90"))


class TestFindDuplicates:
    """Tests for the find_duplicates convenience function."""

    def test_reports_repeats_after_first(self) -> None:
        """Test only the second and later copies are reported."""
        rows = [create_row(row_number=2), create_row(description="SPOTIFY", row_number=3), create_row(row_number=4)]
        duplicates = find_duplicates(rows, InMemoryTransactionStore(), "alice")

        assert [r.row_number for r in duplicates] == [4]
