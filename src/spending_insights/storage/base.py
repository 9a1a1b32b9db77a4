"""Storage contract consumed by the importer and the detectors."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from spending_insights.models.category import Category
from spending_insights.models.transaction import Direction, FingerprintKey, Transaction


class ConflictError(Exception):
    """Raised when a transaction with the same fingerprint already exists."""

    def __init__(self, message: str, fingerprint: Optional[FingerprintKey] = None):
        self.fingerprint = fingerprint
        super().__init__(message)


class TransactionStore(ABC):
    """Abstract persisted transaction set.

    Implementations must enforce uniqueness of Transaction.fingerprint_key per
    user: create_transaction() rejects a second row with the same key by
    raising ConflictError, atomically with respect to other writers.
    """

    @abstractmethod
    def find_transactions(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        *,
        direction: Optional[Direction] = None,
        category_id: Optional[str] = None,
    ) -> list[Transaction]:
        """Return a user's transactions, oldest first.

        Args:
            user_id: Owner.
            start: Earliest date (inclusive), or None.
            end: Latest date (inclusive), or None.
            direction: Restrict to income or expense.
            category_id: Restrict to one category.

        Returns:
            Matching transactions sorted by date.
        """
        pass

    @abstractmethod
    def create_transaction(self, txn: Transaction) -> Transaction:
        """Persist a transaction.

        Raises:
            ConflictError: If the user already has a transaction with this fingerprint.
        """
        pass

    @abstractmethod
    def has_fingerprint(self, user_id: str, key: FingerprintKey) -> bool:
        """Exact-key lookup used by the deduplicator."""
        pass

    @abstractmethod
    def find_categories(self, user_id: str) -> list[Category]:
        """Return the user's categories."""
        pass

    @abstractmethod
    def add_category(self, category: Category) -> Category:
        """Persist a category."""
        pass

    def category_names(self, user_id: str) -> dict[str, str]:
        """Map category ID to name for a user."""
        return {c.id: c.name for c in self.find_categories(user_id)}
