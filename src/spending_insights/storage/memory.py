"""Thread-safe in-memory transaction store."""

import threading
from collections import defaultdict
from datetime import date
from typing import Optional

from spending_insights.models.category import Category
from spending_insights.models.transaction import Direction, FingerprintKey, Transaction
from spending_insights.storage.base import ConflictError, TransactionStore
from spending_insights.utils.date_utils import is_date_in_range
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


class InMemoryTransactionStore(TransactionStore):
    """Transaction store kept in process memory.

    A unique index on the fingerprint key is checked and updated under one
    lock, so concurrent writers cannot both store the same event.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._transactions: dict[str, list[Transaction]] = defaultdict(list)
        self._fingerprints: set[FingerprintKey] = set()
        self._categories: dict[str, dict[str, Category]] = defaultdict(dict)

    def find_transactions(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        *,
        direction: Optional[Direction] = None,
        category_id: Optional[str] = None,
    ) -> list[Transaction]:
        with self._lock:
            rows = list(self._transactions.get(user_id, []))

        matches = [
            t for t in rows
            if is_date_in_range(t.date, start, end)
            and (direction is None or t.direction is direction)
            and (category_id is None or t.category_id == category_id)
        ]
        return sorted(matches, key=lambda t: (t.date, t.description, t.id))

    def create_transaction(self, txn: Transaction) -> Transaction:
        key = txn.fingerprint_key
        with self._lock:
            if key in self._fingerprints:
                raise ConflictError(f"Duplicate transaction {txn.fingerprint} for user", key)
            self._fingerprints.add(key)
            self._transactions[txn.user_id].append(txn)
        return txn

    def has_fingerprint(self, user_id: str, key: FingerprintKey) -> bool:
        if key[0] != str(user_id):
            return False
        with self._lock:
            return key in self._fingerprints

    def find_categories(self, user_id: str) -> list[Category]:
        with self._lock:
            return list(self._categories.get(user_id, {}).values())

    def add_category(self, category: Category) -> Category:
        with self._lock:
            self._categories[category.user_id][category.id] = category
        return category

    def count(self, user_id: Optional[str] = None) -> int:
        """Number of stored transactions, for one user or overall."""
        with self._lock:
            if user_id is not None:
                return len(self._transactions.get(user_id, []))
            return sum(len(rows) for rows in self._transactions.values())
