"""Duplicate detection for import candidates."""

from spending_insights.models.transaction import FingerprintKey, NormalizedRow
from spending_insights.storage.base import TransactionStore
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


class Deduplicator:
    """Decides whether an import candidate is already known.

    A candidate is a duplicate when its fingerprint key (user, date, signed
    amount, description, currency, reference) matches either a stored
    transaction or a candidate already accepted earlier in the same batch.

    is_duplicate() is a pure predicate: it never changes state, so repeated
    calls against the same store and batch return the same answer. Accepted
    candidates are recorded with remember().

    Note: This class is NOT thread-safe. One instance serves one import batch;
    cross-batch races are settled by the store's uniqueness constraint.
    """

    def __init__(self, store: TransactionStore, user_id: str):
        """Initialize deduplicator.

        Args:
            store: Store queried by exact fingerprint key.
            user_id: Owner of the batch.
        """
        self.store = store
        self.user_id = user_id
        self._batch_keys: set[FingerprintKey] = set()

    def key_for(self, candidate: NormalizedRow) -> FingerprintKey:
        return candidate.fingerprint_key(self.user_id)

    def is_duplicate(self, candidate: NormalizedRow) -> bool:
        """Check a candidate against the batch and the store.

        Args:
            candidate: Normalized import row.

        Returns:
            True if an identical event is already stored or accepted.
        """
        key = self.key_for(candidate)
        if key in self._batch_keys:
            logger.debug(f"Row {candidate.row_number}: duplicate of an earlier row in this file")
            return True
        if self.store.has_fingerprint(self.user_id, key):
            logger.debug(f"Row {candidate.row_number}: already imported")
            return True
        return False

    def remember(self, candidate: NormalizedRow) -> None:
        """Record an accepted candidate so later batch rows match it."""
        self._batch_keys.add(self.key_for(candidate))

    @property
    def accepted_count(self) -> int:
        return len(self._batch_keys)


def find_duplicates(
    candidates: list[NormalizedRow],
    store: TransactionStore,
    user_id: str,
) -> list[NormalizedRow]:
    """Return the candidates that would be skipped as duplicates.

    Each non-duplicate is treated as accepted, so a repeated row inside the
    list is reported once per repeat after its first occurrence.

    Args:
        candidates: Normalized rows in file order.
        store: Store to check against.
        user_id: Owner of the rows.

    Returns:
        Duplicate candidates in input order.
    """
    deduplicator = Deduplicator(store, user_id)
    duplicates = []
    for candidate in candidates:
        if deduplicator.is_duplicate(candidate):
            duplicates.append(candidate)
        else:
            deduplicator.remember(candidate)
    logger.info(f"Found {len(duplicates)} duplicate rows")
    return duplicates
