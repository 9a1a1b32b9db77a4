"""CSV import orchestration: decode, normalize, deduplicate, persist."""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Union

from spending_insights.config import Config
from spending_insights.models.report import ImportResult
from spending_insights.models.transaction import Transaction
from spending_insights.parsers.base import ParseError, Payload, ValidationError
from spending_insights.parsers.csv_parser import ColumnMapping, CSVParser
from spending_insights.processing.deduplicator import Deduplicator
from spending_insights.processing.normalizer import Normalizer
from spending_insights.storage.base import ConflictError, TransactionStore
from spending_insights.utils.date_utils import resolve_date_format
from spending_insights.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

# Decoded rows may be passed instead of a file payload
ImportSource = Union[Payload, Sequence[Sequence[str]]]

# Optional external categorizer: returns a category ID or None
Categorizer = Callable[[Transaction], Optional[str]]

# One lock per user serializes the check-then-write sequence of concurrent imports.
# Entries are reference counted and removed when the last import for a user ends,
# so the table only holds users with an import in flight.
_user_locks: dict[str, tuple[threading.Lock, int]] = {}
_user_locks_guard = threading.Lock()


@contextmanager
def _user_lock(user_id: str) -> Iterator[None]:
    with _user_locks_guard:
        lock, holders = _user_locks.get(user_id) or (threading.Lock(), 0)
        _user_locks[user_id] = (lock, holders + 1)
    try:
        with lock:
            yield
    finally:
        with _user_locks_guard:
            lock, holders = _user_locks[user_id]
            if holders == 1:
                del _user_locks[user_id]
            else:
                _user_locks[user_id] = (lock, holders - 1)


class Importer:
    """Imports a transaction file into a store.

    Guarantees:
    - Invalid parameters raise ValidationError before any row is read.
    - Each data row ends up in exactly one bucket: imported, skipped
      (duplicate) or errors (malformed).
    - A row is stored whole or not at all; the store never sees a partial row.
    """

    def __init__(
        self,
        store: TransactionStore,
        config: Optional[Config] = None,
        parser: Optional[CSVParser] = None,
        categorizer: Optional[Categorizer] = None,
    ):
        """Initialize importer.

        Args:
            store: Destination store.
            config: Application configuration.
            parser: File decoder (CSVParser by default).
            categorizer: Optional callback assigning a category ID to new transactions.
        """
        self.store = store
        self.config = config or Config()
        self.parser = parser or CSVParser()
        self.normalizer = Normalizer(self.config.imports)
        self.categorizer = categorizer

    def import_transactions(
        self,
        user_id: str,
        source: ImportSource,
        mapping: Union[ColumnMapping, dict[str, object]],
        currency: Optional[str] = None,
        date_format: str = "iso",
        has_header: bool = True,
    ) -> ImportResult:
        """Import one file for one user.

        Args:
            user_id: Owner of the imported transactions.
            source: File payload (bytes, text, path) or already-decoded rows.
            mapping: Column positions, as a ColumnMapping or a form-style dict.
            currency: Declared currency (config default when None).
            date_format: Declared date format name.
            has_header: Whether the first row is a header to ignore.

        Returns:
            ImportResult with imported/skipped counts and per-row errors.

        Raises:
            ValidationError: If the mapping, currency, date format or file is unusable.
        """
        if not user_id:
            raise ValidationError("A target user is required")

        if isinstance(mapping, dict):
            mapping = ColumnMapping.from_dict(mapping)
        mapping.validate()

        currency = (currency or self.config.imports.default_currency).strip().upper()
        if not currency:
            raise ValidationError("Currency is required")
        try:
            resolve_date_format(date_format)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        with LogContext(logger, "import", user_id=user_id, date_format=date_format, currency=currency):
            numbered = self._decode(source)
            if has_header:
                numbered = numbered[1:]
            data_rows = [row for _, row in numbered]

            normalized = self.normalizer.normalize(
                data_rows, mapping, currency, date_format, row_numbers=[line for line, _ in numbered]
            )

            result = ImportResult(total_rows=len(data_rows), errors=list(normalized.errors))

            with _user_lock(user_id):
                deduplicator = Deduplicator(self.store, user_id)
                for candidate in normalized.rows:
                    if deduplicator.is_duplicate(candidate):
                        result.skipped += 1
                        continue

                    txn = Transaction.from_normalized(candidate, user_id)
                    if self.categorizer is not None:
                        txn.category_id = self.categorizer(txn)

                    try:
                        self.store.create_transaction(txn)
                    except ConflictError:
                        logger.debug(f"Row {candidate.row_number}: rejected by store as duplicate")
                        result.skipped += 1
                        continue

                    deduplicator.remember(candidate)
                    result.imported += 1

        logger.info(
            f"Imported {result.imported} transactions "
            f"({result.skipped} duplicates skipped, {result.malformed} malformed rows)"
        )
        if result.errors:
            logger.warning(f"{result.malformed} rows could not be parsed - use -vv for details")
        return result

    def _decode(self, source: ImportSource) -> list[tuple[int, list[str]]]:
        if isinstance(source, (bytes, str, Path)):
            try:
                return self.parser.read_numbered_rows(source)  # type: ignore[arg-type]
            except (ParseError, FileNotFoundError) as e:
                raise ValidationError(f"Could not read file: {e}") from e
        return [(num, [str(cell) for cell in row]) for num, row in enumerate(source, start=1)]  # type: ignore[arg-type]


def import_transactions(
    store: TransactionStore,
    user_id: str,
    source: ImportSource,
    mapping: Union[ColumnMapping, dict[str, object]],
    currency: Optional[str] = None,
    date_format: str = "iso",
    *,
    has_header: bool = True,
    config: Optional[Config] = None,
) -> ImportResult:
    """Convenience function to import a file for a user.

    Args:
        store: Destination store.
        user_id: Owner of the imported transactions.
        source: File payload or decoded rows.
        mapping: Column positions.
        currency: Declared currency.
        date_format: Declared date format name.
        has_header: Whether the first row is a header to ignore.
        config: Application configuration.

    Returns:
        ImportResult.
    """
    importer = Importer(store, config)
    return importer.import_transactions(user_id, source, mapping, currency, date_format, has_header)
