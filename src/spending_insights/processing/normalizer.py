"""Normalizer: turns decoded CSV rows into canonical import rows."""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from spending_insights.config import ImportConfig
from spending_insights.models.report import RowError
from spending_insights.models.transaction import Direction, NormalizedRow
from spending_insights.parsers.base import ParseError, ValidationError
from spending_insights.parsers.csv_parser import ColumnMapping
from spending_insights.utils.date_utils import parse_date, resolve_date_format
from spending_insights.utils.decimal_utils import parse_amount
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class NormalizationResult:
    """Rows that normalized cleanly plus one error per rejected row."""

    rows: list[NormalizedRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


class Normalizer:
    """Normalizes decoded rows into NormalizedRow candidates.

    The normalizer:
    - Reads cells positionally per the column mapping
    - Parses dates with the declared format only
    - Parses amounts, stripping currency markers and thousands separators
    - Derives direction from the type column or the amount's sign
    - Rejects malformed rows individually, never the whole batch
    """

    def __init__(self, config: Optional[ImportConfig] = None):
        """Initialize normalizer.

        Args:
            config: Import configuration (defaults if None).
        """
        self.config = config or ImportConfig()
        self._income_types = {t.strip().lower() for t in self.config.income_types}
        self._expense_types = {t.strip().lower() for t in self.config.expense_types}

    def normalize(
        self,
        rows: Sequence[Sequence[str]],
        mapping: ColumnMapping,
        currency: str,
        date_format: str,
        first_row_number: int = 1,
        row_numbers: Optional[Sequence[int]] = None,
    ) -> NormalizationResult:
        """Normalize data rows (header already removed).

        Args:
            rows: Data rows of string cells.
            mapping: Column positions.
            currency: Declared currency for every row.
            date_format: Declared date format name.
            first_row_number: Line number of rows[0] in the source file.
            row_numbers: Source line of each row; overrides first_row_number
                when rows are not contiguous in the file.

        Returns:
            NormalizationResult with accepted rows and per-row errors.

        Raises:
            ValidationError: If mapping, currency or date format is unusable.
        """
        mapping.validate()
        try:
            date_key = resolve_date_format(date_format)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        currency = (currency or "").strip().upper()
        if not currency:
            raise ValidationError("Currency is required")

        locale = self._amount_locale(date_key)
        result = NormalizationResult()

        if row_numbers is None:
            row_numbers = range(first_row_number, first_row_number + len(rows))
        elif len(row_numbers) != len(rows):
            raise ValueError("row_numbers must match rows one to one")

        for row_number, row in zip(row_numbers, rows):
            try:
                result.rows.append(
                    self.normalize_row(row, mapping, currency, date_key, locale, row_number)
                )
            except ParseError as e:
                logger.debug(f"Skipping row {row_number}: {e}")
                result.errors.append(RowError(row_number=row_number, reason=str(e)))

        logger.info(
            f"Normalized {len(result.rows)}/{len(rows)} rows "
            f"({len(result.errors)} rejected)"
        )
        return result

    def normalize_row(
        self,
        row: Sequence[str],
        mapping: ColumnMapping,
        currency: str,
        date_format: str,
        locale: str,
        row_number: int,
    ) -> NormalizedRow:
        """Normalize a single row.

        Raises:
            ParseError: If the row is too short or a required cell is unusable.
        """
        if len(row) <= mapping.max_index:
            raise ParseError(
                f"expected at least {mapping.max_index + 1} columns, found {len(row)}", row_number
            )

        date_str = self._cell(row, mapping.date)
        try:
            parsed_date = parse_date(date_str, date_format)
        except ValueError:
            raise ParseError(f"unparseable date '{date_str}'", row_number)

        description = self._cell(row, mapping.description)
        if not description:
            raise ParseError("empty description", row_number)

        amount_str = self._cell(row, mapping.amount)
        try:
            magnitude, is_negative = parse_amount(amount_str, locale)
        except ValueError:
            raise ParseError(f"unparseable amount '{amount_str}'", row_number)

        direction = None
        if mapping.type is not None:
            direction = self._direction_from_type(self._cell(row, mapping.type))
        if direction is None:
            direction = Direction.EXPENSE if is_negative else Direction.INCOME

        reference = self._cell(row, mapping.reference) if mapping.reference is not None else ""

        return NormalizedRow(
            row_number=row_number,
            date=parsed_date,
            description=" ".join(description.split()),
            amount=magnitude,
            direction=direction,
            currency=currency,
            reference=reference or None,
        )

    def _direction_from_type(self, value: str) -> Optional[Direction]:
        """Map a type cell to a direction; None if the value is not recognized."""
        key = value.strip().lower()
        if not key:
            return None
        if key in self._income_types:
            return Direction.INCOME
        if key in self._expense_types:
            return Direction.EXPENSE
        return None

    def _amount_locale(self, date_key: str) -> str:
        if self.config.amount_locale in ("US", "EU"):
            return self.config.amount_locale
        return "EU" if date_key == "dd.mm.yyyy" else "US"

    @staticmethod
    def _cell(row: Sequence[str], idx: int) -> str:
        return row[idx].strip() if 0 <= idx < len(row) else ""


def normalize_rows(
    rows: Sequence[Sequence[str]],
    mapping: ColumnMapping,
    currency: str,
    date_format: str,
    config: Optional[ImportConfig] = None,
) -> NormalizationResult:
    """Convenience function to normalize data rows.

    Args:
        rows: Data rows (header removed).
        mapping: Column positions.
        currency: Declared currency.
        date_format: Declared date format name.
        config: Import configuration.

    Returns:
        NormalizationResult.
    """
    return Normalizer(config).normalize(rows, mapping, currency, date_format)
