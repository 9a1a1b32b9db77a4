"""CSV decoding and positional column mapping."""

import csv
import io
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from spending_insights.parsers.base import BaseParser, ParseError, Payload, ValidationError
from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum CSV payload size to prevent memory exhaustion (50 MB)
MAX_CSV_FILE_SIZE = 50 * 1024 * 1024

# Maximum number of rows to prevent memory exhaustion from many small rows
MAX_CSV_ROWS = 500_000

# Rows shown by preview()
PREVIEW_ROWS = 20

# Delimiters tried during detection, most preferred first
DELIMITER_CANDIDATES = [",", ";", "\t", "|"]


@dataclass
class ColumnMapping:
    """Zero-based positions of the columns the importer reads.

    The header row is never consulted; the caller picks positions, usually
    from a preview of the file.
    """

    date: int
    description: int
    amount: int
    type: Optional[int] = None  # income/expense marker column
    reference: Optional[int] = None  # source-system transaction id

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ColumnMapping":
        """Create from a form-style dict where values may be strings.

        Empty strings and None mean "not mapped".

        Raises:
            ValidationError: If a required column is missing or not an integer.
        """
        def _index(key: str, required: bool) -> Optional[int]:
            value = data.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                if required:
                    raise ValidationError(f"Column mapping is missing required '{key}' column")
                return None
            try:
                return int(value)  # type: ignore[call-overload]
            except (TypeError, ValueError):
                raise ValidationError(f"Column mapping '{key}' must be a column index, got {value!r}")

        return cls(
            date=_index("date", True),  # type: ignore[arg-type]
            description=_index("description", True),  # type: ignore[arg-type]
            amount=_index("amount", True),  # type: ignore[arg-type]
            type=_index("type", False),
            reference=_index("reference", False),
        )

    def validate(self) -> None:
        """Check that required columns are mapped to valid, distinct positions.

        Raises:
            ValidationError: If the mapping cannot be used.
        """
        required = {"date": self.date, "description": self.description, "amount": self.amount}
        for name, idx in required.items():
            if idx is None:
                raise ValidationError(f"Column mapping is missing required '{name}' column")
            if not isinstance(idx, int) or isinstance(idx, bool) or idx < 0:
                raise ValidationError(f"Column mapping '{name}' must be a non-negative integer, got {idx!r}")

        for name, idx in (("type", self.type), ("reference", self.reference)):
            if idx is not None and (not isinstance(idx, int) or isinstance(idx, bool) or idx < 0):
                raise ValidationError(f"Column mapping '{name}' must be a non-negative integer, got {idx!r}")

        if len(set(required.values())) != len(required):
            raise ValidationError("Date, description and amount must map to different columns")

    @property
    def max_index(self) -> int:
        """Highest column position any mapped field uses."""
        return max(i for i in (self.date, self.description, self.amount, self.type, self.reference) if i is not None)


@dataclass
class CSVPreview:
    """First rows of a file, shown to the user before they choose a mapping."""

    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)
    delimiter: str = ","


class CSVParser(BaseParser):
    """Decoder for CSV/TSV bank exports.

    Handles delimiter detection, quoting and BOMs. Blank lines are dropped;
    every other line becomes one row of stripped cells.
    """

    def __init__(self, delimiter: Optional[str] = None):
        """Initialize CSV decoder.

        Args:
            delimiter: Force a delimiter instead of sniffing one.
        """
        self.delimiter = delimiter

    @property
    def supported_extensions(self) -> list[str]:
        return [".csv", ".tsv", ".txt"]

    def read_rows(self, payload: Payload) -> list[list[str]]:
        """Decode a CSV payload into rows of cells, header included."""
        return [row for _, row in self.read_numbered_rows(payload)]

    def read_numbered_rows(self, payload: Payload) -> list[tuple[int, list[str]]]:
        """Decode a CSV payload into rows paired with their source line numbers.

        Args:
            payload: Bytes, text, or a path to a CSV file.

        Returns:
            (line, cells) pairs for non-blank rows, header included. The line is
            where the record starts in the file, so blank lines still count.

        Raises:
            ParseError: If the payload is too large or not valid CSV.
        """
        if isinstance(payload, (bytes, str)) and len(payload) > MAX_CSV_FILE_SIZE:
            raise ParseError(
                f"File too large ({len(payload) / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_CSV_FILE_SIZE / 1024 / 1024:.0f} MB"
            )

        text = self._read_payload_text(payload)
        if len(text) > MAX_CSV_FILE_SIZE:
            raise ParseError(f"File too large. Maximum allowed is {MAX_CSV_FILE_SIZE / 1024 / 1024:.0f} MB")

        lines = text.splitlines()
        delimiter = self.delimiter or self._detect_delimiter(lines[:20])

        rows: list[tuple[int, list[str]]] = []
        try:
            reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
            start_line = 1
            for record_num, row in enumerate(reader, start=1):
                line_num, start_line = start_line, reader.line_num + 1
                if record_num > MAX_CSV_ROWS:
                    raise ParseError(
                        f"File exceeds maximum row limit ({MAX_CSV_ROWS:,} rows). "
                        f"Split file into smaller chunks."
                    )
                if not row or all(cell.strip() == "" for cell in row):
                    continue
                rows.append((line_num, [cell.strip() for cell in row]))
        except csv.Error as e:
            raise ParseError(f"Failed to parse CSV: {e}") from e

        logger.info(f"Decoded {len(rows)} rows (delimiter={delimiter!r})")
        return rows

    def preview(self, payload: Payload, limit: int = PREVIEW_ROWS) -> CSVPreview:
        """Return the header and first data rows of a payload.

        Args:
            payload: Bytes, text, or a path to a CSV file.
            limit: Maximum data rows to return.

        Returns:
            CSVPreview with headers and up to `limit` rows.
        """
        text = self._read_payload_text(payload)
        lines = text.splitlines()
        delimiter = self.delimiter or self._detect_delimiter(lines[:20])
        rows = self.read_rows(text)
        if not rows:
            return CSVPreview(headers=[], rows=[], delimiter=delimiter)
        return CSVPreview(headers=rows[0], rows=rows[1 : limit + 1], delimiter=delimiter)

    def _detect_delimiter(self, lines: list[str]) -> str:
        """Detect CSV delimiter from content.

        Each candidate is tried with csv.reader so quoted cells are respected.
        The winner splits most lines into the same number of fields; among
        equally consistent candidates the one producing more fields wins.
        Semicolon files with decimal commas ("15.03.2024;MIGROS;-1.234,56")
        therefore resolve to ";".

        Args:
            lines: First few lines of the file.

        Returns:
            Detected delimiter character.
        """
        sample = [line for line in lines[:20] if line.strip()]
        if not sample:
            return ","

        best_delimiter = ","
        best_score: tuple[bool, int, int] = (False, 0, 0)

        for priority, d in enumerate(reversed(DELIMITER_CANDIDATES)):
            try:
                counts = [len(row) for row in csv.reader(sample, delimiter=d)]
            except csv.Error:
                continue
            mode = Counter(counts).most_common(1)[0][0]
            if mode < 2:
                continue
            consistent = counts.count(mode) >= len(counts) * 0.8
            score = (consistent, mode, priority)
            if score > best_score:
                best_score = score
                best_delimiter = d

        return best_delimiter
