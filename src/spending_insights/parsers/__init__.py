"""File decoding for uploaded transaction exports."""

from spending_insights.parsers.base import BaseParser, ParseError, ValidationError
from spending_insights.parsers.csv_parser import ColumnMapping, CSVParser, CSVPreview

__all__ = [
    "BaseParser",
    "ParseError",
    "ValidationError",
    "ColumnMapping",
    "CSVParser",
    "CSVPreview",
]
