"""Decoder contract and import error types."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from spending_insights.utils.logging_config import get_logger

logger = get_logger(__name__)

# Uploaded content: raw bytes, already-decoded text, or a path on disk
Payload = Union[bytes, str, Path]


class ParseError(Exception):
    """Raised when a single row (or a whole file) cannot be parsed."""

    def __init__(self, message: str, row_number: Optional[int] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            row_number: Optional 1-based line number of the offending row.
        """
        self.row_number = row_number
        super().__init__(message)


class ValidationError(Exception):
    """Raised when import parameters are unusable; aborts before any row is read."""

    pass


class BaseParser(ABC):
    """Abstract base class for file decoders.

    A decoder turns an uploaded payload into rows of string cells. It does
    not interpret the cells; that is the Normalizer's job.
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return list of file extensions this decoder supports."""
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def read_rows(self, payload: Payload) -> list[list[str]]:
        """Decode a payload into rows of cells.

        Args:
            payload: Bytes, text, or a path to a file.

        Returns:
            Rows of string cells, header row included.

        Raises:
            ParseError: If the payload cannot be decoded at all.
        """
        pass

    def can_parse(self, file_path: Path) -> bool:
        """Check if this decoder handles the file's extension."""
        return file_path.suffix.lower() in self.supported_extensions

    def _read_payload_text(self, payload: Payload) -> str:
        """Return the payload as text, decoding bytes and reading paths.

        Args:
            payload: Bytes, text, or a path.

        Returns:
            Decoded text with any UTF-8 BOM removed.
        """
        if isinstance(payload, Path):
            if not payload.exists():
                raise FileNotFoundError(f"File not found: {payload}")
            payload = payload.read_bytes()

        if isinstance(payload, bytes):
            try:
                text = payload.decode("utf-8-sig")
            except UnicodeDecodeError:
                # Turkish bank exports are frequently cp1254
                logger.warning(f"{self.name}: payload is not UTF-8, falling back to cp1254")
                text = payload.decode("cp1254", errors="replace")
        else:
            text = payload

        return text.lstrip("\ufeff")
