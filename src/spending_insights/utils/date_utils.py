"""Date parsing and calendar-month helpers."""

import calendar
import re
from datetime import date, datetime

# Declared import date formats, keyed by the names the upload form offers.
#
# The format is chosen by the user per file, never guessed: "03/04/2024" is
# only valid under "mm/dd/yyyy", "03.04.2024" only under "dd.mm.yyyy".
DATE_FORMATS = {
    "iso": "%Y-%m-%d",
    "dd.mm.yyyy": "%d.%m.%Y",
    "mm/dd/yyyy": "%m/%d/%Y",
}

# Aliases accepted for the declared format names
DATE_FORMAT_ALIASES = {
    "yyyy-mm-dd": "iso",
    "%y-%m-%d": "iso",
    "%d.%m.%y": "dd.mm.yyyy",
    "%m/%d/%y": "mm/dd/yyyy",
}

# Shape check per format; strptime alone accepts surrounding junk in some builds
DATE_SHAPES = {
    "iso": re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$"),
    "dd.mm.yyyy": re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}$"),
    "mm/dd/yyyy": re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"),
}

# Some exports append a time component: "2024-03-15 00:00:00", "15.03.2024 14:22"
TIME_SUFFIX_PATTERN = re.compile(r"[ T]\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?([+-]\d{2}:?\d{2}|Z)?$")


def resolve_date_format(date_format: str) -> str:
    """Resolve a declared date format name to its canonical key.

    Args:
        date_format: Format name such as "iso", "YYYY-MM-DD" or "dd.mm.yyyy".

    Returns:
        Canonical key of DATE_FORMATS.

    Raises:
        ValueError: If the format is not supported.
    """
    key = (date_format or "").strip().lower()
    key = DATE_FORMAT_ALIASES.get(key, key)
    if key not in DATE_FORMATS:
        supported = ", ".join(DATE_FORMATS)
        raise ValueError(f"Unsupported date format '{date_format}' (supported: {supported})")
    return key


def parse_date(raw_date: str, date_format: str = "iso") -> date:
    """Parse a raw date string using the declared format.

    Args:
        raw_date: The raw date string to parse.
        date_format: Declared format name (see DATE_FORMATS).

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed with that format.
    """
    if not raw_date or not raw_date.strip():
        raise ValueError("Empty date string")

    key = resolve_date_format(date_format)
    date_str = TIME_SUFFIX_PATTERN.sub("", raw_date.strip())

    if not DATE_SHAPES[key].match(date_str):
        raise ValueError(f"Cannot parse date '{raw_date}' as {key}")

    try:
        return datetime.strptime(date_str, DATE_FORMATS[key]).date()
    except ValueError as e:
        raise ValueError(f"Cannot parse date '{raw_date}' as {key}: {e}") from e


def validate_month(month: int, year: int) -> None:
    """Raise ValueError unless month/year name a real calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"Year out of range: {year}")


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move a (year, month) pair by delta months, rolling over years.

    Args:
        year: Calendar year.
        month: Calendar month (1-12).
        delta: Months to move; negative moves backwards.

    Returns:
        Tuple of (year, month).
    """
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def previous_month(year: int, month: int) -> tuple[int, int]:
    """Return the (year, month) immediately before the given month."""
    return shift_month(year, month, -1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last calendar day of a month (both inclusive)."""
    validate_month(month, year)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def months_before(year: int, month: int, count: int) -> tuple[date, date]:
    """Date range covering `count` whole months strictly before a month.

    Args:
        year: Year of the reference month.
        month: Reference month (excluded from the range).
        count: Number of preceding months to cover.

    Returns:
        Tuple of (start, end) dates, both inclusive.
    """
    start_year, start_month = shift_month(year, month, -count)
    end_year, end_month = previous_month(year, month)
    return month_bounds(start_year, start_month)[0], month_bounds(end_year, end_month)[1]


def generate_month_range(start: date, end: date) -> list[tuple[int, int]]:
    """Generate a list of (year, month) tuples for a date range.

    Args:
        start: Start date.
        end: End date.

    Returns:
        List of (year, month) tuples covering the range.
    """
    months = []
    current_year = start.year
    current_month = start.month

    while (current_year, current_month) <= (end.year, end.month):
        months.append((current_year, current_month))
        current_year, current_month = shift_month(current_year, current_month, 1)

    return months


def is_date_in_range(
    d: date,
    start_date: date | None = None,
    end_date: date | None = None,
) -> bool:
    """Check if a date is within a range.

    Args:
        d: Date to check.
        start_date: Start of range (inclusive). None means no lower bound.
        end_date: End of range (inclusive). None means no upper bound.

    Returns:
        True if date is within range.
    """
    if start_date is not None and d < start_date:
        return False
    if end_date is not None and d > end_date:
        return False
    return True
