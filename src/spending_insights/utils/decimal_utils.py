"""Decimal utilities for monetary parsing and statistics.

All monetary calculations must use Decimal to avoid floating-point precision issues.
"""

import re
import statistics
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional


# Currency symbols to strip
CURRENCY_SYMBOLS = {"$", "€", "£", "¥", "₺", "₹", "₽", "₩", "₿"}

# Leading or trailing ISO-like currency codes: "TRY 1.234,56", "99.90 USD"
CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}\s+|\s+[A-Z]{3}$|^[A-Z]{3}(?=[\d(-])|(?<=\d)[A-Z]{3}$")

# Regex for parentheses-enclosed negatives: ($1,234.56) or (1234.56)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^)]+)\s*\)\s*$")

# Regex for trailing DR/CR indicators
DR_CR_PATTERN = re.compile(r"\s*(DR|CR|D|C)\s*$", re.IGNORECASE)

CENT = Decimal("0.01")


def parse_amount(raw_amount: str, locale: str = "US") -> tuple[Decimal, bool]:
    """Parse a raw amount string into a Decimal.

    Handles various formats:
    - Standard: 1234.56, -1234.56
    - With currency: $1,234.56, -₺1.234,56, 99.90 TRY
    - Parentheses for negative: ($1,234.56), (1234.56)
    - European format: 1.234,56 (thousand separator is period)
    - DR/CR suffix: 1234.56 DR, 1234.56 CR

    Ambiguous formats are interpreted based on locale:
    - US (default): "1,234" = 1234 and "1.234" = 1.234
    - EU: "1,234" = 1.234 and "1.234" = 1234

    Args:
        raw_amount: The raw amount string to parse.
        locale: Locale hint for ambiguous formats ("US" or "EU"). Default: "US".

    Returns:
        Tuple of (absolute amount as Decimal, is_negative flag).

    Raises:
        ValueError: If the amount cannot be parsed.
    """
    if not raw_amount or not raw_amount.strip():
        raise ValueError("Empty amount string")

    original = raw_amount
    amount_str = raw_amount.strip()
    is_negative = False

    amount_str = CURRENCY_CODE_PATTERN.sub("", amount_str).strip()

    parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
    if parens_match:
        amount_str = parens_match.group(1).strip()
        is_negative = True

    dr_cr_match = DR_CR_PATTERN.search(amount_str)
    if dr_cr_match:
        indicator = dr_cr_match.group(1).upper()
        if indicator in ("DR", "D"):
            is_negative = True
        amount_str = DR_CR_PATTERN.sub("", amount_str).strip()

    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")
    amount_str = amount_str.strip()

    # Sign may sit before or after a stripped currency symbol: "-$5", "$-5"
    if amount_str.startswith("-"):
        is_negative = True
        amount_str = amount_str[1:].strip()
    elif amount_str.startswith("+"):
        amount_str = amount_str[1:].strip()

    # Remove grouping spaces (including the narrow no-break space some banks emit)
    amount_str = re.sub(r"[\s\u00a0\u202f]+", "", amount_str)

    if "," in amount_str and "." in amount_str:
        # Whichever separator comes last is the decimal separator
        if amount_str.rfind(",") > amount_str.rfind("."):
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        if amount_str.count(",") > 1:
            amount_str = amount_str.replace(",", "")
        elif re.search(r",\d{1,2}$", amount_str) or locale == "EU":
            amount_str = amount_str.replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif "." in amount_str:
        if amount_str.count(".") > 1:
            amount_str = amount_str.replace(".", "")
        elif locale == "EU" and re.search(r"\.\d{3}$", amount_str):
            # EU thousands separator: 1.234 -> 1234
            amount_str = amount_str.replace(".", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{original}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Cannot parse amount '{original}': not a finite number")

    return abs(amount), is_negative


def quantize_money(amount: Decimal) -> Decimal:
    """Round an amount to cents, normalizing negative zero."""
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        return Decimal("0.00")
    return rounded


def format_amount(amount: Decimal, decimal_places: int = 2) -> str:
    """Format a Decimal amount for display with thousands grouping.

    Args:
        amount: The amount to format.
        decimal_places: Number of decimal places (default 2).

    Returns:
        Formatted string like "-1,234.56".
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "0"
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)
    return f"{rounded:,}"


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts, starting from a Decimal zero."""
    total = Decimal("0")
    for amount in amounts:
        total += amount
    return total


def mean_amount(amounts: list[Decimal]) -> Decimal:
    """Arithmetic mean of a non-empty list of amounts."""
    return sum_amounts(amounts) / len(amounts)


def stdev_amount(amounts: list[Decimal]) -> Decimal:
    """Population standard deviation; zero for fewer than two amounts."""
    if len(amounts) < 2:
        return Decimal("0")
    return statistics.pstdev(amounts)


def median_amount(amounts: list[Decimal]) -> Decimal:
    """Median of a non-empty list of amounts."""
    return Decimal(statistics.median(amounts))


def coefficient_of_variation(amounts: list[Decimal]) -> Decimal:
    """Population standard deviation divided by the mean.

    Returns zero when the mean is zero so that all-zero groups count as stable.
    """
    mean = mean_amount(amounts)
    if mean == 0:
        return Decimal("0")
    return stdev_amount(amounts) / abs(mean)


def percent_change(previous: Decimal, current: Decimal) -> Optional[Decimal]:
    """Percentage change from previous to current, or None when previous is zero."""
    if previous == 0:
        return None
    return (current - previous) / previous * 100
