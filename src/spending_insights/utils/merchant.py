"""Merchant name normalization used to group transactions.

Contract of normalize_merchant():
- Output is upper-case with single spaces and no leading/trailing punctuation.
- Card-processor prefixes ("SQ *", "TST*", "PAYPAL *", "IYZICO*") are removed.
- Trailing transaction references are removed repeatedly: "#1234",
  "REF: AB12", "*2K4L91", dates like "15.03" or "03/15/24", and digit runs
  of four or more.
- Never returns an empty string for non-blank input; if stripping would
  remove everything, the cleaned description is returned instead.
"""

import re

# Payment-processor prefixes that precede the real merchant name
PROCESSOR_PREFIX_PATTERN = re.compile(
    r"^(SQ|SQU|TST|TOAST|PAYPAL|PP|IYZICO|IYZ|PAYU|STRIPE|GOOGLE|APPLE\.COM/BILL)\s*\*\s*"
)

# Reference-like suffixes stripped from the end, applied until nothing changes
REFERENCE_SUFFIX_PATTERNS = [
    re.compile(r"\s*\*\s*[A-Z0-9]*\d[A-Z0-9]*$"),  # AMAZON MKTPLACE*2K4L91
    re.compile(r"\s+(REF|REFNO|REF NO|TXN|AUTH|ID|NO|TRX)[\s:#.]*[A-Z0-9-]*\d[A-Z0-9-]*$"),
    re.compile(r"\s*#\s*[A-Z0-9-]+$"),  # STORE #1234
    re.compile(r"\s+\d{1,2}[./-]\d{1,2}([./-]\d{2,4})?$"),  # 15.03 / 03/15/24
    re.compile(r"\s+[A-Z]*\d{4,}[A-Z0-9]*$"),  # trailing digit runs and card tails
]

TRIM_PUNCTUATION = " -_*#.,:;/|"


def normalize_merchant(description: str) -> str:
    """Normalize a raw description into a merchant grouping key.

    Args:
        description: Raw description/memo text.

    Returns:
        Normalized merchant name (see module docstring for the contract).
    """
    cleaned = re.sub(r"\s+", " ", description.strip().upper())
    if not cleaned:
        return ""

    merchant = PROCESSOR_PREFIX_PATTERN.sub("", cleaned)

    changed = True
    while changed:
        changed = False
        for pattern in REFERENCE_SUFFIX_PATTERNS:
            stripped = pattern.sub("", merchant).strip(TRIM_PUNCTUATION)
            if stripped != merchant and stripped:
                merchant = stripped
                changed = True

    merchant = merchant.strip(TRIM_PUNCTUATION)
    return merchant or cleaned.strip(TRIM_PUNCTUATION) or cleaned
