"""Transaction data models for imported bank history."""

import hashlib
import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from spending_insights.utils.decimal_utils import quantize_money
from spending_insights.utils.merchant import normalize_merchant

# Fingerprint tuple: (user_id, date, signed amount, description, currency, reference)
FingerprintKey = tuple[str, str, str, str, str, str]


class Direction(Enum):
    """Money direction of a transaction."""

    INCOME = "income"  # Money in (positive)
    EXPENSE = "expense"  # Money out (negative)


def normalize_description(description: str) -> str:
    """Lowercase, trim and collapse whitespace for fingerprinting."""
    return re.sub(r"\s+", " ", description.lower().strip())


def build_fingerprint_key(
    user_id: str,
    txn_date: date,
    signed_amount: Decimal,
    description: str,
    currency: str,
    reference: str | None = None,
) -> FingerprintKey:
    """Build the deduplication key for one transaction.

    Two records with equal keys describe the same real-world event. The
    optional reference is the source system's own transaction id; when a
    file carries one, repeated same-day charges with distinct ids stay apart.

    Args:
        user_id: Owner of the transaction.
        txn_date: Transaction date.
        signed_amount: Amount with sign (negative for expenses).
        description: Raw description text.
        currency: Currency code.
        reference: Optional source-system transaction id.

    Returns:
        Tuple usable as a dict/set key.
    """
    return (
        str(user_id),
        txn_date.isoformat(),
        str(quantize_money(signed_amount)),
        normalize_description(description),
        currency.strip().upper(),
        (reference or "").strip(),
    )


@dataclass
class NormalizedRow:
    """One parsed import row, ready for deduplication and storage.

    Attributes:
        row_number: 1-based line number in the source file.
        date: Transaction date.
        description: Description text as found in the file (trimmed).
        amount: Unsigned magnitude of the amount.
        direction: Income or expense.
        currency: Declared currency code.
        reference: Optional source-system transaction id.
    """

    row_number: int
    date: date
    description: str
    amount: Decimal
    direction: Direction
    currency: str
    reference: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with sign applied (negative for expenses)."""
        return -self.amount if self.direction is Direction.EXPENSE else self.amount

    def fingerprint_key(self, user_id: str) -> FingerprintKey:
        """Deduplication key of this row for a given owner."""
        return build_fingerprint_key(
            user_id, self.date, self.signed_amount, self.description, self.currency, self.reference
        )


@dataclass
class Transaction:
    """Stored transaction.

    Attributes:
        user_id: Owner reference.
        date: Calendar date of the transaction.
        description: Raw merchant/memo text.
        amount: Signed amount (negative for expenses, positive for income).
        direction: Income or expense.
        currency: Currency code.
        merchant: Normalized description used for grouping.
        category_id: Optional category reference.
        reference: Optional source-system transaction id.
        id: Unique identifier (UUID).
    """

    user_id: str
    date: date
    description: str
    amount: Decimal
    direction: Direction
    currency: str
    merchant: str = ""
    category_id: str | None = None
    reference: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if not self.merchant:
            self.merchant = normalize_merchant(self.description)

    @classmethod
    def from_normalized(cls, row: NormalizedRow, user_id: str) -> "Transaction":
        """Create a stored transaction from a normalized import row."""
        return cls(
            user_id=user_id,
            date=row.date,
            description=row.description,
            amount=row.signed_amount,
            direction=row.direction,
            currency=row.currency.strip().upper(),
            reference=row.reference,
        )

    @property
    def magnitude(self) -> Decimal:
        """Unsigned amount."""
        return abs(self.amount)

    @property
    def is_expense(self) -> bool:
        return self.direction is Direction.EXPENSE

    @property
    def fingerprint_key(self) -> FingerprintKey:
        """Deduplication key (see build_fingerprint_key)."""
        return build_fingerprint_key(
            self.user_id, self.date, self.amount, self.description, self.currency, self.reference
        )

    @property
    def fingerprint(self) -> str:
        """Stable 16-character hex digest of the deduplication key.

        Note:
            Two 5.00 coffees at the same cafe on the same day share a
            fingerprint unless the file supplied distinct references.

        Returns:
            A 16-character hex string.
        """
        data = "|".join(self.fingerprint_key)
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def to_dict(self) -> dict[str, object]:
        """Serialize to plain YAML/JSON-friendly values."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "description": self.description,
            "merchant": self.merchant,
            "amount": str(self.amount),
            "direction": self.direction.value,
            "currency": self.currency,
            "category_id": self.category_id,
            "reference": self.reference,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Transaction":
        """Create from a dict produced by to_dict()."""
        return cls(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            date=date.fromisoformat(str(data["date"])),
            description=str(data["description"]),
            merchant=str(data.get("merchant") or ""),
            amount=Decimal(str(data["amount"])),
            direction=Direction(str(data["direction"])),
            currency=str(data["currency"]),
            category_id=str(data["category_id"]) if data.get("category_id") else None,
            reference=str(data["reference"]) if data.get("reference") else None,
        )

    def __repr__(self) -> str:
        return (
            f"Transaction(date={self.date}, "
            f"description={self.description[:30]!r}, "
            f"amount={self.amount} {self.currency})"
        )
