"""Category and budget data models."""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class Category:
    """User-scoped spending category.

    Attributes:
        id: Unique identifier.
        user_id: Owner reference.
        name: Display name (e.g., "Dining").
    """

    id: str
    user_id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Category":
        """Create from dictionary (YAML config/store format)."""
        if "name" not in data:
            raise ValueError("Category missing required 'name' field")
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            user_id=str(data["user_id"]),
            name=str(data["name"]),
        )

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "user_id": self.user_id, "name": self.name}


@dataclass
class Budget:
    """Monthly spending limit for one category.

    Budgets are created and edited outside the engine; the engine only
    reads them to compute progress.

    Attributes:
        category_id: Category the limit applies to.
        amount: Limit for the month (positive).
        month: Calendar month (1-12).
        year: Calendar year.
        user_id: Owner reference.
        id: Unique identifier.
    """

    category_id: str
    amount: Decimal
    month: int
    year: int
    user_id: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Budget month must be between 1 and 12, got {self.month}")
        if self.amount < 0:
            raise ValueError(f"Budget amount must not be negative, got {self.amount}")

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Budget":
        """Create from dictionary (YAML format)."""
        for key in ("category_id", "amount", "month", "year"):
            if key not in data:
                raise ValueError(f"Budget missing required '{key}' field")
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            user_id=str(data.get("user_id", "")),
            category_id=str(data["category_id"]),
            amount=Decimal(str(data["amount"])),
            month=int(data["month"]),  # type: ignore[arg-type]
            year=int(data["year"]),  # type: ignore[arg-type]
        )
