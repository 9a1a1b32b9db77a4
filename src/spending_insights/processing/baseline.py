"""Statistical baselines for groups of transaction amounts."""

from dataclasses import dataclass
from decimal import Decimal

from spending_insights.utils.decimal_utils import (
    mean_amount,
    median_amount,
    stdev_amount,
)


class InsufficientDataError(Exception):
    """Raised when a group has too little history for a baseline.

    Detectors catch this and leave the group out of their results.
    """

    def __init__(self, group: str, count: int, required: int):
        self.group = group
        self.count = count
        self.required = required
        super().__init__(f"Group '{group}' has {count} samples, {required} required")


@dataclass(frozen=True)
class Baseline:
    """Summary of a group's historical amounts.

    Attributes:
        group: Group label (category or merchant).
        count: Number of samples.
        mean: Arithmetic mean.
        stdev: Population standard deviation.
        median: Median amount.
    """

    group: str
    count: int
    mean: Decimal
    stdev: Decimal
    median: Decimal

    @property
    def variation(self) -> Decimal:
        """Coefficient of variation (stdev / mean), zero for a zero mean."""
        if self.mean == 0:
            return Decimal("0")
        return self.stdev / abs(self.mean)

    def deviation(self, amount: Decimal) -> Decimal:
        """Signed distance of an amount from the mean."""
        return amount - self.mean

    def deviation_percent(self, amount: Decimal) -> Decimal:
        """Distance from the mean as a percentage of the mean."""
        if self.mean == 0:
            return Decimal("0")
        return (amount - self.mean) / self.mean * 100


def build_baseline(group: str, amounts: list[Decimal], min_samples: int) -> Baseline:
    """Summarize a group's amounts.

    Args:
        group: Group label for messages.
        amounts: Unsigned historical amounts.
        min_samples: Smallest sample count accepted.

    Returns:
        Baseline for the group.

    Raises:
        InsufficientDataError: If fewer than min_samples amounts are given.
    """
    if len(amounts) < max(1, min_samples):
        raise InsufficientDataError(group, len(amounts), min_samples)

    return Baseline(
        group=group,
        count=len(amounts),
        mean=mean_amount(amounts),
        stdev=stdev_amount(amounts),
        median=median_amount(amounts),
    )

