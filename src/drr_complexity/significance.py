"""
Significance buckets for p-values.

Thresholds are inclusive on the stricter side: p == 0.01 falls in
"0.001 < p <= 0.01", not in the next bucket up.
"""
import math
from enum import IntEnum

from drr_complexity.errors import InvalidProbabilityError

THRESHOLDS = (0.001, 0.01, 0.05)


class SignificanceBucket(IntEnum):
    """Ordered from most to least significant."""

    P_001 = 0
    P_01 = 1
    P_05 = 2
    NOT_SIGNIFICANT = 3

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def marker(self) -> str:
        """Heatmap annotation (***, **, * or empty)."""
        return "*" * (3 - self.value)

    def __str__(self) -> str:
        return self.label


_LABELS = {
    SignificanceBucket.P_001: "p ≤ 0.001",
    SignificanceBucket.P_01: "0.001 < p ≤ 0.01",
    SignificanceBucket.P_05: "0.01 < p ≤ 0.05",
    SignificanceBucket.NOT_SIGNIFICANT: "p > 0.05",
}


def classify(p_value: float) -> SignificanceBucket:
    """Map a p-value in [0, 1] to its significance bucket."""
    try:
        p = float(p_value)
    except (TypeError, ValueError) as exc:
        raise InvalidProbabilityError(f"p-value is not a number: {p_value!r}") from exc
    if math.isnan(p) or p < 0.0 or p > 1.0:
        raise InvalidProbabilityError(f"p-value outside [0, 1]: {p_value!r}")

    for bucket, threshold in zip(SignificanceBucket, THRESHOLDS):
        if p <= threshold:
            return bucket
    return SignificanceBucket.NOT_SIGNIFICANT


def legend() -> list[tuple[str, str]]:
    """(marker, label) pairs in bucket order, for figure legends."""
    return [(b.marker, b.label) for b in SignificanceBucket]
