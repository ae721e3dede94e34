"""
DroneSpot Backend: Confidence Normalizer
==========================================

What:  Rescales candidate confidences to integer percentages summing to 100.
Who:   Called by LocationService after truncating the candidate list.

Algorithm:
    1. total = sum of confidences (missing or non-numeric values count as 0)
    2. total == 100 with integral values: keep them as they are
    3. otherwise scale each value to c / total * 100 and round half away
       from zero (decimal.ROUND_HALF_UP)
    4. if the rounded values do not add up to 100, the first entry holding
       the largest rounded value absorbs the difference
    5. total == 0 raises NormalizationError; negative or non-finite values
       raise as well

Example:
    [50, 50, 1] (sum 101) → scaled [49.50, 49.50, 0.99] → rounded [50, 50, 1]
    → residual -1 applied to index 0 → [49, 50, 1]

Rank order is not re-sorted: output order always equals input order.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from numbers import Real
from typing import Any, List, Sequence

from dronespot.exceptions import NormalizationError
from dronespot.schemas.location import CandidateLocation

TARGET_TOTAL = 100


def _as_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        raise NormalizationError(
            message="confidence values too large to normalize",
            context={"type": type(value).__name__},
        )
    if not math.isfinite(number):
        raise NormalizationError(
            message="confidence values must be finite",
            context={"value": str(value)},
        )
    if number < 0:
        raise NormalizationError(
            message="confidence values must not be negative",
            context={"value": number},
        )
    return number


def round_half_up(value: float) -> int:
    """Rounds to the nearest integer, halves away from zero (2.5 → 3, -2.5 → -3)."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def normalize_values(values: Sequence[Any]) -> List[int]:
    """
    Normalize raw confidence values to integers summing to exactly 100.

    Raises:
        NormalizationError: empty input, zero total, negative or non-finite values.
    """
    if not values:
        raise NormalizationError(message="cannot normalize an empty candidate list")

    numbers = [_as_number(v) for v in values]
    try:
        total = math.fsum(numbers)
    except OverflowError:
        # Each value is finite but the sum is not; only the ratios matter
        peak = max(numbers)
        numbers = [n / peak for n in numbers]
        total = math.fsum(numbers)

    if total == 0:
        raise NormalizationError(context={"values": numbers})

    if total == TARGET_TOTAL and all(n.is_integer() for n in numbers):
        return [int(n) for n in numbers]

    rounded = [round_half_up(n / total * TARGET_TOTAL) for n in numbers]

    residual = TARGET_TOTAL - sum(rounded)
    if residual:
        # list.index returns the first of tied maxima
        rounded[rounded.index(max(rounded))] += residual

    return rounded


def normalize(candidates: Sequence[CandidateLocation]) -> List[CandidateLocation]:
    """
    Return copies of `candidates` whose confidences are integers summing to 100.

    The input list and its items are left untouched; order is preserved.

    Raises:
        NormalizationError: see normalize_values().
    """
    percentages = normalize_values([c.confidence for c in candidates])
    return [
        candidate.model_copy(update={"confidence": pct})
        for candidate, pct in zip(candidates, percentages)
    ]


def equal_split(count: int) -> List[int]:
    """
    Integer percentages splitting 100 as evenly as possible across `count` slots.

    The remainder goes to the trailing slots: 3 → [33, 33, 34], 6 → [16, 16, 17, 17, 17, 17].
    """
    if count < 1:
        raise ValueError("count must be at least 1")
    base, remainder = divmod(TARGET_TOTAL, count)
    return [base + (1 if i >= count - remainder else 0) for i in range(count)]
