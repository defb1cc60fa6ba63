"""Numeric helpers shared by the aggregation and dashboard code."""
import math
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from negative infinity.

    Python's round() uses banker's rounding (round(2.5) == 2). Stored
    analytics scores were produced with half-up rounding, so every average
    and percentage goes through this helper instead.
    """
    return int(math.floor(value + 0.5))


def safe_percentage(count: Number, total: Number) -> int:
    """Percentage of count in total, 0 when total is 0."""
    if not total:
        return 0
    return round_half_up(count / total * 100)


def safe_mean(total: Number, count: int) -> int:
    """Rounded arithmetic mean, 0 when count is 0."""
    if count <= 0:
        return 0
    return round_half_up(total / count)
