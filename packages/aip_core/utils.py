import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with .5 going up.
    Built-in round() uses banker's rounding, which would move scores on exact halves.
    Float noise below 1e-9 is dropped first so 0.1-weighted sums land on their true halves.
    """
    return int(math.floor(round(value, 9) + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))
