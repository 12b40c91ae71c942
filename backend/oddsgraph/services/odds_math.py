"""Odds format conversions.

Every function returns 0 for input it cannot convert (zero, negative
decimal, NaN, infinities) instead of raising, so callers can fold feed
values through without guarding each one.
"""

import math


def _is_usable(value: float | int | None) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except TypeError:
        return False


def american_to_implied_probability(odds: float | int | None) -> float:
    """+150 -> 0.4, -150 -> 0.6 (no vig removal)."""
    if not _is_usable(odds) or odds == 0:
        return 0.0
    if odds > 0:
        return 100.0 / (odds + 100.0)
    magnitude = abs(odds)
    return magnitude / (magnitude + 100.0)


def american_to_decimal(odds: float | int | None) -> float:
    """+150 -> 2.5, -150 -> 1.666..."""
    if not _is_usable(odds) or odds == 0:
        return 0.0
    if odds > 0:
        return 1.0 + odds / 100.0
    return 1.0 + 100.0 / abs(odds)


def decimal_to_implied_probability(decimal: float | int | None) -> float:
    if not _is_usable(decimal) or decimal <= 0:
        return 0.0
    return 1.0 / decimal


def decimal_to_american(decimal: float | int | None) -> float:
    if not _is_usable(decimal) or decimal <= 1:
        return 0.0
    if decimal >= 2:
        return (decimal - 1.0) * 100.0
    return -100.0 / (decimal - 1.0)


def hongkong_to_decimal(odds: float | int | None) -> float:
    if not _is_usable(odds) or odds <= 0:
        return 0.0
    return odds + 1.0


def implied_probability(price: float | int | None, odds_format: str = "american") -> float:
    if odds_format == "decimal":
        return decimal_to_implied_probability(price)
    if odds_format == "hongkong":
        return decimal_to_implied_probability(hongkong_to_decimal(price))
    return american_to_implied_probability(price)


def to_american(price: float | int | None, odds_format: str = "american") -> float:
    """Normalize a feed price to American odds for best-price comparisons."""
    if odds_format == "decimal":
        return decimal_to_american(price)
    if odds_format == "hongkong":
        return decimal_to_american(hongkong_to_decimal(price))
    if not _is_usable(price):
        return 0.0
    return float(price)
