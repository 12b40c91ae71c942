import math

import pytest

from oddsgraph.services.odds_math import (
    american_to_decimal,
    american_to_implied_probability,
    decimal_to_american,
    decimal_to_implied_probability,
    hongkong_to_decimal,
    implied_probability,
    to_american,
)


def test_american_conversions_match_known_values() -> None:
    assert american_to_implied_probability(150) == pytest.approx(0.4)
    assert american_to_implied_probability(-150) == pytest.approx(0.6)
    assert american_to_decimal(150) == pytest.approx(2.5)
    assert american_to_decimal(-200) == pytest.approx(1.5)


@pytest.mark.parametrize("odds", [-10000, -450, -110, -101, 100, 101, 135, 900, 25000])
def test_decimal_path_agrees_with_direct_implied_probability(odds: int) -> None:
    via_decimal = decimal_to_implied_probability(american_to_decimal(odds))
    assert via_decimal == pytest.approx(american_to_implied_probability(odds))


@pytest.mark.parametrize("bad", [0, None, math.nan, math.inf, -math.inf, True])
def test_unusable_american_input_returns_zero(bad) -> None:
    assert american_to_implied_probability(bad) == 0.0
    assert american_to_decimal(bad) == 0.0


@pytest.mark.parametrize("bad", [0, -1.5, None, math.nan])
def test_unusable_decimal_input_returns_zero(bad) -> None:
    assert decimal_to_implied_probability(bad) == 0.0


def test_decimal_to_american_inverts_american_to_decimal() -> None:
    assert decimal_to_american(2.5) == pytest.approx(150)
    assert decimal_to_american(1.5) == pytest.approx(-200)
    assert decimal_to_american(2.0) == pytest.approx(100)
    assert decimal_to_american(1.0) == 0.0


def test_hongkong_prices_are_decimal_minus_one() -> None:
    assert hongkong_to_decimal(0.91) == pytest.approx(1.91)
    assert hongkong_to_decimal(0) == 0.0
    assert implied_probability(1.0, "hongkong") == pytest.approx(0.5)


def test_implied_probability_dispatches_by_format() -> None:
    assert implied_probability(-110) == pytest.approx(110 / 210)
    assert implied_probability(2.0, "decimal") == pytest.approx(0.5)


def test_to_american_normalizes_every_format() -> None:
    assert to_american(-110, "american") == -110
    assert to_american(2.5, "decimal") == pytest.approx(150)
    assert to_american(1.5, "hongkong") == pytest.approx(150)
    assert to_american(math.nan, "american") == 0.0
