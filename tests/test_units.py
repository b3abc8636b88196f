"""Tests for unit conversions."""

import math

import pytest

from macro_planner.domain.errors import InvalidQuantityError
from macro_planner.domain.nutrition import NutrientProfile
from macro_planner.services.units import (
    calories_from_macros,
    scale,
    validate_quantity,
)

PROFILE = NutrientProfile(protein_g=10, fats_g=5, carbs_g=20, calories=160)


def test_calories_from_macros_uses_4_9_4() -> None:
    assert calories_from_macros(150, 50, 200) == 1850


def test_scale_is_linear_in_quantity() -> None:
    combined = scale(PROFILE, 250)
    first = scale(PROFILE, 100)
    second = scale(PROFILE, 150)

    assert combined.protein_g == pytest.approx(first.protein_g + second.protein_g)
    assert combined.fats_g == pytest.approx(first.fats_g + second.fats_g)
    assert combined.carbs_g == pytest.approx(first.carbs_g + second.carbs_g)
    assert combined.calories == pytest.approx(first.calories + second.calories)


def test_scale_by_zero_is_zero() -> None:
    assert scale(PROFILE, 0) == NutrientProfile.zero()


def test_scale_rejects_negative_quantity() -> None:
    with pytest.raises(InvalidQuantityError):
        scale(PROFILE, -1)


@pytest.mark.parametrize("value", [-0.5, math.nan, math.inf, "100", None, True])
def test_validate_quantity_rejects_bad_values(value: object) -> None:
    with pytest.raises(InvalidQuantityError):
        validate_quantity(value)


def test_validate_quantity_accepts_ints() -> None:
    assert validate_quantity(200) == 200.0
