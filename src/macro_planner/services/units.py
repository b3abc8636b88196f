"""Conversions between per-100g nutrient figures, portions and calories."""

import math

from macro_planner.domain.errors import InvalidQuantityError
from macro_planner.domain.nutrition import NutrientProfile

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9


def validate_quantity(value: object) -> float:
    """Return the quantity as a float or raise ``InvalidQuantityError``."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidQuantityError(value)
    quantity = float(value)
    if not math.isfinite(quantity) or quantity < 0:
        raise InvalidQuantityError(value)
    return quantity


def scale(per100: NutrientProfile, quantity_g: float) -> NutrientProfile:
    """Scale a per-100g profile to the absolute amounts in ``quantity_g``."""
    factor = validate_quantity(quantity_g) / 100.0
    return NutrientProfile(
        protein_g=per100.protein_g * factor,
        fats_g=per100.fats_g * factor,
        carbs_g=per100.carbs_g * factor,
        calories=per100.calories * factor,
    )


def calories_from_macros(protein_g: float, fats_g: float, carbs_g: float) -> float:
    """Return energy in kcal from macro grams using 4/9/4 kcal per gram."""
    return (
        protein_g * KCAL_PER_G_PROTEIN
        + carbs_g * KCAL_PER_G_CARBS
        + fats_g * KCAL_PER_G_FAT
    )
