"""Nutrition domain models."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class NutrientProfile:
    """Protein, fat, carbohydrate and energy figures for a food.

    Profiles coming from the nutrient source are per 100 g; a scaled profile
    holds the absolute amounts for a portion.
    """

    protein_g: float
    fats_g: float
    carbs_g: float
    calories: float

    @classmethod
    def zero(cls) -> "NutrientProfile":
        """Return an all-zero profile."""
        return cls(protein_g=0.0, fats_g=0.0, carbs_g=0.0, calories=0.0)


@dataclass(frozen=True)
class MacroTotals:
    """Derived macro and calorie totals for a food, meal or plan."""

    protein_g: float = 0.0
    fats_g: float = 0.0
    carbs_g: float = 0.0
    calories_kcal: float = 0.0

    def __add__(self, other: "MacroTotals") -> "MacroTotals":
        if not isinstance(other, MacroTotals):
            return NotImplemented
        return MacroTotals(
            protein_g=self.protein_g + other.protein_g,
            fats_g=self.fats_g + other.fats_g,
            carbs_g=self.carbs_g + other.carbs_g,
            calories_kcal=self.calories_kcal + other.calories_kcal,
        )

    def __sub__(self, other: "MacroTotals") -> "MacroTotals":
        if not isinstance(other, MacroTotals):
            return NotImplemented
        return MacroTotals(
            protein_g=self.protein_g - other.protein_g,
            fats_g=self.fats_g - other.fats_g,
            carbs_g=self.carbs_g - other.carbs_g,
            calories_kcal=self.calories_kcal - other.calories_kcal,
        )


class CalorieBasis(str, Enum):
    """Which calorie figure a total should report.

    ``MACROS`` derives calories from grams (4/4/9); ``REPORTED`` scales the
    energy value returned by the nutrient source, which also counts fiber
    and alcohol.
    """

    MACROS = "macros"
    REPORTED = "reported"


@dataclass(frozen=True)
class FoodCandidate:
    """Search hit from the nutrient source."""

    food_id: str
    label: str
    per_100g: NutrientProfile
    category: str | None = None
    brand: str | None = None
