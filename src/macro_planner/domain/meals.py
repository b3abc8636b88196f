"""Domain models for meals and their foods."""

from dataclasses import dataclass, field

from macro_planner.domain.nutrition import MacroTotals, NutrientProfile


@dataclass
class FoodReference:
    """A food from the nutrient source with a chosen quantity in grams.

    ``profile`` is per 100 g and stays ``None`` until it is fetched, or when
    the fetch failed; either way the food contributes zero.
    """

    food_id: str
    name: str
    quantity_g: float
    profile: NutrientProfile | None = None
    id: int | None = None


@dataclass
class Meal:
    """A reusable named collection of foods. ``id`` is None for a draft."""

    name: str
    foods: list[FoodReference] = field(default_factory=list)
    id: int | None = None


@dataclass(frozen=True)
class MealSummary:
    """Totals view for a meal or plan meal."""

    meal_id: int | None
    name: str
    totals: MacroTotals
    missing_food_ids: tuple[str, ...] = ()
