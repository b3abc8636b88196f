"""Domain models for plans."""

from dataclasses import dataclass, field

from macro_planner.domain.meals import FoodReference, Meal, MealSummary
from macro_planner.domain.nutrition import MacroTotals


@dataclass
class PlanMeal:
    """A meal placed in a plan.

    Holds its own copy of the foods so quantities can diverge from the
    source meal after it was added.
    """

    meal_id: int | None
    name: str
    foods: list[FoodReference] = field(default_factory=list)
    id: int | None = None


@dataclass
class Plan:
    """A named collection of plan meals."""

    id: int
    name: str
    meals: list[PlanMeal] = field(default_factory=list)


@dataclass(frozen=True)
class PlanSummary:
    """Per-meal and overall totals for a plan at one point in time."""

    plan_id: int
    name: str
    totals: MacroTotals
    meals: list[MealSummary]


@dataclass(frozen=True)
class AddFood:
    """Add a food to a plan meal."""

    plan_id: int
    plan_meal_id: int
    food: FoodReference


@dataclass(frozen=True)
class RemoveFood:
    """Remove every entry of a food from a plan meal."""

    plan_id: int
    plan_meal_id: int
    food_id: str


@dataclass(frozen=True)
class AddMeal:
    """Copy a meal into a plan."""

    plan_id: int
    meal: Meal


@dataclass(frozen=True)
class RemoveMeal:
    """Remove a plan meal from a plan."""

    plan_id: int
    plan_meal_id: int


StructuralEdit = AddFood | RemoveFood | AddMeal | RemoveMeal
