"""Roll food macros up into meal and plan totals.

Everything here is a pure function of the tree passed in. Totals are
recomputed from the foods on every call; nothing is cached between calls.
"""

from collections.abc import Iterable

from macro_planner.domain.meals import FoodReference, Meal, MealSummary
from macro_planner.domain.models import Goal
from macro_planner.domain.nutrition import CalorieBasis, MacroTotals
from macro_planner.domain.plans import Plan, PlanMeal, PlanSummary
from macro_planner.services.units import calories_from_macros, scale


def food_contribution(
    food: FoodReference, calorie_basis: CalorieBasis = CalorieBasis.MACROS
) -> MacroTotals:
    """Return the absolute macros a food contributes at its quantity."""
    if food.profile is None:
        return MacroTotals()
    portion = scale(food.profile, food.quantity_g)
    if calorie_basis is CalorieBasis.REPORTED:
        calories = portion.calories
    else:
        calories = calories_from_macros(
            portion.protein_g, portion.fats_g, portion.carbs_g
        )
    return MacroTotals(
        protein_g=portion.protein_g,
        fats_g=portion.fats_g,
        carbs_g=portion.carbs_g,
        calories_kcal=calories,
    )


def meal_totals(
    meal: Meal | PlanMeal, calorie_basis: CalorieBasis = CalorieBasis.MACROS
) -> MacroTotals:
    """Sum the contributions of a meal's own foods."""
    return _sum(food_contribution(food, calorie_basis) for food in meal.foods)


def plan_totals(
    plan: Plan, calorie_basis: CalorieBasis = CalorieBasis.MACROS
) -> MacroTotals:
    """Sum the totals of every meal in a plan."""
    return _sum(meal_totals(meal, calorie_basis) for meal in plan.meals)


def summarize_meal(
    meal: Meal | PlanMeal, calorie_basis: CalorieBasis = CalorieBasis.MACROS
) -> MealSummary:
    """Return totals for a meal plus the foods that have no profile."""
    return MealSummary(
        meal_id=meal.id,
        name=meal.name,
        totals=meal_totals(meal, calorie_basis),
        missing_food_ids=tuple(
            food.food_id for food in meal.foods if food.profile is None
        ),
    )


def summarize_plan(
    plan: Plan, calorie_basis: CalorieBasis = CalorieBasis.MACROS
) -> PlanSummary:
    """Return per-meal totals and plan totals in one snapshot."""
    meals = [summarize_meal(meal, calorie_basis) for meal in plan.meals]
    return PlanSummary(
        plan_id=plan.id,
        name=plan.name,
        totals=_sum(meal.totals for meal in meals),
        meals=meals,
    )


def remaining(goal: Goal, totals: MacroTotals) -> MacroTotals:
    """Return goal targets minus the given totals; negative means over target."""
    target = MacroTotals(
        protein_g=goal.protein_g,
        fats_g=goal.fats_g,
        carbs_g=goal.carbs_g,
        calories_kcal=calories_from_macros(goal.protein_g, goal.fats_g, goal.carbs_g),
    )
    return target - totals


def _sum(totals: Iterable[MacroTotals]) -> MacroTotals:
    result = MacroTotals()
    for item in totals:
        result = result + item
    return result
