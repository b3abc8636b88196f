"""Meal building service."""

from dataclasses import dataclass
from typing import Protocol

from macro_planner.domain.errors import NotFoundError
from macro_planner.domain.meals import FoodReference, Meal, MealSummary
from macro_planner.domain.nutrition import CalorieBasis, FoodCandidate, MacroTotals
from macro_planner.services.aggregation import meal_totals, summarize_meal
from macro_planner.services.persistence import call_store
from macro_planner.services.profiles import SessionProfileStore
from macro_planner.services.units import validate_quantity

DEFAULT_QUANTITY_G = 100.0


class MealRepository(Protocol):
    """Persistence interface for saved meals."""

    async def list_meals(self) -> list[Meal]:
        """Return the user's meals with their foods."""

    async def get_meal(self, meal_id: int) -> Meal | None:
        """Return a meal by id, if present."""

    async def create_meal(self, meal: Meal) -> Meal:
        """Create a meal and return it with its new id."""

    async def update_meal(self, meal: Meal) -> Meal:
        """Replace a meal's name and foods."""

    async def delete_meal(self, meal_id: int) -> None:
        """Delete a meal and its foods."""


@dataclass
class MealService:
    """Drafts, edits and saves meals, keeping their foods' profiles attached."""

    repository: MealRepository
    profiles: SessionProfileStore

    async def list_meals(self) -> list[Meal]:
        """Return saved meals with profiles attached."""
        meals = await call_store(self.repository.list_meals(), action="list_meals")
        await self.profiles.attach(food for meal in meals for food in meal.foods)
        return meals

    async def get_meal(self, meal_id: int) -> Meal | None:
        """Return a saved meal with profiles attached."""
        meal = await call_store(self.repository.get_meal(meal_id), action="get_meal")
        if meal is not None:
            await self.profiles.attach(meal.foods)
        return meal

    @staticmethod
    def new_draft(name: str = "") -> Meal:
        """Return an unsaved meal."""
        return Meal(name=name)

    async def add_food(
        self,
        meal: Meal,
        food: FoodCandidate | FoodReference,
        quantity_g: float = DEFAULT_QUANTITY_G,
    ) -> Meal:
        """Append a search hit or food reference to the meal."""
        quantity = validate_quantity(quantity_g)
        if isinstance(food, FoodCandidate):
            self.profiles.remember(food.food_id, food.per_100g)
            reference = FoodReference(
                food_id=food.food_id,
                name=food.label,
                quantity_g=quantity,
                profile=food.per_100g,
            )
        else:
            reference = FoodReference(
                food_id=food.food_id,
                name=food.name,
                quantity_g=quantity,
                profile=food.profile,
            )
            if reference.profile is None:
                await self.profiles.attach([reference])
        meal.foods.append(reference)
        return meal

    @staticmethod
    def remove_food(meal: Meal, food_id: str) -> Meal:
        """Remove every entry of a food from the meal."""
        if not any(food.food_id == food_id for food in meal.foods):
            raise NotFoundError(f"Food {food_id} is not in meal {meal.name!r}")
        meal.foods = [food for food in meal.foods if food.food_id != food_id]
        return meal

    @staticmethod
    def set_quantity(meal: Meal, food_id: str, quantity_g: float) -> Meal:
        """Change the quantity of a food in the meal."""
        quantity = validate_quantity(quantity_g)
        matches = [food for food in meal.foods if food.food_id == food_id]
        if not matches:
            raise NotFoundError(f"Food {food_id} is not in meal {meal.name!r}")
        for food in matches:
            food.quantity_g = quantity
        return meal

    async def save(self, meal: Meal) -> Meal:
        """Create a draft meal or update a saved one."""
        if meal.id is None:
            saved = await call_store(
                self.repository.create_meal(meal), action="create_meal"
            )
        else:
            saved = await call_store(
                self.repository.update_meal(meal), action="update_meal"
            )
        for stored, local in zip(saved.foods, meal.foods, strict=False):
            if stored.profile is None and stored.food_id == local.food_id:
                stored.profile = local.profile
        return saved

    async def delete(self, meal_id: int) -> None:
        """Delete a saved meal."""
        await call_store(self.repository.delete_meal(meal_id), action="delete_meal")

    @staticmethod
    def totals(
        meal: Meal, calorie_basis: CalorieBasis = CalorieBasis.MACROS
    ) -> MacroTotals:
        """Return the meal's totals."""
        return meal_totals(meal, calorie_basis)

    @staticmethod
    def summary(meal: Meal) -> MealSummary:
        """Return the meal's totals with the foods missing a profile."""
        return summarize_meal(meal)
