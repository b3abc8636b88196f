"""Plan loading and editing with live macro totals.

The orchestrator owns one session's plan tree. Every mutation of the tree
happens synchronously after the last ``await`` that precedes it, so totals
are never folded over a half-applied edit.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Protocol

from macro_planner.domain.errors import NotFoundError, PersistenceError, StaleLoadError
from macro_planner.domain.meals import FoodReference, Meal
from macro_planner.domain.plans import (
    AddFood,
    AddMeal,
    Plan,
    PlanMeal,
    PlanSummary,
    RemoveFood,
    RemoveMeal,
    StructuralEdit,
)
from macro_planner.services.aggregation import summarize_plan
from macro_planner.services.persistence import call_store
from macro_planner.services.profiles import SessionProfileStore
from macro_planner.services.units import validate_quantity

_logger = logging.getLogger(__name__)


class PlanRepository(Protocol):
    """Persistence interface for plans, plan meals and their foods."""

    async def list_plans(self) -> list[Plan]:
        """Return the user's plans without their meals."""

    async def get_plan(self, plan_id: int) -> Plan | None:
        """Return a plan with its meals and foods, if present."""

    async def create_plan(self, name: str) -> Plan:
        """Create an empty plan and return it."""

    async def rename_plan(self, plan_id: int, name: str) -> Plan:
        """Rename a plan and return it."""

    async def delete_plan(self, plan_id: int) -> None:
        """Delete a plan together with its plan meals."""

    async def add_meal_to_plan(self, plan_id: int, meal: Meal) -> PlanMeal:
        """Copy a saved meal into a plan and return the stored plan meal."""

    async def add_meals_to_plan(self, plan_id: int, meals: list[Meal]) -> None:
        """Copy several saved meals into a plan."""

    async def remove_meal_from_plan(self, plan_meal_id: int) -> None:
        """Delete a plan meal and its foods."""

    async def add_plan_meal_food(
        self, plan_meal_id: int, food: FoodReference
    ) -> FoodReference:
        """Add a food to a plan meal and return the stored entry."""

    async def remove_plan_meal_food(self, food_ref_id: int) -> None:
        """Delete a food entry from a plan meal."""

    async def update_plan_meal_food(self, food_ref_id: int, quantity_g: float) -> None:
        """Change the quantity of a food entry in a plan meal."""


@dataclass
class PlanOrchestrator:
    """Keeps the selected plan, its nutrient profiles and its totals in step.

    Entries created locally get negative ids until they are persisted.
    """

    repository: PlanRepository
    profiles: SessionProfileStore
    current_plan: Plan | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)
    _last_local_id: int = field(default=0, init=False)

    async def list_plans(self) -> list[Plan]:
        """Return the user's plans."""
        return await call_store(self.repository.list_plans(), action="list_plans")

    async def create_plan(self, name: str, meals: Sequence[Meal] = ()) -> Plan:
        """Create a plan, copying the given saved meals into it."""
        if any(meal.id is None for meal in meals):
            raise PersistenceError("Draft meals must be saved before planning them")
        plan = await call_store(
            self.repository.create_plan(name), action="create_plan"
        )
        if not meals:
            return plan
        await call_store(
            self.repository.add_meals_to_plan(plan.id, list(meals)),
            action="add_meals_to_plan",
        )
        stored = await call_store(self.repository.get_plan(plan.id), action="get_plan")
        return stored or plan

    async def rename_plan(self, plan_id: int, name: str) -> Plan:
        """Rename a plan, keeping the loaded copy in sync."""
        renamed = await call_store(
            self.repository.rename_plan(plan_id, name), action="rename_plan"
        )
        if self.current_plan is not None and self.current_plan.id == plan_id:
            self.current_plan.name = renamed.name
        return renamed

    async def delete_plan(self, plan_id: int) -> None:
        """Delete a plan; the store removes its plan meals."""
        await call_store(self.repository.delete_plan(plan_id), action="delete_plan")
        if self.current_plan is not None and self.current_plan.id == plan_id:
            self.current_plan = None
            self._generation += 1

    async def load_plan_with_macros(self, plan_id: int) -> Plan | None:
        """Load a plan and attach a nutrient profile to every food.

        Each distinct food id is fetched once, however many meals use it.
        Raises ``StaleLoadError`` when another load started meanwhile; the
        newer selection is left untouched.
        """
        self._generation += 1
        generation = self._generation
        plan = await call_store(self.repository.get_plan(plan_id), action="get_plan")
        self._check_current(generation, plan_id)
        if plan is None:
            self.current_plan = None
            return None

        foods = [food for meal in plan.meals for food in meal.foods]
        await self.profiles.attach(foods)
        self._check_current(generation, plan_id)

        self.current_plan = plan
        missing = sum(1 for food in foods if food.profile is None)
        _logger.info(
            "Plan loaded: id=%s meals=%s foods=%s missing_profiles=%s",
            plan_id,
            len(plan.meals),
            len(foods),
            missing,
        )
        return plan

    def summary(self) -> PlanSummary:
        """Return freshly computed totals for the loaded plan."""
        if self.current_plan is None:
            raise NotFoundError("No plan is loaded")
        return summarize_plan(self.current_plan)

    async def on_quantity_change(
        self,
        plan_id: int,
        plan_meal_id: int,
        food_id: str,
        quantity_g: float,
        *,
        persist: bool = False,
    ) -> PlanSummary:
        """Set the quantity of a food in a plan meal and recompute totals."""
        quantity = validate_quantity(quantity_g)
        plan_meal = self._plan_meal(plan_id, plan_meal_id)
        matches = [food for food in plan_meal.foods if food.food_id == food_id]
        if not matches:
            raise NotFoundError(f"Food {food_id} is not in plan meal {plan_meal_id}")
        for food in matches:
            food.quantity_g = quantity
        summary = summarize_plan(self._plan(plan_id))

        if persist:
            food_ref_ids = [_saved_id(food.id, f"food {food_id}") for food in matches]
            for food_ref_id in food_ref_ids:
                await call_store(
                    self.repository.update_plan_meal_food(food_ref_id, quantity),
                    action="update_plan_meal_food",
                )
        return summary

    async def on_structural_edit(
        self, edit: StructuralEdit, *, persist: bool = False
    ) -> PlanSummary:
        """Apply an add or remove edit, recompute, and optionally persist it.

        A failed write raises ``PersistenceError`` and leaves the local edit
        in place.
        """
        if isinstance(edit, AddFood):
            await self._add_food(edit, persist)
        elif isinstance(edit, RemoveFood):
            await self._remove_food(edit, persist)
        elif isinstance(edit, AddMeal):
            await self._add_meal(edit, persist)
        elif isinstance(edit, RemoveMeal):
            await self._remove_meal(edit, persist)
        else:
            raise TypeError(f"Unsupported edit: {edit!r}")
        return summarize_plan(self._plan(edit.plan_id))

    def end_session(self) -> None:
        """Drop the loaded plan and every cached profile."""
        self._generation += 1
        self.current_plan = None
        self.profiles.clear()

    async def _add_food(self, edit: AddFood, persist: bool) -> None:
        quantity = validate_quantity(edit.food.quantity_g)
        food = replace(
            edit.food,
            quantity_g=quantity,
            profile=edit.food.profile or self.profiles.get(edit.food.food_id),
            id=self._local_id(),
        )
        if food.profile is None:
            await self.profiles.attach([food])
        plan_meal = self._plan_meal(edit.plan_id, edit.plan_meal_id)
        plan_meal.foods.append(food)

        if persist:
            plan_meal_id = _saved_id(plan_meal.id, f"plan meal {edit.plan_meal_id}")
            saved = await call_store(
                self.repository.add_plan_meal_food(plan_meal_id, food),
                action="add_plan_meal_food",
            )
            food.id = saved.id

    async def _remove_food(self, edit: RemoveFood, persist: bool) -> None:
        plan_meal = self._plan_meal(edit.plan_id, edit.plan_meal_id)
        removed = [food for food in plan_meal.foods if food.food_id == edit.food_id]
        if not removed:
            raise NotFoundError(
                f"Food {edit.food_id} is not in plan meal {edit.plan_meal_id}"
            )
        plan_meal.foods = [
            food for food in plan_meal.foods if food.food_id != edit.food_id
        ]

        if persist:
            for food in removed:
                if food.id is None or food.id < 0:
                    continue
                await call_store(
                    self.repository.remove_plan_meal_food(food.id),
                    action="remove_plan_meal_food",
                )

    async def _add_meal(self, edit: AddMeal, persist: bool) -> None:
        foods = [
            FoodReference(
                food_id=food.food_id,
                name=food.name,
                quantity_g=validate_quantity(food.quantity_g),
                profile=food.profile or self.profiles.get(food.food_id),
                id=self._local_id(),
            )
            for food in edit.meal.foods
        ]
        await self.profiles.attach(food for food in foods if food.profile is None)
        plan = self._plan(edit.plan_id)
        plan_meal = PlanMeal(
            meal_id=edit.meal.id,
            name=edit.meal.name,
            foods=foods,
            id=self._local_id(),
        )
        plan.meals.append(plan_meal)

        if persist:
            if edit.meal.id is None:
                raise PersistenceError("A draft meal must be saved before planning it")
            saved = await call_store(
                self.repository.add_meal_to_plan(edit.plan_id, edit.meal),
                action="add_meal_to_plan",
            )
            plan_meal.id = saved.id
            for local, stored in zip(plan_meal.foods, saved.foods, strict=False):
                if local.food_id == stored.food_id:
                    local.id = stored.id

    async def _remove_meal(self, edit: RemoveMeal, persist: bool) -> None:
        plan = self._plan(edit.plan_id)
        plan_meal = self._plan_meal(edit.plan_id, edit.plan_meal_id)
        plan.meals = [meal for meal in plan.meals if meal is not plan_meal]

        if persist and plan_meal.id is not None and plan_meal.id > 0:
            await call_store(
                self.repository.remove_meal_from_plan(plan_meal.id),
                action="remove_meal_from_plan",
            )

    def _check_current(self, generation: int, plan_id: int) -> None:
        if generation != self._generation:
            _logger.info("Discarding superseded load of plan %s", plan_id)
            raise StaleLoadError(plan_id)

    def _plan(self, plan_id: int) -> Plan:
        if self.current_plan is None or self.current_plan.id != plan_id:
            raise NotFoundError(f"Plan {plan_id} is not loaded")
        return self.current_plan

    def _plan_meal(self, plan_id: int, plan_meal_id: int) -> PlanMeal:
        for plan_meal in self._plan(plan_id).meals:
            if plan_meal.id == plan_meal_id:
                return plan_meal
        raise NotFoundError(f"Plan meal {plan_meal_id} is not in plan {plan_id}")

    def _local_id(self) -> int:
        self._last_local_id -= 1
        return self._last_local_id


def _saved_id(entity_id: int | None, label: str) -> int:
    if entity_id is None or entity_id < 0:
        raise PersistenceError(f"The {label} has not been saved yet")
    return entity_id
