"""Plan endpoints: loading with macros and live edits."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from macro_planner.api.models import (
    PlanCreate,
    PlanMealCreate,
    PlanMealFoodCreate,
    QuantityUpdate,
)
from macro_planner.domain.meals import FoodReference
from macro_planner.domain.plans import AddFood, AddMeal, RemoveFood, RemoveMeal
from macro_planner.services.aggregation import remaining

if TYPE_CHECKING:
    from macro_planner.containers import AppContainer

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("")
async def list_plans(request: Request) -> dict[str, object]:
    """Return the user's plans."""
    container: AppContainer = request.app.state.container
    return {"plans": await container.plan_orchestrator.list_plans()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_plan(payload: PlanCreate, request: Request) -> dict[str, object]:
    """Create a plan, optionally filled with saved meals."""
    container: AppContainer = request.app.state.container
    meals = []
    for meal_id in payload.meal_ids:
        meal = await container.meal_service.get_meal(meal_id)
        if meal is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Meal {meal_id} not found",
            )
        meals.append(meal)
    plan = await container.plan_orchestrator.create_plan(payload.name, meals)
    return {"plan": plan}


@router.get("/{plan_id}")
async def load_plan(plan_id: int, request: Request) -> dict[str, object]:
    """Load a plan with nutrient profiles and its totals.

    ``remaining`` is the goal's macro targets minus the plan totals, or
    ``None`` when no goal is stored.
    """
    container: AppContainer = request.app.state.container
    orchestrator = container.plan_orchestrator
    plan = await orchestrator.load_plan_with_macros(plan_id)
    if plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    summary = orchestrator.summary()
    goal = await container.goal_service.get_goal()
    return {
        "plan": plan,
        "summary": summary,
        "remaining": remaining(goal, summary.totals) if goal else None,
    }


@router.delete("/{plan_id}")
async def delete_plan(plan_id: int, request: Request) -> dict[str, str]:
    """Delete a plan."""
    container: AppContainer = request.app.state.container
    await container.plan_orchestrator.delete_plan(plan_id)
    return {"status": "ok"}


@router.patch("/{plan_id}/meals/{plan_meal_id}/foods/{food_id}")
async def change_quantity(
    plan_id: int,
    plan_meal_id: int,
    food_id: str,
    payload: QuantityUpdate,
    request: Request,
) -> dict[str, object]:
    """Set a food's quantity and return the recomputed totals."""
    container: AppContainer = request.app.state.container
    summary = await container.plan_orchestrator.on_quantity_change(
        plan_id,
        plan_meal_id,
        food_id,
        payload.quantity_g,
        persist=payload.persist,
    )
    return {"summary": summary}


@router.post("/{plan_id}/meals")
async def add_meal(
    plan_id: int, payload: PlanMealCreate, request: Request
) -> dict[str, object]:
    """Copy a saved meal into the plan."""
    container: AppContainer = request.app.state.container
    meal = await container.meal_service.get_meal(payload.meal_id)
    if meal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    summary = await container.plan_orchestrator.on_structural_edit(
        AddMeal(plan_id=plan_id, meal=meal), persist=payload.persist
    )
    return {"summary": summary}


@router.delete("/{plan_id}/meals/{plan_meal_id}")
async def remove_meal(
    plan_id: int, plan_meal_id: int, request: Request, persist: bool = False
) -> dict[str, object]:
    """Remove a meal from the plan."""
    container: AppContainer = request.app.state.container
    summary = await container.plan_orchestrator.on_structural_edit(
        RemoveMeal(plan_id=plan_id, plan_meal_id=plan_meal_id), persist=persist
    )
    return {"summary": summary}


@router.post("/{plan_id}/meals/{plan_meal_id}/foods")
async def add_food(
    plan_id: int,
    plan_meal_id: int,
    payload: PlanMealFoodCreate,
    request: Request,
) -> dict[str, object]:
    """Add a food to a plan meal."""
    container: AppContainer = request.app.state.container
    food = FoodReference(
        food_id=payload.food_id, name=payload.name, quantity_g=payload.quantity_g
    )
    summary = await container.plan_orchestrator.on_structural_edit(
        AddFood(plan_id=plan_id, plan_meal_id=plan_meal_id, food=food),
        persist=payload.persist,
    )
    return {"summary": summary}


@router.delete("/{plan_id}/meals/{plan_meal_id}/foods/{food_id}")
async def remove_food(
    plan_id: int,
    plan_meal_id: int,
    food_id: str,
    request: Request,
    persist: bool = False,
) -> dict[str, object]:
    """Remove every entry of a food from a plan meal."""
    container: AppContainer = request.app.state.container
    summary = await container.plan_orchestrator.on_structural_edit(
        RemoveFood(plan_id=plan_id, plan_meal_id=plan_meal_id, food_id=food_id),
        persist=persist,
    )
    return {"summary": summary}
