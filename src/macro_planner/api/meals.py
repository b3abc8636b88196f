"""Meal endpoints: saved meals with their totals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from macro_planner.api.models import MealSave
from macro_planner.domain.meals import FoodReference, Meal

if TYPE_CHECKING:
    from macro_planner.containers import AppContainer
    from macro_planner.services.meals import MealService

router = APIRouter(prefix="/meals", tags=["meals"])


@router.get("")
async def list_meals(request: Request) -> dict[str, object]:
    """Return saved meals with their totals."""
    container: AppContainer = request.app.state.container
    meal_service = container.meal_service
    meals = await meal_service.list_meals()
    return {
        "meals": [
            {"meal": meal, "summary": meal_service.summary(meal)} for meal in meals
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_meal(payload: MealSave, request: Request) -> dict[str, object]:
    """Save a new meal."""
    container: AppContainer = request.app.state.container
    return await _save(container.meal_service, Meal(name=payload.name), payload)


@router.get("/{meal_id}")
async def get_meal(meal_id: int, request: Request) -> dict[str, object]:
    """Return a saved meal with its totals."""
    container: AppContainer = request.app.state.container
    meal = await container.meal_service.get_meal(meal_id)
    if meal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"meal": meal, "summary": container.meal_service.summary(meal)}


@router.put("/{meal_id}")
async def update_meal(
    meal_id: int, payload: MealSave, request: Request
) -> dict[str, object]:
    """Replace a saved meal's name and foods."""
    container: AppContainer = request.app.state.container
    if await container.meal_service.get_meal(meal_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    meal = Meal(name=payload.name, id=meal_id)
    return await _save(container.meal_service, meal, payload)


@router.delete("/{meal_id}")
async def delete_meal(meal_id: int, request: Request) -> dict[str, str]:
    """Delete a saved meal."""
    container: AppContainer = request.app.state.container
    await container.meal_service.delete(meal_id)
    return {"status": "ok"}


async def _save(
    meal_service: MealService, meal: Meal, payload: MealSave
) -> dict[str, object]:
    for food in payload.foods:
        reference = FoodReference(
            food_id=food.food_id, name=food.name, quantity_g=food.quantity_g
        )
        await meal_service.add_food(meal, reference, food.quantity_g)
    saved = await meal_service.save(meal)
    return {"meal": saved, "summary": meal_service.summary(saved)}
