"""Pydantic request bodies for the planner API."""

from pydantic import BaseModel, Field

from macro_planner.domain.models import Gender


class PlanCreate(BaseModel):
    """New plan payload; ``meal_ids`` are saved meals copied into it."""

    name: str = Field(min_length=1)
    meal_ids: list[int] = Field(default_factory=list)


class QuantityUpdate(BaseModel):
    """New gram quantity for a food in a plan meal."""

    quantity_g: float
    persist: bool = False


class PlanMealCreate(BaseModel):
    """Saved meal to copy into a plan."""

    meal_id: int
    persist: bool = False


class PlanMealFoodCreate(BaseModel):
    """Food to add to a plan meal."""

    food_id: str = Field(min_length=1)
    name: str
    quantity_g: float = 100.0
    persist: bool = False


class MealFood(BaseModel):
    """Food entry of a meal form."""

    food_id: str = Field(min_length=1)
    name: str
    quantity_g: float = 100.0


class MealSave(BaseModel):
    """Meal form payload."""

    name: str = Field(min_length=1)
    foods: list[MealFood] = Field(default_factory=list)


class UserMetricsUpdate(BaseModel):
    """Body metrics to change on the profile."""

    weight_kg: float | None = None
    height_cm: float | None = None
    gender: Gender | None = None


class GoalUpdate(BaseModel):
    """Goal form payload.

    Macro fields left out keep their stored values, unless
    ``seed_from_recommendation`` is set, which copies the recommended macros.
    """

    activity_level: float
    caloric_adjustment: int
    target_weight_kg: float
    protein_g: float | None = None
    fats_g: float | None = None
    carbs_g: float | None = None
    seed_from_recommendation: bool = False
