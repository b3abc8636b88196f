"""Shared test fixtures."""

import asyncio
import copy
from dataclasses import dataclass, field, replace
from datetime import date

import pytest

from macro_planner.adapters.edamam_client import EdamamClient
from macro_planner.config import Settings
from macro_planner.containers import AppContainer
from macro_planner.domain.meals import FoodReference, Meal
from macro_planner.domain.models import Gender, Goal, UserRecord
from macro_planner.domain.nutrition import NutrientProfile
from macro_planner.domain.plans import Plan, PlanMeal
from macro_planner.services.cache import InMemoryCache
from macro_planner.services.goals import GoalRepository, GoalService
from macro_planner.services.meals import MealRepository, MealService
from macro_planner.services.nutrition import NutritionService
from macro_planner.services.plans import PlanOrchestrator, PlanRepository
from macro_planner.services.profiles import NutrientSource, SessionProfileStore
from macro_planner.services.users import UserRepository, UserService

F1_PROFILE = NutrientProfile(protein_g=10, fats_g=5, carbs_g=20, calories=160)
OAT_PROFILE = NutrientProfile(protein_g=13, fats_g=7, carbs_g=68, calories=389)


@dataclass
class FakeNutrientSource(NutrientSource):
    """Nutrient source with fixed profiles that records every fetch."""

    profiles: dict[str, NutrientProfile] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    delay_seconds: float = 0.0
    calls: list[str] = field(default_factory=list)

    async def get_profile(self, food_id: str) -> NutrientProfile:
        self.calls.append(food_id)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if food_id in self.failing or food_id not in self.profiles:
            raise RuntimeError(f"lookup failed for {food_id}")
        return self.profiles[food_id]


@dataclass
class FakeEdamamClient(EdamamClient):
    """Edamam client answering from an in-memory food table."""

    foods: dict[str, tuple[str, NutrientProfile]] = field(
        default_factory=lambda: {
            "F1": ("Chicken breast", F1_PROFILE),
            "oats": ("Rolled oats", OAT_PROFILE),
        }
    )
    parse_calls: int = 0
    nutrient_calls: list[tuple[str, float]] = field(default_factory=list)

    async def parse(self, query: str) -> dict[str, object]:
        self.parse_calls += 1
        hints = []
        for food_id, (label, profile) in self.foods.items():
            if query.lower() not in label.lower():
                continue
            hints.append(
                {
                    "food": {
                        "foodId": food_id,
                        "label": label,
                        "nutrients": {
                            "PROCNT": profile.protein_g,
                            "FAT": profile.fats_g,
                            "CHOCDF": profile.carbs_g,
                            "ENERC_KCAL": profile.calories,
                        },
                    }
                }
            )
        return {"text": query, "hints": hints}

    async def nutrients(self, food_id: str, quantity_g: float) -> dict[str, object]:
        self.nutrient_calls.append((food_id, quantity_g))
        if food_id not in self.foods:
            raise RuntimeError(f"unknown food {food_id}")
        _, profile = self.foods[food_id]
        factor = quantity_g / 100
        return {
            "calories": profile.calories * factor,
            "totalNutrients": {
                "PROCNT": {"quantity": profile.protein_g * factor, "unit": "g"},
                "FAT": {"quantity": profile.fats_g * factor, "unit": "g"},
                "CHOCDF": {"quantity": profile.carbs_g * factor, "unit": "g"},
                "ENERC_KCAL": {"quantity": profile.calories * factor, "unit": "kcal"},
            },
        }

    async def close(self) -> None:
        return None


@dataclass
class InMemoryBackend(PlanRepository, MealRepository, GoalRepository, UserRepository):
    """In-memory backend store; every read returns a copy, like a real API."""

    user: UserRecord | None = None
    goal: Goal | None = None
    meals: dict[int, Meal] = field(default_factory=dict)
    plans: dict[int, Plan] = field(default_factory=dict)
    fail_writes: bool = False
    writes: list[str] = field(default_factory=list)
    last_id: int = 100

    async def get_user(self) -> UserRecord | None:
        return self.user

    async def update_user(self, user: UserRecord) -> UserRecord:
        self._write("update_user")
        self.user = user
        return user

    async def get_goal(self) -> Goal | None:
        return self.goal

    async def save_goal(self, goal: Goal) -> Goal:
        self._write("save_goal")
        self.goal = goal if goal.id is not None else replace(goal, id=self._next_id())
        return self.goal

    async def list_meals(self) -> list[Meal]:
        return copy.deepcopy(list(self.meals.values()))

    async def get_meal(self, meal_id: int) -> Meal | None:
        return copy.deepcopy(self.meals.get(meal_id))

    async def create_meal(self, meal: Meal) -> Meal:
        self._write("create_meal")
        stored = Meal(name=meal.name, foods=self._store_foods(meal.foods))
        stored.id = self._next_id()
        self.meals[stored.id] = stored
        return copy.deepcopy(stored)

    async def update_meal(self, meal: Meal) -> Meal:
        self._write("update_meal")
        stored = Meal(name=meal.name, foods=self._store_foods(meal.foods), id=meal.id)
        self.meals[meal.id] = stored
        return copy.deepcopy(stored)

    async def delete_meal(self, meal_id: int) -> None:
        self._write("delete_meal")
        self.meals.pop(meal_id, None)

    async def list_plans(self) -> list[Plan]:
        return [Plan(id=plan.id, name=plan.name) for plan in self.plans.values()]

    async def get_plan(self, plan_id: int) -> Plan | None:
        return copy.deepcopy(self.plans.get(plan_id))

    async def create_plan(self, name: str) -> Plan:
        self._write("create_plan")
        plan = Plan(id=self._next_id(), name=name)
        self.plans[plan.id] = plan
        return copy.deepcopy(plan)

    async def rename_plan(self, plan_id: int, name: str) -> Plan:
        self._write("rename_plan")
        self.plans[plan_id].name = name
        return copy.deepcopy(self.plans[plan_id])

    async def delete_plan(self, plan_id: int) -> None:
        self._write("delete_plan")
        self.plans.pop(plan_id, None)

    async def add_meal_to_plan(self, plan_id: int, meal: Meal) -> PlanMeal:
        self._write("add_meal_to_plan")
        plan_meal = PlanMeal(
            meal_id=meal.id,
            name=meal.name,
            foods=self._store_foods(meal.foods),
            id=self._next_id(),
        )
        self.plans[plan_id].meals.append(plan_meal)
        return copy.deepcopy(plan_meal)

    async def add_meals_to_plan(self, plan_id: int, meals: list[Meal]) -> None:
        self._write("add_meals_to_plan")
        for meal in meals:
            self.plans[plan_id].meals.append(
                PlanMeal(
                    meal_id=meal.id,
                    name=meal.name,
                    foods=self._store_foods(meal.foods),
                    id=self._next_id(),
                )
            )

    async def remove_meal_from_plan(self, plan_meal_id: int) -> None:
        self._write("remove_meal_from_plan")
        for plan in self.plans.values():
            plan.meals = [meal for meal in plan.meals if meal.id != plan_meal_id]

    async def add_plan_meal_food(
        self, plan_meal_id: int, food: FoodReference
    ) -> FoodReference:
        self._write("add_plan_meal_food")
        (stored,) = self._store_foods([food])
        self._plan_meal(plan_meal_id).foods.append(stored)
        return copy.deepcopy(stored)

    async def remove_plan_meal_food(self, food_ref_id: int) -> None:
        self._write("remove_plan_meal_food")
        for plan in self.plans.values():
            for meal in plan.meals:
                meal.foods = [food for food in meal.foods if food.id != food_ref_id]

    async def update_plan_meal_food(self, food_ref_id: int, quantity_g: float) -> None:
        self._write("update_plan_meal_food")
        for plan in self.plans.values():
            for meal in plan.meals:
                for food in meal.foods:
                    if food.id == food_ref_id:
                        food.quantity_g = quantity_g

    def seed_plan(self, plan: Plan) -> Plan:
        """Store a plan as-is and return it."""
        self.plans[plan.id] = copy.deepcopy(plan)
        return plan

    def _write(self, action: str) -> None:
        if self.fail_writes:
            raise RuntimeError("backend unavailable")
        self.writes.append(action)

    def _store_foods(self, foods: list[FoodReference]) -> list[FoodReference]:
        return [
            FoodReference(
                food_id=food.food_id,
                name=food.name,
                quantity_g=food.quantity_g,
                id=self._next_id(),
            )
            for food in foods
        ]

    def _plan_meal(self, plan_meal_id: int) -> PlanMeal:
        for plan in self.plans.values():
            for meal in plan.meals:
                if meal.id == plan_meal_id:
                    return meal
        raise KeyError(plan_meal_id)

    def _next_id(self) -> int:
        self.last_id += 1
        return self.last_id


def two_meal_plan() -> Plan:
    """Plan where F1 appears in two meals and F2 in one."""
    return Plan(
        id=1,
        name="Cut week",
        meals=[
            PlanMeal(
                id=10,
                meal_id=1,
                name="Breakfast",
                foods=[
                    FoodReference(food_id="F1", name="Chicken", quantity_g=100, id=11)
                ],
            ),
            PlanMeal(
                id=20,
                meal_id=2,
                name="Dinner",
                foods=[
                    FoodReference(food_id="F1", name="Chicken", quantity_g=200, id=21),
                    FoodReference(food_id="F2", name="Mystery", quantity_g=50, id=22),
                ],
            ),
        ],
    )


def sample_user() -> UserRecord:
    return UserRecord(
        id=1,
        date_of_birth=date(1994, 3, 1),
        gender=Gender.MALE,
        height_cm=180,
        weight_kg=80,
        username="lifter",
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        backend_base_url="https://backend.example.com",
        backend_access_token="access-token",
        edamam_app_id="app-id",
        edamam_app_key="app-key",
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend(user=sample_user())


@pytest.fixture
def nutrient_source() -> FakeNutrientSource:
    return FakeNutrientSource(profiles={"F1": F1_PROFILE, "oats": OAT_PROFILE})


@pytest.fixture
def profile_store(nutrient_source: FakeNutrientSource) -> SessionProfileStore:
    return SessionProfileStore(nutrient_source, fetch_timeout_seconds=1.0)


@pytest.fixture
def edamam_client() -> FakeEdamamClient:
    return FakeEdamamClient()


@pytest.fixture
def container(
    settings: Settings,
    backend: InMemoryBackend,
    edamam_client: FakeEdamamClient,
) -> AppContainer:
    nutrition_service = NutritionService(
        client=edamam_client,
        cache=InMemoryCache(),
        retry_attempts=0,
    )
    profile_store = SessionProfileStore(nutrition_service, fetch_timeout_seconds=1.0)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        nutrition_service=nutrition_service,
        profile_store=profile_store,
        plan_orchestrator=PlanOrchestrator(backend, profile_store),
        meal_service=MealService(backend, profile_store),
        goal_service=GoalService(user_repository=backend, goal_repository=backend),
        user_service=UserService(backend),
        close_resources=close_resources,
    )
