"""REST backend store for users, goals, meals and plans."""

from dataclasses import dataclass
from datetime import date

import httpx

from macro_planner.adapters.auth_client import TokenProvider
from macro_planner.domain.meals import FoodReference, Meal
from macro_planner.domain.models import Gender, Goal, UserRecord
from macro_planner.domain.plans import Plan, PlanMeal
from macro_planner.services.goals import GoalRepository
from macro_planner.services.meals import MealRepository
from macro_planner.services.plans import PlanRepository
from macro_planner.services.users import UserRepository


@dataclass
class HttpxBackendStore(
    PlanRepository, MealRepository, GoalRepository, UserRepository
):
    """HTTPX implementation of every repository the planner uses.

    Requests carry a bearer token from ``token_provider``; a 401 triggers one
    token refresh and a single retry.
    """

    base_url: str
    token_provider: TokenProvider
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, base_url: str, token_provider: TokenProvider, timeout_seconds: float = 15
    ) -> "HttpxBackendStore":
        """Create a store with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            token_provider=token_provider,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def get_user(self) -> UserRecord | None:
        """Return the signed-in user's profile."""
        data = await self._get_or_none("/user")
        return _parse_user(data) if data else None

    async def update_user(self, user: UserRecord) -> UserRecord:
        """Persist profile changes."""
        payload = {
            "date_of_birth": user.date_of_birth.isoformat(),
            "gender": user.gender.value,
            "height": user.height_cm,
            "weight": user.weight_kg,
            "username": user.username,
            "firstname": user.first_name,
            "lastname": user.last_name,
        }
        response = await self._request("PUT", "/user", json=payload)
        return _parse_user(_json_or(response, payload))

    async def get_goal(self) -> Goal | None:
        """Return the stored goal."""
        data = await self._get_or_none("/goal")
        return _parse_goal(data) if data else None

    async def save_goal(self, goal: Goal) -> Goal:
        """Persist the goal; ``surplus`` is always rewritten from the adjustment."""
        payload = {
            "id": goal.id,
            "activity_level": float(goal.activity_level),
            "caloric_adjustment": goal.caloric_adjustment,
            "surplus": goal.surplus,
            "target_weight": goal.target_weight_kg,
            "protein": goal.protein_g,
            "fats": goal.fats_g,
            "carbs": goal.carbs_g,
        }
        response = await self._request("PUT", "/goal", json=payload)
        return _parse_goal(_json_or(response, payload))

    async def list_meals(self) -> list[Meal]:
        """Return the user's meals."""
        response = await self._request("GET", "/meal")
        return [_parse_meal(row) for row in response.json() or []]

    async def get_meal(self, meal_id: int) -> Meal | None:
        """Return a meal by id."""
        data = await self._get_or_none(f"/meal/{meal_id}")
        return _parse_meal(data) if data else None

    async def create_meal(self, meal: Meal) -> Meal:
        """Create a meal with its foods."""
        response = await self._request("POST", "/meal", json=_meal_payload(meal))
        return _parse_meal(response.json())

    async def update_meal(self, meal: Meal) -> Meal:
        """Replace a meal's name and foods."""
        payload = _meal_payload(meal)
        response = await self._request("PUT", f"/meal/{meal.id}", json=payload)
        return _parse_meal(_json_or(response, payload))

    async def delete_meal(self, meal_id: int) -> None:
        """Delete a meal."""
        await self._request("DELETE", f"/meal/{meal_id}")

    async def list_plans(self) -> list[Plan]:
        """Return the user's plans without meals."""
        response = await self._request("GET", "/plan")
        return [
            Plan(id=int(row["id"]), name=str(row.get("name") or ""))
            for row in response.json() or []
        ]

    async def get_plan(self, plan_id: int) -> Plan | None:
        """Return a plan with its meals and foods."""
        data = await self._get_or_none(f"/plan/getPlanDetails/{plan_id}")
        return _parse_plan(data) if data else None

    async def create_plan(self, name: str) -> Plan:
        """Create an empty plan."""
        response = await self._request("POST", "/plan", json={"name": name})
        row = response.json()
        return Plan(id=int(row["id"]), name=str(row.get("name", name)))

    async def rename_plan(self, plan_id: int, name: str) -> Plan:
        """Rename a plan."""
        await self._request("PUT", f"/plan/{plan_id}", json={"name": name})
        return Plan(id=plan_id, name=name)

    async def delete_plan(self, plan_id: int) -> None:
        """Delete a plan."""
        await self._request("DELETE", f"/plan/{plan_id}")

    async def add_meal_to_plan(self, plan_id: int, meal: Meal) -> PlanMeal:
        """Copy a saved meal into a plan."""
        response = await self._request(
            "POST",
            "/plan/addSingleMeal",
            json={"planId": plan_id, "mealId": meal.id, "mealName": meal.name},
        )
        return _parse_plan_meal(response.json())

    async def add_meals_to_plan(self, plan_id: int, meals: list[Meal]) -> None:
        """Copy several saved meals into a plan in one request."""
        await self._request(
            "POST",
            "/plan/addMultipleMeals",
            json=[
                {"planId": plan_id, "mealId": meal.id, "mealName": meal.name}
                for meal in meals
            ],
        )

    async def remove_meal_from_plan(self, plan_meal_id: int) -> None:
        """Delete a plan meal."""
        await self._request("DELETE", f"/plan/deleteMealFromPlan/{plan_meal_id}")

    async def add_plan_meal_food(
        self, plan_meal_id: int, food: FoodReference
    ) -> FoodReference:
        """Add a food to a plan meal."""
        response = await self._request(
            "POST",
            "/plan/planMealFood",
            json={
                "planMealId": plan_meal_id,
                "foodId": food.food_id,
                "foodName": food.name,
                "quantity": food.quantity_g,
            },
        )
        return _parse_food(response.json())

    async def remove_plan_meal_food(self, food_ref_id: int) -> None:
        """Delete a food entry from a plan meal."""
        await self._request("DELETE", f"/plan/planMealFood/{food_ref_id}")

    async def update_plan_meal_food(self, food_ref_id: int, quantity_g: float) -> None:
        """Change the quantity of a plan meal food."""
        await self._request(
            "PUT", f"/plan/planMealFood/{food_ref_id}", json={"quantity": quantity_g}
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get_or_none(self, path: str) -> dict[str, object] | None:
        response = await self._request("GET", path, allow_not_found=True)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        return response.json() or None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: object | None = None,
        allow_not_found: bool = False,
    ) -> httpx.Response:
        token = await self.token_provider.current_token()
        response = await self._send(method, path, token, json)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            token = await self.token_provider.refresh()
            response = await self._send(method, path, token, json)
        if allow_not_found and response.status_code == httpx.codes.NOT_FOUND:
            return response
        response.raise_for_status()
        return response

    async def _send(
        self, method: str, path: str, token: str, json: object | None
    ) -> httpx.Response:
        return await self.http_client.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout_seconds,
        )


def _json_or(
    response: httpx.Response, fallback: dict[str, object]
) -> dict[str, object]:
    if not response.content:
        return fallback
    data = response.json()
    return data if isinstance(data, dict) else fallback


def _parse_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=int(row["id"]) if row.get("id") is not None else None,
        date_of_birth=date.fromisoformat(str(row["date_of_birth"])[:10]),
        gender=_parse_gender(row.get("gender")),
        height_cm=float(row.get("height", 0.0)),
        weight_kg=float(row.get("weight", 0.0)),
        username=str(row.get("username") or ""),
        first_name=row.get("firstname"),
        last_name=row.get("lastname"),
    )


def _parse_gender(value: object) -> Gender:
    try:
        return Gender(str(value).lower())
    except ValueError:
        return Gender.OTHER


def _parse_goal(row: dict[str, object]) -> Goal:
    # ``surplus`` is derived from the adjustment, so the stored flag is ignored.
    return Goal(
        id=int(row["id"]) if row.get("id") is not None else None,
        activity_level=float(row.get("activity_level", 1.2)),
        caloric_adjustment=int(round(float(row.get("caloric_adjustment", 0)))),
        target_weight_kg=float(row.get("target_weight", 0.0)),
        protein_g=float(row.get("protein") or 0.0),
        fats_g=float(row.get("fats") or 0.0),
        carbs_g=float(row.get("carbs") or 0.0),
    )


def _parse_food(row: dict[str, object]) -> FoodReference:
    return FoodReference(
        id=int(row["id"]) if row.get("id") is not None else None,
        food_id=str(row["foodId"]),
        name=str(row.get("foodName") or ""),
        quantity_g=float(row.get("quantity") or 0.0),
    )


def _parse_meal(row: dict[str, object]) -> Meal:
    return Meal(
        id=int(row["id"]) if row.get("id") is not None else None,
        name=str(row.get("name") or ""),
        foods=[_parse_food(food) for food in row.get("MealFoods") or []],
    )


def _parse_plan_meal(row: dict[str, object]) -> PlanMeal:
    return PlanMeal(
        id=int(row["id"]),
        meal_id=int(row["mealId"]) if row.get("mealId") is not None else None,
        name=str(row.get("mealName") or ""),
        foods=[_parse_food(food) for food in row.get("PlanMealFoods") or []],
    )


def _parse_plan(row: dict[str, object]) -> Plan:
    return Plan(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        meals=[_parse_plan_meal(meal) for meal in row.get("PlanMeals") or []],
    )


def _meal_payload(meal: Meal) -> dict[str, object]:
    return {
        "id": meal.id,
        "name": meal.name,
        "MealFoods": [
            {
                "id": food.id,
                "mealId": meal.id,
                "foodId": food.food_id,
                "foodName": food.name,
                "quantity": food.quantity_g,
            }
            for food in meal.foods
        ],
    }
