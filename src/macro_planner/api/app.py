"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from macro_planner.api.meals import router as meals_router
from macro_planner.api.models import GoalUpdate, UserMetricsUpdate
from macro_planner.api.plans import router as plans_router
from macro_planner.app_logging import configure_logging
from macro_planner.containers import AppContainer
from macro_planner.domain.errors import (
    InvalidGoalError,
    InvalidQuantityError,
    MacroPlannerError,
    NotFoundError,
    NutrientFetchError,
    PersistenceError,
    StaleLoadError,
    UnsupportedGenderError,
)
from macro_planner.domain.models import Goal
from macro_planner.services.goals import GoalService

_STATUS_BY_ERROR: dict[type[MacroPlannerError], int] = {
    InvalidQuantityError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedGenderError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidGoalError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StaleLoadError: status.HTTP_409_CONFLICT,
    PersistenceError: status.HTTP_502_BAD_GATEWAY,
    NutrientFetchError: status.HTTP_502_BAD_GATEWAY,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.debug)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(MacroPlannerError)
    async def planner_error(request: Request, exc: MacroPlannerError) -> JSONResponse:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        for error_type in type(exc).__mro__:
            if error_type in _STATUS_BY_ERROR:
                status_code = _STATUS_BY_ERROR[error_type]
                break
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    app.include_router(plans_router)
    app.include_router(meals_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/foods/search")
    async def search_foods(
        q: str, request: Request, limit: int | None = None
    ) -> dict[str, object]:
        """Return candidate foods with per-100g macros."""
        state_container: AppContainer = request.app.state.container
        resolved_limit = limit or state_container.settings.search_limit
        foods = await state_container.nutrition_service.search(q, resolved_limit)
        for food in foods:
            state_container.profile_store.remember(food.food_id, food.per_100g)
        return {"foods": foods}

    @app.get("/user")
    async def get_user(request: Request) -> dict[str, object]:
        """Return the signed-in user's profile."""
        state_container: AppContainer = request.app.state.container
        user = await state_container.user_service.get_profile()
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"user": user}

    @app.patch("/user")
    async def update_user(
        payload: UserMetricsUpdate, request: Request
    ) -> dict[str, object]:
        """Change the profile's body metrics."""
        state_container: AppContainer = request.app.state.container
        user_service = state_container.user_service
        user = await user_service.get_profile()
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        updated = await user_service.update_metrics(
            user,
            weight_kg=payload.weight_kg,
            height_cm=payload.height_cm,
            gender=payload.gender,
        )
        return {"user": updated}

    @app.get("/goal/recommendation")
    async def goal_recommendation(request: Request) -> dict[str, object]:
        """Return energy estimates and recommended macros for the stored goal."""
        state_container: AppContainer = request.app.state.container
        recommendation = await state_container.goal_service.get_recommendation()
        if recommendation is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {
            "recommendation": recommendation,
            "moving_away_from_target": recommendation.moving_away_from_target,
        }

    @app.put("/goal")
    async def update_goal(payload: GoalUpdate, request: Request) -> dict[str, object]:
        """Validate and save the goal form."""
        state_container: AppContainer = request.app.state.container
        goal_service = state_container.goal_service
        stored = await goal_service.get_goal()
        goal = Goal(
            id=stored.id if stored else None,
            activity_level=payload.activity_level,
            caloric_adjustment=payload.caloric_adjustment,
            target_weight_kg=payload.target_weight_kg,
            protein_g=stored.protein_g if stored else 0.0,
            fats_g=stored.fats_g if stored else 0.0,
            carbs_g=stored.carbs_g if stored else 0.0,
        )
        if payload.seed_from_recommendation:
            recommendation = await goal_service.recommendation_for(goal)
            goal = GoalService.seed_from_recommendation(goal, recommendation)
        goal = GoalService.override_macros(
            goal,
            protein_g=payload.protein_g,
            fats_g=payload.fats_g,
            carbs_g=payload.carbs_g,
        )
        saved = await goal_service.save_goal(goal)
        return {"goal": saved, "surplus": saved.surplus}

    return app

