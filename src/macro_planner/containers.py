"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from macro_planner.adapters.auth_client import (
    HttpxRefreshTokenProvider,
    StaticTokenProvider,
    TokenProvider,
)
from macro_planner.adapters.backend_client import HttpxBackendStore
from macro_planner.adapters.edamam_client import HttpxEdamamClient
from macro_planner.config import Settings
from macro_planner.services.cache import InMemoryCache
from macro_planner.services.goals import GoalService
from macro_planner.services.meals import MealService
from macro_planner.services.nutrition import NutritionService
from macro_planner.services.plans import PlanOrchestrator
from macro_planner.services.profiles import SessionProfileStore
from macro_planner.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    nutrition_service: NutritionService
    profile_store: SessionProfileStore
    plan_orchestrator: PlanOrchestrator
    meal_service: MealService
    goal_service: GoalService
    user_service: UserService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    token_provider: TokenProvider
    if resolved_settings.backend_refresh_token:
        refresh_provider = HttpxRefreshTokenProvider.create(
            base_url=resolved_settings.backend_base_url,
            refresh_token=resolved_settings.backend_refresh_token,
            access_token=resolved_settings.backend_access_token,
        )
        token_provider = refresh_provider
    else:
        refresh_provider = None
        token_provider = StaticTokenProvider(
            resolved_settings.backend_access_token or ""
        )
    store = HttpxBackendStore.create(
        base_url=resolved_settings.backend_base_url,
        token_provider=token_provider,
        timeout_seconds=resolved_settings.http_timeout_seconds,
    )
    edamam_client = HttpxEdamamClient.create(
        app_id=resolved_settings.edamam_app_id,
        app_key=resolved_settings.edamam_app_key,
        base_url=resolved_settings.edamam_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds,
    )
    nutrition_service = NutritionService(
        client=edamam_client,
        cache=InMemoryCache(),
        search_ttl_seconds=resolved_settings.search_cache_ttl_seconds,
        debug=resolved_settings.debug,
        retry_attempts=resolved_settings.nutrient_retry_attempts,
    )
    profile_store = SessionProfileStore(
        source=nutrition_service,
        fetch_timeout_seconds=resolved_settings.nutrient_fetch_timeout_seconds,
    )

    async def close_resources() -> None:
        profile_store.clear()
        nutrition_service.cache.clear()
        await edamam_client.close()
        await store.close()
        if refresh_provider is not None:
            await refresh_provider.close()

    return AppContainer(
        settings=resolved_settings,
        nutrition_service=nutrition_service,
        profile_store=profile_store,
        plan_orchestrator=PlanOrchestrator(store, profile_store),
        meal_service=MealService(store, profile_store),
        goal_service=GoalService(user_repository=store, goal_repository=store),
        user_service=UserService(store),
        close_resources=close_resources,
    )
