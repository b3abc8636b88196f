"""Nutrition service integrating the Edamam food database."""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from macro_planner.adapters.edamam_client import EdamamClient
from macro_planner.domain.errors import NutrientFetchError
from macro_planner.domain.nutrition import FoodCandidate, NutrientProfile
from macro_planner.services.cache import Cache
from macro_planner.services.units import validate_quantity

_NUTRIENT_CODES = {
    "protein": "PROCNT",
    "fats": "FAT",
    "carbs": "CHOCDF",
    "calories": "ENERC_KCAL",
}

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class NutritionService:
    """Nutrient lookups with retry and cached search results."""

    client: EdamamClient
    cache: Cache
    search_ttl_seconds: int = 3600
    debug: bool = False
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int = 5) -> list[FoodCandidate]:
        """Return up to ``limit`` candidate foods for a free-text query."""
        cleaned = query.strip()
        if not cleaned:
            return []
        cache_key = f"edamam:search:{cleaned.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        try:
            payload = await self._call_with_retry(
                lambda: self.client.parse(cleaned), action="search"
            )
        except Exception as exc:
            raise NutrientFetchError(cleaned, str(exc) or type(exc).__name__) from exc
        candidates = []
        for hint in payload.get("hints", [])[:limit]:
            food = hint.get("food") or {}
            if not food.get("foodId"):
                continue
            candidates.append(
                FoodCandidate(
                    food_id=str(food["foodId"]),
                    label=str(food.get("label", "")),
                    per_100g=_profile_from_flat(food.get("nutrients") or {}),
                    category=food.get("category"),
                    brand=food.get("brand"),
                )
            )
        self.cache.set(cache_key, candidates, ttl_seconds=self.search_ttl_seconds)
        if self.debug:
            _logger.info(
                "Nutrient search: query=%s results=%s", cleaned, len(candidates)
            )
        return candidates

    async def get_profile(self, food_id: str) -> NutrientProfile:
        """Return the per-100g profile of a food."""
        return await self.get_portion(food_id, 100)

    async def get_portion(self, food_id: str, quantity_g: float) -> NutrientProfile:
        """Return absolute nutrient amounts for ``quantity_g`` of a food.

        Scaling happens at the nutrient source.
        """
        quantity = validate_quantity(quantity_g)
        try:
            payload = await self._call_with_retry(
                lambda: self.client.nutrients(food_id, quantity),
                action=f"nutrients:{food_id}",
            )
        except Exception as exc:
            raise NutrientFetchError(food_id, str(exc) or type(exc).__name__) from exc
        return _profile_from_totals(payload)

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                status_code = _status_code_from_exception(exc)
                if self.debug:
                    _logger.warning(
                        "Nutrient %s failed (attempt %s/%s, status=%s): %s",
                        action,
                        attempt,
                        self.retry_attempts + 1,
                        status_code,
                        exc,
                    )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _profile_from_flat(nutrients: dict[str, object]) -> NutrientProfile:
    """Build a profile from parser hints, which map codes to bare numbers."""
    values = {
        field: _number(nutrients.get(code)) for field, code in _NUTRIENT_CODES.items()
    }
    return NutrientProfile(
        protein_g=values["protein"],
        fats_g=values["fats"],
        carbs_g=values["carbs"],
        calories=values["calories"],
    )


def _profile_from_totals(payload: dict[str, object]) -> NutrientProfile:
    """Build a profile from a nutrients response.

    Missing nutrients count as zero. Energy falls back to the top-level
    ``calories`` field when ``ENERC_KCAL`` is absent.
    """
    totals = payload.get("totalNutrients") or {}
    values: dict[str, float] = {}
    for field, code in _NUTRIENT_CODES.items():
        entry = totals.get(code) or {}
        values[field] = _number(entry.get("quantity"))
    if not totals.get(_NUTRIENT_CODES["calories"]):
        values["calories"] = _number(payload.get("calories"))
    return NutrientProfile(
        protein_g=values["protein"],
        fats_g=values["fats"],
        carbs_g=values["carbs"],
        calories=values["calories"],
    )


def _number(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return float(value)
