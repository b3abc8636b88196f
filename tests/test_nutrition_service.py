"""Tests for nutrition service."""

import asyncio
from dataclasses import dataclass

import httpx
import pytest

from macro_planner.domain.errors import NutrientFetchError
from macro_planner.domain.nutrition import NutrientProfile
from macro_planner.services.cache import InMemoryCache
from macro_planner.services.nutrition import NutritionService
from tests.conftest import F1_PROFILE, FakeEdamamClient


@dataclass
class FlakyEdamamClient(FakeEdamamClient):
    failures_left: int = 1

    async def nutrients(self, food_id: str, quantity_g: float) -> dict[str, object]:
        if self.failures_left:
            self.failures_left -= 1
            request = httpx.Request("POST", "https://api.edamam.com/nutrients")
            raise httpx.HTTPStatusError(
                "rate limited",
                request=request,
                response=httpx.Response(429, request=request),
            )
        return await super().nutrients(food_id, quantity_g)


def test_search_uses_cache() -> None:
    client = FakeEdamamClient()
    service = NutritionService(client, InMemoryCache())

    results = asyncio.run(service.search("chicken", limit=1))
    assert results[0].food_id == "F1"
    assert results[0].per_100g == F1_PROFILE
    assert client.parse_calls == 1

    cached = asyncio.run(service.search("  Chicken ", limit=1))
    assert cached[0].food_id == "F1"
    assert client.parse_calls == 1


def test_search_blank_query_skips_lookup() -> None:
    client = FakeEdamamClient()
    service = NutritionService(client, InMemoryCache())

    assert asyncio.run(service.search("   ")) == []
    assert client.parse_calls == 0


def test_get_profile_requests_100_grams() -> None:
    client = FakeEdamamClient()
    service = NutritionService(client, InMemoryCache())

    profile = asyncio.run(service.get_profile("F1"))

    assert profile == F1_PROFILE
    assert client.nutrient_calls == [("F1", 100)]


def test_portion_is_scaled_remotely() -> None:
    client = FakeEdamamClient()
    service = NutritionService(client, InMemoryCache())

    portion = asyncio.run(service.get_portion("F1", 250))

    assert portion.protein_g == pytest.approx(25)
    assert portion.carbs_g == pytest.approx(50)


def test_retry_recovers_from_transient_failure() -> None:
    client = FlakyEdamamClient()
    service = NutritionService(client, InMemoryCache(), retry_delay_seconds=0)

    assert asyncio.run(service.get_profile("F1")) == F1_PROFILE


def test_exhausted_retries_raise_fetch_error() -> None:
    client = FlakyEdamamClient(failures_left=5)
    service = NutritionService(
        client, InMemoryCache(), retry_attempts=1, retry_delay_seconds=0
    )

    with pytest.raises(NutrientFetchError) as excinfo:
        asyncio.run(service.get_profile("F1"))

    assert excinfo.value.food_id == "F1"
    assert client.failures_left == 3


def test_missing_nutrients_default_to_zero() -> None:
    @dataclass
    class SparseClient(FakeEdamamClient):
        async def nutrients(
            self, food_id: str, quantity_g: float
        ) -> dict[str, object]:
            return {
                "calories": 52,
                "totalNutrients": {"CHOCDF": {"quantity": 14, "unit": "g"}},
            }

    service = NutritionService(SparseClient(), InMemoryCache())

    profile = asyncio.run(service.get_profile("apple"))

    assert profile == NutrientProfile(
        protein_g=0.0, fats_g=0.0, carbs_g=14.0, calories=52.0
    )
