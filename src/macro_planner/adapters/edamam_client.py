"""Edamam food database API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

_GRAM_MEASURE_URI = "http://www.edamam.com/ontologies/edamam.owl#Measure_gram"


class EdamamClient(Protocol):
    """Interface for Edamam food database interactions."""

    async def parse(self, query: str) -> dict[str, object]:
        """Search foods by free text and return raw API data."""

    async def nutrients(self, food_id: str, quantity_g: float) -> dict[str, object]:
        """Return raw nutrient totals for a food at a gram quantity."""


@dataclass
class HttpxEdamamClient(EdamamClient):
    """HTTPX-backed Edamam client."""

    app_id: str
    app_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, app_id: str, app_key: str, base_url: str, timeout_seconds: float = 15
    ) -> "HttpxEdamamClient":
        """Create an Edamam client with a managed httpx session."""
        return cls(
            app_id=app_id,
            app_key=app_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def parse(self, query: str) -> dict[str, object]:
        """Search foods with the parser endpoint."""
        response = await self.http_client.get(
            f"{self.base_url}/parser",
            params={"app_id": self.app_id, "app_key": self.app_key, "ingr": query},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def nutrients(self, food_id: str, quantity_g: float) -> dict[str, object]:
        """Fetch nutrient totals for ``quantity_g`` grams of a food."""
        response = await self.http_client.post(
            f"{self.base_url}/nutrients",
            params={"app_id": self.app_id, "app_key": self.app_key},
            json={
                "ingredients": [
                    {
                        "quantity": quantity_g,
                        "measureURI": _GRAM_MEASURE_URI,
                        "foodId": food_id,
                    }
                ]
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
