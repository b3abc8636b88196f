"""Per-session store of per-100g nutrient profiles keyed by food id."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from macro_planner.domain.meals import FoodReference
from macro_planner.domain.nutrition import NutrientProfile

_logger = logging.getLogger(__name__)


class NutrientSource(Protocol):
    """Anything that can return a per-100g profile for a food id."""

    async def get_profile(self, food_id: str) -> NutrientProfile:
        """Return the per-100g profile or raise."""


@dataclass
class SessionProfileStore:
    """Fetches each food id at most once per session.

    Fetches for distinct ids run concurrently and callers asking for an id
    that is already in flight wait on the same task. A failed or timed-out
    fetch resolves to ``None`` and is not remembered, so a later call
    retries it.
    """

    source: NutrientSource
    fetch_timeout_seconds: float | None = 10.0
    _profiles: dict[str, NutrientProfile] = field(default_factory=dict, init=False)
    _inflight: dict[str, asyncio.Task[NutrientProfile | None]] = field(
        default_factory=dict, init=False
    )
    _epoch: int = field(default=0, init=False)

    def __contains__(self, food_id: object) -> bool:
        return food_id in self._profiles

    def get(self, food_id: str) -> NutrientProfile | None:
        """Return a known profile without fetching."""
        return self._profiles.get(food_id)

    def remember(self, food_id: str, profile: NutrientProfile) -> None:
        """Record a profile obtained elsewhere, e.g. from a search hit."""
        self._profiles[food_id] = profile

    async def resolve(
        self, food_ids: Iterable[str]
    ) -> dict[str, NutrientProfile | None]:
        """Return a profile (or ``None`` if unavailable) for every id."""
        distinct = list(dict.fromkeys(food_ids))
        results = await asyncio.gather(*(self._resolve_one(fid) for fid in distinct))
        return dict(zip(distinct, results, strict=True))

    async def attach(self, foods: Iterable[FoodReference]) -> None:
        """Resolve and set the profile of each food, sharing one per id."""
        foods = list(foods)
        profiles = await self.resolve(food.food_id for food in foods)
        for food in foods:
            food.profile = profiles[food.food_id]

    def clear(self) -> None:
        """Forget every profile and detach outstanding fetches.

        Detached fetches still resolve for whoever awaits them, but their
        results are no longer remembered.
        """
        self._epoch += 1
        self._inflight.clear()
        self._profiles.clear()

    async def _resolve_one(self, food_id: str) -> NutrientProfile | None:
        known = self._profiles.get(food_id)
        if known is not None:
            return known
        task = self._inflight.get(food_id)
        if task is None:
            task = asyncio.ensure_future(self._fetch(food_id))
            self._inflight[food_id] = task
            task.add_done_callback(lambda done: self._forget_task(food_id, done))
        return await asyncio.shield(task)

    async def _fetch(self, food_id: str) -> NutrientProfile | None:
        epoch = self._epoch
        try:
            profile = await asyncio.wait_for(
                self.source.get_profile(food_id), timeout=self.fetch_timeout_seconds
            )
        except Exception as exc:
            _logger.warning(
                "Nutrient profile unavailable for %s, counting it as zero: %s",
                food_id,
                str(exc) or type(exc).__name__,
            )
            return None
        if epoch == self._epoch:
            self._profiles[food_id] = profile
        return profile

    def _forget_task(
        self, food_id: str, task: asyncio.Task[NutrientProfile | None]
    ) -> None:
        if self._inflight.get(food_id) is task:
            del self._inflight[food_id]
