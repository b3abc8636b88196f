"""User profile business logic."""

from dataclasses import dataclass, replace
from typing import Protocol

from macro_planner.domain.errors import InvalidQuantityError
from macro_planner.domain.models import Gender, UserRecord
from macro_planner.services.persistence import call_store


class UserRepository(Protocol):
    """Persistence interface for the signed-in user's profile."""

    async def get_user(self) -> UserRecord | None:
        """Return the current user's profile, if present."""

    async def update_user(self, user: UserRecord) -> UserRecord:
        """Persist profile changes and return the stored profile."""


@dataclass
class UserService:
    """Application service for profile edits."""

    repository: UserRepository

    async def get_profile(self) -> UserRecord | None:
        """Return the current user's profile."""
        return await call_store(self.repository.get_user(), action="get_user")

    async def update_metrics(
        self,
        user: UserRecord,
        *,
        weight_kg: float | None = None,
        height_cm: float | None = None,
        gender: Gender | None = None,
    ) -> UserRecord:
        """Validate and persist new body metrics."""
        updated = replace(
            user,
            weight_kg=_positive(weight_kg) if weight_kg is not None else user.weight_kg,
            height_cm=_positive(height_cm) if height_cm is not None else user.height_cm,
            gender=gender or user.gender,
        )
        return await call_store(
            self.repository.update_user(updated), action="update_user"
        )


def _positive(value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise InvalidQuantityError(value)
    return float(value)
