"""Domain models for users and their goals."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from macro_planner.domain.errors import InvalidGoalError

MAX_CALORIC_ADJUSTMENT = 1000


class Gender(str, Enum):
    """Gender values accepted on a profile."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(float, Enum):
    """TDEE multipliers offered by the goal form."""

    SEDENTARY = 1.2
    LIGHT = 1.375
    MODERATE = 1.55
    ACTIVE = 1.725
    VERY_ACTIVE = 1.9
    ATHLETE = 2.0


@dataclass(frozen=True)
class UserRecord:
    """Body metrics and display fields of the signed-in user."""

    date_of_birth: date
    gender: Gender
    height_cm: float
    weight_kg: float
    username: str = ""
    first_name: str | None = None
    last_name: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class Goal:
    """Nutrition goal owned by a user.

    ``surplus`` is derived from ``caloric_adjustment`` and cannot be set.
    """

    activity_level: ActivityLevel
    caloric_adjustment: int
    target_weight_kg: float
    protein_g: float = 0.0
    fats_g: float = 0.0
    carbs_g: float = 0.0
    id: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.activity_level, ActivityLevel):
            try:
                object.__setattr__(
                    self, "activity_level", ActivityLevel(self.activity_level)
                )
            except ValueError as exc:
                raise InvalidGoalError(
                    f"Unknown activity level: {self.activity_level!r}"
                ) from exc
        if isinstance(self.caloric_adjustment, bool) or not isinstance(
            self.caloric_adjustment, int
        ):
            raise InvalidGoalError(
                f"Caloric adjustment must be an integer: {self.caloric_adjustment!r}"
            )
        if abs(self.caloric_adjustment) > MAX_CALORIC_ADJUSTMENT:
            raise InvalidGoalError(
                f"Caloric adjustment out of range: {self.caloric_adjustment}"
            )

    @property
    def surplus(self) -> bool:
        """True when the adjustment is zero or positive."""
        return self.caloric_adjustment >= 0
