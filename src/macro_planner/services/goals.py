"""Goal recommendations derived from body metrics."""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Final, Literal, Protocol

from macro_planner.domain.errors import NotFoundError, UnsupportedGenderError
from macro_planner.domain.models import Gender, Goal, UserRecord
from macro_planner.services.persistence import call_store
from macro_planner.services.units import (
    KCAL_PER_G_CARBS,
    KCAL_PER_G_FAT,
    KCAL_PER_G_PROTEIN,
)
from macro_planner.services.users import UserRepository

INDETERMINATE: Final = "Indeterminate"

PROTEIN_G_PER_KG = 2
FAT_SHARE_OF_TDEE = 0.25
KCAL_PER_LB = 3500
KG_PER_LB = 0.453592

_logger = logging.getLogger(__name__)


class GoalRepository(Protocol):
    """Persistence interface for the user's goal."""

    async def get_goal(self) -> Goal | None:
        """Return the stored goal, if any."""

    async def save_goal(self, goal: Goal) -> Goal:
        """Persist the goal and return the stored version."""


@dataclass(frozen=True)
class MacroTargets:
    """Recommended daily macro grams."""

    protein_g: float
    fats_g: float
    carbs_g: float


@dataclass(frozen=True)
class GoalRecommendation:
    """Energy estimates and recommended macros for a user and goal."""

    age: int
    bmr: float
    tdee: float
    adjusted_tdee: float
    macros: MacroTargets
    weekly_change_kg: float
    weeks_to_target: float | Literal["Indeterminate"]
    current_weight_kg: float
    target_weight_kg: float

    @property
    def moving_away_from_target(self) -> bool:
        """True when the weekly change points away from the target weight.

        The ETA is still reported as computed; this only lets callers warn.
        """
        needed = self.target_weight_kg - self.current_weight_kg
        return needed * self.weekly_change_kg < 0


def age(date_of_birth: date, today: date | None = None) -> int:
    """Return completed years since ``date_of_birth``."""
    today = today or date.today()
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def bmr(user: UserRecord, today: date | None = None) -> float:
    """Return basal metabolic rate in kcal/day (revised Harris-Benedict)."""
    years = age(user.date_of_birth, today)
    if user.gender == Gender.MALE:
        return (
            88.362 + 13.397 * user.weight_kg + 4.799 * user.height_cm - 5.677 * years
        )
    if user.gender == Gender.FEMALE:
        return (
            447.593 + 9.247 * user.weight_kg + 3.098 * user.height_cm - 4.330 * years
        )
    raise UnsupportedGenderError(user.gender)


def tdee(bmr_kcal: float, activity_level: float) -> float:
    """Scale BMR by an activity multiplier."""
    return bmr_kcal * float(activity_level)


def adjusted_tdee(tdee_kcal: float, caloric_adjustment: int) -> float:
    """Apply the daily surplus or deficit."""
    return tdee_kcal + caloric_adjustment


def recommended_macros(weight_kg: float, adjusted_tdee_kcal: float) -> MacroTargets:
    """Split energy into protein, fat and carbs.

    Protein is fixed per kg of bodyweight, fat takes a quarter of the energy
    and carbs the remainder. Carbs are returned negative when protein and fat
    already exceed the budget.
    """
    protein_g = PROTEIN_G_PER_KG * weight_kg
    fats_kcal = FAT_SHARE_OF_TDEE * adjusted_tdee_kcal
    protein_kcal = protein_g * KCAL_PER_G_PROTEIN
    carbs_kcal = adjusted_tdee_kcal - fats_kcal - protein_kcal
    return MacroTargets(
        protein_g=protein_g,
        fats_g=fats_kcal / KCAL_PER_G_FAT,
        carbs_g=carbs_kcal / KCAL_PER_G_CARBS,
    )


def weekly_weight_change_kg(caloric_adjustment: float) -> float:
    """Return the expected weight change per week in kg."""
    return (caloric_adjustment * 7 / KCAL_PER_LB) * KG_PER_LB


def weeks_to_target(
    current_weight_kg: float, target_weight_kg: float, weekly_change_kg: float
) -> float | Literal["Indeterminate"]:
    """Return weeks until the target weight, or ``INDETERMINATE``."""
    if weekly_change_kg == 0:
        return INDETERMINATE
    return abs((current_weight_kg - target_weight_kg) / weekly_change_kg)


def recommend(
    user: UserRecord, goal: Goal, today: date | None = None
) -> GoalRecommendation:
    """Run the full calculation for a user and goal."""
    bmr_kcal = bmr(user, today)
    tdee_kcal = tdee(bmr_kcal, goal.activity_level)
    adjusted = adjusted_tdee(tdee_kcal, goal.caloric_adjustment)
    weekly = weekly_weight_change_kg(goal.caloric_adjustment)
    return GoalRecommendation(
        age=age(user.date_of_birth, today),
        bmr=bmr_kcal,
        tdee=tdee_kcal,
        adjusted_tdee=adjusted,
        macros=recommended_macros(user.weight_kg, adjusted),
        weekly_change_kg=weekly,
        weeks_to_target=weeks_to_target(
            user.weight_kg, goal.target_weight_kg, weekly
        ),
        current_weight_kg=user.weight_kg,
        target_weight_kg=goal.target_weight_kg,
    )


@dataclass
class GoalService:
    """Loads, adjusts and saves the user's goal."""

    user_repository: UserRepository
    goal_repository: GoalRepository

    async def get_goal(self) -> Goal | None:
        """Return the stored goal."""
        return await call_store(self.goal_repository.get_goal(), action="get_goal")

    async def get_recommendation(
        self, today: date | None = None
    ) -> GoalRecommendation | None:
        """Return a recommendation for the stored user and goal."""
        user = await call_store(self.user_repository.get_user(), action="get_user")
        goal = await self.get_goal()
        if user is None or goal is None:
            return None
        return recommend(user, goal, today)

    async def recommendation_for(
        self, goal: Goal, today: date | None = None
    ) -> GoalRecommendation:
        """Return a recommendation for the stored user and an unsaved goal."""
        user = await call_store(self.user_repository.get_user(), action="get_user")
        if user is None:
            raise NotFoundError("No user profile to base a recommendation on")
        return recommend(user, goal, today)

    @staticmethod
    def set_caloric_adjustment(goal: Goal, caloric_adjustment: int) -> Goal:
        """Return the goal with a new adjustment; surplus follows from it."""
        return replace(goal, caloric_adjustment=caloric_adjustment)

    @staticmethod
    def seed_from_recommendation(
        goal: Goal, recommendation: GoalRecommendation
    ) -> Goal:
        """Copy the recommended macros into the goal's targets."""
        return replace(
            goal,
            protein_g=recommendation.macros.protein_g,
            fats_g=recommendation.macros.fats_g,
            carbs_g=recommendation.macros.carbs_g,
        )

    @staticmethod
    def override_macros(
        goal: Goal,
        protein_g: float | None = None,
        fats_g: float | None = None,
        carbs_g: float | None = None,
    ) -> Goal:
        """Return the goal with user-chosen macro targets."""
        return replace(
            goal,
            protein_g=goal.protein_g if protein_g is None else protein_g,
            fats_g=goal.fats_g if fats_g is None else fats_g,
            carbs_g=goal.carbs_g if carbs_g is None else carbs_g,
        )

    async def save_goal(self, goal: Goal) -> Goal:
        """Persist the goal."""
        saved = await call_store(
            self.goal_repository.save_goal(goal), action="save_goal"
        )
        _logger.info(
            "Goal saved: adjustment=%s surplus=%s",
            saved.caloric_adjustment,
            saved.surplus,
        )
        return saved

