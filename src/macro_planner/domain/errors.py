"""Error taxonomy for the planner."""


class MacroPlannerError(Exception):
    """Base class for planner errors."""


class InvalidQuantityError(MacroPlannerError, ValueError):
    """A gram quantity was negative, non-finite or not a number."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid quantity: {value!r}")
        self.value = value


class UnsupportedGenderError(MacroPlannerError, ValueError):
    """No BMR formula exists for the given gender."""

    def __init__(self, gender: object) -> None:
        super().__init__(f"No BMR formula for gender {gender!r}")
        self.gender = gender


class InvalidGoalError(MacroPlannerError, ValueError):
    """A goal field is outside its allowed range."""


class NutrientFetchError(MacroPlannerError):
    """The nutrient source could not provide a profile for a food."""

    def __init__(self, food_id: str, reason: str | None = None) -> None:
        message = f"Nutrient lookup failed for {food_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.food_id = food_id


class PersistenceError(MacroPlannerError):
    """The backend store rejected or failed a read or write."""


class StaleLoadError(MacroPlannerError):
    """A plan load finished after a newer load was requested."""

    def __init__(self, plan_id: int) -> None:
        super().__init__(f"Load of plan {plan_id} was superseded")
        self.plan_id = plan_id


class NotFoundError(MacroPlannerError, LookupError):
    """A plan, meal or food is not present in the loaded state."""
