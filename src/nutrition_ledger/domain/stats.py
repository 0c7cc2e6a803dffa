"""Domain models for daily statistics."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class CalorieTotals:
    """Calories eaten and burned."""

    food: int = 0
    exercise: int = 0


@dataclass(frozen=True)
class MacroTotals:
    """Macronutrient totals in grams."""

    carbs: int = 0
    protein: int = 0
    fat: int = 0


@dataclass(frozen=True)
class DailyStats:
    """Running totals for a single day."""

    calories: CalorieTotals = CalorieTotals()
    macros: MacroTotals = MacroTotals()

    @classmethod
    def zero(cls) -> "DailyStats":
        """Return an all-zero stats value."""
        return cls(calories=CalorieTotals(), macros=MacroTotals())

    @property
    def net_calories(self) -> int:
        """Calories eaten minus calories burned."""
        return self.calories.food - self.calories.exercise

    def as_dict(self) -> dict[str, dict[str, int]]:
        """Return the nested mapping shape used by clients."""
        return {
            "calories": {
                "food": self.calories.food,
                "exercise": self.calories.exercise,
            },
            "macros": {
                "carbs": self.macros.carbs,
                "protein": self.macros.protein,
                "fat": self.macros.fat,
            },
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object] | None) -> "DailyStats":
        """Build stats from a possibly partial nested mapping."""
        payload = payload or {}
        calories = payload.get("calories") or {}
        macros = payload.get("macros") or {}
        return cls(
            calories=CalorieTotals(
                food=_as_int(calories.get("food")),
                exercise=_as_int(calories.get("exercise")),
            ),
            macros=MacroTotals(
                carbs=_as_int(macros.get("carbs")),
                protein=_as_int(macros.get("protein")),
                fat=_as_int(macros.get("fat")),
            ),
        )


@dataclass(frozen=True)
class DailyStatsRow:
    """Stored stats for a given day."""

    day: date
    stats: DailyStats


@dataclass(frozen=True)
class UserGoals:
    """Daily calorie and macro targets."""

    calorie_goal: int = 2000
    carbs_goal: int = 250
    protein_goal: int = 150
    fat_goal: int = 65


def _as_int(value: object) -> int:
    if value is None:
        return 0
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return 0
