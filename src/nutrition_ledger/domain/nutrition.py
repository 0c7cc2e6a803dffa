"""Nutrition domain models."""

from dataclasses import dataclass, replace
from typing import Literal

EntryKind = Literal["food", "exercise"]

FOOD: EntryKind = "food"
EXERCISE: EntryKind = "exercise"


@dataclass(frozen=True)
class NutritionRecord:
    """Nutrition estimate for a single food or exercise entry.

    Values are non-negative integers. Macros only carry meaning for food
    records; exercise records always hold zero macros.
    """

    kind: EntryKind
    calories: int = 0
    carbs: int = 0
    protein: int = 0
    fat: int = 0
    name: str | None = None
    description: str | None = None
    image_ref: str | None = None

    def __post_init__(self) -> None:
        if self.kind == EXERCISE and (self.carbs or self.protein or self.fat):
            object.__setattr__(self, "carbs", 0)
            object.__setattr__(self, "protein", 0)
            object.__setattr__(self, "fat", 0)

    @property
    def is_food(self) -> bool:
        """Return true for food records."""
        return self.kind == FOOD

    @property
    def is_empty(self) -> bool:
        """Return true when the record contributes nothing to the ledger."""
        return not (self.calories or self.carbs or self.protein or self.fat)

    def with_image(self, image_ref: str | None) -> "NutritionRecord":
        """Return a copy carrying the given image reference."""
        return replace(self, image_ref=image_ref)

    @classmethod
    def zero(cls, kind: EntryKind = FOOD, name: str | None = None) -> "NutritionRecord":
        """Return a record with no nutrition contribution."""
        return cls(kind=kind, name=name)
