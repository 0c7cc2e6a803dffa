"""Models for language model nutrition replies."""

import math
import re

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from nutrition_ledger.domain.nutrition import FOOD, NutritionRecord

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


class ModelNutritionPayload(BaseModel):
    """Loosely typed nutrition object returned by the model."""

    model_config = ConfigDict(extra="ignore")

    kind: str = Field(default=FOOD, validation_alias=AliasChoices("type", "kind"))
    name: str | None = None
    description: str | None = None
    calories: int = 0
    carbs: int = Field(
        default=0, validation_alias=AliasChoices("carbs", "carbohydrates")
    )
    protein: int = 0
    fat: int = 0

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: object) -> str:
        cleaned = str(value or "").strip().lower()
        return "exercise" if cleaned == "exercise" else FOOD

    @field_validator("name", "description", mode="before")
    @classmethod
    def _normalize_text(cls, value: object) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("calories", "carbs", "protein", "fat", mode="before")
    @classmethod
    def _coerce_amount(cls, value: object) -> int:
        return round_amount(value)

    def to_record(self) -> NutritionRecord:
        """Convert the payload into a ledger record."""
        return NutritionRecord(
            kind="exercise" if self.kind == "exercise" else FOOD,
            calories=self.calories,
            carbs=self.carbs,
            protein=self.protein,
            fat=self.fat,
            name=self.name,
            description=self.description,
        )


def round_amount(value: object) -> int:
    """Round a model-provided amount half-up and clamp it at zero.

    Raises ``ValueError`` for integers too large to represent as a float.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as exc:
            raise ValueError("Amount is out of range") from exc
    else:
        match = _NUMBER.search(str(value))
        if not match:
            return 0
        number = float(match.group(0))
    if not math.isfinite(number) or number <= 0:
        return 0
    return int(math.floor(number + 0.5))
