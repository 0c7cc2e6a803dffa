"""Keyword classifier for food versus exercise input."""

from nutrition_ledger.domain.nutrition import EXERCISE, FOOD, EntryKind

EXERCISE_KEYWORDS: tuple[str, ...] = (
    "exercise",
    "workout",
    "run",
    "ran",
    "jog",
    "walk",
    "swim",
    "cycling",
    "biking",
    "gym",
    "training",
    "cardio",
    "weights",
    "fitness",
    "minutes of",
    "hours of",
)


def has_exercise_keyword(raw_text: str) -> bool:
    """Return true when the text mentions any exercise keyword."""
    lowered = raw_text.lower()
    return any(keyword in lowered for keyword in EXERCISE_KEYWORDS)


def classify(raw_text: str, is_image_context: bool) -> EntryKind:
    """Classify user input as food or exercise.

    Ambiguous input resolves to food. Image input is never classified here;
    the model's own kind is trusted, so "food" is only a placeholder.
    """
    if is_image_context:
        return FOOD
    return EXERCISE if has_exercise_keyword(raw_text) else FOOD
