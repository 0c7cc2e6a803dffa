"""Chat text codec for nutrition records.

Assistant messages store a nutrition record only as rendered text, and
rollback recovers the record by parsing that text again. The renderer and
the parser share the label constants below; changing a label means older
transcripts stop rolling back, so labels are effectively a stored format.
"""

import logging
import re

from nutrition_ledger.domain.nutrition import EXERCISE, FOOD, NutritionRecord

EXERCISE_HEADER = "Exercise Calories Burned"
FOOD_HEADER = "Nutrition Info"
DEFAULT_FOOD_NAME = "Food"

CALORIES_LABEL = "Calories"
CARBS_LABEL = "Carbs"
PROTEIN_LABEL = "Protein"
FAT_LABEL = "Fat"
BULLET = "•"

_EXERCISE_ICON = "🔥"
_FOOD_ICON = "📊"

_EXERCISE_CALORIE_PATTERNS = (
    r"(\d+)\s*kcal",
    r"calories[:\s]*(\d+)",
    r"(\d+)\s*calories",
    r"burned[:\s]*(\d+)",
)
_FOOD_PATTERNS: dict[str, tuple[str, ...]] = {
    "calories": (
        rf"{BULLET}\s*{CALORIES_LABEL}:\s*(\d+)",
        rf"{CALORIES_LABEL}:\s*(\d+)",
        r"calories[:\s]*(\d+)",
    ),
    "carbs": (
        rf"{BULLET}\s*{CARBS_LABEL}:\s*(\d+)",
        rf"{CARBS_LABEL}:\s*(\d+)",
        r"carbs[:\s]*(\d+)",
        r"carbohydrates[:\s]*(\d+)",
    ),
    "protein": (
        rf"{BULLET}\s*{PROTEIN_LABEL}:\s*(\d+)",
        rf"{PROTEIN_LABEL}:\s*(\d+)",
        r"protein[:\s]*(\d+)",
    ),
    "fat": (
        rf"{BULLET}\s*{FAT_LABEL}:\s*(\d+)",
        rf"{FAT_LABEL}:\s*(\d+)",
        r"fat[:\s]*(\d+)",
    ),
}
_NAME_PATTERNS = (
    rf"{FOOD_HEADER}\*?[ \t]*\n\*([^*\n]+)\*",
    rf"{FOOD_HEADER}:[ \t]*\n([^\n]*)",
    r"\bname:[ \t]*([^\n]*)",
    r"\bfood:[ \t]*([^\n]*)",
)
_LINE_NOISE = re.compile(rf"[*{BULLET}]")
_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


def format_record(record: NutritionRecord) -> str:
    """Render a record as the assistant's chat message."""
    if record.kind == EXERCISE:
        return f"{_EXERCISE_ICON} *{EXERCISE_HEADER}*\n{record.calories} kcal"

    lines = [f"{_FOOD_ICON} *{FOOD_HEADER}*"]
    name = _clean_line(record.name)
    if name:
        lines.append(f"*{name}*")
    description = _clean_line(record.description)
    if description:
        lines.extend([description, ""])
    lines.extend(
        [
            f"{BULLET} {CALORIES_LABEL}: {record.calories} kcal",
            f"{BULLET} {CARBS_LABEL}: {record.carbs}g",
            f"{BULLET} {PROTEIN_LABEL}: {record.protein}g",
            f"{BULLET} {FAT_LABEL}: {record.fat}g",
        ]
    )
    return "\n".join(lines)


def extract_from_chat_text(text: str) -> NutritionRecord:
    """Recover the record a rendered assistant message contributed.

    Never fails: fields that cannot be found count as zero, so rollback of a
    message whose text no longer parses simply subtracts nothing.
    """
    if _is_exercise_text(text):
        record = NutritionRecord(
            kind=EXERCISE,
            calories=_first_int(text, _EXERCISE_CALORIE_PATTERNS),
        )
    else:
        record = NutritionRecord(
            kind=FOOD,
            name=_extract_name(text),
            calories=_first_int(text, _FOOD_PATTERNS["calories"]),
            carbs=_first_int(text, _FOOD_PATTERNS["carbs"]),
            protein=_first_int(text, _FOOD_PATTERNS["protein"]),
            fat=_first_int(text, _FOOD_PATTERNS["fat"]),
        )
    if record.is_empty:
        _logger.info("No nutrition values found in chat text: %r", text[:40])
    return record


def _is_exercise_text(text: str) -> bool:
    # Only the header line marks exercise; names and descriptions are free text.
    first_line = text.strip().split("\n", 1)[0]
    if EXERCISE_HEADER in first_line:
        return True
    if FOOD_HEADER in text:
        return False
    lowered = text.lower()
    return "exercise" in lowered or "workout" in lowered


def _first_int(text: str, patterns: tuple[str, ...]) -> int:
    for pattern in patterns:
        match = re.search(pattern, text, flags=re.IGNORECASE)
        if match:
            try:
                return int(match.group(1))
            except ValueError:
                continue
    return 0


def _extract_name(text: str) -> str:
    for pattern in _NAME_PATTERNS:
        match = re.search(pattern, text, flags=re.IGNORECASE)
        if match:
            name = _clean_line(match.group(1))
            if name:
                return name
    return DEFAULT_FOOD_NAME


def _clean_line(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = _WHITESPACE.sub(" ", _LINE_NOISE.sub("", value)).strip()
    return cleaned or None
