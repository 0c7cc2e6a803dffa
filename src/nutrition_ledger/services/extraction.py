"""Parse nutrition records out of raw model completions."""

import json
import logging
import re
from dataclasses import dataclass

from pydantic import ValidationError

from nutrition_ledger.domain.completion import ModelNutritionPayload
from nutrition_ledger.domain.errors import ExtractionError
from nutrition_ledger.domain.nutrition import EXERCISE, FOOD, NutritionRecord
from nutrition_ledger.services.classifier import has_exercise_keyword

OVERRIDE_DESCRIPTION = "Food item"

_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_FLAT_OBJECT = re.compile(r"\{[^{}]*\}")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedResponse:
    """Record parsed from a completion, plus whether its kind was overridden."""

    record: NutritionRecord
    overridden: bool = False


def parse_model_response(
    completion: str, user_text: str, is_image_context: bool
) -> ParsedResponse:
    """Parse a model completion into a nutrition record.

    Raises ``ExtractionError`` when no JSON object can be read.
    """
    payload = _load_json_object(completion)
    try:
        parsed = ModelNutritionPayload.model_validate(payload)
    except ValidationError as exc:
        raise ExtractionError(completion) from exc
    record = parsed.to_record()

    if (
        record.kind == EXERCISE
        and not is_image_context
        and not has_exercise_keyword(user_text)
    ):
        _logger.warning(
            "Overriding exercise classification for food input: %r", user_text
        )
        return ParsedResponse(
            record=NutritionRecord(
                kind=FOOD,
                name=user_text.strip(),
                description=OVERRIDE_DESCRIPTION,
            ),
            overridden=True,
        )
    return ParsedResponse(record=record)


def _load_json_object(completion: str) -> dict[str, object]:
    """Return the JSON object in a completion, trying the whole text first."""
    text = (completion or "").strip()
    if text.startswith("```"):
        text = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text))

    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    match = _FLAT_OBJECT.search(text)
    if not match:
        raise ExtractionError(completion)
    try:
        parsed = json.loads(match.group(0))
    except ValueError as exc:
        raise ExtractionError(completion) from exc
    if not isinstance(parsed, dict):
        raise ExtractionError(completion)
    return parsed
