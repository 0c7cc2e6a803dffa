"""Nutrition estimation through a language model."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutrition_ledger.domain.errors import ModelCallError
from nutrition_ledger.services.extraction import ParsedResponse, parse_model_response

TEXT_SYSTEM_PROMPT = (
    "You are a precise nutrition assistant. Decide whether the user's message "
    "describes FOOD they ate or EXERCISE they did.\n"
    "- For food (e.g. \"3 eggs\", \"banana\", \"chicken salad\") respond ONLY with "
    'JSON: {"type": "food", "name": "Food name", "description": "Short '
    'description", "calories": 210, "carbs": 0, "protein": 18, "fat": 14}\n'
    '- For exercise (e.g. "30 min running", "gym workout") respond ONLY with '
    'JSON: {"type": "exercise", "calories": 150}\n'
    "Default to food when in doubt. Only answer exercise when the message "
    "explicitly mentions a physical activity."
)

IMAGE_SYSTEM_PROMPT = (
    "You are a precise nutrition assistant with strong vision skills. Identify "
    "the food in the image, estimate realistic portion sizes and respond ONLY "
    'with JSON: {"type": "food", "name": "Food name", "description": "What '
    'the image shows", "calories": 105, "carbs": 27, "protein": 1, "fat": 0}'
)


class CompletionClient(Protocol):
    """Interface for a text-in, text-out language model call."""

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_url: str | None = None,
    ) -> str:
        """Return the raw completion text."""


_logger = logging.getLogger(__name__)


@dataclass
class NutritionEstimator:
    """Service that prompts the model and parses its nutrition reply."""

    client: CompletionClient

    async def estimate(
        self, user_text: str, image_ref: str | None = None
    ) -> ParsedResponse:
        """Estimate nutrition for a text entry or a food photo.

        Raises ``ModelCallError`` when the call fails and ``ExtractionError``
        when the reply holds no nutrition JSON.
        """
        is_image = image_ref is not None
        if is_image:
            system_prompt = IMAGE_SYSTEM_PROMPT
            user_prompt = _image_prompt(user_text, image_ref)
        else:
            system_prompt = TEXT_SYSTEM_PROMPT
            user_prompt = user_text

        try:
            completion = await self.client.complete(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                image_url=image_ref,
            )
        except Exception as exc:
            _logger.warning("Model call failed (image=%s): %s", is_image, exc)
            raise ModelCallError(str(exc) or type(exc).__name__) from exc

        parsed = parse_model_response(completion, user_text, is_image)
        if is_image:
            parsed = ParsedResponse(
                record=parsed.record.with_image(image_ref),
                overridden=parsed.overridden,
            )
        return parsed


def _image_prompt(user_text: str, image_ref: str) -> str:
    lines = [
        f"Analyze this food image from a nutrition perspective: {image_ref}",
        "Identify each food item, estimate portion sizes, and give calories "
        "(kcal), carbohydrates (g), protein (g) and fat (g).",
    ]
    if user_text.strip():
        lines.append(f"The user added: {user_text.strip()}")
    return "\n".join(lines)
