"""AI suggestions - activity ideas, categorization, and appreciation messages via Claude.

Every call degrades to a fixed fallback when the model is unavailable, slow,
or returns something unusable.
"""

import json
import logging
import re
from dataclasses import dataclass

import anthropic
from anthropic import AsyncAnthropic
from pydantic import BaseModel, ValidationError

from appreciatemate.core.config import settings

logger = logging.getLogger(__name__)

CATEGORY_IDS = [
    "household",
    "childcare",
    "finance",
    "maintenance",
    "cooking",
    "shopping",
    "transportation",
    "emotional_support",
]

FALLBACK_CATEGORY = "household"
FALLBACK_POINTS = 5
FALLBACK_CONFIDENCE = 80
FALLBACK_APPRECIATION = "Thank you for everything you do! ❤️"

POINTS_RANGE = (5, 15)
CONFIDENCE_RANGE = (80, 95)


@dataclass
class PromptSpec:
    """One model call: a system prompt and a user prompt."""

    system: str
    prompt: str
    max_tokens: int | None = None


class ActivitySuggestion(BaseModel):
    title: str
    description: str = ""
    category: str = FALLBACK_CATEGORY
    points: int = FALLBACK_POINTS
    confidence: int = 70


class ActivityCategorization(BaseModel):
    category: str
    points: int
    confidence: int


def time_of_day_label(hour: int) -> str:
    """Bucket a local hour into the part of day the prompt expects."""
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def _extract_json(text: str) -> dict | None:
    """Pull the first JSON object out of a model reply."""
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning("Failed to parse model JSON: %s", text[:200])
        return None
    return data if isinstance(data, dict) else None


class SuggestionService:
    """Thin wrapper over the Anthropic API for the suggestion features."""

    def __init__(self):
        self._client: AsyncAnthropic | None = None

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            if not settings.anthropic_api_key:
                raise ValueError("ANTHROPIC_API_KEY is not configured")
            self._client = AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.llm_timeout_seconds,
            )
        return self._client

    async def complete(self, prompt_spec: PromptSpec) -> str | None:
        """Return the model's text reply, or None on any API failure."""
        try:
            response = await self.client.messages.create(
                model=settings.suggestion_model,
                max_tokens=prompt_spec.max_tokens or settings.llm_max_tokens,
                system=prompt_spec.system,
                messages=[{"role": "user", "content": prompt_spec.prompt}],
            )
        except (anthropic.APIError, ValueError) as e:
            logger.warning("Suggestion model call failed: %s", e)
            return None

        text = response.content[0].text if response.content else ""
        return text.strip() or None

    async def generate(self, prompt_spec: PromptSpec) -> dict | None:
        """Return the JSON object in the model's reply, or None."""
        text = await self.complete(prompt_spec)
        if text is None:
            return None
        return _extract_json(text)

    async def generate_activity_suggestions(
        self,
        user_activities: list[str],
        partner_activities: list[str],
        time_of_day: str,
        day_of_week: str,
    ) -> list[ActivitySuggestion]:
        prompt = "\n".join([
            "Based on the following context, suggest 3 household/relationship activities that this person might do:",
            "",
            f"User's recent activities: {', '.join(user_activities) or 'none yet'}",
            f"Partner's recent activities: {', '.join(partner_activities) or 'none yet'}",
            f"Time of day: {time_of_day}",
            f"Day of week: {day_of_week}",
            "",
            f"Categories: {', '.join(CATEGORY_IDS)}",
            "",
            "Respond with only JSON in this format:",
            '{"suggestions": [{"title": "Activity title", "description": "Brief description", '
            '"category": "category_name", "points": 5-15, "confidence": 70-95}]}',
            "",
            "Make suggestions realistic and contextual based on time and recent patterns.",
        ])
        data = await self.generate(PromptSpec(
            system=(
                "You are an assistant that helps couples track and appreciate their daily "
                "contributions. Suggest realistic household and relationship activities."
            ),
            prompt=prompt,
        ))
        if data is None:
            return []

        raw_suggestions = data.get("suggestions")
        if not isinstance(raw_suggestions, list):
            return []

        suggestions = []
        for item in raw_suggestions:
            try:
                suggestions.append(ActivitySuggestion.model_validate(item))
            except ValidationError:
                logger.warning("Dropping malformed suggestion: %r", item)
        return suggestions

    async def categorize_activity(self, activity_title: str) -> ActivityCategorization:
        """Pick a category and point value for an activity title."""
        prompt = "\n".join([
            "Categorize this activity and suggest points:",
            "",
            f'Activity: "{activity_title}"',
            "",
            f"Categories: {', '.join(CATEGORY_IDS)}",
            "",
            'Respond with only JSON: {"category": "category_name", "points": 5-15, "confidence": 80-95}',
            "",
            "Points scale:",
            "- Simple tasks (5-7 points): tidying up, basic cooking",
            "- Medium tasks (8-10 points): grocery shopping, school pickup",
            "- Complex tasks (11-15 points): bill paying, major cleaning, repairs",
        ])
        data = await self.generate(PromptSpec(
            system=(
                "You categorize household activities and assign point values "
                "based on effort and importance."
            ),
            prompt=prompt,
            max_tokens=256,
        ))
        if data is None:
            return ActivityCategorization(
                category=FALLBACK_CATEGORY,
                points=FALLBACK_POINTS,
                confidence=FALLBACK_CONFIDENCE,
            )

        category = data.get("category")
        if category not in CATEGORY_IDS:
            category = FALLBACK_CATEGORY

        try:
            points = int(data.get("points") or FALLBACK_POINTS)
            confidence = int(data.get("confidence") or 85)
        except (TypeError, ValueError):
            points, confidence = FALLBACK_POINTS, FALLBACK_CONFIDENCE

        return ActivityCategorization(
            category=category,
            points=_clamp(points, POINTS_RANGE),
            confidence=_clamp(confidence, CONFIDENCE_RANGE),
        )

    async def generate_appreciation_message(self, activity_title: str) -> str:
        text = await self.complete(PromptSpec(
            system=(
                "Generate a warm, heartfelt appreciation message for a partner's activity. "
                "Keep it personal and genuine, 1-2 sentences. Reply with the message only."
            ),
            prompt=f'Generate an appreciation message for: "{activity_title}"',
            max_tokens=200,
        ))
        return text or FALLBACK_APPRECIATION


# Singleton instance
suggestion_service = SuggestionService()
