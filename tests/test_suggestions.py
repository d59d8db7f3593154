"""Tests for the LLM-backed suggestion service. The Anthropic client is always mocked."""
import pytest
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx


def make_service(reply: str | None = None, error: Exception | None = None):
    from appreciatemate.services.suggestions import SuggestionService

    service = SuggestionService()
    client = MagicMock()
    if error is not None:
        client.messages.create = AsyncMock(side_effect=error)
    else:
        response = MagicMock()
        response.content = [MagicMock(text=reply)] if reply is not None else []
        client.messages.create = AsyncMock(return_value=response)
    service._client = client
    return service


def connection_error():
    return anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))


class TestClient:

    def test_missing_api_key_raises(self, monkeypatch):
        from appreciatemate.core.config import settings
        from appreciatemate.services.suggestions import SuggestionService

        monkeypatch.setattr(settings, "anthropic_api_key", "")
        with pytest.raises(ValueError):
            SuggestionService().client

    async def test_missing_api_key_falls_back(self, monkeypatch):
        from appreciatemate.core.config import settings
        from appreciatemate.services.suggestions import SuggestionService

        monkeypatch.setattr(settings, "anthropic_api_key", "")
        service = SuggestionService()

        assert await service.generate_activity_suggestions([], [], "morning", "Monday") == []
        assert await service.generate_appreciation_message("Dishes") == "Thank you for everything you do! ❤️"


class TestTimeOfDayLabel:

    @pytest.mark.parametrize("hour,label", [
        (0, "morning"),
        (11, "morning"),
        (12, "afternoon"),
        (16, "afternoon"),
        (17, "evening"),
        (23, "evening"),
    ])
    def test_buckets(self, hour, label):
        from appreciatemate.services.suggestions import time_of_day_label
        assert time_of_day_label(hour) == label


class TestGenerate:

    async def test_extracts_json_from_reply(self):
        from appreciatemate.services.suggestions import PromptSpec

        service = make_service('Sure! {"category": "cooking", "points": 7} Hope that helps.')
        result = await service.generate(PromptSpec(system="s", prompt="p"))
        assert result == {"category": "cooking", "points": 7}

    async def test_unparseable_reply_returns_none(self):
        from appreciatemate.services.suggestions import PromptSpec

        service = make_service("I can't do that.")
        assert await service.generate(PromptSpec(system="s", prompt="p")) is None

    async def test_api_error_returns_none(self):
        from appreciatemate.services.suggestions import PromptSpec

        service = make_service(error=connection_error())
        assert await service.generate(PromptSpec(system="s", prompt="p")) is None

    async def test_uses_configured_model(self):
        from appreciatemate.core.config import settings
        from appreciatemate.services.suggestions import PromptSpec

        service = make_service("{}")
        await service.generate(PromptSpec(system="sys", prompt="hello", max_tokens=50))

        kwargs = service._client.messages.create.await_args.kwargs
        assert kwargs["model"] == settings.suggestion_model
        assert kwargs["max_tokens"] == 50
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "hello"}]


class TestActivitySuggestions:

    async def test_parses_suggestions(self):
        service = make_service(
            '{"suggestions": ['
            '{"title": "Water plants", "description": "Quick", "category": "household", "points": 5, "confidence": 80},'
            '{"title": "Call mom", "category": "emotional_support", "points": 10, "confidence": 90}'
            ']}'
        )

        suggestions = await service.generate_activity_suggestions(["Dishes"], [], "evening", "Friday")

        assert [s.title for s in suggestions] == ["Water plants", "Call mom"]
        assert suggestions[1].description == ""

    async def test_drops_malformed_entries(self):
        service = make_service('{"suggestions": [{"description": "no title"}, {"title": "Vacuum"}]}')

        suggestions = await service.generate_activity_suggestions([], [], "morning", "Sunday")

        assert [s.title for s in suggestions] == ["Vacuum"]

    async def test_failure_returns_empty_list(self):
        service = make_service(error=connection_error())
        assert await service.generate_activity_suggestions([], [], "morning", "Sunday") == []

    async def test_missing_key_returns_empty_list(self):
        service = make_service('{"ideas": []}')
        assert await service.generate_activity_suggestions([], [], "morning", "Sunday") == []


class TestCategorizeActivity:

    async def test_valid_reply(self):
        service = make_service('{"category": "finance", "points": 12, "confidence": 90}')

        result = await service.categorize_activity("Paid the electric bill")

        assert result.category == "finance"
        assert result.points == 12
        assert result.confidence == 90

    async def test_values_are_clamped(self):
        service = make_service('{"category": "cooking", "points": 40, "confidence": 50}')

        result = await service.categorize_activity("Thanksgiving dinner")

        assert result.points == 15
        assert result.confidence == 80

    async def test_unknown_category_falls_back_to_household(self):
        service = make_service('{"category": "gardening", "points": 6, "confidence": 85}')

        result = await service.categorize_activity("Weeded the garden")

        assert result.category == "household"
        assert result.points == 6

    async def test_failure_fallback(self):
        service = make_service(error=connection_error())

        result = await service.categorize_activity("Anything")

        assert (result.category, result.points, result.confidence) == ("household", 5, 80)

    async def test_non_numeric_points(self):
        service = make_service('{"category": "shopping", "points": "a lot", "confidence": 85}')

        result = await service.categorize_activity("Groceries")

        assert result.category == "shopping"
        assert result.points == 5


class TestAppreciationMessage:

    async def test_returns_model_text(self):
        service = make_service("  Thank you for always picking up the kids!  ")
        assert await service.generate_appreciation_message("School pickup") == (
            "Thank you for always picking up the kids!"
        )

    async def test_empty_reply_falls_back(self):
        service = make_service(None)
        assert await service.generate_appreciation_message("Dishes") == "Thank you for everything you do! ❤️"

    async def test_error_falls_back(self):
        service = make_service(error=connection_error())
        assert await service.generate_appreciation_message("Dishes") == "Thank you for everything you do! ❤️"
