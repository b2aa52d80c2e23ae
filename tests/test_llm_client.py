"""
Tests for the LLM client abstraction and provider factory.
"""
import pytest
from typing import Optional

from src.config import Settings
from src.infrastructure.llm_client import (
    AnthropicLLMClient,
    LLMClient,
    OpenRouterLLMClient,
    get_drafting_llm_client,
)


class CannedLLMClient(LLMClient):
    """Returns a fixed text response."""

    def __init__(self, text: str):
        self._text = text

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> str:
        return self._text


class TestGenerateStructured:

    @pytest.mark.asyncio
    async def test_plain_json(self):
        client = CannedLLMClient('{"days": []}')
        assert await client.generate_structured("prompt") == {"days": []}

    @pytest.mark.asyncio
    async def test_fenced_truncated_json_is_recovered(self):
        client = CannedLLMClient('```json\n{"days": [{"theme": "Forts"')
        assert await client.generate_structured("prompt") == {"days": [{"theme": "Forts"}]}

    @pytest.mark.asyncio
    async def test_unrecoverable_raises_value_error(self):
        client = CannedLLMClient("No itinerary today.")
        with pytest.raises(ValueError):
            await client.generate_structured("prompt")


class TestDraftingClientFactory:

    def test_openrouter_client(self):
        s = Settings(llm_provider="openrouter", openrouter_api_key="or-key", drafting_model="test/model")
        client = get_drafting_llm_client(s)

        assert isinstance(client, OpenRouterLLMClient)
        assert client.model == "test/model"

    def test_anthropic_client(self):
        s = Settings(llm_provider="anthropic", anthropic_api_key="sk-test")
        client = get_drafting_llm_client(s)

        assert isinstance(client, AnthropicLLMClient)
        assert client.model == s.anthropic_model

    def test_missing_key_disables_drafting(self):
        assert get_drafting_llm_client(Settings(llm_provider="openrouter", openrouter_api_key=None)) is None
        assert get_drafting_llm_client(Settings(llm_provider="anthropic", anthropic_api_key=None)) is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_drafting_llm_client(Settings(llm_provider="mystery"))

    def test_openrouter_requires_key(self):
        with pytest.raises(ValueError):
            OpenRouterLLMClient(api_key="", model="test/model")
