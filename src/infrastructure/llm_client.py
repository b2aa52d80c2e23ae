"""
Provider-agnostic LLM client abstraction.
Supports multiple providers: OpenRouter (OpenAI-compatible) and Anthropic Claude.
"""
from abc import ABC, abstractmethod
from typing import Optional

import anyio
from openai import OpenAI
from anthropic import AsyncAnthropic

from src.config import settings, Settings
from src.infrastructure.json_recovery import recover_json


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> str:
        """Generate plain text response."""
        pass

    async def generate_structured(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 2048,
    ) -> dict:
        """
        Generate structured JSON response.

        The raw text goes through the JSON recovery parser, so fenced or
        truncated output is still accepted when it can be repaired.

        Raises:
            ValueError: If no JSON object can be recovered
        """
        text_response = await self.generate_text(prompt, system_prompt, max_tokens)

        parsed = recover_json(text_response)
        if parsed is None:
            raise ValueError(f"Failed to parse JSON from LLM response: {text_response[:500]}...")
        return parsed


class OpenRouterLLMClient(LLMClient):
    """
    OpenRouter implementation of LLM client.
    Uses OpenAI-compatible API with custom base_url.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.4,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout_seconds: int = 30,
    ):
        """
        Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            model: Model name (e.g., "meta-llama/llama-3.2-3b-instruct:free")
            temperature: Sampling temperature (0.0-1.0)
            base_url: API base URL
            timeout_seconds: Request timeout
        """
        if not api_key:
            raise ValueError("OpenRouter API key is required. Set OPENROUTER_API_KEY environment variable.")

        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model
        self.temperature = temperature

    def _build_messages(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
    ) -> list[dict]:
        """Build OpenAI-style messages list."""
        messages = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        return messages

    def _sync_chat_completion(self, messages: list[dict], max_tokens: int) -> str:
        """Synchronous chat completion call."""
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=max_tokens,
            stream=False,
        )
        return response.choices[0].message.content or ""

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> str:
        """
        Generate plain text response using OpenRouter.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            max_tokens: Maximum tokens in response

        Returns:
            Generated text string
        """
        messages = self._build_messages(prompt, system_prompt)

        # Run sync OpenAI client in thread to avoid blocking
        return await anyio.to_thread.run_sync(
            lambda: self._sync_chat_completion(messages, max_tokens)
        )


class AnthropicLLMClient(LLMClient):
    """
    Anthropic Claude implementation of LLM client.
    Uses async Anthropic SDK.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: int = 30,
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to settings)
            base_url: Base URL for API (defaults to settings)
            model: Model name (defaults to settings)
            timeout_seconds: Request timeout
        """
        self.api_key = api_key or settings.anthropic_api_key
        self.base_url = base_url or settings.anthropic_base_url
        self.model = model or settings.anthropic_model

        if not self.api_key:
            raise ValueError("Anthropic API key is required. Set ANTHROPIC_API_KEY environment variable.")

        self.client = AsyncAnthropic(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> str:
        """Generate plain text response using Claude."""
        messages = [{"role": "user", "content": prompt}]

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system_prompt or "",
            messages=messages,
        )

        return response.content[0].text


def get_drafting_llm_client(app_settings: Optional[Settings] = None) -> Optional[LLMClient]:
    """
    Factory function for the itinerary drafting LLM client.

    Returns None when the configured provider has no API key, so callers
    can go straight to the deterministic assembler.

    Args:
        app_settings: Optional settings override (for testing)

    Raises:
        ValueError: If the provider name is unknown
    """
    s = app_settings or settings

    if s.llm_provider == "openrouter":
        if not s.openrouter_api_key:
            return None
        return OpenRouterLLMClient(
            api_key=s.openrouter_api_key,
            model=s.drafting_model,
            temperature=s.drafting_temperature,
            base_url=s.openrouter_base_url,
            timeout_seconds=s.llm_timeout_seconds,
        )
    elif s.llm_provider == "anthropic":
        if not s.anthropic_api_key:
            return None
        return AnthropicLLMClient(
            api_key=s.anthropic_api_key,
            base_url=s.anthropic_base_url,
            model=s.anthropic_model,
            timeout_seconds=s.llm_timeout_seconds,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {s.llm_provider}. Use 'openrouter' or 'anthropic'.")
