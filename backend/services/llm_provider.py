"""
LLM provider factory.

Returns MockLLM when USE_MOCK_LLM=true (tests / UX simulation), an
OpenAIClient when OPENAI_API_KEY is available, and None otherwise so the
generator falls back to its deterministic builders.
"""

from __future__ import annotations

from typing import Protocol

from fastapi import Request

from backend.config import Settings, settings
from backend.services.openai_client import OpenAIClient
from engine.kernel.mock_llm import MockLLM


class PageLLM(Protocol):
    async def generate_page(self, prompt: str, page_name: str | None = None) -> str: ...


class LLMProvider:
    """Builds the configured client once, on first use."""

    def __init__(self, config: Settings = settings):
        self.config = config
        self._client: PageLLM | None = None
        self._resolved = False

    def get(self) -> PageLLM | None:
        """
        Return the configured LLM implementation.

        - USE_MOCK_LLM=true      → MockLLM (deterministic, no API calls)
        - OPENAI_API_KEY set     → OpenAIClient
        - default                → None (deterministic fallback)
        """
        if not self._resolved:
            self._client = self._build()
            self._resolved = True
        return self._client

    def _build(self) -> PageLLM | None:
        if self.config.USE_MOCK_LLM:
            return MockLLM(scenario=self.config.MOCK_LLM_SCENARIO)
        if self.config.OPENAI_API_KEY:
            return OpenAIClient(api_key=self.config.OPENAI_API_KEY, model=self.config.OPENAI_MODEL)
        return None


def get_llm(request: Request) -> PageLLM | None:
    """FastAPI dependency: the app's lazily built LLM client."""
    provider = getattr(request.app.state, "llm_provider", None)
    if provider is None:
        provider = request.app.state.llm_provider = LLMProvider()
    return provider.get()
