import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest

from backend.services.openai_client import SYSTEM_PROMPT, LLMCallError, OpenAIClient, build_user_message


def completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def rate_limit_error() -> openai.RateLimitError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.RateLimitError("slow down", response=httpx.Response(429, request=request), body=None)


def test_user_message_defaults_page_name():
    assert "Seitentitel: Seite." in build_user_message("Ein Shop", None)
    assert "Seitentitel: Kontakt." in build_user_message("Ein Shop", "Kontakt")


@pytest.mark.asyncio
async def test_returns_completion_text():
    """Client should request a JSON object and return the raw text."""
    client = OpenAIClient("fake-key", model="gpt-4o-mini")
    with patch.object(client.client.chat.completions, "create", new=AsyncMock(return_value=completion('{"a": 1}'))) as mock:
        text = await client.generate_page("Ein Shop", "Start")

    assert text == '{"a": 1}'
    call_kwargs = mock.call_args.kwargs
    assert call_kwargs["model"] == "gpt-4o-mini"
    assert call_kwargs["response_format"] == {"type": "json_object"}
    assert call_kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert "Ein Shop" in call_kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_empty_content_is_empty_string():
    client = OpenAIClient("fake-key")
    with patch.object(client.client.chat.completions, "create", new=AsyncMock(return_value=completion(None))):
        assert await client.generate_page("x") == ""


@pytest.mark.asyncio
async def test_retries_transient_errors():
    """One retry on rate limits, then the answer."""
    client = OpenAIClient("fake-key")
    create = AsyncMock(side_effect=[rate_limit_error(), completion("{}")])
    with (
        patch.object(client.client.chat.completions, "create", new=create),
        patch("backend.services.openai_client.asyncio.sleep", new=AsyncMock()),
    ):
        assert await client.generate_page("x") == "{}"
    assert create.await_count == 2


@pytest.mark.asyncio
async def test_retries_exhausted():
    client = OpenAIClient("fake-key")
    create = AsyncMock(side_effect=[rate_limit_error(), rate_limit_error()])
    with (
        patch.object(client.client.chat.completions, "create", new=create),
        patch("backend.services.openai_client.asyncio.sleep", new=AsyncMock()),
        pytest.raises(LLMCallError),
    ):
        await client.generate_page("x")


@pytest.mark.asyncio
async def test_non_retryable_error():
    client = OpenAIClient("fake-key")
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.BadRequestError("bad", response=httpx.Response(400, request=request), body=None)
    create = AsyncMock(side_effect=error)
    with patch.object(client.client.chat.completions, "create", new=create), pytest.raises(LLMCallError):
        await client.generate_page("x")
    assert create.await_count == 1


@pytest.mark.asyncio
async def test_timeout_becomes_call_error():
    """A hanging request is cut off after timeout_seconds."""
    client = OpenAIClient("fake-key", timeout_seconds=0.01)

    async def hang(**kwargs):
        await asyncio.Event().wait()

    with patch.object(client.client.chat.completions, "create", new=hang), pytest.raises(LLMCallError, match="timed out"):
        await client.generate_page("x")
