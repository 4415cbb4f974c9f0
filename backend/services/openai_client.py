"""OpenAI chat-completions client for single-page layout generation."""

from __future__ import annotations

import asyncio
import logging

import openai

from backend.config import settings

logger = logging.getLogger(__name__)

# Transient error types that warrant a retry
_RETRYABLE_OPENAI = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
)

SYSTEM_PROMPT = (
    "Du bist ein Layout-Generator für eine No-Code-App (AppSchmiede). "
    "Antworte ausschließlich mit JSON im Format "
    '{"name": string, "tree": {"id": "root", "type": "container", "props": {...}, "children": [...]}}. '
    "Erlaubte Knotentypen: text, button, image, input, container. "
    "Jeder Knoten hat id, type, x, y, w, h und optional props und style. "
    "Der Rahmen ist 414x896 Pixel groß; platziere alle Elemente innerhalb davon. "
    "Buttons tragen props.label und props.action "
    "(navigate, url, login, register, reset-password, logout, chat, call, email, "
    "upload-photo, record-audio, toggle-theme, support-ticket). "
    "Inputs tragen props.placeholder und props.inputType (text, email, password, number, tel, checkbox). "
    "Container können props.component setzen (z. B. navbar, time-tracking, todo, calendar, map, chat)."
)


class LLMCallError(Exception):
    """The OpenAI call failed, timed out, or returned nothing usable."""


def build_user_message(prompt: str, page_name: str | None) -> str:
    return (
        f"Baue eine Seite für: {prompt}. Seitentitel: {page_name or 'Seite'}. "
        "Nutze ein modernes, mobiles Layout mit klarer Hierarchie."
    )


class OpenAIClient:
    """
    Thin wrapper over openai.AsyncOpenAI.

    generate_page returns the raw JSON text of the completion; parsing and
    shape checks are the caller's job.
    """

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        timeout_seconds: float | None = None,
        client: openai.AsyncOpenAI | None = None,
    ):
        self.client = client or openai.AsyncOpenAI(api_key=api_key)
        self.model = model or settings.OPENAI_MODEL
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.LLM_TIMEOUT_SECONDS

    async def generate_page(self, prompt: str, page_name: str | None = None, max_retries: int = 1) -> str:
        """
        Ask the model for a page document.

        Args:
            prompt: What the user wants to build
            page_name: Optional page title
            max_retries: Retries on transient failures (default 1)

        Returns:
            The completion text (expected to be a JSON object)

        Raises:
            LLMCallError: On API errors, exhausted retries or timeout
        """
        try:
            return await asyncio.wait_for(
                self._complete(prompt, page_name, max_retries),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            logger.warning("OpenAI call timed out after %ss", self.timeout_seconds)
            raise LLMCallError(f"timed out after {self.timeout_seconds}s") from e

    async def _complete(self, prompt: str, page_name: str | None, max_retries: int) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_message(prompt, page_name)},
        ]
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=settings.LLM_TEMPERATURE,
                    max_tokens=settings.LLM_MAX_TOKENS,
                    response_format={"type": "json_object"},
                )
                return response.choices[0].message.content or ""
            except _RETRYABLE_OPENAI as e:
                last_error = e
                if attempt < max_retries:
                    wait_time = 2**attempt
                    logger.warning("OpenAI API error (attempt %d), retrying in %ds: %s", attempt + 1, wait_time, e)
                    await asyncio.sleep(wait_time)
                else:
                    logger.error("OpenAI API error, retries exhausted: %s", e)
            except openai.APIError as e:
                logger.error("OpenAI API error: %s", e)
                raise LLMCallError(str(e)) from e

        raise LLMCallError(str(last_error)) from last_error
