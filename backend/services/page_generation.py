"""
Page generation: LLM first for single pages, deterministic otherwise.

Every answer is tagged with its provenance. When the LLM is not used or
its answer is not trusted, the deterministic builder answers and the
diagnostics say why.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from backend.services.llm_provider import PageLLM
from backend.services.openai_client import LLMCallError
from engine.kernel.generator import build_fallback_page, build_pages, safe_parse_page
from engine.kernel.intents import page_name_hint
from engine.kernel.primitives import validate_page_tree
from engine.kernel.types import PageTree

logger = logging.getLogger(__name__)

Source = Literal["openai", "fallback"]
FallbackReason = Literal["missing_api_key", "missing_prompt", "parse_failed_or_empty", "openai_error"]


@dataclass
class GenerationResult:
    page: PageTree
    source: Source
    reason: FallbackReason | None = None

    @property
    def diagnostics(self) -> dict[str, Any] | None:
        return {"reason": self.reason} if self.reason else None


async def generate_page(llm: PageLLM | None, prompt: str | None, page_name: str | None = None) -> GenerationResult:
    """
    Generate one page for the editor.

    Order of checks: no client configured, empty prompt, LLM failure,
    untrusted answer. The first that applies picks the fallback reason.
    """
    prompt = (prompt or "").strip()
    # A page merely named "Login" must not turn an unrelated edit into an auth page.
    hint = page_name_hint(page_name, prompt)

    if llm is None:
        return _fallback(prompt, hint, "missing_api_key")
    if not prompt:
        return _fallback(prompt, hint, "missing_prompt")

    try:
        raw = await llm.generate_page(prompt, hint)
    except LLMCallError as e:
        logger.warning("LLM call failed, using fallback: %s", e)
        return _fallback(prompt, hint, "openai_error")

    page = _trusted_page(raw)
    if page is None:
        logger.warning("LLM answer rejected, using fallback")
        return _fallback(prompt, hint, "parse_failed_or_empty")

    return GenerationResult(page=page, source="openai")


def generate_pages(prompt: str | None) -> list[PageTree]:
    """Multi-page scaffold. Always deterministic."""
    return build_pages(prompt)


def _trusted_page(raw: Any) -> PageTree | None:
    """Decoded, prop-sanitized page, or None when its structure (node types, ids) is broken."""
    if not raw:
        return None
    try:
        page = safe_parse_page(raw)
    except (TypeError, ValueError) as e:
        logger.warning("LLM page could not be decoded: %s", e)
        return None
    if page is None:
        return None
    errors = validate_page_tree(page.to_dict())
    if errors:
        logger.warning("LLM page is structurally invalid: %s", "; ".join(errors[:5]))
        return None
    return page


def _fallback(prompt: str, page_name: str | None, reason: FallbackReason) -> GenerationResult:
    logger.info("Page generation fallback (%s)", reason)
    return GenerationResult(page=build_fallback_page(prompt, page_name), source="fallback", reason=reason)
