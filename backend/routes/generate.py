"""AI layout routes: single page (LLM with fallback) and multi-page scaffold."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from backend.models.page import GeneratePageResponse, GeneratePagesResponse
from backend.services.llm_provider import PageLLM, get_llm
from backend.services.page_generation import generate_page, generate_pages

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


async def _read_body(request: Request) -> dict[str, Any]:
    """Decode a JSON object body. Anything else reads as an empty body."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        logger.info("Ignoring malformed JSON body on %s", request.url.path)
        return {}
    return body if isinstance(body, dict) else {}


def _string_field(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    return value if isinstance(value, str) else None


@router.post("/generate-page", status_code=200)
async def generate_single_page(
    request: Request,
    llm: PageLLM | None = Depends(get_llm),
) -> GeneratePageResponse:
    """
    Generate one page from a prompt.

    Tries the LLM when one is configured and the prompt is non-empty;
    otherwise (or when its answer is unusable) the deterministic builder
    answers and `diagnostics.reason` says why.
    """
    body = await _read_body(request)
    result = await generate_page(llm, _string_field(body, "prompt"), _string_field(body, "pageName"))
    return GeneratePageResponse(
        page=result.page.to_dict(),
        source=result.source,
        diagnostics=result.diagnostics,
    )


@router.post("/generate-pages", status_code=200)
async def generate_multiple_pages(request: Request) -> GeneratePagesResponse:
    """Generate the multi-page scaffold for a prompt. Always deterministic."""
    body = await _read_body(request)
    pages = generate_pages(_string_field(body, "prompt"))
    return GeneratePagesResponse(pages=[p.to_dict() for p in pages])
