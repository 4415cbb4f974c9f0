"""Request and response shapes for page generation and the page editor."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class GeneratePageResponse(BaseModel):
    """What POST /api/ai/generate-page returns."""

    page: dict[str, Any]
    source: Literal["openai", "fallback"]
    diagnostics: dict[str, Any] | None = None


class GeneratePagesResponse(BaseModel):
    """What POST /api/ai/generate-pages returns."""

    pages: list[dict[str, Any]]


class PageResponse(BaseModel):
    """A stored page document."""

    project_id: str
    page_id: str
    page: dict[str, Any]


class MutationResponse(BaseModel):
    """The page after an edit. applied is False when the target node was not found."""

    page: dict[str, Any]
    applied: bool


class AddNodeRequest(BaseModel):
    """Either a toolbox type (fresh node with editor defaults) or a full node document."""

    model_config = {"extra": "forbid"}

    type: str | None = None
    node: dict[str, Any] | None = None
    parent_id: str = Field(default="root", alias="parentId")


class MoveNodeRequest(BaseModel):
    model_config = {"extra": "forbid"}

    dx: int = 0
    dy: int = 0


class WidgetActionRequest(BaseModel):
    model_config = {"extra": "forbid"}

    action: str = Field(min_length=1, max_length=100)
    params: dict[str, Any] = Field(default_factory=dict)
