"""Page editor routes: load, save, node edits, widget actions and preview."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from backend.models.page import (
    AddNodeRequest,
    MoveNodeRequest,
    MutationResponse,
    PageResponse,
    WidgetActionRequest,
)
from engine.kernel.assembly import InvalidPageTree, MemoryStorage, MutationResult, PageAssembly, PageNotFound
from engine.kernel.primitives import validate_node
from engine.kernel.tree import DuplicateNodeId
from engine.kernel.types import Node
from engine.kernel.widgets import UnknownWidgetAction

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

_PAGE_PATH = "/api/projects/{project_id}/pages/{page_id}"


def get_assembly(request: Request) -> PageAssembly:
    """FastAPI dependency: the app's PageAssembly (in-memory until the lifespan wires Postgres)."""
    assembly = getattr(request.app.state, "assembly", None)
    if assembly is None:
        assembly = request.app.state.assembly = PageAssembly(MemoryStorage())
    return assembly


def _mutation(result: MutationResult) -> MutationResponse:
    return MutationResponse(page=result.page.to_dict(), applied=result.applied)


def _not_found(project_id: str, page_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Page {page_id} not found in project {project_id}.",
    )


def _invalid(errors: list[str]) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)


@router.get(_PAGE_PATH, status_code=200)
async def get_page(
    project_id: str,
    page_id: str,
    assembly: PageAssembly = Depends(get_assembly),
) -> PageResponse:
    """Load a page, creating a fresh empty one when it does not exist yet."""
    try:
        page = await assembly.load_or_create(project_id, page_id)
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e
    return PageResponse(project_id=project_id, page_id=page_id, page=page.to_dict())


@router.put(_PAGE_PATH, status_code=200)
async def save_page(
    project_id: str,
    page_id: str,
    document: dict[str, Any],
    assembly: PageAssembly = Depends(get_assembly),
) -> PageResponse:
    """Replace the whole page document. Structural errors are returned as 422."""
    try:
        page = await assembly.save(project_id, page_id, document)
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e
    return PageResponse(project_id=project_id, page_id=page_id, page=page.to_dict())


@router.patch(_PAGE_PATH + "/nodes/{node_id}", status_code=200)
async def patch_node(
    project_id: str,
    page_id: str,
    node_id: str,
    patch: dict[str, Any],
    assembly: PageAssembly = Depends(get_assembly),
) -> MutationResponse:
    """
    Shallow-merge a patch into one node. A missing node leaves the page
    unchanged; a patch that would break the page is rejected with 422.
    """
    try:
        return _mutation(await assembly.patch_node(project_id, page_id, node_id, patch))
    except PageNotFound as e:
        raise _not_found(project_id, page_id) from e
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e


@router.post(_PAGE_PATH + "/nodes", status_code=201)
async def add_node(
    project_id: str,
    page_id: str,
    req: AddNodeRequest,
    assembly: PageAssembly = Depends(get_assembly),
) -> MutationResponse:
    if req.node is None and req.type is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Provide either type or node.")
    if req.node is not None:
        errors = validate_node(req.node, "node")
        if errors:
            raise _invalid(errors)
    try:
        node = Node.from_dict(req.node) if req.node is not None else req.type
        return _mutation(await assembly.add_node(project_id, page_id, node, req.parent_id))
    except PageNotFound as e:
        raise _not_found(project_id, page_id) from e
    except DuplicateNodeId as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.delete(_PAGE_PATH + "/nodes/{node_id}", status_code=200)
async def delete_node(
    project_id: str,
    page_id: str,
    node_id: str,
    assembly: PageAssembly = Depends(get_assembly),
) -> MutationResponse:
    try:
        return _mutation(await assembly.remove_node(project_id, page_id, node_id))
    except PageNotFound as e:
        raise _not_found(project_id, page_id) from e
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e


@router.post(_PAGE_PATH + "/nodes/{node_id}/move", status_code=200)
async def move_node(
    project_id: str,
    page_id: str,
    node_id: str,
    req: MoveNodeRequest,
    assembly: PageAssembly = Depends(get_assembly),
) -> MutationResponse:
    """Drag a node by (dx, dy); positions clamp at 0."""
    try:
        return _mutation(await assembly.move_node(project_id, page_id, node_id, req.dx, req.dy))
    except PageNotFound as e:
        raise _not_found(project_id, page_id) from e
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e


@router.post(_PAGE_PATH + "/nodes/{node_id}/actions", status_code=200)
async def widget_action(
    project_id: str,
    page_id: str,
    node_id: str,
    req: WidgetActionRequest,
    assembly: PageAssembly = Depends(get_assembly),
) -> MutationResponse:
    """Run a composite-widget transition (e.g. time-tracking start) on one node."""
    try:
        result = await assembly.widget_action(project_id, page_id, node_id, req.action, req.params)
    except PageNotFound as e:
        raise _not_found(project_id, page_id) from e
    except UnknownWidgetAction as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except InvalidPageTree as e:
        raise _invalid(e.errors) from e
    return _mutation(result)


@router.get("/preview/{project_id}/{page_id}", response_class=HTMLResponse)
async def preview_page(
    project_id: str,
    page_id: str,
    assembly: PageAssembly = Depends(get_assembly),
) -> HTMLResponse:
    """Render a stored page as a standalone HTML document."""
    try:
        html = await assembly.render(project_id, page_id)
    except PageNotFound as e:
        raise _not_found(project_id, page_id) from e
    return HTMLResponse(content=html, headers={"X-Content-Type-Options": "nosniff"})
