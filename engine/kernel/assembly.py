"""
AppSchmiede Kernel — Assembly Layer

Sits between the pure functions (tree engine, widgets, renderer) and the
outside world (page storage). Persistence is "read whole tree, write whole
tree": every operation loads the page document, runs a pure transformation
and writes the result back.

Operations: load, load_or_create, save, patch_node, add_node, remove_node,
move_node, widget_action, render

This is where IO happens. Everything it calls is pure.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from engine.kernel.components import Clock, utc_now
from engine.kernel.primitives import validate_node_patch, validate_page_tree
from engine.kernel.renderer import render_page
from engine.kernel.tree import (
    DuplicateNodeId,
    add_node,
    apply_patch,
    find_node,
    move_node,
    new_editor_node,
    remove_node,
)
from engine.kernel.types import Node, PageTree, RenderOptions, empty_page
from engine.kernel.widgets import dispatch_widget_action

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PageNotFound(Exception):
    """Page does not exist in storage."""


class InvalidPageTree(ValueError):
    """Page document failed structural validation."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class PageStorage:
    """
    Abstract storage interface for whole page documents.
    Implement with Postgres for production, or in-memory for tests.
    """

    async def get(self, project_id: str, page_id: str) -> dict[str, Any] | None:
        """Fetch a page document. Returns None if not found."""
        raise NotImplementedError

    async def put(self, project_id: str, page_id: str, document: dict[str, Any]) -> None:
        """Write a page document, replacing any previous version."""
        raise NotImplementedError

    async def delete(self, project_id: str, page_id: str) -> None:
        raise NotImplementedError


class MemoryStorage(PageStorage):
    """In-memory storage for testing and local development."""

    def __init__(self) -> None:
        self.pages: dict[tuple[str, str], dict[str, Any]] = {}

    async def get(self, project_id: str, page_id: str) -> dict[str, Any] | None:
        document = self.pages.get((project_id, page_id))
        return copy.deepcopy(document) if document is not None else None

    async def put(self, project_id: str, page_id: str, document: dict[str, Any]) -> None:
        self.pages[(project_id, page_id)] = copy.deepcopy(document)

    async def delete(self, project_id: str, page_id: str) -> None:
        self.pages.pop((project_id, page_id), None)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


@dataclass
class MutationResult:
    """The page after an edit, and whether the target node was found."""

    page: PageTree
    applied: bool


class PageAssembly:
    """
    Coordinates storage with the pure tree engine.

    Edits on one page are serialized by a per-page asyncio lock; across
    processes the store is last-write-wins.
    """

    def __init__(self, storage: PageStorage, now: Clock = utc_now) -> None:
        self._storage = storage
        self._now = now
        # Entries vanish once no edit holds or waits on the lock.
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock(self, project_id: str, page_id: str) -> asyncio.Lock:
        key = (project_id, page_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    # -- load --

    async def load(self, project_id: str, page_id: str) -> PageTree:
        document = await self._storage.get(project_id, page_id)
        if document is None:
            raise PageNotFound(f"{project_id}/{page_id}")
        try:
            return PageTree.from_dict(document)
        except ValueError as e:
            raise InvalidPageTree([str(e)]) from e

    async def load_or_create(self, project_id: str, page_id: str) -> PageTree:
        """Load a page, creating and saving an empty one when missing."""
        async with self._lock(project_id, page_id):
            try:
                return await self.load(project_id, page_id)
            except PageNotFound:
                page = empty_page()
                await self._storage.put(project_id, page_id, page.to_dict())
                logger.info("Created empty page %s/%s", project_id, page_id)
                return page

    # -- save --

    async def save(self, project_id: str, page_id: str, document: dict[str, Any] | PageTree) -> PageTree:
        """Validate and write a whole page document."""
        if isinstance(document, PageTree):
            document = document.to_dict()
        errors = validate_page_tree(document)
        if errors:
            raise InvalidPageTree(errors)
        page = PageTree.from_dict(document)
        async with self._lock(project_id, page_id):
            await self._storage.put(project_id, page_id, page.to_dict())
        return page

    # -- edits --

    async def patch_node(self, project_id: str, page_id: str, node_id: str, patch: dict[str, Any]) -> MutationResult:
        errors = validate_node_patch(patch)
        if errors:
            raise InvalidPageTree(errors)
        return await self._mutate(project_id, page_id, lambda tree: apply_patch(tree, node_id, patch))

    async def add_node(
        self,
        project_id: str,
        page_id: str,
        node: Node | str,
        parent_id: str = "root",
    ) -> MutationResult:
        """Append a node (or a fresh toolbox node of the given type) under parent_id."""
        new_node = new_editor_node(node) if isinstance(node, str) else node
        return await self._mutate(project_id, page_id, lambda tree: add_node(tree, new_node, parent_id))

    async def remove_node(self, project_id: str, page_id: str, node_id: str) -> MutationResult:
        return await self._mutate(project_id, page_id, lambda tree: remove_node(tree, node_id))

    async def move_node(self, project_id: str, page_id: str, node_id: str, dx: int, dy: int) -> MutationResult:
        return await self._mutate(project_id, page_id, lambda tree: move_node(tree, node_id, dx, dy))

    async def widget_action(
        self,
        project_id: str,
        page_id: str,
        node_id: str,
        action: str,
        params: dict[str, Any] | None = None,
    ) -> MutationResult:
        """Run a widget transition on node_id and patch its new sub-config in."""

        def transition(tree: Node) -> Node:
            node = find_node(tree, node_id)
            if node is None:
                return tree
            return apply_patch(tree, node_id, dispatch_widget_action(node, action, params, self._now))

        return await self._mutate(project_id, page_id, transition, found=lambda tree: find_node(tree, node_id))

    async def _mutate(
        self,
        project_id: str,
        page_id: str,
        change: Callable[[Node], Node],
        found: Callable[[Node], Any] | None = None,
    ) -> MutationResult:
        async with self._lock(project_id, page_id):
            page = await self.load(project_id, page_id)
            tree = change(page.tree)
            if tree is page.tree:
                applied = found(page.tree) is not None if found else False
                return MutationResult(page=page, applied=applied)
            updated = PageTree(name=page.name, tree=tree, folder=page.folder)
            errors = validate_page_tree(updated.to_dict())
            if errors:
                raise InvalidPageTree(errors)
            await self._storage.put(project_id, page_id, updated.to_dict())
            return MutationResult(page=updated, applied=True)

    # -- render --

    async def render(self, project_id: str, page_id: str, options: RenderOptions | None = None) -> str:
        page = await self.load(project_id, page_id)
        return render_page(page, options or RenderOptions(now=self._now()))


__all__ = [
    "DuplicateNodeId",
    "InvalidPageTree",
    "MemoryStorage",
    "MutationResult",
    "PageAssembly",
    "PageNotFound",
    "PageStorage",
]
