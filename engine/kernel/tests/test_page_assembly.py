"""
Assembly layer tests.

Load, save and every edit go through MemoryStorage: read whole tree,
transform, write whole tree. Per-page locks serialize concurrent edits.
"""

import asyncio
import gc
from datetime import UTC, datetime

import pytest

from engine.kernel.assembly import (
    DuplicateNodeId,
    InvalidPageTree,
    MemoryStorage,
    PageAssembly,
    PageNotFound,
)
from engine.kernel.tree import find_node
from engine.kernel.types import EMPTY_PAGE_BACKGROUND, Node, PageTree
from engine.kernel.widgets import UnknownWidgetAction

NOW = datetime(2026, 5, 4, 8, 30, tzinfo=UTC)


def make_document() -> dict:
    return {
        "name": "Start",
        "tree": {
            "id": "root",
            "type": "container",
            "props": {"bg": "#000"},
            "children": [
                {"id": "title", "type": "text", "x": 32, "y": 48, "props": {"text": "Hallo"}},
                {
                    "id": "todo",
                    "type": "container",
                    "props": {"component": "todo", "todoItems": [{"id": "t1", "title": "Milch", "done": False}]},
                },
                {
                    "id": "timer",
                    "type": "container",
                    "props": {"component": "time-tracking", "timeTracking": {"entries": []}},
                },
            ],
        },
    }


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def assembly(storage):
    return PageAssembly(storage, now=lambda: NOW)


@pytest.fixture
def saved(assembly, storage):
    storage.pages[("p1", "start")] = PageTree.from_dict(make_document()).to_dict()
    return assembly


# ============================================================================
# Load / create / save
# ============================================================================


class TestLoadAndSave:
    @pytest.mark.asyncio
    async def test_load_missing_raises(self, assembly):
        with pytest.raises(PageNotFound):
            await assembly.load("p1", "nope")

    @pytest.mark.asyncio
    async def test_load_or_create_persists_empty_page(self, assembly, storage):
        page = await assembly.load_or_create("p1", "neu")
        assert page.tree.id == "root"
        assert page.tree.children == []
        assert page.tree.props["bg"] == EMPTY_PAGE_BACKGROUND
        assert ("p1", "neu") in storage.pages

    @pytest.mark.asyncio
    async def test_load_or_create_returns_existing(self, saved):
        page = await saved.load_or_create("p1", "start")
        assert page.name == "Start"
        assert len(page.tree.children) == 3

    @pytest.mark.asyncio
    async def test_save_rejects_invalid_document(self, assembly, storage):
        document = make_document()
        document["tree"]["id"] = "not-root"
        with pytest.raises(InvalidPageTree) as exc_info:
            await assembly.save("p1", "start", document)
        assert any("root" in error for error in exc_info.value.errors)
        assert storage.pages == {}

    @pytest.mark.asyncio
    async def test_save_rejects_duplicate_ids(self, assembly):
        document = make_document()
        document["tree"]["children"].append({"id": "title", "type": "text"})
        with pytest.raises(InvalidPageTree):
            await assembly.save("p1", "start", document)

    @pytest.mark.asyncio
    async def test_storage_is_isolated_from_callers(self, saved, storage):
        page = await saved.load("p1", "start")
        page.tree.children.clear()
        reloaded = await saved.load("p1", "start")
        assert len(reloaded.tree.children) == 3

    @pytest.mark.asyncio
    async def test_corrupt_document_raises_invalid(self, assembly, storage):
        storage.pages[("p1", "kaputt")] = {"name": "x", "tree": "nope"}
        with pytest.raises(InvalidPageTree):
            await assembly.load("p1", "kaputt")


# ============================================================================
# Edits
# ============================================================================


class TestEdits:
    @pytest.mark.asyncio
    async def test_patch_node(self, saved):
        result = await saved.patch_node("p1", "start", "title", {"props": {"text": "Servus"}})
        assert result.applied is True
        reloaded = await saved.load("p1", "start")
        assert find_node(reloaded.tree, "title").props["text"] == "Servus"

    @pytest.mark.asyncio
    async def test_patch_missing_node_not_applied(self, saved, storage):
        before = dict(storage.pages)
        result = await saved.patch_node("p1", "start", "ghost", {"x": 1})
        assert result.applied is False
        assert storage.pages == before

    @pytest.mark.asyncio
    async def test_add_node_by_type(self, saved):
        result = await saved.add_node("p1", "start", "button")
        added = result.page.tree.children[-1]
        assert added.type == "button"
        assert (added.x, added.y) == (24, 24)

    @pytest.mark.asyncio
    async def test_add_node_into_missing_parent(self, saved):
        result = await saved.add_node("p1", "start", Node(id="n1", type="text"), parent_id="ghost")
        assert result.applied is False

    @pytest.mark.asyncio
    async def test_add_duplicate_id_raises(self, saved):
        with pytest.raises(DuplicateNodeId):
            await saved.add_node("p1", "start", Node(id="title", type="text"))

    @pytest.mark.asyncio
    async def test_remove_node(self, saved):
        result = await saved.remove_node("p1", "start", "title")
        assert result.applied is True
        assert find_node(result.page.tree, "title") is None

    @pytest.mark.asyncio
    async def test_move_node_clamps(self, saved):
        result = await saved.move_node("p1", "start", "title", -100, 10)
        moved = find_node(result.page.tree, "title")
        assert (moved.x, moved.y) == (0, 58)

    @pytest.mark.asyncio
    async def test_patch_cannot_break_root(self, saved, storage):
        before = dict(storage.pages)
        with pytest.raises(InvalidPageTree) as exc_info:
            await saved.patch_node("p1", "start", "root", {"type": "text"})
        assert any("container" in error for error in exc_info.value.errors)
        assert storage.pages == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("patch", [{"props": "oops"}, {"style": [1]}, {"children": ["x"]}, "nope"])
    async def test_malformed_patch_raises_invalid(self, saved, storage, patch):
        before = dict(storage.pages)
        with pytest.raises(InvalidPageTree):
            await saved.patch_node("p1", "start", "title", patch)
        assert storage.pages == before

    @pytest.mark.asyncio
    async def test_edit_on_missing_page(self, assembly):
        with pytest.raises(PageNotFound):
            await assembly.patch_node("p1", "ghost", "title", {"x": 1})


# ============================================================================
# Widget actions
# ============================================================================


class TestWidgetActions:
    @pytest.mark.asyncio
    async def test_start_timer_uses_assembly_clock(self, saved):
        result = await saved.widget_action("p1", "start", "timer", "start", {"label": "Meeting"})
        entries = find_node(result.page.tree, "timer").props["timeTracking"]["entries"]
        running = [e for e in entries if e.get("endedAt") is None]
        assert len(running) == 1
        assert running[0]["label"] == "Meeting"
        assert running[0]["startedAt"] == "2026-05-04T08:30:00.000Z"

    @pytest.mark.asyncio
    async def test_toggle_task(self, saved):
        result = await saved.widget_action("p1", "start", "todo", "toggle", {"taskId": "t1"})
        items = find_node(result.page.tree, "todo").props["todoItems"]
        assert items[0]["done"] is True

    @pytest.mark.asyncio
    async def test_missing_node_not_applied(self, saved):
        result = await saved.widget_action("p1", "start", "ghost", "toggle", {"taskId": "t1"})
        assert result.applied is False

    @pytest.mark.asyncio
    async def test_unknown_action_raises(self, saved):
        with pytest.raises(UnknownWidgetAction):
            await saved.widget_action("p1", "start", "title", "toggle")

    @pytest.mark.asyncio
    async def test_concurrent_adds_are_serialized(self, saved):
        await asyncio.gather(
            *(saved.widget_action("p1", "start", "todo", "add", {"title": f"Aufgabe {i}"}) for i in range(5))
        )
        page = await saved.load("p1", "start")
        items = find_node(page.tree, "todo").props["todoItems"]
        assert len(items) == 6


# ============================================================================
# Render
# ============================================================================


class TestRender:
    @pytest.mark.asyncio
    async def test_render_stored_page(self, saved):
        html = await saved.render("p1", "start")
        assert "<title>Start</title>" in html
        assert 'data-node-id="title"' in html
        assert "Milch" in html

    @pytest.mark.asyncio
    async def test_render_missing_page(self, assembly):
        with pytest.raises(PageNotFound):
            await assembly.render("p1", "ghost")


# ============================================================================
# Locks
# ============================================================================


class TestLocks:
    @pytest.mark.asyncio
    async def test_lock_released_after_edits(self, saved):
        for i in range(3):
            await saved.move_node("p1", "start", "title", i, i)
        await saved.load_or_create("p1", "other")
        gc.collect()
        assert len(saved._locks) == 0

    @pytest.mark.asyncio
    async def test_waiters_share_one_lock(self, saved):
        first = saved._lock("p1", "start")
        assert saved._lock("p1", "start") is first
        assert saved._lock("p1", "other") is not first
