"""
Tree mutation engine tests.

Covers patch locality (only the path to the target is rebuilt), input
isolation, the no-op contract for missing ids, and the editor operations.
"""

from __future__ import annotations

import copy

import pytest

from engine.kernel.tree import (
    DuplicateNodeId,
    add_node,
    apply_patch,
    find_node,
    iter_nodes,
    move_node,
    new_editor_node,
    remove_node,
)
from engine.kernel.types import Node


def make_tree() -> Node:
    return Node.from_dict(
        {
            "id": "root",
            "type": "container",
            "props": {"bg": "#000"},
            "children": [
                {"id": "title", "type": "text", "x": 10, "y": 20, "props": {"text": "Hallo"}, "style": {"color": "#fff"}},
                {
                    "id": "card",
                    "type": "container",
                    "children": [
                        {"id": "cta", "type": "button", "props": {"label": "Los", "action": "navigate"}},
                        {"id": "email", "type": "input", "props": {"inputType": "email"}},
                    ],
                },
                {"id": "hero", "type": "image", "props": {"src": "a.png"}},
            ],
        }
    )


# ---------------------------------------------------------------------------
# apply_patch
# ---------------------------------------------------------------------------


class TestApplyPatch:
    def test_shallow_merges_props_and_style(self):
        tree = make_tree()
        updated = apply_patch(tree, "title", {"props": {"align": "center"}, "style": {"fontSize": 20}})
        title = find_node(updated, "title")
        assert title.props == {"text": "Hallo", "align": "center"}
        assert title.style == {"color": "#fff", "fontSize": 20}
        assert title.x == 10 and title.y == 20

    def test_replaces_frame_fields(self):
        updated = apply_patch(make_tree(), "hero", {"x": 5, "w": 200})
        hero = find_node(updated, "hero")
        assert (hero.x, hero.w) == (5, 200)

    def test_id_is_never_patched(self):
        updated = apply_patch(make_tree(), "title", {"id": "other", "props": {"text": "Neu"}})
        assert find_node(updated, "title").props["text"] == "Neu"
        assert find_node(updated, "other") is None

    def test_children_replaced_wholesale(self):
        updated = apply_patch(make_tree(), "card", {"children": [{"id": "only", "type": "text"}]})
        card = find_node(updated, "card")
        assert [c.id for c in card.children] == ["only"]
        assert isinstance(card.children[0], Node)

    def test_nested_target(self):
        updated = apply_patch(make_tree(), "cta", {"props": {"label": "Weiter"}})
        assert find_node(updated, "cta").props == {"label": "Weiter", "action": "navigate"}

    def test_missing_target_returns_same_tree(self):
        tree = make_tree()
        assert apply_patch(tree, "does-not-exist", {"x": 1}) is tree

    def test_wrongly_shaped_values_are_skipped(self):
        updated = apply_patch(make_tree(), "title", {"props": "oops", "style": [1], "x": 3})
        title = find_node(updated, "title")
        assert title.props == {"text": "Hallo"}
        assert title.style == {"color": "#fff"}
        assert title.x == 3

    def test_non_node_children_are_dropped(self):
        updated = apply_patch(make_tree(), "card", {"children": ["x", {"id": "only", "type": "text"}]})
        assert [c.id for c in find_node(updated, "card").children] == ["only"]


class TestPatchLocality:
    def test_only_path_to_target_is_rebuilt(self):
        tree = make_tree()
        updated = apply_patch(tree, "cta", {"x": 99})

        assert updated is not tree
        old_card, new_card = tree.children[1], updated.children[1]
        assert new_card is not old_card
        # siblings off the path are shared by reference
        assert updated.children[0] is tree.children[0]
        assert updated.children[2] is tree.children[2]
        assert new_card.children[1] is old_card.children[1]

    def test_every_other_node_is_identical(self):
        tree = make_tree()
        updated = apply_patch(tree, "hero", {"props": {"src": "b.png"}})
        before = {n.id: n for n in iter_nodes(tree)}
        for node in iter_nodes(updated):
            if node.id in ("root", "hero"):
                continue
            assert node is before[node.id]


class TestPatchIsolation:
    def test_input_tree_is_not_modified(self):
        tree = make_tree()
        snapshot = copy.deepcopy(tree.to_dict())
        apply_patch(tree, "title", {"props": {"text": "Geändert"}, "style": {"color": "red"}})
        apply_patch(tree, "card", {"children": []})
        assert tree.to_dict() == snapshot

    def test_patch_dict_is_not_aliased(self):
        patch = {"props": {"text": "A"}}
        updated = apply_patch(make_tree(), "title", patch)
        patch["props"]["text"] = "B"
        assert find_node(updated, "title").props["text"] == "A"


class TestDuplicateIds:
    def test_first_match_in_preorder_wins(self):
        tree = Node.from_dict(
            {
                "id": "root",
                "type": "container",
                "children": [
                    {"id": "box", "type": "container", "children": [{"id": "dup", "type": "text"}]},
                    {"id": "dup", "type": "text"},
                ],
            }
        )
        updated = apply_patch(tree, "dup", {"x": 7})
        assert updated.children[0].children[0].x == 7
        assert updated.children[1].x is None


# ---------------------------------------------------------------------------
# Editor operations
# ---------------------------------------------------------------------------


class TestAddNode:
    def test_appends_to_root_by_default(self):
        node = Node(id="new", type="text")
        updated = add_node(make_tree(), node)
        assert updated.children[-1] is node

    def test_appends_to_nested_parent(self):
        updated = add_node(make_tree(), Node(id="new", type="text"), parent_id="card")
        assert [c.id for c in find_node(updated, "card").children] == ["cta", "email", "new"]

    def test_missing_parent_is_noop(self):
        tree = make_tree()
        assert add_node(tree, Node(id="new", type="text"), parent_id="nope") is tree

    def test_duplicate_id_rejected(self):
        with pytest.raises(DuplicateNodeId):
            add_node(make_tree(), Node(id="cta", type="button"))

    def test_duplicate_inside_subtree_rejected(self):
        subtree = Node(id="wrapper", type="container", children=[Node(id="hero", type="image")])
        with pytest.raises(DuplicateNodeId):
            add_node(make_tree(), subtree)


class TestRemoveNode:
    def test_removes_nested_node(self):
        updated = remove_node(make_tree(), "email")
        assert find_node(updated, "email") is None
        assert find_node(updated, "cta") is not None

    def test_missing_id_returns_same_tree(self):
        tree = make_tree()
        assert remove_node(tree, "ghost") is tree

    def test_root_is_never_removed(self):
        tree = make_tree()
        assert remove_node(tree, "root") is tree


class TestMoveNode:
    def test_moves_by_delta(self):
        title = find_node(move_node(make_tree(), "title", 5, -5), "title")
        assert (title.x, title.y) == (15, 15)

    def test_clamps_at_zero(self):
        title = find_node(move_node(make_tree(), "title", -100, -100), "title")
        assert (title.x, title.y) == (0, 0)

    def test_missing_coordinates_start_at_zero(self):
        hero = find_node(move_node(make_tree(), "hero", 3, 4), "hero")
        assert (hero.x, hero.y) == (3, 4)


class TestNewEditorNode:
    def test_toolbox_defaults(self):
        node = new_editor_node("input", node_id="field")
        assert node.id == "field"
        assert (node.x, node.y, node.w, node.h) == (24, 24, 140, 44)
        assert node.props == {"placeholder": "Eingabe…"}

    def test_image_is_wider(self):
        assert new_editor_node("image").w == 160

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            new_editor_node("carousel")

    def test_props_are_copies(self):
        a = new_editor_node("text")
        a.props["text"] = "changed"
        assert new_editor_node("text").props["text"] == "Neuer Text"
