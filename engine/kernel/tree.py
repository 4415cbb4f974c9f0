"""
AppSchmiede Kernel — Tree Mutation Engine

Pure functions over the Node tree: (tree, target, change) → tree.
No side effects. No IO. The input tree is never modified.

Structural sharing: only the nodes on the path from the root to the target
are rebuilt. Every other subtree is returned by reference, so callers can
detect changes with `is`. When the target does not exist the original tree
object comes back unchanged; this is a no-op, not an error.

Known limitation: ids are expected to be globally unique. If a tree does
contain duplicate ids, only the first match in pre-order traversal is
touched. add_node refuses to create duplicates.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import replace
from typing import Any

from engine.kernel.types import NODE_TYPES, ROOT_ID, Node, new_id

PATCHABLE_FIELDS = ("type", "x", "y", "w", "h")

EDITOR_DEFAULT_PROPS: dict[str, dict[str, Any]] = {
    "text": {"text": "Neuer Text", "align": "left", "color": "#ffffff", "size": 16},
    "button": {"label": "Button", "variant": "primary"},
    "image": {"src": "https://placehold.co/320x180/1e293b/fff?text=Bild"},
    "input": {"placeholder": "Eingabe…"},
    "container": {},
}


class DuplicateNodeId(ValueError):
    """A node with this id already exists in the tree."""


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def iter_nodes(tree: Node) -> Iterator[Node]:
    """All nodes in pre-order (the order patches search in)."""
    yield tree
    for child in tree.children or ():
        yield from iter_nodes(child)


def find_node(tree: Node, node_id: str) -> Node | None:
    """First node with this id in pre-order, or None."""
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


# ---------------------------------------------------------------------------
# Patching
# ---------------------------------------------------------------------------


def merge_node_patch(node: Node, patch: dict[str, Any]) -> Node:
    """
    Merge a partial node into `node`.

    props and style are shallow-merged, children replaced wholesale when
    present, frame/type fields replaced when present. The id is never patched.
    Values of the wrong shape are skipped; validate_node_patch reports them.
    """
    changes: dict[str, Any] = {key: patch[key] for key in PATCHABLE_FIELDS if key in patch}
    if isinstance(patch.get("props"), dict):
        changes["props"] = {**node.props, **patch["props"]}
    if isinstance(patch.get("style"), dict):
        changes["style"] = {**node.style, **patch["style"]}
    if isinstance(patch.get("children"), list):
        changes["children"] = [_as_node(c) for c in patch["children"] if isinstance(c, dict | Node)]
    return replace(node, **changes)


def apply_patch(tree: Node, target_id: str, patch: dict[str, Any]) -> Node:
    """Patch the node `target_id`; see merge_node_patch for merge rules."""
    return update_node(tree, target_id, lambda node: merge_node_patch(node, patch))


def update_node(tree: Node, target_id: str, fn: Callable[[Node], Node]) -> Node:
    """
    Replace the first node with `target_id` by fn(node), rebuilding only the
    path to it. Returns `tree` itself when the id is absent or fn is a no-op.
    """
    updated, _ = _update(tree, target_id, fn)
    return updated


def _update(node: Node, target_id: str, fn: Callable[[Node], Node]) -> tuple[Node, bool]:
    if node.id == target_id:
        return fn(node), True
    children = node.children
    if not children:
        return node, False
    for i, child in enumerate(children):
        updated, found = _update(child, target_id, fn)
        if found:
            if updated is child:
                return node, True
            next_children = list(children)
            next_children[i] = updated
            return replace(node, children=next_children), True
    return node, False


# ---------------------------------------------------------------------------
# Editor operations
# ---------------------------------------------------------------------------


def add_node(tree: Node, node: Node, parent_id: str = ROOT_ID) -> Node:
    """Append `node` to the children of `parent_id`. Missing parent → no-op."""
    existing = {n.id for n in iter_nodes(tree)}
    for incoming in iter_nodes(node):
        if incoming.id in existing:
            raise DuplicateNodeId(incoming.id)
        existing.add(incoming.id)
    return update_node(tree, parent_id, lambda parent: replace(parent, children=[*(parent.children or []), node]))


def remove_node(tree: Node, node_id: str) -> Node:
    """Remove the first node with `node_id`. The root itself is never removed."""
    children = tree.children
    if not children:
        return tree
    for i, child in enumerate(children):
        if child.id == node_id:
            return replace(tree, children=[*children[:i], *children[i + 1 :]])
        updated = remove_node(child, node_id)
        if updated is not child:
            next_children = list(children)
            next_children[i] = updated
            return replace(tree, children=next_children)
    return tree


def move_node(tree: Node, node_id: str, dx: int, dy: int) -> Node:
    """Shift a node by (dx, dy); coordinates never go below 0."""
    return update_node(
        tree,
        node_id,
        lambda n: replace(n, x=max(0, (n.x or 0) + dx), y=max(0, (n.y or 0) + dy)),
    )


def new_editor_node(node_type: str, node_id: str | None = None) -> Node:
    """A toolbox node with the editor's starter props, dropped at (24, 24)."""
    if node_type not in NODE_TYPES:
        raise ValueError(f"Unknown node type: {node_type}")
    return Node(
        id=node_id or new_id(),
        type=node_type,
        x=24,
        y=24,
        w=160 if node_type == "image" else 140,
        h=44 if node_type == "input" else 40,
        props=dict(EDITOR_DEFAULT_PROPS[node_type]),
    )


def _as_node(value: Node | dict[str, Any]) -> Node:
    return value if isinstance(value, Node) else Node.from_dict(value)
