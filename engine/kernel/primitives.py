"""
AppSchmiede Kernel — Page Tree Validation

Validates page documents before they are trusted by the tree engine or
written to storage. Validation is structural (well-formed?) not semantic
(does the target page exist? does the action make sense?).

Returns lists of error strings. Empty list = valid.
"""

from __future__ import annotations

from typing import Any

from engine.kernel.types import INPUT_TYPES, NODE_TYPES, ROOT_ID

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_page_tree(page: Any) -> list[str]:
    """
    Validate a whole page document ({name, folder?, tree}).

    Checks:
    - the document and its tree are objects
    - the root is a container with the reserved id "root"
    - every node is well-formed (see validate_node)
    - node ids are unique across the whole tree
    """
    errors: list[str] = []

    if not isinstance(page, dict):
        return ["Page must be a non-null object"]

    name = page.get("name")
    if name is not None and not isinstance(name, str):
        errors.append("'name' must be a string")

    folder = page.get("folder")
    if folder is not None and not isinstance(folder, str):
        errors.append("'folder' must be a string or null")

    tree = page.get("tree")
    if not isinstance(tree, dict):
        errors.append("Page requires an object 'tree'")
        return errors

    if tree.get("id") != ROOT_ID:
        errors.append(f"Root node must have id '{ROOT_ID}', got {tree.get('id')!r}")
    if tree.get("type") != "container":
        errors.append(f"Root node must be a container, got {tree.get('type')!r}")

    errors.extend(validate_node(tree))

    seen: set[str] = set()
    for node_id in _walk_ids(tree):
        if node_id in seen:
            errors.append(f"Duplicate node id: {node_id}")
        seen.add(node_id)

    return errors


def validate_node(node: Any, path: str = "tree") -> list[str]:
    """Validate one node dict and, recursively, its children."""
    errors: list[str] = []

    if not isinstance(node, dict):
        return [f"{path}: node must be an object"]

    node_id = node.get("id")
    if not isinstance(node_id, str) or not node_id:
        errors.append(f"{path}: node requires a non-empty string 'id'")

    node_type = node.get("type")
    if node_type not in NODE_TYPES:
        errors.append(f"{path}: unknown node type {node_type!r}")

    for key in ("x", "y", "w", "h"):
        value = node.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int | float)):
            errors.append(f"{path}: '{key}' must be a number")

    for key in ("props", "style"):
        value = node.get(key)
        if value is not None and not isinstance(value, dict):
            errors.append(f"{path}: '{key}' must be an object")

    props = node.get("props") if isinstance(node.get("props"), dict) else {}
    validator = _VALIDATORS.get(node_type)
    if validator:
        errors.extend(f"{path}: {e}" for e in validator(props))

    children = node.get("children")
    if children is not None:
        if not isinstance(children, list):
            errors.append(f"{path}: 'children' must be a list")
        else:
            for i, child in enumerate(children):
                errors.extend(validate_node(child, f"{path}.children[{i}]"))

    return errors


def validate_node_patch(patch: Any) -> list[str]:
    """
    Validate a partial node before it is merged (see tree.merge_node_patch).

    Only the keys present are checked; per-type props are checked on the
    merged tree. Replacement children must be whole, valid nodes.
    """
    if not isinstance(patch, dict):
        return ["Patch must be an object"]

    errors: list[str] = []

    if "type" in patch and patch["type"] not in NODE_TYPES:
        errors.append(f"patch: unknown node type {patch['type']!r}")

    for key in ("x", "y", "w", "h"):
        value = patch.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int | float)):
            errors.append(f"patch: '{key}' must be a number")

    for key in ("props", "style"):
        value = patch.get(key)
        if value is not None and not isinstance(value, dict):
            errors.append(f"patch: '{key}' must be an object")

    children = patch.get("children")
    if children is not None:
        if not isinstance(children, list):
            errors.append("patch: 'children' must be a list")
        else:
            for i, child in enumerate(children):
                errors.extend(validate_node(child, f"patch.children[{i}]"))

    return errors


# ---------------------------------------------------------------------------
# Per-type prop validators
# ---------------------------------------------------------------------------


def _validate_text(p: dict) -> list[str]:
    if "text" in p and not isinstance(p["text"], str):
        return ["text.text must be a string"]
    return []


def _validate_button(p: dict) -> list[str]:
    errors: list[str] = []
    if "label" in p and not isinstance(p["label"], str):
        errors.append("button.label must be a string")
    # Unknown actions are allowed here; the action interpreter logs and ignores them.
    if "action" in p and p["action"] is not None and not isinstance(p["action"], str):
        errors.append("button.action must be a string")
    return errors


def _validate_input(p: dict) -> list[str]:
    input_type = p.get("inputType")
    if input_type is not None and input_type not in INPUT_TYPES:
        return [f"input.inputType must be one of {sorted(INPUT_TYPES)}"]
    return []


def _validate_image(p: dict) -> list[str]:
    if "src" in p and p["src"] is not None and not isinstance(p["src"], str):
        return ["image.src must be a string"]
    return []


def _validate_container(p: dict) -> list[str]:
    if "component" in p and p["component"] is not None and not isinstance(p["component"], str):
        return ["container.component must be a string"]
    return []


_VALIDATORS = {
    "text": _validate_text,
    "button": _validate_button,
    "input": _validate_input,
    "image": _validate_image,
    "container": _validate_container,
}


def _walk_ids(node: dict):
    node_id = node.get("id")
    if isinstance(node_id, str):
        yield node_id
    children = node.get("children")
    if isinstance(children, list):
        for child in children:
            if isinstance(child, dict):
                yield from _walk_ids(child)
