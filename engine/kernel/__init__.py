"""
AppSchmiede Kernel — the pure engine.

Components:
  tree        — immutable page-tree edits (patch, add, remove, move)
  widgets     — composite widget state machines (time tracking, folders, tasks, ...)
  generator   — deterministic multi-page and single-page builders
  renderer    — page tree → HTML preview, button actions → effects
  assembly    — coordinates the pure functions with page storage (IO)
"""

from engine.kernel.actions import interpret_action
from engine.kernel.assembly import InvalidPageTree, MemoryStorage, PageAssembly, PageNotFound
from engine.kernel.generator import build_fallback_page, build_pages, safe_parse_page
from engine.kernel.primitives import validate_page_tree
from engine.kernel.renderer import render_node, render_page
from engine.kernel.tree import add_node, apply_patch, move_node, remove_node
from engine.kernel.types import Node, PageTree, empty_page
from engine.kernel.widgets import dispatch_widget_action

__all__ = [
    "Node",
    "PageTree",
    "empty_page",
    "validate_page_tree",
    "apply_patch",
    "add_node",
    "remove_node",
    "move_node",
    "dispatch_widget_action",
    "build_pages",
    "build_fallback_page",
    "safe_parse_page",
    "render_node",
    "render_page",
    "interpret_action",
    "InvalidPageTree",
    "MemoryStorage",
    "PageAssembly",
    "PageNotFound",
]
