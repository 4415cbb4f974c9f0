"""
AppSchmiede Kernel — Layout Primitives

Node construction with frame defaults, the one-pass vertical stack layout
and the checksum-based palette/background pick shared by the generators.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from engine.kernel.types import (
    DEFAULT_HEIGHTS,
    DEFAULT_WIDTHS,
    DEFAULT_X,
    DEFAULT_Y,
    ROOT_ID,
    Node,
    PageTree,
    new_id,
)

T = TypeVar("T")

NAVBAR_X = 24

# The single-page generator sizes containers larger than the multi-page one.
SINGLE_PAGE_WIDTHS: dict[str, int] = {**DEFAULT_WIDTHS, "container": 320}
SINGLE_PAGE_HEIGHTS: dict[str, int] = {**DEFAULT_HEIGHTS, "container": 200}


@dataclass(frozen=True)
class Palette:
    background: str
    highlight: str


PALETTES: tuple[Palette, ...] = (
    Palette("linear-gradient(135deg, #091322, #16263B)", "#38BDF8"),
    Palette("linear-gradient(135deg, #0F172A, #312E81)", "#818CF8"),
    Palette("linear-gradient(135deg, #111827, #1F2937)", "#F472B6"),
    Palette("linear-gradient(135deg, #0B1120, #1B1F3B)", "#34D399"),
)

ACCENT_PALETTE = Palette("linear-gradient(150deg, #16040b, #330b1b, #5a0f2c, #a8164a)", "#FF7AB8")

ACCENT_KEYWORDS = re.compile(r"sexy|romant|passion|verf(?:\w*)|glam|pink", re.IGNORECASE)

BACKGROUNDS: tuple[str, ...] = (
    "linear-gradient(135deg,#0b1220,#14263d)",
    "linear-gradient(135deg,#10172a,#1f2c46)",
    "linear-gradient(145deg,#0c111d,#1c1f36)",
    "linear-gradient(150deg,#07121f,#122131)",
)


# ---------------------------------------------------------------------------
# Palette selection
# ---------------------------------------------------------------------------


def checksum(seed: str) -> int:
    return sum(ord(c) for c in seed)


def checksum_pick(seed: str, options: Sequence[T]) -> T:
    """Same seed, same pick. Seeds whose checksums differ by len(options) collide."""
    return options[checksum(seed) % len(options)]


def pick_palette(prompt: str | None) -> Palette:
    prompt = prompt or ""
    if ACCENT_KEYWORDS.search(prompt):
        return ACCENT_PALETTE
    if not prompt:
        return PALETTES[0]
    return checksum_pick(prompt, PALETTES)


def pick_background(seed: str = "login") -> str:
    return checksum_pick(seed, BACKGROUNDS)


# ---------------------------------------------------------------------------
# Nodes and stacking
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StackEntry:
    """One row of a vertical stack; width/height override the type defaults."""

    type: str
    props: dict[str, Any] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    width: int | None = None
    height: int | None = None


def make_node(
    node_type: str,
    *,
    x: int | None = None,
    y: int | None = None,
    w: int | None = None,
    h: int | None = None,
    props: dict[str, Any] | None = None,
    style: dict[str, Any] | None = None,
    children: list[Node] | None = None,
    widths: dict[str, int] = DEFAULT_WIDTHS,
    heights: dict[str, int] = DEFAULT_HEIGHTS,
) -> Node:
    """A node with a fresh id and every frame value filled in."""
    return Node(
        id=new_id(),
        type=node_type,
        x=x if x is not None else DEFAULT_X,
        y=y if y is not None else DEFAULT_Y,
        w=w if w is not None else widths[node_type],
        h=h if h is not None else heights[node_type],
        props=dict(props or {}),
        style=dict(style or {}),
        children=children,
    )


def stack_nodes(
    entries: Iterable[StackEntry | None],
    start_y: int = 48,
    gap: int = 24,
    widths: dict[str, int] = DEFAULT_WIDTHS,
    heights: dict[str, int] = DEFAULT_HEIGHTS,
) -> list[Node]:
    """
    One-pass flow layout: each node sits `gap` below the previous one.
    None entries are skipped. Navbars are inset to x=24; no overlap
    resolution, no wrapping.
    """
    cursor = start_y
    nodes: list[Node] = []
    for entry in entries:
        if entry is None:
            continue
        node = make_node(
            entry.type,
            x=NAVBAR_X if entry.props.get("component") == "navbar" else None,
            y=cursor,
            w=entry.width,
            h=entry.height,
            props=entry.props,
            style=entry.style,
            widths=widths,
            heights=heights,
        )
        cursor += node.h + gap
        nodes.append(node)
    return nodes


def bottom_of(nodes: Sequence[Node], default_y: int, default_h: int = 60) -> int:
    """y + h of the last node, for starting the next stack below it."""
    if not nodes:
        return default_y + default_h
    last = nodes[-1]
    return (last.y if last.y is not None else default_y) + (last.h if last.h is not None else default_h)


def page(name: str, background: str, children: list[Node], folder: str | None = None) -> PageTree:
    return PageTree(
        name=name,
        folder=folder,
        tree=Node(id=ROOT_ID, type="container", props={"bg": background}, children=children),
    )
