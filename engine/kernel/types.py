"""
AppSchmiede Kernel — Shared Types

Data classes used across primitives, tree, widgets, generator and renderer.
These are the contracts that bind the kernel together.

Wire format is the editor's JSON document (camelCase keys). Every data class
here round-trips through to_dict / from_dict, and from_dict is lenient:
missing or malformed fields get safe defaults instead of raising.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Node vocabulary
# ---------------------------------------------------------------------------

ROOT_ID = "root"

NODE_TYPES: set[str] = {"text", "button", "image", "input", "container"}

DEFAULT_WIDTHS: dict[str, int] = {
    "text": 296,
    "button": 240,
    "image": 296,
    "input": 296,
    "container": 296,
}

DEFAULT_HEIGHTS: dict[str, int] = {
    "text": 60,
    "button": 52,
    "image": 180,
    "input": 52,
    "container": 160,
}

DEFAULT_X = 32
DEFAULT_Y = 48

BUTTON_ACTIONS: set[str] = {
    "navigate",
    "url",
    "login",
    "register",
    "reset-password",
    "logout",
    "chat",
    "call",
    "email",
    "upload-photo",
    "record-audio",
    "toggle-theme",
    "support-ticket",
}

INPUT_TYPES: set[str] = {"text", "email", "password", "number", "tel", "checkbox"}

COMPONENT_KINDS: set[str] = {
    "navbar",
    "chat",
    "ai-chat",
    "time-tracking",
    "folder-structure",
    "task-manager",
    "todo",
    "support",
    "calendar",
    "map",
    "video-player",
    "audio-recorder",
    "game-dice",
    "game-tictactoe",
    "game-snake",
    "qr-code",
    "analytics",
    "avatar-creator",
    "table",
    "news",
}

# Background of the preview frame when the root has none
DEFAULT_PAGE_BACKGROUND = "linear-gradient(140deg,#0b0b0f,#111827)"
# Background of a freshly created, empty editor page
EMPTY_PAGE_BACKGROUND = "#0b1220"


# ---------------------------------------------------------------------------
# Node model
# ---------------------------------------------------------------------------


@dataclass
class Node:
    """
    A single visual element in a page tree.

    x/y/w/h are optional; frame() resolves the type-specific defaults.
    children is None for leaves and a list for containers that nest.
    """

    id: str
    type: str
    x: int | None = None
    y: int | None = None
    w: int | None = None
    h: int | None = None
    props: dict[str, Any] = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    children: list[Node] | None = None

    def frame(self) -> tuple[int, int, int, int]:
        """(x, y, w, h) with type defaults applied where omitted."""
        return (
            self.x if self.x is not None else DEFAULT_X,
            self.y if self.y is not None else DEFAULT_Y,
            self.w if self.w is not None else DEFAULT_WIDTHS.get(self.type, 120),
            self.h if self.h is not None else DEFAULT_HEIGHTS.get(self.type, 40),
        )

    @property
    def component(self) -> str | None:
        """The composite discriminator for containers, else None."""
        if self.type != "container":
            return None
        value = self.props.get("component")
        return value if isinstance(value, str) and value else None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "type": self.type}
        for key in ("x", "y", "w", "h"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        d["props"] = self.props
        d["style"] = self.style
        if self.children is not None:
            d["children"] = [child.to_dict() for child in self.children]
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Node:
        raw_children = d.get("children")
        children = None
        if isinstance(raw_children, list):
            children = [cls.from_dict(c) for c in raw_children if isinstance(c, dict)]
        return cls(
            id=str(d.get("id") or new_id()),
            type=str(d.get("type") or "container"),
            x=_int_or_none(d.get("x")),
            y=_int_or_none(d.get("y")),
            w=_int_or_none(d.get("w", d.get("width"))),
            h=_int_or_none(d.get("h", d.get("height"))),
            props=dict(d["props"]) if isinstance(d.get("props"), dict) else {},
            style=dict(d["style"]) if isinstance(d.get("style"), dict) else {},
            children=children,
        )


@dataclass
class PageTree:
    """A named, optionally foldered page wrapping one root container."""

    name: str
    tree: Node
    folder: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "folder": self.folder,
            "tree": self.tree.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PageTree:
        tree = d.get("tree")
        if not isinstance(tree, dict):
            raise ValueError("PageTree requires an object 'tree'")
        name = d.get("name")
        folder = d.get("folder")
        return cls(
            name=name.strip() if isinstance(name, str) and name.strip() else "Seite",
            tree=Node.from_dict(tree),
            folder=folder if isinstance(folder, str) else None,
        )


def empty_page(name: str = "Neue Seite") -> PageTree:
    """The page the editor starts from: a bare root container."""
    return PageTree(
        name=name,
        tree=Node(id=ROOT_ID, type="container", props={"bg": EMPTY_PAGE_BACKGROUND}, children=[]),
    )


# ---------------------------------------------------------------------------
# Composite widget items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeEntry:
    """One tracked session. Running while ended_at is None."""

    id: str
    label: str
    seconds: int = 0
    started_at: str | None = None
    ended_at: str | None = None

    @property
    def running(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "label": self.label, "seconds": self.seconds}
        if self.started_at is not None:
            d["startedAt"] = self.started_at
        if self.ended_at is not None:
            d["endedAt"] = self.ended_at
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TimeEntry:
        seconds = d.get("seconds")
        return cls(
            id=d["id"] if isinstance(d.get("id"), str) else new_id(),
            label=d.get("label") or "Task",
            seconds=int(seconds) if isinstance(seconds, int | float) and not isinstance(seconds, bool) else 0,
            started_at=d.get("startedAt") or None,
            ended_at=d.get("endedAt") or None,
        )


@dataclass(frozen=True)
class FolderNode:
    id: str
    name: str
    children: tuple[FolderNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "children": [c.to_dict() for c in self.children]}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FolderNode:
        raw = d.get("children")
        children = tuple(cls.from_dict(c) for c in raw if isinstance(c, dict)) if isinstance(raw, list) else ()
        return cls(
            id=d["id"] if isinstance(d.get("id"), str) else new_id(),
            name=d.get("name") or "Ordner",
            children=children,
        )


@dataclass(frozen=True)
class TaskItem:
    id: str
    title: str
    done: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "done": self.done}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TaskItem:
        return cls(
            id=d["id"] if isinstance(d.get("id"), str) else new_id(),
            title=d.get("title") or "Aufgabe",
            done=bool(d.get("done")),
        )


@dataclass(frozen=True)
class AudioNote:
    id: str
    label: str
    created_at: str
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "createdAt": self.created_at, "url": self.url}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AudioNote:
        return cls(
            id=d["id"] if isinstance(d.get("id"), str) else new_id(),
            label=d.get("label") or "Notiz",
            created_at=d.get("createdAt") or now_iso(),
            url=d.get("url") or "",
        )


@dataclass(frozen=True)
class SupportTicket:
    id: str
    subject: str
    message: str
    created_at: str
    channel: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "message": self.message,
            "createdAt": self.created_at,
            "channel": self.channel,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SupportTicket:
        return cls(
            id=d["id"] if isinstance(d.get("id"), str) else new_id(),
            subject=d.get("subject") or "",
            message=d.get("message") or "",
            created_at=d.get("createdAt") or now_iso(),
            channel=d.get("channel") or "ticket",
        )


@dataclass(frozen=True)
class NavbarItem:
    id: str
    label: str
    action: str = "navigate"
    target: str | None = None
    target_page: str | None = None
    url: str | None = None
    icon: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "label": self.label, "action": self.action}
        if self.target is not None:
            d["target"] = self.target
        if self.target_page is not None:
            d["targetPage"] = self.target_page
        if self.url is not None:
            d["url"] = self.url
        if self.icon is not None:
            d["icon"] = self.icon
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> NavbarItem:
        return cls(
            id=d["id"] if isinstance(d.get("id"), str) else new_id(),
            label=d.get("label") or "Link",
            action=d.get("action") or "navigate",
            target=d.get("target"),
            target_page=d.get("targetPage"),
            url=d.get("url"),
            icon=d.get("icon"),
        )


# ---------------------------------------------------------------------------
# Rendering / interpretation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionEffect:
    """
    What a button press should do, as data.

    kind: "open" (href), "alert" (message), "file-picker", "record-audio",
    "toggle-theme" or "ignore".
    """

    kind: str
    action: str | None = None
    href: str | None = None
    message: str | None = None


@dataclass
class RenderOptions:
    """Options controlling what the renderer includes in output."""

    now: datetime | None = None  # live clock for running timers; None = real time
    frame_width: int = 414
    frame_height: int = 896
    title: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id() -> str:
    """Fresh opaque node/item id."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return to_iso(datetime.now(UTC))


def to_iso(value: datetime) -> str:
    """UTC timestamp with milliseconds, e.g. 2026-03-02T09:00:00.000Z."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC. None on garbage."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return int(round(value))
