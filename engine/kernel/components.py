"""
AppSchmiede Kernel — Composite Component Configs

A container's `props.component` selects one of the composite widget kinds.
parse_component(props) turns the open prop bag into one typed config per
kind (a tagged union over `kind`). Parsing never raises: missing or
malformed configs get the same safe defaults the preview shows.

Kinds that carry no config of their own (chat, games, analytics, ...)
parse to SimpleComponent. Anything not in COMPONENT_KINDS parses to
UnknownComponent, which keeps the raw props for forward compatibility.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any

from engine.kernel.types import (
    COMPONENT_KINDS,
    AudioNote,
    FolderNode,
    NavbarItem,
    SupportTicket,
    TaskItem,
    TimeEntry,
    parse_iso,
    to_iso,
)

DEFAULT_SUPPORT_TARGET = "support@appschmiede.dev"
DEFAULT_MAP_LOCATION = "Berlin, Germany"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Config variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NavbarConfig:
    items: tuple[NavbarItem, ...]
    support_target: str | None = None
    kind: str = "navbar"


@dataclass(frozen=True)
class TimeTrackingConfig:
    entries: tuple[TimeEntry, ...]
    kind: str = "time-tracking"


@dataclass(frozen=True)
class FolderStructureConfig:
    folders: tuple[FolderNode, ...]
    kind: str = "folder-structure"


@dataclass(frozen=True)
class TaskListConfig:
    """Shared by task-manager (props.tasks) and todo (props.todoItems)."""

    tasks: tuple[TaskItem, ...]
    kind: str = "task-manager"

    @property
    def props_key(self) -> str:
        return TASK_LIST_KEYS[self.kind]

    @property
    def title(self) -> str:
        return TASK_LIST_TITLES[self.kind]


@dataclass(frozen=True)
class SupportConfig:
    tickets: tuple[SupportTicket, ...]
    channel: str = "ticket"
    target: str = DEFAULT_SUPPORT_TARGET
    kind: str = "support"


@dataclass(frozen=True)
class CalendarConfig:
    focus: date
    kind: str = "calendar"


@dataclass(frozen=True)
class AudioRecorderConfig:
    notes: tuple[AudioNote, ...]
    kind: str = "audio-recorder"


@dataclass(frozen=True)
class MapConfig:
    location: str = DEFAULT_MAP_LOCATION
    pins: tuple[str, ...] = ()
    kind: str = "map"


@dataclass(frozen=True)
class VideoConfig:
    url: str | None = None
    kind: str = "video-player"


@dataclass(frozen=True)
class QrConfig:
    url: str | None = None
    kind: str = "qr-code"


@dataclass(frozen=True)
class TableConfig:
    title: str = "Tabelle"
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    kind: str = "table"


@dataclass(frozen=True)
class NewsItem:
    id: str
    title: str
    body: str = ""
    image_url: str | None = None
    date: str | None = None


@dataclass(frozen=True)
class NewsConfig:
    title: str = "News"
    items: tuple[NewsItem, ...] = ()
    kind: str = "news"


@dataclass(frozen=True)
class SimpleComponent:
    """A known kind with no config of its own (chat, games, analytics, ...)."""

    kind: str


@dataclass(frozen=True)
class UnknownComponent:
    kind: str
    props: dict[str, Any] = field(default_factory=dict)


ComponentConfig = (
    NavbarConfig
    | TimeTrackingConfig
    | FolderStructureConfig
    | TaskListConfig
    | SupportConfig
    | CalendarConfig
    | AudioRecorderConfig
    | MapConfig
    | VideoConfig
    | QrConfig
    | TableConfig
    | NewsConfig
    | SimpleComponent
    | UnknownComponent
)

TASK_LIST_KEYS = {"task-manager": "tasks", "todo": "todoItems"}
TASK_LIST_TITLES = {"task-manager": "Tasks", "todo": "Todo-Liste"}


# ---------------------------------------------------------------------------
# Normalizers (safe defaults)
# ---------------------------------------------------------------------------


DEFAULT_OWNER = "component"


def demo_id(owner: str, n: int) -> str:
    """Stable id for the n-th demo item of the component node `owner`."""
    return f"{owner}-demo-{n}"


def ensure_nav_items(raw: Any, owner: str = DEFAULT_OWNER) -> tuple[NavbarItem, ...]:
    if isinstance(raw, list) and raw:
        return tuple(NavbarItem.from_dict(item) for item in raw if isinstance(item, dict))
    return (
        NavbarItem(id=demo_id(owner, 1), label="Dashboard", action="navigate", target="#dashboard"),
        NavbarItem(id=demo_id(owner, 2), label="Kontakt", action="navigate", target="#contact"),
    )


def ensure_time_entries(raw: Any, now: Clock = utc_now, owner: str = DEFAULT_OWNER) -> tuple[TimeEntry, ...]:
    current = now()
    if not isinstance(raw, list) or not raw:
        return (
            TimeEntry(
                id=demo_id(owner, 1),
                label="Demo Task",
                seconds=1800,
                started_at=to_iso(current - timedelta(seconds=1800)),
                ended_at=to_iso(current),
            ),
        )
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        entry = TimeEntry.from_dict(item)
        if entry.started_at is None:
            entry = TimeEntry(entry.id, entry.label, entry.seconds, to_iso(current), entry.ended_at)
        entries.append(entry)
    return tuple(entries)


def ensure_folder_tree(raw: Any, owner: str = DEFAULT_OWNER) -> tuple[FolderNode, ...]:
    if isinstance(raw, list):
        folders = tuple(FolderNode.from_dict(item) for item in raw if isinstance(item, dict))
        if folders:
            return folders
    return (
        FolderNode(
            id=demo_id(owner, 1),
            name="Projekt A",
            children=(FolderNode(id=demo_id(owner, 2), name="Sprint 1"),),
        ),
    )


def ensure_task_list(raw: Any, owner: str = DEFAULT_OWNER) -> tuple[TaskItem, ...]:
    if isinstance(raw, list):
        tasks = tuple(TaskItem.from_dict(item) for item in raw if isinstance(item, dict))
        if tasks:
            return tasks
    return (
        TaskItem(id=demo_id(owner, 1), title="Design finalisieren", done=False),
        TaskItem(id=demo_id(owner, 2), title="Review vorbereiten", done=True),
    )


def ensure_audio_notes(raw: Any) -> tuple[AudioNote, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(AudioNote.from_dict(item) for item in raw if isinstance(item, dict))


def ensure_support_tickets(raw: Any) -> tuple[SupportTicket, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(SupportTicket.from_dict(item) for item in raw if isinstance(item, dict))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_component(
    props: dict[str, Any] | None, now: Clock = utc_now, owner: str = DEFAULT_OWNER
) -> ComponentConfig | None:
    """
    Typed config for a container's props, or None when it has no component.

    `now` seeds default timestamps (demo time entry, calendar focus). Demo
    items get ids derived from `owner`, the id of the container node.
    """
    props = props or {}
    kind = props.get("component")
    if not isinstance(kind, str) or not kind:
        return None
    if kind not in COMPONENT_KINDS:
        return UnknownComponent(kind=kind, props=dict(props))
    parser = _PARSERS.get(kind)
    if parser is None:
        return SimpleComponent(kind=kind)
    return parser(kind, props, now, owner)


def _parse_navbar(kind: str, props: dict, now: Clock, owner: str) -> NavbarConfig:
    target = props.get("supportTarget")
    return NavbarConfig(
        items=ensure_nav_items(props.get("navItems"), owner),
        support_target=target if isinstance(target, str) else None,
    )


def _parse_time_tracking(kind: str, props: dict, now: Clock, owner: str) -> TimeTrackingConfig:
    tracking = props.get("timeTracking")
    raw = tracking.get("entries") if isinstance(tracking, dict) else None
    return TimeTrackingConfig(entries=ensure_time_entries(raw, now, owner))


def _parse_folders(kind: str, props: dict, now: Clock, owner: str) -> FolderStructureConfig:
    return FolderStructureConfig(folders=ensure_folder_tree(props.get("folderTree"), owner))


def _parse_task_list(kind: str, props: dict, now: Clock, owner: str) -> TaskListConfig:
    return TaskListConfig(tasks=ensure_task_list(props.get(TASK_LIST_KEYS[kind]), owner), kind=kind)


def _parse_support(kind: str, props: dict, now: Clock, owner: str) -> SupportConfig:
    channel = props.get("supportChannel")
    target = props.get("supportTarget")
    return SupportConfig(
        tickets=ensure_support_tickets(props.get("supportTickets")),
        channel=channel if isinstance(channel, str) and channel else "ticket",
        target=target if isinstance(target, str) and target else DEFAULT_SUPPORT_TARGET,
    )


def _parse_calendar(kind: str, props: dict, now: Clock, owner: str) -> CalendarConfig:
    focus = parse_iso(props.get("calendarFocusDate")) or now()
    return CalendarConfig(focus=focus.date())


def _parse_audio(kind: str, props: dict, now: Clock, owner: str) -> AudioRecorderConfig:
    return AudioRecorderConfig(notes=ensure_audio_notes(props.get("audioNotes")))


def _parse_map(kind: str, props: dict, now: Clock, owner: str) -> MapConfig:
    location = props.get("mapLocation")
    raw_pins = props.get("mapPins")
    pins: tuple[str, ...] = ()
    if isinstance(raw_pins, list):
        pins = tuple(
            str(pin.get("label")) for pin in raw_pins if isinstance(pin, dict) and pin.get("label")
        )
    return MapConfig(
        location=location if isinstance(location, str) and location else DEFAULT_MAP_LOCATION,
        pins=pins,
    )


def _parse_video(kind: str, props: dict, now: Clock, owner: str) -> VideoConfig:
    url = props.get("videoUrl")
    return VideoConfig(url=url if isinstance(url, str) and url else None)


def _parse_qr(kind: str, props: dict, now: Clock, owner: str) -> QrConfig:
    url = props.get("qrUrl")
    return QrConfig(url=url if isinstance(url, str) and url else None)


def _parse_table(kind: str, props: dict, now: Clock, owner: str) -> TableConfig:
    config = props.get("tableConfig")
    if not isinstance(config, dict):
        return TableConfig()
    columns = tuple(
        str(col.get("label", "")) if isinstance(col, dict) else str(col)
        for col in config.get("columns") or []
    )
    rows = []
    for row in config.get("rows") or []:
        values = row.get("values") if isinstance(row, dict) else row
        if isinstance(values, list):
            rows.append(tuple(str(v) for v in values))
    title = config.get("title")
    return TableConfig(
        title=title if isinstance(title, str) and title else "Tabelle",
        columns=columns,
        rows=tuple(rows),
    )


def _parse_news(kind: str, props: dict, now: Clock, owner: str) -> NewsConfig:
    feed = props.get("newsFeed")
    if not isinstance(feed, dict):
        return NewsConfig()
    items = tuple(
        NewsItem(
            id=item["id"] if isinstance(item.get("id"), str) else demo_id(owner, i),
            title=item.get("title") or "News",
            body=item.get("body") or "",
            image_url=item.get("imageUrl") or None,
            date=item.get("date") or None,
        )
        for i, item in enumerate(feed.get("items") or [], start=1)
        if isinstance(item, dict)
    )
    title = feed.get("title")
    return NewsConfig(title=title if isinstance(title, str) and title else "News", items=items)


_PARSERS: dict[str, Callable[[str, dict, Clock, str], ComponentConfig]] = {
    "navbar": _parse_navbar,
    "time-tracking": _parse_time_tracking,
    "folder-structure": _parse_folders,
    "task-manager": _parse_task_list,
    "todo": _parse_task_list,
    "support": _parse_support,
    "calendar": _parse_calendar,
    "audio-recorder": _parse_audio,
    "map": _parse_map,
    "video-player": _parse_video,
    "qr-code": _parse_qr,
    "table": _parse_table,
    "news": _parse_news,
}
