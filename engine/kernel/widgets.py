"""
AppSchmiede Kernel — Composite Widget State Machines

Each widget is built from its container's current sub-config and answers
every transition with a NEW complete sub-config value. Widgets never write
to storage; the host turns the value into a node patch with widget_patch()
and applies it through tree.apply_patch.

Time is injected as a clock callable so transitions are deterministic
under test.

Widgets:
  TimeTracker       — props.timeTracking.entries, at most one running entry
  FolderTreeEditor  — props.folderTree
  TaskList          — props.tasks (task-manager) / props.todoItems (todo)
  SupportTicketLog  — props.supportTickets, append-only
  Calendar          — props.calendarFocusDate
  AudioRecorder     — props.audioNotes, idle → recording → idle
"""

from __future__ import annotations

import base64
import calendar
import logging
import math
from collections.abc import Callable
from contextlib import closing
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Protocol

from engine.kernel.components import (
    TASK_LIST_KEYS,
    TASK_LIST_TITLES,
    AudioRecorderConfig,
    CalendarConfig,
    Clock,
    FolderStructureConfig,
    SupportConfig,
    TaskListConfig,
    TimeTrackingConfig,
    parse_component,
    utc_now,
)
from engine.kernel.types import (
    AudioNote,
    FolderNode,
    Node,
    SupportTicket,
    TaskItem,
    TimeEntry,
    new_id,
    parse_iso,
    to_iso,
)

logger = logging.getLogger(__name__)


class UnknownWidgetAction(ValueError):
    """No handler for this (component, action) pair."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """MM:SS; minutes are not wrapped at 60."""
    safe = int(math.floor(seconds)) if isinstance(seconds, int | float) and math.isfinite(seconds) and seconds > 0 else 0
    return f"{safe // 60:02d}:{safe % 60:02d}"


def widget_patch(props_key: str, value: Any) -> dict[str, Any]:
    """Node patch that replaces one props sub-config."""
    return {"props": {props_key: _to_wire(value)}}


def _to_wire(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list | tuple):
        return [_to_wire(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_wire(v) for k, v in value.items()}
    if isinstance(value, date):
        return value.isoformat()
    return value


# ---------------------------------------------------------------------------
# Time tracking
# ---------------------------------------------------------------------------


class TimeTracker:
    """
    Entries are running (no endedAt) or closed. start() closes whatever is
    running before opening the new entry, so at most one entry ever runs.

    The stored `seconds` is authoritative and only changes when an entry is
    closed; elapsed() is for display.
    """

    PROPS_KEY = "timeTracking"

    def __init__(self, entries: tuple[TimeEntry, ...] | list[TimeEntry], now: Clock = utc_now):
        self.entries = tuple(entries)
        self.now = now

    @property
    def running(self) -> TimeEntry | None:
        return next((e for e in self.entries if e.running), None)

    def elapsed(self, at: datetime | None = None) -> int:
        """Live seconds of the running entry, 0 when nothing runs."""
        entry = self.running
        if entry is None:
            return 0
        return entry.seconds + _seconds_since(entry.started_at, at or self.now())

    def start(self, label: str | None = None) -> tuple[TimeEntry, ...]:
        current = self.now()
        label = (label or "").strip() or "Neuer Task"
        closed = self._close_running(current)
        return (*closed, TimeEntry(id=new_id(), label=label, seconds=0, started_at=to_iso(current)))

    def stop(self) -> tuple[TimeEntry, ...]:
        if self.running is None:
            return self.entries
        return self._close_running(self.now())

    def reset(self, confirm: Callable[[], bool]) -> tuple[TimeEntry, ...]:
        if not confirm():
            return self.entries
        return ()

    def _close_running(self, current: datetime) -> tuple[TimeEntry, ...]:
        return tuple(
            replace(e, seconds=e.seconds + _seconds_since(e.started_at, current), ended_at=to_iso(current))
            if e.running
            else e
            for e in self.entries
        )

    @staticmethod
    def to_config(entries: tuple[TimeEntry, ...]) -> dict[str, Any]:
        return {"entries": list(entries)}


def _seconds_since(started_at: str | None, current: datetime) -> int:
    started = parse_iso(started_at)
    if started is None:
        return 0
    return max(0, math.floor((current - started).total_seconds()))


# ---------------------------------------------------------------------------
# Folder tree
# ---------------------------------------------------------------------------


class FolderTreeEditor:
    PROPS_KEY = "folderTree"

    def __init__(self, folders: tuple[FolderNode, ...] | list[FolderNode]):
        self.folders = tuple(folders)
        self._expanded: dict[str, bool] = {}

    def add_folder(self, parent_id: str | None, name: str | None) -> tuple[FolderNode, ...]:
        """
        Insert a new empty folder. parent_id None appends at the top level;
        an unknown parent or a blank name leaves the tree unchanged.
        """
        name = (name or "").strip()
        if not name:
            return self.folders
        folder = FolderNode(id=new_id(), name=name)
        if parent_id is None:
            return (*self.folders, folder)
        updated, _ = _insert_folder(self.folders, parent_id, folder)
        return updated

    def is_expanded(self, folder_id: str) -> bool:
        return self._expanded.get(folder_id, True)

    def toggle(self, folder_id: str) -> bool:
        self._expanded[folder_id] = not self.is_expanded(folder_id)
        return self._expanded[folder_id]


def _insert_folder(
    folders: tuple[FolderNode, ...], parent_id: str, folder: FolderNode
) -> tuple[tuple[FolderNode, ...], bool]:
    for i, node in enumerate(folders):
        if node.id == parent_id:
            updated = replace(node, children=(*node.children, folder))
        else:
            children, found = _insert_folder(node.children, parent_id, folder)
            if not found:
                continue
            updated = replace(node, children=children)
        return (*folders[:i], updated, *folders[i + 1 :]), True
    return folders, False


# ---------------------------------------------------------------------------
# Tasks / todos
# ---------------------------------------------------------------------------


class TaskList:
    """One widget behind both the task-manager and the todo component."""

    def __init__(self, tasks: tuple[TaskItem, ...] | list[TaskItem], kind: str = "task-manager"):
        self.tasks = tuple(tasks)
        self.kind = kind

    @property
    def props_key(self) -> str:
        return TASK_LIST_KEYS[self.kind]

    @property
    def title(self) -> str:
        return TASK_LIST_TITLES[self.kind]

    def toggle(self, task_id: str) -> tuple[TaskItem, ...]:
        return tuple(replace(t, done=not t.done) if t.id == task_id else t for t in self.tasks)

    def add(self, title: str | None) -> tuple[TaskItem, ...]:
        title = (title or "").strip()
        if not title:
            return self.tasks
        return (*self.tasks, TaskItem(id=new_id(), title=title))

    def remove(self, task_id: str) -> tuple[TaskItem, ...]:
        return tuple(t for t in self.tasks if t.id != task_id)


# ---------------------------------------------------------------------------
# Support tickets
# ---------------------------------------------------------------------------


class SupportTicketLog:
    """Append-only. Tickets are never edited or deleted."""

    PROPS_KEY = "supportTickets"

    def __init__(
        self,
        tickets: tuple[SupportTicket, ...] | list[SupportTicket],
        channel: str = "ticket",
        now: Clock = utc_now,
    ):
        self.tickets = tuple(tickets)
        self.channel = channel
        self.now = now

    def create_ticket(self, subject: str | None, message: str | None = None) -> tuple[SupportTicket, ...]:
        subject = (subject or "").strip()
        if not subject:
            return self.tickets
        ticket = SupportTicket(
            id=new_id(),
            subject=subject,
            message=(message or "").strip(),
            created_at=to_iso(self.now()),
            channel=self.channel,
        )
        return (*self.tickets, ticket)


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

WEEKDAY_LABELS = ("Mo", "Di", "Mi", "Do", "Fr", "Sa", "So")


def month_matrix(focus: date) -> list[list[int | None]]:
    """Monday-first weeks of focus's month; days outside the month are None."""
    weeks = calendar.Calendar(firstweekday=calendar.MONDAY).monthdayscalendar(focus.year, focus.month)
    return [[day or None for day in week] for week in weeks]


def shift_month(focus: date, offset: int) -> date:
    """Move by whole months, clamping the day to the target month's length."""
    index = focus.year * 12 + (focus.month - 1) + offset
    year, month = divmod(index, 12)
    month += 1
    day = min(focus.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class Calendar:
    PROPS_KEY = "calendarFocusDate"

    def __init__(self, focus: date):
        self.focus = focus

    @property
    def weeks(self) -> list[list[int | None]]:
        return month_matrix(self.focus)

    def go_offset(self, offset: int) -> date:
        return shift_month(self.focus, offset)


# ---------------------------------------------------------------------------
# Audio recording
# ---------------------------------------------------------------------------


class CaptureSession(Protocol):
    """A live microphone capture. close() releases the device's tracks."""

    def read(self) -> bytes: ...

    def close(self) -> None: ...


CaptureFactory = Callable[[], CaptureSession]

CAPTURE_FAILED_MESSAGE = "Konnte keine Aufnahme starten. Bitte Mikrofonrechte prüfen."


class AudioRecorder:
    """
    idle → recording → idle.

    start() acquires a capture session; a second start() while recording
    does nothing. stop() releases the session whether or not reading the
    captured audio succeeds.
    """

    PROPS_KEY = "audioNotes"

    def __init__(
        self,
        notes: tuple[AudioNote, ...] | list[AudioNote],
        capture: CaptureFactory,
        now: Clock = utc_now,
    ):
        self.notes = tuple(notes)
        self.capture = capture
        self.now = now
        self.alert: str | None = None
        self._session: CaptureSession | None = None

    @property
    def state(self) -> str:
        return "recording" if self._session is not None else "idle"

    @property
    def is_recording(self) -> bool:
        return self._session is not None

    def start(self) -> bool:
        if self._session is not None:
            return True
        try:
            self._session = self.capture()
        except OSError as e:
            logger.warning("Audio capture failed: %s", e)
            self.alert = CAPTURE_FAILED_MESSAGE
            return False
        self.alert = None
        return True

    def stop(self, label: str | None = None) -> tuple[AudioNote, ...]:
        session, self._session = self._session, None
        if session is None:
            return self.notes
        with closing(session):
            data = session.read()
        note = AudioNote(
            id=new_id(),
            label=(label or "").strip() or "Notiz",
            created_at=to_iso(self.now()),
            url=audio_data_url(data),
        )
        self.notes = (*self.notes, note)
        return self.notes

    def delete_note(self, note_id: str) -> tuple[AudioNote, ...]:
        self.notes = tuple(n for n in self.notes if n.id != note_id)
        return self.notes


def audio_data_url(data: bytes) -> str:
    return "data:audio/webm;base64," + base64.b64encode(data).decode("ascii")


# ---------------------------------------------------------------------------
# Action dispatch (host side)
# ---------------------------------------------------------------------------


def _time_start(config: TimeTrackingConfig, params: dict, now: Clock) -> dict:
    entries = TimeTracker(config.entries, now).start(params.get("label"))
    return widget_patch(TimeTracker.PROPS_KEY, TimeTracker.to_config(entries))


def _time_stop(config: TimeTrackingConfig, params: dict, now: Clock) -> dict:
    entries = TimeTracker(config.entries, now).stop()
    return widget_patch(TimeTracker.PROPS_KEY, TimeTracker.to_config(entries))


def _time_reset(config: TimeTrackingConfig, params: dict, now: Clock) -> dict:
    confirmed = bool(params.get("confirm"))
    entries = TimeTracker(config.entries, now).reset(lambda: confirmed)
    return widget_patch(TimeTracker.PROPS_KEY, TimeTracker.to_config(entries))


def _folder_add(config: FolderStructureConfig, params: dict, now: Clock) -> dict:
    folders = FolderTreeEditor(config.folders).add_folder(params.get("parentId"), params.get("name"))
    return widget_patch(FolderTreeEditor.PROPS_KEY, folders)


def _task_toggle(config: TaskListConfig, params: dict, now: Clock) -> dict:
    return widget_patch(config.props_key, TaskList(config.tasks, config.kind).toggle(str(params.get("taskId"))))


def _task_add(config: TaskListConfig, params: dict, now: Clock) -> dict:
    return widget_patch(config.props_key, TaskList(config.tasks, config.kind).add(params.get("title")))


def _task_remove(config: TaskListConfig, params: dict, now: Clock) -> dict:
    return widget_patch(config.props_key, TaskList(config.tasks, config.kind).remove(str(params.get("taskId"))))


def _support_create(config: SupportConfig, params: dict, now: Clock) -> dict:
    log = SupportTicketLog(config.tickets, config.channel, now)
    return widget_patch(SupportTicketLog.PROPS_KEY, log.create_ticket(params.get("subject"), params.get("message")))


def _calendar_offset(config: CalendarConfig, params: dict, now: Clock) -> dict:
    offset = params.get("offset", 0)
    if isinstance(offset, bool) or not isinstance(offset, int):
        raise UnknownWidgetAction("calendar go-offset requires an integer 'offset'")
    return widget_patch(Calendar.PROPS_KEY, Calendar(config.focus).go_offset(offset))


def _audio_delete(config: AudioRecorderConfig, params: dict, now: Clock) -> dict:
    notes = tuple(n for n in config.notes if n.id != params.get("noteId"))
    return widget_patch(AudioRecorder.PROPS_KEY, notes)


_ACTIONS: dict[tuple[str, str], Callable[[Any, dict, Clock], dict]] = {
    ("time-tracking", "start"): _time_start,
    ("time-tracking", "stop"): _time_stop,
    ("time-tracking", "reset"): _time_reset,
    ("folder-structure", "add-folder"): _folder_add,
    ("task-manager", "toggle"): _task_toggle,
    ("task-manager", "add"): _task_add,
    ("task-manager", "remove"): _task_remove,
    ("todo", "toggle"): _task_toggle,
    ("todo", "add"): _task_add,
    ("todo", "remove"): _task_remove,
    ("support", "create-ticket"): _support_create,
    ("calendar", "go-offset"): _calendar_offset,
    ("audio-recorder", "delete-note"): _audio_delete,
}

WIDGET_ACTIONS = frozenset(_ACTIONS)


def dispatch_widget_action(
    node: Node,
    action: str,
    params: dict[str, Any] | None = None,
    now: Clock = utc_now,
) -> dict[str, Any]:
    """
    Run a widget transition on a container node and return the node patch.

    Raises UnknownWidgetAction when the node's component has no handler for
    `action` (including nodes that are not composite containers).
    """
    component = node.component
    handler = _ACTIONS.get((component or "", action))
    if handler is None:
        raise UnknownWidgetAction(f"No widget action {action!r} for component {component!r}")
    config = parse_component(node.props, now, node.id)
    return handler(config, params or {}, now)
