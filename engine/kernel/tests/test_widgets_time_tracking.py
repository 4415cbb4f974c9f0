"""
Time tracker state machine tests.

At most one entry runs at any time, stored seconds only change when an
entry closes, and start/stop never lose already tracked time.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from engine.kernel.types import Node, TimeEntry
from engine.kernel.widgets import TimeTracker, dispatch_widget_action, format_duration

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def running_count(entries) -> int:
    return sum(1 for e in entries if e.running)


class TestStartStop:
    def test_start_opens_running_entry(self):
        clock = FakeClock()
        entries = TimeTracker((), clock).start("Konzept")
        assert len(entries) == 1
        assert entries[0].label == "Konzept"
        assert entries[0].running
        assert entries[0].seconds == 0
        assert entries[0].started_at == "2026-03-02T09:00:00.000Z"

    def test_blank_label_gets_default(self):
        entries = TimeTracker((), FakeClock()).start("   ")
        assert entries[0].label == "Neuer Task"

    def test_stop_closes_with_elapsed_seconds(self):
        clock = FakeClock()
        entries = TimeTracker((), clock).start("A")
        clock.advance(90)
        entries = TimeTracker(entries, clock).stop()
        assert entries[0].seconds == 90
        assert entries[0].ended_at == "2026-03-02T09:01:30.000Z"
        assert running_count(entries) == 0

    def test_stop_without_running_entry_is_noop(self):
        closed = (TimeEntry(id="a", label="A", seconds=10, started_at="x", ended_at="y"),)
        tracker = TimeTracker(closed, FakeClock())
        assert tracker.stop() is tracker.entries

    def test_start_while_running_closes_previous(self):
        clock = FakeClock()
        entries = TimeTracker((), clock).start("A")
        clock.advance(60)
        entries = TimeTracker(entries, clock).start("B")
        assert [e.label for e in entries] == ["A", "B"]
        assert entries[0].seconds == 60 and not entries[0].running
        assert entries[1].running
        assert running_count(entries) == 1

    def test_sub_second_switch_does_not_overcount(self):
        clock = FakeClock(T0 + timedelta(milliseconds=900))
        entries = TimeTracker((), clock).start("A")
        assert entries[0].started_at == "2026-03-02T09:00:00.900Z"
        clock.advance(0.2)
        entries = TimeTracker(entries, clock).start("B")
        assert entries[0].seconds == 0
        assert entries[0].ended_at == "2026-03-02T09:00:01.100Z"


class TestInvariants:
    def test_at_most_one_running_across_sequences(self):
        clock = FakeClock()
        entries: tuple[TimeEntry, ...] = ()
        for step, op in enumerate(["start", "start", "stop", "stop", "start", "start", "start", "stop"]):
            clock.advance(7)
            tracker = TimeTracker(entries, clock)
            entries = tracker.start(f"task-{step}") if op == "start" else tracker.stop()
            assert running_count(entries) <= 1

    def test_total_seconds_never_decrease(self):
        clock = FakeClock()
        entries: tuple[TimeEntry, ...] = ()
        total = 0
        for op in ["start", "stop", "start", "start", "stop", "start"]:
            clock.advance(13)
            tracker = TimeTracker(entries, clock)
            entries = tracker.start() if op == "start" else tracker.stop()
            new_total = sum(e.seconds for e in entries)
            assert new_total >= total
            total = new_total
        assert total == 13 * 3

    def test_elapsed_is_display_only(self):
        clock = FakeClock()
        entries = TimeTracker((), clock).start("A")
        clock.advance(42)
        tracker = TimeTracker(entries, clock)
        assert tracker.elapsed() == 42
        assert tracker.entries[0].seconds == 0

    def test_elapsed_zero_when_idle(self):
        assert TimeTracker((), FakeClock()).elapsed() == 0

    def test_clock_skew_never_goes_negative(self):
        clock = FakeClock()
        entries = TimeTracker((), clock).start("A")
        clock.advance(-30)
        entries = TimeTracker(entries, clock).stop()
        assert entries[0].seconds == 0


class TestReset:
    def test_confirmed_reset_clears(self):
        entries = TimeTracker((), FakeClock()).start("A")
        assert TimeTracker(entries, FakeClock()).reset(lambda: True) == ()

    def test_declined_reset_keeps_entries(self):
        entries = TimeTracker((), FakeClock()).start("A")
        assert TimeTracker(entries, FakeClock()).reset(lambda: False) == entries


class TestFormatDuration:
    def test_minutes_and_seconds(self):
        assert format_duration(75) == "01:15"

    def test_minutes_do_not_wrap(self):
        assert format_duration(7200) == "120:00"

    def test_garbage_is_zero(self):
        assert format_duration(-5) == "00:00"
        assert format_duration(float("nan")) == "00:00"


class TestDispatch:
    def test_start_action_produces_props_patch(self):
        clock = FakeClock()
        node = Node(
            id="tracker",
            type="container",
            props={
                "component": "time-tracking",
                "timeTracking": {
                    "entries": [
                        {"id": "old", "label": "Alt", "seconds": 100, "startedAt": "2026-03-02T08:00:00Z", "endedAt": "2026-03-02T08:01:40Z"}
                    ]
                },
            },
        )
        patch = dispatch_widget_action(node, "start", {"label": "Neu"}, clock)
        entries = patch["props"]["timeTracking"]["entries"]
        assert [e["label"] for e in entries] == ["Alt", "Neu"]
        assert "endedAt" not in entries[1]
        assert entries[1]["startedAt"] == "2026-03-02T09:00:00.000Z"

    def test_reset_requires_confirm_param(self):
        node = Node(id="t", type="container", props={"component": "time-tracking"})
        patch = dispatch_widget_action(node, "reset", {}, FakeClock())
        assert len(patch["props"]["timeTracking"]["entries"]) == 1
        patch = dispatch_widget_action(node, "reset", {"confirm": True}, FakeClock())
        assert patch["props"]["timeTracking"]["entries"] == []
