"""Tests for the change tracker state machine."""

from __future__ import annotations

import pytest

from jade_publisher.sync import (
    ChangeTracker,
    Created,
    Deleted,
    EventKind,
    FileEvent,
    Modified,
    Renamed,
)
from jade_publisher.sync.status import CREATED, DELETED, MODIFIED


def test_create_then_modifies_stays_created():
    tracker = ChangeTracker()
    tracker.on_create("a.md")
    for _ in range(3):
        tracker.on_modify("a.md")

    assert tracker.status("a.md") == Created()


def test_modify_of_untracked_path_is_modified():
    tracker = ChangeTracker()
    tracker.on_modify("a.md")
    tracker.on_modify("a.md")

    assert tracker.status("a.md") == Modified()


def test_create_then_delete_leaves_no_entry():
    tracker = ChangeTracker()
    tracker.on_create("a.md")
    tracker.on_modify("a.md")
    tracker.on_delete("a.md")

    assert "a.md" not in tracker
    assert len(tracker) == 0


def test_delete_of_published_file_is_deleted():
    tracker = ChangeTracker()
    tracker.on_modify("a.md")
    tracker.on_delete("a.md")
    tracker.on_delete("b.md")

    assert tracker.status("a.md") == Deleted()
    assert tracker.status("b.md") == Deleted()


def test_rename_of_created_file_folds_into_created():
    tracker = ChangeTracker()
    tracker.on_create("a.md")
    tracker.on_rename("b.md", "a.md")
    tracker.on_modify("b.md")

    assert "a.md" not in tracker
    assert tracker.status("b.md") == Created()


@pytest.mark.parametrize("before", [None, "modify", "rename"])
def test_rename_of_published_file_records_origin(before):
    tracker = ChangeTracker()
    if before == "modify":
        tracker.on_modify("a.md")
    elif before == "rename":
        tracker.on_rename("a.md", "z.md")

    tracker.on_rename("b.md", "a.md")

    assert "a.md" not in tracker
    assert tracker.status("b.md") == Renamed("a.md")


def test_modify_keeps_renamed_status():
    tracker = ChangeTracker()
    tracker.on_rename("b.md", "a.md")
    tracker.on_modify("b.md")

    assert tracker.status("b.md") == Renamed("a.md")


def test_rename_overwrites_pending_destination():
    tracker = ChangeTracker()
    tracker.on_modify("b.md")
    tracker.on_rename("b.md", "a.md")

    assert tracker.status("b.md") == Renamed("a.md")
    assert len(tracker) == 1


def test_drain_returns_everything_and_resets():
    tracker = ChangeTracker()
    tracker.on_create("a.md")
    tracker.on_delete("b.md")

    drained = tracker.drain()

    assert drained == {"a.md": CREATED, "b.md": DELETED}
    assert len(tracker) == 0
    assert tracker.drain() == {}


def test_handle_event_dispatches_by_kind():
    tracker = ChangeTracker()
    tracker.handle_event(FileEvent(EventKind.CREATE, "a.md"))
    tracker.handle_event(FileEvent(EventKind.RENAME, "b.md", old_path="a.md"))
    tracker.handle_event(FileEvent(EventKind.MODIFY, "c.md"))
    tracker.handle_event(FileEvent(EventKind.DELETE, "d.md"))

    assert tracker.snapshot() == {"b.md": CREATED, "c.md": MODIFIED, "d.md": DELETED}


def test_rename_event_requires_old_path():
    with pytest.raises(ValueError):
        FileEvent(EventKind.RENAME, "b.md")


def test_modify_ignored_for_background_files():
    active = {"path": "open.md"}
    tracker = ChangeTracker(active_file=lambda: active["path"])

    tracker.on_modify("background.md")
    tracker.on_modify("open.md")
    active["path"] = None
    tracker.on_modify("open.md")
    tracker.on_delete("background.md")

    assert tracker.snapshot() == {"open.md": MODIFIED, "background.md": DELETED}


def test_persisted_round_trip_and_bad_entries():
    tracker = ChangeTracker()
    tracker.on_create("a.md")
    tracker.on_rename("notes/b.md", "notes/old b.md")
    tracker.on_delete("c.md")

    raw = tracker.to_persisted()
    assert raw == {
        "a.md": "created",
        "notes/b.md": "renamed:notes/old b.md",
        "c.md": "deleted",
    }

    raw["broken.md"] = "exploded"
    raw["half.md"] = "renamed:"
    restored = ChangeTracker.from_persisted(raw)

    assert restored.snapshot() == tracker.snapshot()


class TestRestore:
    def test_restore_into_empty_tracker_is_identity(self):
        tracker = ChangeTracker()
        tracker.on_create("a.md")
        tracker.on_rename("c.md", "b.md")
        before = tracker.snapshot()

        tracker.restore(tracker.drain())

        assert tracker.snapshot() == before

    def test_created_under_later_modify_stays_created(self):
        tracker = ChangeTracker()
        tracker.on_create("a.md")
        drained = tracker.drain()
        tracker.on_modify("a.md")

        tracker.restore(drained)

        assert tracker.status("a.md") == Created()

    def test_created_under_later_delete_disappears(self):
        tracker = ChangeTracker()
        tracker.on_create("a.md")
        drained = tracker.drain()
        tracker.on_delete("a.md")

        tracker.restore(drained)

        assert "a.md" not in tracker

    def test_created_under_later_rename_moves_created(self):
        tracker = ChangeTracker()
        tracker.on_create("a.md")
        drained = tracker.drain()
        tracker.on_rename("b.md", "a.md")

        tracker.restore(drained)

        assert tracker.snapshot() == {"b.md": CREATED}

    def test_renamed_under_later_rename_takes_latest_origin(self):
        tracker = ChangeTracker()
        tracker.on_rename("b.md", "a.md")
        drained = tracker.drain()
        tracker.on_rename("c.md", "b.md")

        tracker.restore(drained)

        assert tracker.snapshot() == {"c.md": Renamed("b.md")}

    def test_renamed_under_later_delete_becomes_deleted(self):
        tracker = ChangeTracker()
        tracker.on_rename("b.md", "a.md")
        drained = tracker.drain()
        tracker.on_delete("b.md")

        tracker.restore(drained)

        assert tracker.snapshot() == {"b.md": DELETED}

    def test_renamed_under_later_delete_and_create_is_created(self):
        tracker = ChangeTracker()
        tracker.on_rename("b.md", "a.md")
        drained = tracker.drain()
        tracker.on_delete("b.md")
        tracker.on_create("b.md")

        tracker.restore(drained)

        assert tracker.snapshot() == {"b.md": CREATED}

    def test_modified_under_later_delete_stays_deleted(self):
        tracker = ChangeTracker()
        tracker.on_modify("a.md")
        drained = tracker.drain()
        tracker.on_delete("a.md")

        tracker.restore(drained)

        assert tracker.snapshot() == {"a.md": DELETED}

    def test_restore_matches_events_without_drain(self):
        events = [
            FileEvent(EventKind.RENAME, "b.md", old_path="a.md"),
            FileEvent(EventKind.MODIFY, "x.md"),
            FileEvent(EventKind.RENAME, "c.md", old_path="b.md"),
            FileEvent(EventKind.DELETE, "x.md"),
            FileEvent(EventKind.CREATE, "c.md"),
        ]
        expected = ChangeTracker()
        for event in events:
            expected.handle_event(event)

        tracker = ChangeTracker()
        for event in events[:2]:
            tracker.handle_event(event)
        drained = tracker.drain()
        for event in events[2:]:
            tracker.handle_event(event)
        tracker.restore(drained)

        assert tracker.snapshot() == expected.snapshot()

    def test_ignored_background_modify_is_not_replayed(self):
        active = {"path": "other.md"}
        tracker = ChangeTracker(active_file=lambda: active["path"])
        tracker.on_create("new.md")
        drained = tracker.drain()
        tracker.on_modify("a.md")
        active["path"] = "a.md"

        tracker.restore(drained)

        assert tracker.snapshot() == {"new.md": CREATED}

    def test_restore_without_drain_raises(self):
        tracker = ChangeTracker()

        with pytest.raises(RuntimeError):
            tracker.restore({"a.md": MODIFIED})
