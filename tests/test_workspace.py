"""Tests for the workspace buffer and change ledger."""

import pytest

from sandcrew.errors import ValidationError
from sandcrew.workspace import ChangeLedger, Workspace, normalize_path


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a.js", "/a.js"),
        ("./a.js", "/a.js"),
        ("/a.js", "/a.js"),
        ("src//lib\\util.js", "/src/lib/util.js"),
        ("  /src/App.js ", "/src/App.js"),
        ("src/lib/../App.js", "/src/App.js"),
        ("/a/./b//../c.js", "/a/c.js"),
        (".", "/"),
    ],
)
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


@pytest.mark.parametrize("raw", ["../escaped.txt", "/../escaped.txt", "src/../../etc/passwd"])
def test_normalize_path_rejects_escape(raw):
    with pytest.raises(ValidationError, match="escapes the workspace root"):
        normalize_path(raw)


def test_seed_is_clean():
    ledger = ChangeLedger()
    ledger.seed({"a.js": "x"})

    assert ledger.dirty_paths() == []
    assert ledger.content_of("/a.js") == "x"


def test_write_with_same_content_does_not_dirty():
    ledger = ChangeLedger()
    ledger.seed({"/a.js": "x"})

    assert ledger.mark_dirty("/a.js", "x") is False
    assert len(ledger) == 0

    assert ledger.mark_dirty("/a.js", "y") is True
    assert ledger.dirty_paths() == ["/a.js"]


def test_revert_after_change_stays_dirty():
    ledger = ChangeLedger()
    ledger.seed({"/a.js": "x"})

    ledger.mark_dirty("/a.js", "y")
    ledger.mark_dirty("/a.js", "x")

    assert ledger.is_dirty("/a.js")
    assert ledger.content_of("/a.js") == "x"


def test_clear_keeps_contents_as_baseline():
    ledger = ChangeLedger()
    ledger.mark_dirty("/new.js", "content")
    ledger.clear()

    assert ledger.dirty_paths() == []
    assert ledger.mark_dirty("/new.js", "content") is False


def test_prune():
    ledger = ChangeLedger()
    ledger.mark_dirty("/node_modules/x.js", "x")
    ledger.mark_dirty("/a.js", "a")

    ledger.prune("node_modules/x.js")

    assert ledger.dirty_paths() == ["/a.js"]


def test_workspace_write_marks_ledger_and_active_file():
    ws = Workspace({"/a.js": "1"})

    previous = ws.write("b.js", "2")

    assert previous is None
    assert ws.read("/b.js") == "2"
    assert ws.active_file == "/b.js"
    assert ws.ledger.dirty_paths() == ["/b.js"]


def test_workspace_delete_records_none():
    ws = Workspace({"/a.js": "1"})

    deleted = ws.delete("/a.js")

    assert deleted == "1"
    assert not ws.exists("/a.js")
    assert ws.ledger.is_dirty("/a.js")
    assert ws.ledger.content_of("/a.js") is None


def test_workspace_delete_missing_raises():
    ws = Workspace()

    with pytest.raises(KeyError):
        ws.delete("/missing.js")


def test_load_resets_ledger():
    ws = Workspace({"/a.js": "1"})
    ws.write("/a.js", "2")

    ws.load({"/b.js": "3"})

    assert ws.paths() == ["/b.js"]
    assert ws.ledger.dirty_paths() == []
    assert ws.active_file is None


def test_snapshot_is_a_copy():
    ws = Workspace({"/a.js": "1"})
    snap = ws.snapshot()
    snap["/a.js"] = "changed"

    assert ws.read("/a.js") == "1"
