"""Tests for workspace-to-checkout synchronization."""

import pytest

from sandcrew.sync import SyncStatus, WorkspaceSynchronizer, is_excluded
from sandcrew.utils.logging import SessionLogger


@pytest.mark.parametrize(
    "path, excluded",
    [
        ("/node_modules/react/index.js", True),
        ("/packages/app/node_modules/x.js", True),
        ("/.git/config", True),
        ("/src/App.js", False),
        ("/src/node_modules_helper.js", False),
    ],
)
def test_is_excluded(path, excluded):
    assert is_excluded(path) is excluded


@pytest.mark.asyncio
async def test_clean_workspace_is_noop(synchronizer):
    result = await synchronizer.sync()

    assert result.status == SyncStatus.NOOP
    assert result.synced == []
    assert not synchronizer.has_synced


@pytest.mark.asyncio
async def test_dirty_paths_are_written(synchronizer, workspace, checkout):
    workspace.write("/src/new.js", "export const x = 1;\n")
    workspace.write("/README.md", "# Changed\n")

    result = await synchronizer.sync()

    assert result.status == SyncStatus.OK
    assert result.synced == ["/README.md", "/src/new.js"]
    assert (checkout.path / "src" / "new.js").read_text() == "export const x = 1;\n"
    assert (checkout.path / "README.md").read_text() == "# Changed\n"
    assert synchronizer.has_synced


@pytest.mark.asyncio
async def test_sync_keeps_dirty_set_and_is_idempotent(synchronizer, workspace, checkout):
    workspace.write("/README.md", "# Changed\n")

    first = await synchronizer.sync()
    second = await synchronizer.sync()

    assert first.synced == second.synced == ["/README.md"]
    assert workspace.ledger.is_dirty("/README.md")
    assert (checkout.path / "README.md").read_text() == "# Changed\n"


@pytest.mark.asyncio
async def test_line_endings_are_preserved(synchronizer, workspace, checkout):
    workspace.write("/win.txt", "a\r\nb\r\n")

    await synchronizer.sync()

    assert (checkout.path / "win.txt").read_bytes() == b"a\r\nb\r\n"


@pytest.mark.asyncio
async def test_deletion_removes_file(synchronizer, workspace, checkout):
    workspace.delete("/README.md")

    result = await synchronizer.sync()

    assert result.synced == ["/README.md"]
    assert not (checkout.path / "README.md").exists()


@pytest.mark.asyncio
async def test_excluded_namespace_is_pruned(synchronizer, workspace, checkout):
    workspace.write("/node_modules/react/index.js", "module.exports = {};\n")

    result = await synchronizer.sync()

    assert result.skipped == ["/node_modules/react/index.js"]
    assert not (checkout.path / "node_modules").exists()
    assert workspace.ledger.dirty_paths() == []


@pytest.mark.asyncio
async def test_scaffold_paths_are_pruned(workspace, checkout):
    synchronizer = WorkspaceSynchronizer(workspace, checkout.path, scaffold_paths=["vite.config.js"])
    workspace.write("/vite.config.js", "export default {};\n")
    workspace.write("/src/App.js", "// app\n")

    result = await synchronizer.sync()

    assert result.skipped == ["/vite.config.js"]
    assert result.synced == ["/src/App.js"]
    assert not (checkout.path / "vite.config.js").exists()


@pytest.mark.asyncio
async def test_failed_path_gives_partial_result(synchronizer, workspace, checkout):
    (checkout.path / "blocker").write_text("not a directory")
    workspace.write("/blocker/inner.js", "x")
    workspace.write("/README.md", "# Still synced\n")

    result = await synchronizer.sync()

    assert result.status == SyncStatus.PARTIAL
    assert result.synced == ["/README.md"]
    assert [e.path for e in result.errors] == ["/blocker/inner.js"]
    assert "Error syncing file /blocker/inner.js" in str(result.errors[0])
    assert (checkout.path / "README.md").read_text() == "# Still synced\n"


@pytest.mark.asyncio
async def test_write_through_symlink_outside_checkout_is_refused(synchronizer, workspace, checkout, temp_dir):
    outside = temp_dir / "outside"
    outside.mkdir()
    (checkout.path / "link").symlink_to(outside, target_is_directory=True)
    workspace.write("/link/escaped.txt", "x")
    workspace.write("/README.md", "# Still synced\n")

    result = await synchronizer.sync()

    assert result.status == SyncStatus.PARTIAL
    assert result.synced == ["/README.md"]
    assert [e.path for e in result.errors] == ["/link/escaped.txt"]
    assert "outside the checkout" in str(result.errors[0])
    assert not (outside / "escaped.txt").exists()


@pytest.mark.asyncio
async def test_sync_locked_runs_under_held_lock(synchronizer, workspace):
    workspace.write("/README.md", "# Changed\n")

    async with workspace.lock:
        result = synchronizer.sync_locked()

    assert result.status == SyncStatus.OK


@pytest.mark.asyncio
async def test_sync_is_logged(workspace, checkout, temp_dir):
    logger = SessionLogger(temp_dir, run_id="sync")
    synchronizer = WorkspaceSynchronizer(workspace, checkout.path, logger=logger)
    workspace.write("/README.md", "# Changed\n")

    await synchronizer.sync()

    events = logger.events_path.read_text().splitlines()
    assert len(events) == 1
    assert '"event": "sync"' in events[0]
    assert '"status": "ok"' in events[0]


def test_pending_paths_leave_out_skipped_paths(workspace, checkout):
    synchronizer = WorkspaceSynchronizer(workspace, checkout.path, scaffold_paths=["/vite.config.js"])
    workspace.write("/README.md", "# Changed\n")
    workspace.write("/node_modules/x.js", "x")
    workspace.write("/vite.config.js", "{}")

    assert synchronizer.pending_paths() == ["/README.md"]


def test_reload_replaces_workspace_with_checkout(synchronizer, workspace, checkout):
    workspace.write("/README.md", "# Unsynced\n")
    (checkout.path / "src" / "App.js").write_text("export default 1;\n")
    synchronizer.has_synced = True

    count = synchronizer.reload_locked()

    assert count == len(workspace)
    assert workspace.read("/README.md") == "# Demo\n"
    assert workspace.read("/src/App.js") == "export default 1;\n"
    assert workspace.ledger.dirty_paths() == []
    assert not synchronizer.has_synced
