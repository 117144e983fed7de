"""Reconciles the workspace buffer into the version-controlled checkout."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from sandcrew.constants import BINARY_EXTENSIONS, EXCLUDED_NAMESPACES
from sandcrew.errors import SyncError
from sandcrew.utils.ignore import IgnoreRules
from sandcrew.utils.logging import SessionLogger
from sandcrew.vcs import is_binary_file
from sandcrew.workspace import Workspace, normalize_path


class SyncStatus(str, Enum):
    NOOP = "noop"
    PARTIAL = "partial"
    OK = "ok"


@dataclass
class SyncResult:
    """Outcome of one synchronization pass."""

    status: SyncStatus
    synced: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[SyncError] = field(default_factory=list)


def is_excluded(path: str) -> bool:
    """Check whether a path lies inside a namespace never written to the checkout."""
    segments = normalize_path(path).split("/")
    return any(segment in EXCLUDED_NAMESPACES for segment in segments)


def load_checkout_files(root: Path) -> dict[str, str]:
    """Read every text file of a checkout into a buffer mapping.

    Ignored paths, excluded namespaces and binary files are skipped.

    Args:
        root: Checkout root

    Returns:
        Mapping of normalized workspace path to content
    """
    files = {}
    for rel_path in IgnoreRules(root).walk():
        path = "/" + rel_path
        if is_excluded(path):
            continue
        if Path(rel_path).suffix.lower() in BINARY_EXTENSIONS:
            continue

        full_path = root / rel_path
        if is_binary_file(full_path):
            continue
        try:
            with open(full_path, encoding="utf-8", newline="") as f:
                files[path] = f.read()
        except UnicodeDecodeError:
            continue
    return files


class WorkspaceSynchronizer:
    """Writes every dirty workspace path into the checkout directory.

    Dirty entries survive a sync; only a commit clears them. Running sync
    twice in a row therefore rewrites the same bytes and leaves the
    checkout unchanged.
    """

    def __init__(
        self,
        workspace: Workspace,
        checkout_dir: Path,
        scaffold_paths: Iterable[str] = (),
        logger: Optional[SessionLogger] = None,
    ):
        """Initialize the synchronizer.

        Args:
            workspace: Shared workspace buffer (with ledger and lock)
            checkout_dir: Root of the version-controlled checkout
            scaffold_paths: Build-scaffold files that must never be tracked
            logger: Optional session logger
        """
        self.workspace = workspace
        self.checkout_dir = checkout_dir
        self.scaffold_paths = {normalize_path(p) for p in scaffold_paths}
        self.logger = logger
        self.has_synced = False

    def reload_locked(self) -> int:
        """Replace the workspace with the checkout's current files.

        Pending changes are discarded. The caller must hold the session lock.

        Returns:
            Number of files loaded
        """
        self.workspace.load(load_checkout_files(self.checkout_dir))
        self.has_synced = False
        return len(self.workspace)

    def pending_paths(self) -> list[str]:
        """Dirty paths that the next sync would write to the checkout."""
        return [p for p in self.workspace.ledger.dirty_paths() if not self._is_skipped(p)]

    async def sync(self) -> SyncResult:
        """Synchronize under the session lock."""
        async with self.workspace.lock:
            return self.sync_locked()

    def sync_locked(self) -> SyncResult:
        """Synchronize; the caller must already hold the session lock.

        Returns:
            SyncResult with NOOP when nothing is dirty, PARTIAL when any
            path failed, OK otherwise
        """
        ledger = self.workspace.ledger
        dirty = ledger.dirty_paths()
        if not dirty:
            return SyncResult(status=SyncStatus.NOOP)

        result = SyncResult(status=SyncStatus.OK)

        for path in dirty:
            if self._is_skipped(path):
                ledger.prune(path)
                result.skipped.append(path)
                continue

            try:
                self._write(path, ledger.content_of(path))
            except SyncError as e:
                result.errors.append(e)
                continue
            except OSError as e:
                result.errors.append(SyncError(path, str(e)))
                continue

            result.synced.append(path)
            self.has_synced = True

        if result.errors:
            result.status = SyncStatus.PARTIAL

        if self.logger:
            self.logger.log_event(
                "sync",
                status=result.status.value,
                synced=result.synced,
                skipped=result.skipped,
                errors=[str(e) for e in result.errors],
            )

        return result

    def _is_skipped(self, path: str) -> bool:
        return is_excluded(path) or path in self.scaffold_paths

    def _write(self, path: str, content: Optional[str]) -> None:
        root = self.checkout_dir.resolve()
        target = root / path.lstrip("/")
        # Symlinks inside the checkout may point anywhere
        if not target.resolve().is_relative_to(root):
            raise SyncError(path, "path resolves outside the checkout")

        if content is None:
            if target.exists():
                target.unlink()
            return

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except FileExistsError:
            # A file sits where a directory is needed; the write below reports it
            pass

        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(content)
