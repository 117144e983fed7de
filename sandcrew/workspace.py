"""Workspace buffer and change-tracking ledger."""

import asyncio
from typing import Iterator, Optional

from sandcrew.errors import ValidationError


def normalize_path(path: str) -> str:
    """Normalize a workspace path to its absolute, /-rooted form.

    "." segments and repeated slashes are dropped and ".." segments are
    resolved against the root.

    Args:
        path: Path as given by a tool or a checkout walk ("a.js", "./a.js", "/a.js")

    Returns:
        Normalized path ("/a.js")

    Raises:
        ValidationError: If ".." would climb above the workspace root
    """
    raw = path
    segments: list[str] = []
    for segment in path.strip().replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise ValidationError(f"Path '{raw}' escapes the workspace root")
            segments.pop()
            continue
        segments.append(segment)
    return "/" + "/".join(segments)


class ChangeLedger:
    """Tracks which workspace paths were mutated since the last commit.

    Each path keeps its last-known content. Marking a path with the content
    it already has is a no-op, so replaying a write never dirties the ledger.
    A content of None records a deletion.
    """

    def __init__(self):
        self._contents: dict[str, Optional[str]] = {}
        self._dirty: set[str] = set()

    def seed(self, files: dict[str, str]) -> None:
        """Record baseline contents without dirtying anything."""
        self._contents = {normalize_path(p): c for p, c in files.items()}
        self._dirty.clear()

    def mark_dirty(self, path: str, content: Optional[str]) -> bool:
        """Record a mutation.

        Returns:
            True if the path became (or stayed) dirty, False if the write was a no-op
        """
        path = normalize_path(path)
        if path in self._contents and self._contents[path] == content:
            return False
        self._contents[path] = content
        self._dirty.add(path)
        return True

    def content_of(self, path: str) -> Optional[str]:
        return self._contents.get(normalize_path(path))

    def dirty_paths(self) -> list[str]:
        return sorted(self._dirty)

    def is_dirty(self, path: str) -> bool:
        return normalize_path(path) in self._dirty

    def prune(self, path: str) -> None:
        """Stop tracking a path that must never reach the checkout."""
        self._dirty.discard(normalize_path(path))

    def clear(self) -> None:
        """Forget all pending changes (after a successful commit)."""
        self._dirty.clear()

    def __len__(self) -> int:
        return len(self._dirty)


class Workspace:
    """Live in-memory file set backing the editable environment.

    The workspace, its ledger and the session lock are shared by the tool
    dispatcher and the synchronizer. Anything reading or mutating both must
    hold ``lock``.
    """

    def __init__(self, files: Optional[dict[str, str]] = None):
        self._files: dict[str, str] = {}
        self.ledger = ChangeLedger()
        self.lock = asyncio.Lock()
        self.active_file: Optional[str] = None
        if files:
            self.load(files)

    def load(self, files: dict[str, str]) -> None:
        """Replace the buffer and reseed the ledger baseline."""
        self._files = {normalize_path(p): c for p, c in files.items()}
        self.ledger.seed(self._files)
        self.active_file = None

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def read(self, path: str) -> Optional[str]:
        return self._files.get(normalize_path(path))

    def write(self, path: str, content: str) -> Optional[str]:
        """Write a file and mark the ledger.

        Returns:
            Previous content, or None if the file is new
        """
        path = normalize_path(path)
        previous = self._files.get(path)
        self._files[path] = content
        self.ledger.mark_dirty(path, content)
        self.active_file = path
        return previous

    def delete(self, path: str) -> str:
        """Delete a file and record the deletion in the ledger.

        Returns:
            Content of the deleted file

        Raises:
            KeyError: If the file does not exist
        """
        path = normalize_path(path)
        previous = self._files[path]
        self.ledger.mark_dirty(path, None)
        del self._files[path]
        if self.active_file == path:
            self.active_file = None
        return previous

    def paths(self) -> list[str]:
        return sorted(self._files)

    def snapshot(self) -> dict[str, str]:
        """Copy of the buffer for read-only tools."""
        return dict(self._files)

    def items(self) -> Iterator[tuple[str, str]]:
        for path in self.paths():
            yield path, self._files[path]

    def __len__(self) -> int:
        return len(self._files)
