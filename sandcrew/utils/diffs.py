"""Utilities for rendering and summarizing diffs."""

from dataclasses import dataclass, field
from typing import Optional

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError


@dataclass
class FileDiffStat:
    """Line counts for one file in a diff."""

    path: str
    added: int
    removed: int
    is_added_file: bool = False
    is_removed_file: bool = False


@dataclass
class DiffSummary:
    """Per-file line counts for a whole diff."""

    files: list[FileDiffStat] = field(default_factory=list)

    @property
    def added(self) -> int:
        return sum(f.added for f in self.files)

    @property
    def removed(self) -> int:
        return sum(f.removed for f in self.files)

    def __len__(self) -> int:
        return len(self.files)


def positional_diff(path: str, old: Optional[str], new: Optional[str]) -> str:
    """Render a whole-file diff by comparing lines at the same position.

    Lines are not aligned, so an insertion near the top shows every later
    line as changed. The hunk header always covers the whole file.

    Args:
        path: Repository-relative path (no leading slash)
        old: Content at HEAD, or None for a new file
        new: Working-directory content, or None for a deleted file

    Returns:
        Diff text for this file, without a trailing newline
    """
    old_lines = old.split("\n") if old is not None else []
    new_lines = new.split("\n") if new is not None else []

    out = [f"diff --git a/{path} b/{path}"]
    if old is None:
        out.append("new file mode 100644")
    elif new is None:
        out.append("deleted file mode 100644")
    out.append("--- /dev/null" if old is None else f"--- a/{path}")
    out.append("+++ /dev/null" if new is None else f"+++ b/{path}")
    out.append(f"@@ {_hunk_range('-', len(old_lines))} {_hunk_range('+', len(new_lines))} @@")

    if old is None:
        out.extend(f"+{line}" for line in new_lines)
    elif new is None:
        out.extend(f"-{line}" for line in old_lines)
    else:
        for i in range(max(len(old_lines), len(new_lines))):
            old_line = old_lines[i] if i < len(old_lines) else None
            new_line = new_lines[i] if i < len(new_lines) else None
            if old_line == new_line:
                out.append(f" {old_line}")
                continue
            if old_line is not None:
                out.append(f"-{old_line}")
            if new_line is not None:
                out.append(f"+{new_line}")

    return "\n".join(out)


def _hunk_range(sign: str, count: int) -> str:
    return f"{sign}0,0" if count == 0 else f"{sign}1,{count}"


def summarize_diff(diff: str) -> DiffSummary:
    """Count added and removed lines per file.

    Args:
        diff: Diff text as produced by positional_diff (one or more files)

    Returns:
        DiffSummary (empty if the text is not a parseable diff)
    """
    try:
        patchset = PatchSet(diff)
    except UnidiffParseError:
        return DiffSummary()

    files = []
    for patched_file in patchset:
        files.append(
            FileDiffStat(
                path=patched_file.path,
                added=patched_file.added,
                removed=patched_file.removed,
                is_added_file=patched_file.is_added_file,
                is_removed_file=patched_file.is_removed_file,
            )
        )
    return DiffSummary(files=files)
