"""File ignore rules handling using pathspec."""

import os
from pathlib import Path
from typing import Iterable, Iterator

import pathspec

from sandcrew.constants import BUILTIN_IGNORES

IGNORE_FILES = (".gitignore", ".sandcrewignore")


class IgnoreRules:
    """Handles ignore rules for a checkout from .gitignore and .sandcrewignore."""

    def __init__(self, root: Path, extra_patterns: Iterable[str] = ()):
        """Initialize ignore rules.

        Args:
            root: Checkout root to search for ignore files
            extra_patterns: Additional gitwildmatch patterns
        """
        self.root = root
        self.spec = self._build_spec(list(extra_patterns))

    def _build_spec(self, extra_patterns: list[str]) -> pathspec.PathSpec:
        """Build combined PathSpec from all ignore sources."""
        patterns = list(BUILTIN_IGNORES) + extra_patterns

        # Later files take precedence
        for name in IGNORE_FILES:
            ignore_path = self.root / name
            if ignore_path.is_file():
                patterns.extend(ignore_path.read_text(errors="replace").splitlines())

        # Filter out empty lines and comments
        patterns = [p.strip() for p in patterns if p.strip() and not p.strip().startswith("#")]

        return pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def should_ignore(self, path: Path) -> bool:
        """Check if a path should be ignored.

        Args:
            path: Path to check (absolute, or relative to the root)

        Returns:
            True if the path should be ignored
        """
        if path.is_absolute():
            try:
                path = path.relative_to(self.root)
            except ValueError:
                # Outside the checkout
                return True

        return self.spec.match_file(path.as_posix())

    def walk(self) -> Iterator[str]:
        """Yield every non-ignored file under the root.

        Yields:
            Root-relative POSIX paths, in sorted order
        """
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root)
            # Prune ignored directories before descending
            dirnames[:] = sorted(
                d for d in dirnames if not self.spec.match_file((rel_dir / d).as_posix() + "/")
            )
            for name in sorted(filenames):
                rel_path = (rel_dir / name).as_posix()
                if not self.spec.match_file(rel_path):
                    yield rel_path

    def get_patterns(self) -> list[str]:
        """Get all ignore patterns.

        Returns:
            List of pattern strings
        """
        return [p.pattern for p in self.spec.patterns]
