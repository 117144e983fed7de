"""Read-only search tools over a workspace snapshot."""

import re
from typing import Any, Optional

import pathspec

from sandcrew.errors import ValidationError
from sandcrew.messages import ToolResult
from sandcrew.tools.args import optional_bool, optional_str, optional_str_list, require_str
from sandcrew.workspace import Workspace

FILE_SEARCH_LIMIT = 10
CONTEXT_LINES = 2


def _glob_spec(pattern: Optional[str]) -> Optional[pathspec.PathSpec]:
    if not pattern:
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", [pattern])


def _relative(path: str) -> str:
    return path.lstrip("/")


class SearchTools:
    """Text, filename and snippet search over the workspace buffer."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def grep_search(self, args: dict[str, Any]) -> ToolResult:
        """Regex search, line by line.

        Args:
            args: Tool input with ``query`` and optional ``include_pattern``,
                ``exclude_pattern`` and ``case_sensitive``

        Returns:
            Result with one entry per file that has at least one matching line
        """
        query = require_str(args, "query")
        include = _glob_spec(optional_str(args, "include_pattern"))
        exclude = _glob_spec(optional_str(args, "exclude_pattern"))
        flags = 0 if optional_bool(args, "case_sensitive") else re.IGNORECASE

        try:
            regex = re.compile(query, flags)
        except re.error as e:
            raise ValidationError(f"Invalid regular expression '{query}': {e}")

        results = []
        for path, content in self.workspace.snapshot().items():
            if include and not include.match_file(_relative(path)):
                continue
            if exclude and exclude.match_file(_relative(path)):
                continue

            matches = []
            for line_number, line in enumerate(content.split("\n"), start=1):
                spans = [{"text": m.group(0), "index": m.start()} for m in regex.finditer(line)]
                if spans:
                    matches.append({"line": line_number, "content": line, "matches": spans})

            if matches:
                results.append({"file": path, "matches": matches})

        results.sort(key=lambda r: r["file"])
        return ToolResult.success(
            f'Found {len(results)} files with matches for "{query}"',
            query=query,
            results=results,
        )

    def file_search(self, args: dict[str, Any]) -> ToolResult:
        query = require_str(args, "query")
        needle = query.lower()

        matching = [p for p in self.workspace.paths() if needle in p.lower()]
        matching.sort(key=lambda p: (len(p), p))
        matching = matching[:FILE_SEARCH_LIMIT]

        return ToolResult.success(
            f'Found {len(matching)} files matching "{query}"',
            query=query,
            files=matching,
        )

    def codebase_search(self, args: dict[str, Any]) -> ToolResult:
        """Case-insensitive snippet search with surrounding context.

        ``target_directories`` entries are treated as path prefixes, or as
        globs when they contain wildcard characters.
        """
        query = require_str(args, "query")
        targets = optional_str_list(args, "target_directories")
        needle = query.lower()

        results = []
        for path, content in self.workspace.items():
            if targets and not self._in_targets(path, targets):
                continue
            if needle not in content.lower():
                continue

            lines = content.split("\n")
            snippets = []
            for index, line in enumerate(lines):
                if needle not in line.lower():
                    continue
                start = max(0, index - CONTEXT_LINES)
                end = min(len(lines) - 1, index + CONTEXT_LINES)
                snippets.append(
                    {
                        "line_number": index + 1,
                        "context": "\n".join(lines[start:end + 1]),
                        "context_range": {"start": start + 1, "end": end + 1},
                    }
                )

            if snippets:
                results.append({"file": path, "match_count": len(snippets), "snippets": snippets})

        return ToolResult.success(
            f'Found {len(results)} files with content matching "{query}"',
            query=query,
            results=results,
        )

    def _in_targets(self, path: str, targets: list[str]) -> bool:
        for target in targets:
            if any(ch in target for ch in "*?["):
                if pathspec.PathSpec.from_lines("gitwildmatch", [target]).match_file(_relative(path)):
                    return True
            elif path.startswith(target) or _relative(path).startswith(target):
                return True
        return False
