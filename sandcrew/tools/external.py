"""Tools backed by services the engine does not run; they return fixed placeholders."""

from typing import Any

from sandcrew.messages import ToolResult
from sandcrew.tools.args import require_str


def run_terminal_cmd(args: dict[str, Any]) -> ToolResult:
    command = require_str(args, "command")
    return ToolResult.success(
        "Terminal command execution simulated",
        command=command,
        output=f"[Simulated output] Command execution for: {command}",
    )


def web_search(args: dict[str, Any]) -> ToolResult:
    search_term = require_str(args, "search_term")
    return ToolResult.success(
        "Web search simulated",
        search_term=search_term,
        results=[
            {
                "title": "Simulated search result 1",
                "url": "https://example.com/1",
                "snippet": "This is a simulated search result.",
            },
            {
                "title": "Simulated search result 2",
                "url": "https://example.com/2",
                "snippet": "Another simulated search result.",
            },
        ],
    )


def diff_history(args: dict[str, Any]) -> ToolResult:
    return ToolResult.success(
        "Diff history retrieved (simulated)",
        changes=[
            {"file": "example.js", "additions": 5, "deletions": 2},
            {"file": "README.md", "additions": 1, "deletions": 0},
        ],
    )


def reapply(args: dict[str, Any]) -> ToolResult:
    target_file = require_str(args, "target_file")
    return ToolResult.success(
        f"Attempted to reapply last edit to {target_file}",
        file=target_file,
    )
