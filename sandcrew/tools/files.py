"""File tools: create, edit, delete, read and list against the workspace buffer."""

import asyncio
from typing import Any

from sandcrew.errors import NotFoundError, ValidationError
from sandcrew.messages import ToolResult
from sandcrew.sandbox import Sandbox
from sandcrew.tools.args import optional_bool, optional_int, require_str
from sandcrew.workspace import Workspace, normalize_path


class FileTools:
    """Handles file operations on the workspace buffer.

    Mutating handlers push the change into the sandbox, trigger a rebuild,
    and give it ``settle_delay`` seconds to start before reporting.
    """

    def __init__(self, workspace: Workspace, sandbox: Sandbox, settle_delay: float = 0.05):
        """Initialize FileTools.

        Args:
            workspace: Shared workspace buffer
            sandbox: Sandbox to notify of mutations
            settle_delay: Seconds to wait after a mutation
        """
        self.workspace = workspace
        self.sandbox = sandbox
        self.settle_delay = settle_delay

    async def create_file(self, args: dict[str, Any]) -> ToolResult:
        file_path = normalize_path(require_str(args, "file_path"))
        content = require_str(args, "content")

        existed = self.workspace.exists(file_path)
        previous = self.workspace.write(file_path, content)
        if existed:
            self.sandbox.update_file(file_path, content)
        else:
            self.sandbox.add_file(file_path, content)
        await self._settle()

        return ToolResult.success(
            f"File {file_path} created successfully",
            content=content,
            old_content=previous,
        )

    async def edit_file(self, args: dict[str, Any]) -> ToolResult:
        file_path = normalize_path(require_str(args, "file_path"))
        content = require_str(args, "content")

        if not self.workspace.exists(file_path):
            raise NotFoundError(f"File {file_path} does not exist")

        previous = self.workspace.write(file_path, content)
        self.sandbox.update_file(file_path, content)
        await self._settle()

        return ToolResult.success(
            f"File {file_path} updated successfully",
            old_content=previous,
            new_content=content,
        )

    async def delete_file(self, args: dict[str, Any]) -> ToolResult:
        file_path = normalize_path(require_str(args, "file_path"))

        if not self.workspace.exists(file_path):
            raise NotFoundError(f"File {file_path} does not exist")

        deleted = self.workspace.delete(file_path)
        self.sandbox.delete_file(file_path)
        await self._settle()

        return ToolResult.success(
            f"File {file_path} deleted successfully",
            deleted_content=deleted,
        )

    def read_file(self, args: dict[str, Any]) -> ToolResult:
        target = normalize_path(require_str(args, "target_file"))
        content = self.workspace.read(target)
        if content is None:
            raise NotFoundError(f"File {target} does not exist")

        lines = content.split("\n")

        if optional_bool(args, "should_read_entire_file"):
            return ToolResult.success(
                f"File {target} read successfully",
                content=content,
                line_count=len(lines),
            )

        start = optional_int(args, "start_line_one_indexed")
        end = optional_int(args, "end_line_one_indexed_inclusive")
        if start is None or end is None:
            raise ValidationError(
                "start_line_one_indexed and end_line_one_indexed_inclusive are required "
                "unless should_read_entire_file is true"
            )
        if start < 1 or start > len(lines) or end < start:
            raise ValidationError(f"Invalid line range: {start} to {end}")

        # Clamp the end to the last line
        end = min(end, len(lines))
        selected = lines[start - 1:end]

        return ToolResult.success(
            f"File {target} lines {start} to {end} read successfully",
            content="\n".join(selected),
            line_range={"start": start, "end": end},
            total_lines=len(lines),
        )

    def list_dir(self, args: dict[str, Any]) -> ToolResult:
        requested = require_str(args, "relative_workspace_path")
        directory = normalize_path(requested).rstrip("/")
        prefix = directory + "/"

        entries: list[str] = []
        for path in self.workspace.paths():
            if path == directory:
                entries.append(path.rsplit("/", 1)[-1])
                continue
            if not path.startswith(prefix):
                continue
            first_segment = path[len(prefix):].split("/")[0]
            if first_segment not in entries:
                entries.append(first_segment)

        return ToolResult.success(
            f"Directory {requested} listed successfully",
            files=entries,
            path=requested,
        )

    async def _settle(self) -> None:
        await self.sandbox.rebuild()
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)
