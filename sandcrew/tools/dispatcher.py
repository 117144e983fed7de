"""Routes named tool calls to their handlers."""

import inspect
from typing import Any, Callable, Optional

from sandcrew.errors import SandCrewError
from sandcrew.messages import ToolResult
from sandcrew.sandbox import Sandbox
from sandcrew.tools import external
from sandcrew.tools.files import FileTools
from sandcrew.tools.search import SearchTools
from sandcrew.utils.logging import SessionLogger
from sandcrew.workspace import Workspace


class ToolDispatcher:
    """Executes tool calls against the session workspace.

    Every call holds the workspace lock for its whole duration, so the
    synchronizer never observes a half-applied mutation. Handler failures
    come back as error results rather than exceptions.
    """

    def __init__(
        self,
        workspace: Workspace,
        sandbox: Sandbox,
        settle_delay: float = 0.05,
        logger: Optional[SessionLogger] = None,
    ):
        """Initialize the dispatcher.

        Args:
            workspace: Shared workspace buffer (with ledger and lock)
            sandbox: Sandbox notified of mutations
            settle_delay: Seconds to wait after each mutation
            logger: Optional session logger
        """
        self.workspace = workspace
        self.logger = logger
        self.files = FileTools(workspace, sandbox, settle_delay)
        self.search = SearchTools(workspace)

        self.handlers: dict[str, Callable[[dict[str, Any]], Any]] = {
            "create_file": self.files.create_file,
            "edit_file": self.files.edit_file,
            "delete_file": self.files.delete_file,
            "read_file": self.files.read_file,
            "list_dir": self.files.list_dir,
            "grep_search": self.search.grep_search,
            "file_search": self.search.file_search,
            "codebase_search": self.search.codebase_search,
            "run_terminal_cmd": external.run_terminal_cmd,
            "web_search": external.web_search,
            "diff_history": external.diff_history,
            "reapply": external.reapply,
        }

    async def dispatch(self, name: str, args: Optional[dict[str, Any]]) -> ToolResult:
        """Execute one tool call.

        Args:
            name: Tool name
            args: Tool input as parsed from the model response

        Returns:
            ToolResult with status "success" or "error"
        """
        handler = self.handlers.get(name)
        if handler is None:
            result = ToolResult.failure(f"Unknown tool: {name}")
            self._log(name, result)
            return result

        async with self.workspace.lock:
            try:
                result = handler(args or {})
                if inspect.isawaitable(result):
                    result = await result
            except SandCrewError as e:
                result = ToolResult.failure(str(e))
            except Exception as e:
                result = ToolResult.failure(f"Unexpected error in {name}: {e}")

        self._log(name, result)
        return result

    def _log(self, name: str, result: ToolResult) -> None:
        if self.logger:
            self.logger.log_event(
                "tool_dispatch",
                tool=name,
                status=result.status,
                error=result.error,
            )
