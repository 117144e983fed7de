"""Interface to the code-execution sandbox that renders the workspace."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Sandbox(Protocol):
    """Primitives the tool dispatcher drives after every buffer mutation."""

    def add_file(self, path: str, content: str) -> None: ...

    def update_file(self, path: str, content: str) -> None: ...

    def delete_file(self, path: str) -> None: ...

    async def rebuild(self) -> None: ...


class NullSandbox:
    """Sandbox that runs nothing and only records what it was asked to do.

    Used by the terminal front end, which has no preview, and by tests.
    """

    def __init__(self):
        self.operations: list[tuple[str, str]] = []
        self.rebuilds = 0

    def add_file(self, path: str, content: str) -> None:
        self.operations.append(("add", path))

    def update_file(self, path: str, content: str) -> None:
        self.operations.append(("update", path))

    def delete_file(self, path: str) -> None:
        self.operations.append(("delete", path))

    async def rebuild(self) -> None:
        self.rebuilds += 1
