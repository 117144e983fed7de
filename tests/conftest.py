"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pytest

from sandcrew.config import Config
from sandcrew.llm import ContentBlock, TextBlock
from sandcrew.sandbox import NullSandbox
from sandcrew.sync import WorkspaceSynchronizer
from sandcrew.tools.dispatcher import ToolDispatcher
from sandcrew.utils.ignore import IgnoreRules
from sandcrew.vcs import GitRepository
from sandcrew.workspace import Workspace

TEST_AUTHOR = "Test User <test@example.com>"

SAMPLE_FILES = {
    "/package.json": '{\n  "name": "demo",\n  "version": "1.0.0"\n}\n',
    "/src/App.js": (
        "import React from 'react';\n"
        "\n"
        "export default function App() {\n"
        "  return <h1>Hello world</h1>;\n"
        "}\n"
    ),
    "/src/index.js": "import App from './App';\nrender(App);\n",
    "/README.md": "# Demo\n",
}


class ScriptedClient:
    """Completion client that replays canned replies and records each call.

    Each reply is a list of content blocks, or an exception to raise. Once
    the script runs out, ``default`` produces the reply.
    """

    def __init__(
        self,
        replies: Optional[list[Union[list[ContentBlock], Exception]]] = None,
        default: Optional[Callable[[int], list[ContentBlock]]] = None,
    ):
        self.replies = list(replies or [])
        self.default = default or (lambda n: [TextBlock(text="Done.")])
        self.calls: list[dict[str, Any]] = []

    async def complete(self, system, messages, tools):
        self.calls.append({"system": system, "messages": messages, "tools": tools})
        if self.replies:
            reply = self.replies.pop(0)
        else:
            reply = self.default(len(self.calls))
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_project(temp_dir):
    """Create a test project structure."""
    (temp_dir / "src").mkdir()
    (temp_dir / "src" / "App.js").write_text(SAMPLE_FILES["/src/App.js"])
    (temp_dir / "src" / "index.js").write_text(SAMPLE_FILES["/src/index.js"])
    (temp_dir / "README.md").write_text(SAMPLE_FILES["/README.md"])

    yield temp_dir


@pytest.fixture
def workspace():
    """Workspace loaded with the sample files."""
    return Workspace(SAMPLE_FILES)


@pytest.fixture
def sandbox():
    return NullSandbox()


@pytest.fixture
def dispatcher(workspace, sandbox):
    return ToolDispatcher(workspace, sandbox, settle_delay=0)


@pytest.fixture
def checkout(temp_dir):
    """A dulwich repository holding the sample files in one commit."""
    root = temp_dir / "checkout"
    repo = GitRepository.init(root)

    for path, content in SAMPLE_FILES.items():
        target = root / path.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        repo.stage(path.lstrip("/"))

    repo.commit("Initial commit", TEST_AUTHOR)
    yield repo
    repo.close()


@pytest.fixture
def synchronizer(workspace, checkout):
    return WorkspaceSynchronizer(workspace, checkout.path)


@pytest.fixture
def mock_config(temp_dir):
    """Create a mock configuration."""
    return Config(
        anthropic_api_key="test_key",
        github_token="ghp_test",
        settle_ms=0,
        checkout_dir=temp_dir / ".sandcrew" / "repo",
    )


@pytest.fixture
def ignore_rules(temp_dir):
    """Create ignore rules for temp directory."""
    return IgnoreRules(temp_dir)


@pytest.fixture
def make_client():
    """Factory for ScriptedClient instances."""
    return ScriptedClient
