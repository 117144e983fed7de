"""End-to-end tests for session wiring."""

import asyncio
import threading

import pytest

from sandcrew.constants import NO_CHANGES
from sandcrew.errors import ValidationError
from sandcrew.llm import TextBlock, ToolUseBlock
from sandcrew.session import Session
from sandcrew.sync import load_checkout_files
from sandcrew.vcs import GitRepository

from conftest import SAMPLE_FILES, TEST_AUTHOR


def _populate(root):
    for path, content in SAMPLE_FILES.items():
        target = root / path.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    (root / "logo.png").write_bytes(b"\x89PNG\r\n")
    (root / "data.bin").write_bytes(b"abc\0def")
    (root / "node_modules" / "react").mkdir(parents=True)
    (root / "node_modules" / "react" / "index.js").write_text("module.exports = {};\n")


class FakeCloner:
    """Builds a local repository instead of cloning over the network."""

    def __init__(self):
        self.urls = []

    def __call__(self, url, path):
        self.urls.append(url)
        repo = GitRepository.init(path)
        _populate(path)
        for rel in ["README.md", "package.json", "src/App.js", "src/index.js", "logo.png", "data.bin"]:
            repo.stage(rel)
        repo.commit("Initial commit", TEST_AUTHOR)
        return repo


@pytest.fixture
def cloner():
    return FakeCloner()


@pytest.fixture
def session(temp_dir, mock_config, make_client, cloner):
    session = Session(temp_dir, mock_config, client=make_client(), cloner=cloner)
    yield session
    session.close()


def test_load_checkout_files_skips_binary_and_ignored(temp_dir):
    _populate(temp_dir)

    files = load_checkout_files(temp_dir)

    assert sorted(files) == sorted(SAMPLE_FILES)
    assert files["/src/index.js"] == SAMPLE_FILES["/src/index.js"]


def test_missing_api_key(temp_dir, mock_config):
    mock_config.anthropic_api_key = None

    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        Session(temp_dir, mock_config)


def test_not_connected(session):
    assert not session.connected
    with pytest.raises(ValidationError, match="/connect"):
        session.require_engine()


@pytest.mark.asyncio
async def test_connect_loads_workspace(session, cloner):
    count = await session.connect("octo/demo")

    assert count == 4
    assert cloner.urls == ["https://github.com/octo/demo.git"]
    assert session.connected
    assert session.repo_name == "octo/demo"
    assert session.workspace.paths() == sorted(SAMPLE_FILES)
    assert session.workspace.ledger.dirty_paths() == []


@pytest.mark.asyncio
async def test_connect_rejects_malformed_name(session, cloner):
    with pytest.raises(ValidationError):
        await session.connect("not-a-repo")

    assert cloner.urls == []


@pytest.mark.asyncio
async def test_reconnect_replaces_checkout(session):
    await session.connect("octo/demo")
    await session.dispatcher.dispatch("create_file", {"file_path": "/stale.js", "content": "x"})
    await session.require_engine().generate_diff()

    await session.connect("octo/other")

    assert not (session.checkout_dir / "stale.js").exists()
    assert not session.workspace.exists("/stale.js")
    assert session.repo_name == "octo/other"


@pytest.mark.asyncio
async def test_existing_checkout_is_attached(temp_dir, mock_config, make_client, session):
    await session.connect("octo/demo")

    reopened = Session(temp_dir, mock_config, client=make_client())

    assert reopened.connected
    assert reopened.workspace.paths() == sorted(SAMPLE_FILES)
    reopened.close()


@pytest.mark.asyncio
async def test_reopened_session_reports_changes_synced_earlier(temp_dir, mock_config, make_client, session):
    await session.connect("octo/demo")
    await session.dispatcher.dispatch("edit_file", {"file_path": "/README.md", "content": "# Edited\n"})
    assert "+# Edited" in await session.require_engine().generate_diff()

    reopened = Session(temp_dir, mock_config, client=make_client())
    diff = await reopened.require_engine().generate_diff()

    assert "+# Edited" in diff
    assert reopened.workspace.read("/README.md") == "# Edited\n"
    reopened.close()


@pytest.mark.asyncio
async def test_connect_does_not_block_the_event_loop(temp_dir, mock_config, make_client):
    started = threading.Event()
    release = threading.Event()
    released = []
    inner = FakeCloner()

    def slow_cloner(url, path):
        started.set()
        released.append(release.wait(timeout=2))
        return inner(url, path)

    session = Session(temp_dir, mock_config, client=make_client(), cloner=slow_cloner)
    task = asyncio.create_task(session.connect("octo/demo"))
    while not started.is_set():
        await asyncio.sleep(0.01)
    release.set()

    assert await task == 4
    assert released == [True]
    session.close()


@pytest.mark.asyncio
async def test_edit_diff_commit(session):
    await session.connect("octo/demo")
    engine = session.require_engine()

    assert await engine.generate_diff() == NO_CHANGES

    await session.dispatcher.dispatch("edit_file", {"file_path": "/README.md", "content": "# Edited\n"})
    diff = await engine.generate_diff()
    assert "+# Edited" in diff

    record = await engine.commit("docs: edit readme")

    assert record.author_name == session.config.author_name
    assert session.repo.read_head_blob("README.md") == b"# Edited\n"
    assert await engine.generate_diff() == NO_CHANGES


@pytest.mark.asyncio
async def test_agent_edits_reach_the_diff(temp_dir, mock_config, make_client, cloner):
    client = make_client(
        [
            [ToolUseBlock(id="t1", name="create_file", input={"file_path": "/src/util.js", "content": "export {};\n"})],
            [TextBlock(text="Created the helper.")],
        ]
    )
    session = Session(temp_dir, mock_config, client=client, cloner=cloner)
    await session.connect("octo/demo")

    await session.agent.submit("add a helper module")
    diff = await session.require_engine().generate_diff()

    assert "diff --git a/src/util.js b/src/util.js" in diff
    assert "new file mode 100644" in diff
    assert session.sandbox.operations == [("add", "/src/util.js")]
    session.close()


@pytest.mark.asyncio
async def test_scaffold_paths_never_reach_checkout(temp_dir, mock_config, make_client, cloner):
    mock_config.scaffold_paths = ["/vite.config.js"]
    session = Session(temp_dir, mock_config, client=make_client(), cloner=cloner)
    await session.connect("octo/demo")

    await session.dispatcher.dispatch("create_file", {"file_path": "/vite.config.js", "content": "{}"})

    assert await session.require_engine().generate_diff() == NO_CHANGES
    assert not (session.checkout_dir / "vite.config.js").exists()
    session.close()


def test_set_client_swaps_everywhere(session, make_client):
    replacement = make_client()

    session.set_client(replacement)

    assert session.agent.client is replacement
    assert session.agent.turn_graph.client is replacement
