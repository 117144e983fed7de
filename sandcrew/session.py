"""Session wiring: one workspace, lock, agent and git engine per project."""

import asyncio
import shutil
from pathlib import Path
from typing import Callable, Optional

from sandcrew.agent import Agent
from sandcrew.config import Config
from sandcrew.constants import STATE_DIR
from sandcrew.conversation import SessionStore
from sandcrew.errors import ValidationError
from sandcrew.git_engine import DiffCommitEngine
from sandcrew.hosting import GitHubClient, clone_url, parse_repo_name, repo_name_from_url
from sandcrew.llm import LLM, CompletionClient
from sandcrew.sandbox import NullSandbox, Sandbox
from sandcrew.sync import WorkspaceSynchronizer
from sandcrew.tools.dispatcher import ToolDispatcher
from sandcrew.utils.logging import SessionLogger
from sandcrew.vcs import GitRepository
from sandcrew.workspace import Workspace

Cloner = Callable[[str, Path], GitRepository]


def _default_clone(url: str, path: Path) -> GitRepository:
    return GitRepository.clone(url, path, depth=1)


class Session:
    """Everything one project needs, with no module-level state."""

    def __init__(
        self,
        project_root: Path,
        config: Config,
        client: Optional[CompletionClient] = None,
        sandbox: Optional[Sandbox] = None,
        hosting: Optional[GitHubClient] = None,
        credential_provider: Optional[Callable[[], Optional[str]]] = None,
        cloner: Optional[Cloner] = None,
        logger: Optional[SessionLogger] = None,
    ):
        """Initialize the session.

        Args:
            project_root: Directory holding .sandcrew/
            config: Loaded configuration
            client: Completion client (built from config when omitted)
            sandbox: Sandbox to drive (NullSandbox when omitted)
            hosting: GitHub client for pull requests
            credential_provider: Returns the GitHub token (config token by default)
            cloner: Clones a URL into a directory (dulwich shallow clone by default)
            logger: Session logger (a new run is started when omitted)
        """
        self.project_root = project_root
        self.config = config
        self.checkout_dir = config.checkout_dir or project_root / STATE_DIR / "repo"
        self.logger = logger or SessionLogger(project_root)

        if client is None:
            if not config.anthropic_api_key:
                raise ValueError("No Anthropic API key found. Set ANTHROPIC_API_KEY in .env")
            client = LLM(
                LLM.parse_model_string(config.default_model),
                config.anthropic_api_key,
                timeout=config.request_timeout,
            )
        self.client = client

        self.hosting = hosting or GitHubClient()
        self.credential_provider = credential_provider or (lambda: self.config.github_token)
        self.cloner = cloner or _default_clone

        self.workspace = Workspace()
        self.sandbox = sandbox or NullSandbox()
        self.dispatcher = ToolDispatcher(
            self.workspace,
            self.sandbox,
            settle_delay=config.settle_delay,
            logger=self.logger,
        )
        self.synchronizer = WorkspaceSynchronizer(
            self.workspace,
            self.checkout_dir,
            scaffold_paths=config.scaffold_paths,
            logger=self.logger,
        )
        self.agent = Agent(
            self.client,
            self.dispatcher,
            store=SessionStore(project_root),
            max_tool_rounds=config.max_tool_rounds,
            logger=self.logger,
        )

        self.repo: Optional[GitRepository] = None
        self.engine: Optional[DiffCommitEngine] = None
        self.repo_name: Optional[str] = None

        if (self.checkout_dir / ".git").is_dir():
            self._attach(GitRepository(self.checkout_dir))

    @property
    def connected(self) -> bool:
        return self.engine is not None

    async def connect(self, full_name: str) -> int:
        """Clone a GitHub repository and load it into the workspace.

        Any existing checkout is replaced.

        Args:
            full_name: Repository as owner/repo

        Returns:
            Number of files loaded into the workspace
        """
        parse_repo_name(full_name)

        async with self.workspace.lock:
            if self.repo:
                self.repo.close()
            if self.checkout_dir.exists():
                shutil.rmtree(self.checkout_dir)
            self.checkout_dir.parent.mkdir(parents=True, exist_ok=True)

            repo = await asyncio.to_thread(self.cloner, clone_url(full_name), self.checkout_dir)
            self._attach(repo, full_name)

        self.logger.log_event("connect", repo=full_name, files=len(self.workspace))
        return len(self.workspace)

    def _attach(self, repo: GitRepository, full_name: Optional[str] = None) -> None:
        self.repo = repo
        self.repo_name = full_name or repo_name_from_url(repo.remote_url() or "")

        self.engine = DiffCommitEngine(
            self.synchronizer,
            repo,
            hosting=self.hosting,
            completion=self.client,
            credential_provider=self.credential_provider,
            author_name=self.config.author_name,
            author_email=self.config.author_email,
            base_branch=self.config.base_branch,
            logger=self.logger,
        )
        self.engine.reload_workspace_locked()

    def set_client(self, client: CompletionClient) -> None:
        """Swap the completion client everywhere it is used."""
        self.client = client
        self.agent.client = client
        self.agent.turn_graph.client = client
        if self.engine:
            self.engine.completion = client

    def require_engine(self) -> DiffCommitEngine:
        if self.engine is None:
            raise ValidationError("Not connected to a repository. Use /connect owner/repo first")
        return self.engine

    def close(self) -> None:
        if self.repo:
            self.repo.close()
        self.hosting.close()
