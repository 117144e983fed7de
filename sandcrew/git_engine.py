"""Diff, commit, branch, push and pull-request operations over the checkout."""

import asyncio
import json
from dataclasses import dataclass
from typing import Callable, Optional

from sandcrew.constants import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_BASE_BRANCH,
    FALLBACK_COMMIT_DESCRIPTION,
    FALLBACK_COMMIT_TITLE,
    NO_CHANGES,
)
from sandcrew.errors import AuthError, ExternalServiceError, NotFoundError, ValidationError
from sandcrew.hosting import GitHubClient, PullRequestRecord
from sandcrew.llm import CompletionClient, TextBlock
from sandcrew.sync import SyncStatus, WorkspaceSynchronizer
from sandcrew.utils.diffs import DiffSummary, positional_diff, summarize_diff
from sandcrew.utils.ignore import IgnoreRules
from sandcrew.utils.logging import SessionLogger
from sandcrew.vcs import GitRepository, StatusEntry

COMMIT_MESSAGE_PROMPT = """You are a helpful assistant that analyzes git diffs and writes good commit messages.
Given a git diff output, create a short, clear, and informative commit message and description.
Follow conventional commit format for the title (e.g., feat:, fix:, docs:, style:, refactor:, perf:, test:, build:, ci:, chore:).
The description should explain what changes were made and why they were necessary, but keep it concise.
Respond with JSON with 'title' and 'description' properties."""


@dataclass(frozen=True)
class CommitRecord:
    title: str
    description: str
    author_name: str
    author_email: str
    branch: Optional[str]
    sha: str


@dataclass(frozen=True)
class CommitMessage:
    title: str
    description: str


class DiffCommitEngine:
    """Turns workspace changes into diffs, commits, branches, pushes and PRs.

    Every operation that syncs or touches the checkout holds the workspace
    lock, so tool calls and version-control operations never interleave.
    """

    def __init__(
        self,
        synchronizer: WorkspaceSynchronizer,
        repo: GitRepository,
        hosting: Optional[GitHubClient] = None,
        completion: Optional[CompletionClient] = None,
        credential_provider: Optional[Callable[[], Optional[str]]] = None,
        author_name: str = DEFAULT_AUTHOR_NAME,
        author_email: str = DEFAULT_AUTHOR_EMAIL,
        base_branch: str = DEFAULT_BASE_BRANCH,
        logger: Optional[SessionLogger] = None,
    ):
        """Initialize the engine.

        Args:
            synchronizer: Synchronizer for the session workspace
            repo: Checkout repository
            hosting: GitHub client for pull requests
            completion: Completion client for commit messages
            credential_provider: Returns the push/PR token, or None if unavailable
            author_name: Default commit author name
            author_email: Default commit author email
            base_branch: Base branch for pull requests
            logger: Optional session logger
        """
        self.synchronizer = synchronizer
        self.workspace = synchronizer.workspace
        self.repo = repo
        self.hosting = hosting or GitHubClient()
        self.completion = completion
        self.credential_provider = credential_provider or (lambda: None)
        self.author_name = author_name
        self.author_email = author_email
        self.base_branch = base_branch
        self.logger = logger

    def compute_status(self, head: Optional[dict[str, bytes]] = None) -> list[StatusEntry]:
        return self.repo.status_matrix(IgnoreRules(self.repo.path), head=head)

    def is_modified(self, path: str, head: Optional[dict[str, bytes]] = None) -> bool:
        """Re-verify a path byte for byte against its HEAD blob.

        Args:
            path: Repository-relative path
            head: HEAD file map, when the caller already has one

        Returns:
            True if the working-directory content differs from HEAD
        """
        current = self.repo.read_workdir(path)
        original = self.repo.read_head_blob(path, head)
        if current is None:
            return original is not None
        if original is None:
            return True
        return current != original

    def changed_paths(self, head: Optional[dict[str, bytes]] = None) -> list[str]:
        """Paths flagged by the status matrix that also re-verify."""
        if head is None:
            head = self.repo.head_files()
        return [e.path for e in self.compute_status(head) if e.is_changed and self.is_modified(e.path, head)]

    def has_changes(self) -> bool:
        return bool(self.changed_paths())

    def reload_workspace_locked(self) -> int:
        """Load the checkout into the workspace; the caller must hold the session lock.

        Changes already written to the checkout by an earlier run count as
        synced, so the next diff reports them.

        Returns:
            Number of files loaded
        """
        count = self.synchronizer.reload_locked()
        self.synchronizer.has_synced = self.has_changes()
        return count

    async def generate_diff(self) -> str:
        """Sync the workspace and render a diff of every verified change.

        Returns:
            Diff text, or the NO_CHANGES sentinel
        """
        async with self.workspace.lock:
            sync_result = self.synchronizer.sync_locked()
            if sync_result.status == SyncStatus.NOOP and not self.synchronizer.has_synced:
                return NO_CHANGES

            head = self.repo.head_files()
            sections = []
            for path in self.changed_paths(head):
                old = self.repo.read_head_blob(path, head)
                new = self.repo.read_workdir(path)
                sections.append(
                    positional_diff(
                        path,
                        old.decode("utf-8", errors="replace") if old is not None else None,
                        new.decode("utf-8", errors="replace") if new is not None else None,
                    )
                )

        if not sections:
            return NO_CHANGES

        diff = "\n".join(sections)
        if self.logger:
            self.logger.save_diff("workspace", diff)
        return diff

    def summarize_diff(self, diff: str) -> DiffSummary:
        return summarize_diff(diff)

    async def commit(
        self,
        title: str,
        description: str = "",
        author: Optional[tuple[str, str]] = None,
    ) -> CommitRecord:
        """Sync, stage every verified change and commit it.

        Args:
            title: Commit title
            description: Optional commit body
            author: Optional (name, email); defaults to the configured identity

        Returns:
            CommitRecord for the new commit

        Raises:
            ValidationError: If the title is empty or nothing changed
        """
        if not title.strip():
            raise ValidationError("Commit title must not be empty")

        author_name, author_email = author or (self.author_name, self.author_email)
        message = title if not description else f"{title}\n\n{description}"

        async with self.workspace.lock:
            self.synchronizer.sync_locked()

            paths = self.changed_paths()
            if not paths:
                raise ValidationError("no changes to commit")

            for path in paths:
                if self.repo.read_workdir(path) is None:
                    self.repo.unstage(path)
                else:
                    self.repo.stage(path)

            sha = self.repo.commit(message, f"{author_name} <{author_email}>")
            self.workspace.ledger.clear()
            branch = self.repo.current_branch()

        if self.logger:
            self.logger.log_event("commit", sha=sha, branch=branch, title=title, paths=paths)

        return CommitRecord(
            title=title,
            description=description,
            author_name=author_name,
            author_email=author_email,
            branch=branch,
            sha=sha,
        )

    async def create_branch(self, name: str) -> None:
        """Create a branch if it does not exist, then check it out.

        Checking out a branch at another commit resets the checkout and
        reloads the workspace from it.

        Raises:
            ValidationError: If the name is invalid, or uncommitted changes
                would be lost by moving to another commit
            NotFoundError: If the branch cannot be resolved
        """
        name = name.strip()
        if not name or " " in name:
            raise ValidationError(f"Invalid branch name '{name}'")

        async with self.workspace.lock:
            created = name not in self.repo.branches()
            if created:
                self.repo.create_branch(name)
            try:
                moves = self.repo.branch_commit(name) != self.repo.head_commit()
                if moves and (self.synchronizer.pending_paths() or self.has_changes()):
                    raise ValidationError(f"Commit your changes before switching to branch {name}")
                self.repo.checkout(name)
            except KeyError:
                raise NotFoundError(f"Branch {name} does not exist")
            if moves:
                self.reload_workspace_locked()

        if self.logger:
            self.logger.log_event("branch", name=name, created=created, moved=moves)

    async def push(self, branch: Optional[str] = None) -> str:
        """Push a branch to origin.

        Args:
            branch: Branch to push (defaults to the current branch)

        Returns:
            The credential used, for reuse when opening a pull request

        Raises:
            AuthError: If no credential is available
            ExternalServiceError: If the push fails
        """
        credential = self.credential_provider()
        if not credential:
            raise AuthError("GitHub token is required to push changes")

        async with self.workspace.lock:
            branch = branch or self.repo.current_branch() or self.base_branch
            try:
                await asyncio.to_thread(self.repo.push, branch, username="token", password=credential)
            except Exception as e:
                raise ExternalServiceError(f"Error pushing changes: {e}") from e

        if self.logger:
            self.logger.log_event("push", branch=branch)

        return credential

    async def create_pull_request(
        self,
        repo: str,
        branch: str,
        title: str,
        body: str,
        credential: str,
    ) -> PullRequestRecord:
        """Open a pull request from ``branch`` into the base branch."""
        record = await asyncio.to_thread(
            self.hosting.create_pull_request,
            repo,
            branch,
            title,
            body,
            credential,
            base=self.base_branch,
        )

        if self.logger:
            self.logger.log_event("pull_request", repo=repo, branch=branch, number=record.number, url=record.url)

        return record

    async def generate_commit_message(self, diff: str) -> CommitMessage:
        """Ask the completion client for a conventional commit message.

        Falls back to a generic message when no client is configured, the
        call fails, or the reply is not the expected JSON.
        """
        fallback = CommitMessage(FALLBACK_COMMIT_TITLE, FALLBACK_COMMIT_DESCRIPTION)
        if self.completion is None:
            return fallback

        prompt = (
            f"Here is the diff output:\n\n{diff}\n\n"
            "Generate a conventional commit message title and description based on this diff."
        )

        try:
            blocks = await self.completion.complete(
                COMMIT_MESSAGE_PROMPT,
                [{"role": "user", "content": prompt}],
                [],
            )
        except Exception as e:
            if self.logger:
                self.logger.log_event("commit_message_failed", error=str(e))
            return fallback

        text = "".join(b.text for b in blocks if isinstance(b, TextBlock))
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end < start:
            return fallback

        try:
            parsed = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return fallback
        if not isinstance(parsed, dict):
            return fallback

        return CommitMessage(
            title=parsed.get("title") or fallback.title,
            description=parsed.get("description") or fallback.description,
        )
