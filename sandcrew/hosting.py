"""GitHub REST client for opening pull requests."""

import re
from dataclasses import dataclass
from typing import Optional

import httpx

from sandcrew.constants import DEFAULT_BASE_BRANCH, GITHUB_API_URL, GITHUB_API_VERSION
from sandcrew.errors import ExternalServiceError, ValidationError

_REPO_NAME = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class PullRequestRecord:
    number: int
    url: str


def parse_repo_name(full_name: str) -> tuple[str, str]:
    """Split "owner/repo" into its parts.

    Raises:
        ValidationError: If the name is not of the form owner/repo
    """
    full_name = full_name.strip()
    if full_name.endswith(".git"):
        full_name = full_name[:-4]
    if not _REPO_NAME.match(full_name):
        raise ValidationError(f"Invalid repository name '{full_name}': expected owner/repo")
    owner, repo = full_name.split("/")
    return owner, repo


def clone_url(full_name: str) -> str:
    owner, repo = parse_repo_name(full_name)
    return f"https://github.com/{owner}/{repo}.git"


def repo_name_from_url(url: str) -> Optional[str]:
    """Recover "owner/repo" from a GitHub clone URL, if it is one."""
    match = re.match(r"^(?:https://github\.com/|git@github\.com:)([^/]+/[^/]+?)(?:\.git)?/?$", url)
    return match.group(1) if match else None


class GitHubClient:
    """Minimal GitHub API client."""

    def __init__(
        self,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root
            timeout: Request timeout in seconds
            transport: Optional transport (tests pass httpx.MockTransport)
        """
        self._url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._url, timeout=timeout, transport=transport)

    def create_pull_request(
        self,
        repo: str,
        branch: str,
        title: str,
        body: str,
        credential: str,
        base: str = DEFAULT_BASE_BRANCH,
    ) -> PullRequestRecord:
        """Open a pull request from ``branch`` into ``base``.

        Args:
            repo: Repository as owner/repo
            branch: Head branch (already pushed)
            title: Pull request title
            body: Pull request description
            credential: GitHub token
            base: Base branch

        Returns:
            PullRequestRecord with the number and html URL

        Raises:
            ValidationError: If repo is not owner/repo
            ExternalServiceError: On transport failure or a non-2xx response
        """
        owner, name = parse_repo_name(repo)

        try:
            r = self._client.post(
                f"/repos/{owner}/{name}/pulls",
                headers={
                    "Accept": "application/vnd.github+json",
                    "Authorization": f"token {credential}",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
                json={"title": title, "body": body, "head": branch, "base": base},
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"GitHub API request failed: {e}")

        if not r.is_success:
            raise ExternalServiceError(
                f"GitHub API error: {r.status_code} - {r.text}",
                status_code=r.status_code,
            )

        data = r.json()
        return PullRequestRecord(number=data["number"], url=data["html_url"])

    def close(self) -> None:
        self._client.close()
