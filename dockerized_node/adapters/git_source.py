"""Git source adapter for the compose definition repository."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

import httpx

from .commands import adapter_run_command
from .errors import SourceFetchError
from .interfaces import SourceFetcherPort

logger = logging.getLogger(__name__)


class GitSourceFetcher(SourceFetcherPort):
    """Adapter cloning repositories with `git` and resolving revisions with the GitHub API."""

    _USER_AGENT: Final[str] = "dockerized-node-manager/1.0 (Python/httpx)"

    def __init__(
        self,
        github_api_base_url: str = "https://api.github.com",
        git_executable: str = "git",
        request_timeout_seconds: float = 30.0,
        command_timeout_seconds: float | None = None,
        http_client: httpx.Client | None = None,
    ):
        """Initialize git source adapter.

        Args:
            github_api_base_url: GitHub REST API base URL.
            git_executable: Git executable name or path.
            request_timeout_seconds: HTTP timeout for revision lookups.
            command_timeout_seconds: Optional timeout for one git command.
            http_client: Optional preconfigured client, used by tests.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_api_base_url = github_api_base_url.strip()
        normalized_git_executable = git_executable.strip()
        if not normalized_api_base_url:
            raise ValueError("github_api_base_url must not be blank")
        if not normalized_git_executable:
            raise ValueError("git_executable must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._github_api_base_url = normalized_api_base_url.rstrip("/")
        self._git_executable = normalized_git_executable
        self._command_timeout_seconds = command_timeout_seconds
        self._http_client = http_client or httpx.Client(
            timeout=request_timeout_seconds,
            headers={"User-Agent": self._USER_AGENT, "Accept": "application/vnd.github+json"},
        )

    def adapter_clone_or_fetch(self, repository_url: str, destination_path: Path) -> None:
        """Clone into an empty destination, otherwise fetch and fast-forward the checkout.

        Args:
            repository_url: Git clone URL.
            destination_path: Local checkout directory.

        Raises:
            SourceFetchError: Raised when git fails or the destination is not a checkout.
        """

        normalized_repository_url = repository_url.strip()
        if not normalized_repository_url:
            raise ValueError("repository_url must not be blank")

        if (destination_path / ".git").is_dir():
            logger.info("Updating source checkout at %s", destination_path)
            self._adapter_run_git("-C", str(destination_path), "fetch", "--prune", "origin")
            self._adapter_run_git("-C", str(destination_path), "pull", "--ff-only")
            return

        if destination_path.exists() and (not destination_path.is_dir() or any(destination_path.iterdir())):
            raise SourceFetchError(f"Destination exists and is not a git checkout: {destination_path}")

        try:
            destination_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise SourceFetchError(f"Cannot create checkout parent directory: {destination_path.parent}") from error

        logger.info("Cloning %s into %s", normalized_repository_url, destination_path)
        self._adapter_run_git("clone", normalized_repository_url, str(destination_path))

    def adapter_resolve_latest_revision(self, repository_name: str) -> str:
        """Return the latest commit hash on the default branch.

        Args:
            repository_name: Repository identifier in `owner/name` form.

        Returns:
            str: Latest commit hash.

        Raises:
            SourceFetchError: Raised when the API is unreachable or responds unexpectedly.
        """

        normalized_repository_name = repository_name.strip().strip("/")
        if not normalized_repository_name:
            raise ValueError("repository_name must not be blank")

        commits_url = f"{self._github_api_base_url}/repos/{normalized_repository_name}/commits"
        try:
            response = self._http_client.get(commits_url, params={"per_page": "1"})
            response.raise_for_status()
            commits_payload = response.json()
        except httpx.HTTPStatusError as error:
            raise SourceFetchError(
                f"Latest revision lookup returned HTTP {error.response.status_code} for {normalized_repository_name}"
            ) from error
        except httpx.HTTPError as error:
            raise SourceFetchError(f"Latest revision lookup failed for {normalized_repository_name}") from error
        except ValueError as error:
            raise SourceFetchError("Latest revision lookup returned a non-JSON body") from error

        if not isinstance(commits_payload, list) or not commits_payload:
            raise SourceFetchError(f"No commits found for {normalized_repository_name}")
        latest_commit = commits_payload[0]
        commit_hash = str(latest_commit.get("sha") or "").strip() if isinstance(latest_commit, dict) else ""
        if not commit_hash:
            raise SourceFetchError(f"Latest commit for {normalized_repository_name} has no sha")
        return commit_hash

    def adapter_close(self) -> None:
        """Close the pooled HTTP client."""

        self._http_client.close()

    def _adapter_run_git(self, *arguments: str) -> str:
        return adapter_run_command(
            [self._git_executable, *arguments],
            error_type=SourceFetchError,
            timeout_seconds=self._command_timeout_seconds,
        )
