from __future__ import annotations

from typing import Protocol

from .domain.models import Deployment, WorkflowRun


class GitHubPort(Protocol):
    """Port for the GitHub REST operations used by the protection rule flow.

    Every method raises ``RemoteCallError`` when the remote call fails.
    Implementations are bound to a single installation.
    """

    def get_deployment(self, *, owner: str, repo: str, deployment_id: int) -> Deployment:
        """Fetch a deployment to learn the commit it points at."""
        ...

    def list_workflow_runs(
        self,
        *,
        owner: str,
        repo: str,
        head_sha: str,
        per_page: int = 1,
    ) -> list[WorkflowRun]:
        """List workflow runs for a commit, most recent first."""
        ...

    def get_file_content(self, *, owner: str, repo: str, path: str, ref: str) -> str:
        """Return the base64-encoded content of a file at ``ref``."""
        ...

    def submit_protection_rule_decision(
        self,
        *,
        owner: str,
        repo: str,
        run_id: int,
        environment_name: str,
        state: str,
        comment: str,
    ) -> None:
        """Approve or reject a pending deployment for a workflow run."""
        ...

    def close(self) -> None:
        """Release the underlying connections. Never raises."""
        ...


class GitHubClientFactoryPort(Protocol):
    """Port for obtaining an authenticated client for an app installation."""

    def for_installation(self, installation_id: int) -> GitHubPort:
        """Return a client authenticated as ``installation_id``.

        Raises:
            RemoteCallError: If the installation token cannot be obtained
        """
        ...


class LoggerPort(Protocol):
    """Port for structured logging.

    Provides structured logging with optional extra fields.
    Implementations should handle JSON serialization and formatting.
    """

    def debug(self, message: str, **kwargs) -> None:
        ...

    def info(self, message: str, **kwargs) -> None:
        ...

    def warning(self, message: str, **kwargs) -> None:
        ...

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        ...

    def exception(self, message: str, **kwargs) -> None:
        ...
