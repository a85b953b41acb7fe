"""Shared test fixtures and fakes for core tests."""
import base64

import pytest

from local_action_checker.core.domain.exceptions import RemoteCallError
from local_action_checker.core.domain.models import Deployment, ProtectionRequest, WorkflowRun
from local_action_checker.core.services import (
    DecisionEngine,
    ProtectionRuleOrchestrator,
    RunIdResolver,
    WorkflowAnalyzer,
)


EXTERNAL_WORKFLOW = "jobs:\n  build:\n    steps:\n      - uses: actions/checkout@v4\n"


def encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeLogger:
    """Records structured log calls as (level, message, fields)."""

    def __init__(self):
        self.records = []

    def debug(self, message: str, **kwargs) -> None:
        self.records.append(("debug", message, kwargs))

    def info(self, message: str, **kwargs) -> None:
        self.records.append(("info", message, kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self.records.append(("warning", message, kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        self.records.append(("error", message, kwargs))

    def exception(self, message: str, **kwargs) -> None:
        self.records.append(("exception", message, kwargs))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for (lvl, m, _) in self.records if level is None or lvl == level]


class FakeGitHub:
    """In-memory GitHubPort. Set ``fail_on`` to make an operation raise."""

    def __init__(
        self,
        *,
        deployment: Deployment | None = None,
        runs: list[WorkflowRun] | None = None,
        content: str | None = None,
        fail_on: set[str] | None = None,
    ):
        self.deployment = deployment or Deployment(id=42, sha="abc123", ref="main", environment="production")
        self.runs = runs if runs is not None else [
            WorkflowRun(id=777, path=".github/workflows/deploy.yml", head_sha="abc123", name="Deploy"),
        ]
        self.content = content if content is not None else encode(EXTERNAL_WORKFLOW)
        self.fail_on = fail_on or set()
        self.calls = []
        self.submissions = []
        self.close_calls = 0

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RemoteCallError(operation, "boom", status=500)

    def get_deployment(self, *, owner: str, repo: str, deployment_id: int) -> Deployment:
        self.calls.append(("get_deployment", owner, repo, deployment_id))
        self._maybe_fail("get_deployment")
        return self.deployment

    def list_workflow_runs(self, *, owner: str, repo: str, head_sha: str, per_page: int = 1) -> list[WorkflowRun]:
        self.calls.append(("list_workflow_runs", owner, repo, head_sha, per_page))
        self._maybe_fail("list_workflow_runs")
        return list(self.runs)

    def get_file_content(self, *, owner: str, repo: str, path: str, ref: str) -> str:
        self.calls.append(("get_file_content", owner, repo, path, ref))
        self._maybe_fail("get_file_content")
        return self.content

    def submit_protection_rule_decision(
        self, *, owner: str, repo: str, run_id: int, environment_name: str, state: str, comment: str
    ) -> None:
        self.calls.append(("submit", owner, repo, run_id))
        self._maybe_fail("submit")
        self.submissions.append({
            "run_id": run_id,
            "environment_name": environment_name,
            "state": state,
            "comment": comment,
        })

    def close(self) -> None:
        self.close_calls += 1


class FakeGitHubFactory:
    def __init__(self, client: FakeGitHub, *, error: Exception | None = None):
        self.client = client
        self.error = error
        self.installations = []

    def for_installation(self, installation_id: int) -> FakeGitHub:
        self.installations.append(installation_id)
        if self.error is not None:
            raise self.error
        return self.client


class SpyAnalyzer(WorkflowAnalyzer):
    def __init__(self):
        self.calls = 0

    def analyze(self, workflow_text, *, workflow_path=None):
        self.calls += 1
        return super().analyze(workflow_text, workflow_path=workflow_path)


@pytest.fixture
def logger():
    return FakeLogger()


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def protection_request():
    return ProtectionRequest(
        repository_owner="acme",
        repository_name="shop",
        environment_name="production",
        deployment_id=42,
        installation_id=9,
        callback_url="https://api.github.com/repos/acme/shop/actions/runs/777/deployment_protection_rule",
        delivery_id="d-1",
    )


@pytest.fixture
def make_orchestrator(logger):
    """Build an orchestrator around a fake client; returns (orchestrator, analyzer)."""

    def _make(client, *, allow_local_actions=False, factory_error=None, allow_deployment_id_fallback=True):
        analyzer = SpyAnalyzer()
        orchestrator = ProtectionRuleOrchestrator(
            github_factory=FakeGitHubFactory(client, error=factory_error),
            analyzer=analyzer,
            decision_engine=DecisionEngine(),
            run_id_resolver=RunIdResolver(
                logger=logger,
                allow_deployment_id_fallback=allow_deployment_id_fallback,
            ),
            logger=logger,
            allow_local_actions=allow_local_actions,
        )
        return orchestrator, analyzer

    return _make


@pytest.fixture
def make_github():
    """Constructor for FakeGitHub with custom deployment, runs, content or failures."""
    return FakeGitHub
