"""Shared fixtures for app-level tests."""
import base64
import os
import json

import pytest
from dependency_injector import providers

from local_action_checker.app.config import AppConfig, DirectoryConfig, GitHubConfig, LoggingConfig
from local_action_checker.app.container import Container
from local_action_checker.core.domain.models import Deployment, WorkflowRun
from local_action_checker.infra.webhook_signature import compute_signature


WEBHOOK_SECRET = "test-webhook-secret"


class MockGitHub:
    """Mock implementation of GitHubPort serving a single workflow file."""

    def __init__(self, workflow_text: str = "jobs:\n  build:\n    steps:\n      - uses: actions/checkout@v4\n"):
        self.workflow_text = workflow_text
        self.submissions = []
        self.close_calls = 0

    def get_deployment(self, *, owner, repo, deployment_id):
        return Deployment(id=deployment_id, sha="abc123", ref="main", environment="production")

    def list_workflow_runs(self, *, owner, repo, head_sha, per_page=1):
        return [WorkflowRun(id=777, path=".github/workflows/deploy.yml", head_sha=head_sha, name="Deploy")]

    def get_file_content(self, *, owner, repo, path, ref):
        return base64.b64encode(self.workflow_text.encode("utf-8")).decode("ascii")

    def submit_protection_rule_decision(self, *, owner, repo, run_id, environment_name, state, comment):
        self.submissions.append({
            "run_id": run_id,
            "environment_name": environment_name,
            "state": state,
            "comment": comment,
        })

    def close(self):
        self.close_calls += 1


class MockGitHubFactory:
    def __init__(self, client: MockGitHub):
        self.client = client

    def for_installation(self, installation_id):
        return self.client


def make_payload(**overrides) -> dict:
    payload = {
        "action": "requested",
        "environment": "production",
        "event": "push",
        "deployment_callback_url": (
            "https://api.github.com/repos/acme/shop/actions/runs/777/deployment_protection_rule"
        ),
        "deployment": {"id": 42, "sha": "abc123"},
        "repository": {"name": "shop", "full_name": "acme/shop", "owner": {"login": "acme"}},
        "installation": {"id": 9},
        "sender": {"login": "octocat"},
    }
    payload.update(overrides)
    return payload


def signed_headers(body: bytes, event: str = "deployment_protection_rule", secret: str = WEBHOOK_SECRET) -> dict:
    return {
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "delivery-1",
        "X-Hub-Signature-256": compute_signature(body, secret),
        "Content-Type": "application/json",
    }


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep tests independent from the developer's environment."""
    for key in list(os.environ):
        if key.startswith("LOCAL_ACTION_CHECKER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOCAL_ACTION_CHECKER_DIRECTORIES__HOME", str(tmp_path / "home"))
    monkeypatch.setenv("LOCAL_ACTION_CHECKER_LOGGING__CONSOLE_OUTPUT", "false")


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        directories=DirectoryConfig(home=tmp_path / "home"),
        github=GitHubConfig(app_id="1", private_key="unused", webhook_secret=WEBHOOK_SECRET),
        logging=LoggingConfig(console_output=False, file_output=True),
    )


@pytest.fixture
def github():
    return MockGitHub()


@pytest.fixture
def container(app_config, github):
    c = Container()
    c.config.from_pydantic(app_config)
    c.github_factory.override(providers.Object(MockGitHubFactory(github)))
    c.init_resources()
    yield c
    c.shutdown_resources()
    c.github_factory.reset_override()


@pytest.fixture
def payload_bytes():
    def _make(**overrides) -> bytes:
        return json.dumps(make_payload(**overrides)).encode("utf-8")
    return _make


@pytest.fixture
def sign_headers():
    return signed_headers
