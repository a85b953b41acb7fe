"""Tests for the CLI commands."""
import json

import pytest
from typer.testing import CliRunner

from local_action_checker.app.cli import app
from local_action_checker.infra.webhook_signature import compute_signature


runner = CliRunner()

LOCAL_WORKFLOW = """
name: Deploy
on: push
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - name: Setup
        uses: ./.github/actions/setup
      - uses: docker://alpine:3.19
"""


@pytest.fixture
def workflow_file(tmp_path):
    path = tmp_path / "deploy.yml"
    path.write_text(LOCAL_WORKFLOW, encoding="utf-8")
    return path


class TestAnalyze:

    def test_reports_rejection_for_local_actions(self, workflow_file):
        result = runner.invoke(app, ["analyze", str(workflow_file)])

        assert result.exit_code == 0
        assert "LOCAL ACTIONS DETECTED" in result.stdout
        assert "./.github/actions/setup" in result.stdout
        assert "Docker Actions: 1" in result.stdout
        assert "DEPLOYMENT WOULD BE REJECTED" in result.stdout

    def test_allow_local_actions(self, workflow_file):
        result = runner.invoke(app, ["analyze", str(workflow_file), "--allow-local-actions"])

        assert result.exit_code == 0
        assert "DEPLOYMENT WOULD BE APPROVED" in result.stdout
        assert "approved despite local actions" in result.stdout

    def test_no_local_actions(self, tmp_path):
        path = tmp_path / "ci.yml"
        path.write_text("jobs:\n  test:\n    steps:\n      - uses: actions/checkout@v4\n", encoding="utf-8")

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 0
        assert "No local actions detected" in result.stdout
        assert "DEPLOYMENT WOULD BE APPROVED" in result.stdout

    def test_json_output(self, workflow_file):
        result = runner.invoke(app, ["analyze", str(workflow_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["has_local_actions"] is True
        assert data["local_actions"] == ["./.github/actions/setup"]
        assert data["summary"] == {"total_actions": 3, "local": 1, "external": 1, "marketplace": 0, "docker": 1}
        assert data["verdict"]["state"] == "rejected"
        assert data["jobs"][0]["steps"][0]["name"] == "Step 1"

    def test_dynamic_workflow_path(self, workflow_file):
        result = runner.invoke(
            app,
            ["analyze", str(workflow_file), "--workflow-path", "dynamic/github-code-scanning/codeql", "--json"],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["verdict"]["rationale"] == "dynamic workflow ignored"

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing.yml")])

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_parse_error(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("jobs:\n  build: [unterminated\n", encoding="utf-8")

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 1
        assert "Error analyzing workflow" in result.output


class TestSign:

    def test_sign_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET", "s3cret")
        path = tmp_path / "payload.json"
        path.write_bytes(b'{"action": "requested"}')

        result = runner.invoke(app, ["sign", str(path)])

        assert result.exit_code == 0
        assert result.stdout.strip() == compute_signature(b'{"action": "requested"}', "s3cret")

    def test_sign_stdin(self, monkeypatch):
        monkeypatch.setenv("LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET", "s3cret")

        result = runner.invoke(app, ["sign"], input="Hello, World!")

        assert result.exit_code == 0
        assert result.stdout.strip() == compute_signature(b"Hello, World!", "s3cret")

    def test_sign_requires_secret(self, tmp_path):
        path = tmp_path / "payload.json"
        path.write_bytes(b"{}")

        result = runner.invoke(app, ["sign", str(path)])

        assert result.exit_code == 2
        assert "Webhook secret required" in result.output


class TestServe:

    def test_serve_requires_secret(self):
        result = runner.invoke(app, ["serve"])

        assert result.exit_code == 2
        assert "Webhook secret required" in result.output

    def test_serve_requires_app_credentials(self, monkeypatch):
        monkeypatch.setenv("LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET", "s3cret")

        result = runner.invoke(app, ["serve"])

        assert result.exit_code == 2
        assert "GitHub App credentials required" in result.output

    def test_serve_runs_uvicorn(self, monkeypatch):
        monkeypatch.setenv("LOCAL_ACTION_CHECKER_GITHUB__WEBHOOK_SECRET", "s3cret")
        monkeypatch.setenv("LOCAL_ACTION_CHECKER_GITHUB__APP_ID", "1")
        monkeypatch.setenv("LOCAL_ACTION_CHECKER_GITHUB__PRIVATE_KEY", "unused")
        calls = []

        def fake_run(application, **kwargs):
            calls.append((application, kwargs))

        monkeypatch.setattr("local_action_checker.app.cli.uvicorn.run", fake_run)

        result = runner.invoke(app, ["serve", "--port", "8088"])

        assert result.exit_code == 0
        assert len(calls) == 1
        application, kwargs = calls[0]
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 8088
        assert any(getattr(route, "path", None) == "/health" for route in application.routes)
