from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any

import jwt
import requests

from ..core.domain.exceptions import RemoteCallError
from ..core.domain.models import Deployment, WorkflowRun

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"

# GitHub rejects app JWTs valid for more than 10 minutes
JWT_TTL_SECONDS = 540
JWT_CLOCK_SKEW_SECONDS = 60


def _normalize_private_key(key: str) -> str:
    """Accept PEM keys whose newlines were escaped when stored in env vars."""
    return key.replace("\\n", "\n").strip() + "\n"


def load_private_key(*, private_key: str | None, private_key_path: Path | None) -> str:
    if private_key:
        return _normalize_private_key(private_key)
    if private_key_path:
        return _normalize_private_key(private_key_path.read_text(encoding="utf-8"))
    raise ValueError("GitHub App private key required via LOCAL_ACTION_CHECKER_GITHUB__PRIVATE_KEY")


def _request(
    session: requests.Session,
    method: str,
    url: str,
    *,
    operation: str,
    timeout: float | None,
    **kwargs: Any,
) -> requests.Response:
    try:
        resp = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise RemoteCallError(operation, str(e)) from e

    if not resp.ok:
        try:
            detail = resp.json().get("message", resp.text)
        except ValueError:
            detail = resp.text
        raise RemoteCallError(operation, detail or resp.reason, status=resp.status_code)
    return resp


def _json(resp: requests.Response, *, operation: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise RemoteCallError(operation, f"response is not JSON: {e}", status=resp.status_code) from e


class GitHubAppAuth:
    """Authenticates as a GitHub App and mints installation access tokens.

    Safe to share between threads: unless a session is injected, each token
    request runs on its own short-lived session.
    """

    def __init__(
        self,
        *,
        app_id: str,
        private_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._app_id = app_id
        self._private_key = private_key
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session

    def create_jwt(self, now: int | None = None) -> str:
        """Create the RS256 app JWT used to request installation tokens."""
        issued_at = int(now if now is not None else time.time())
        claims = {
            "iat": issued_at - JWT_CLOCK_SKEW_SECONDS,
            "exp": issued_at + JWT_TTL_SECONDS,
            "iss": str(self._app_id),
        }
        return jwt.encode(claims, self._private_key, algorithm="RS256")

    def installation_token(self, installation_id: int) -> str:
        if self._session is not None:
            return self._request_token(self._session, installation_id)
        with requests.Session() as session:
            return self._request_token(session, installation_id)

    def _request_token(self, session: requests.Session, installation_id: int) -> str:
        operation = "create_installation_token"
        resp = _request(
            session,
            "POST",
            f"{self._api_url}/app/installations/{installation_id}/access_tokens",
            operation=operation,
            timeout=self._timeout,
            headers={
                "Authorization": f"Bearer {self.create_jwt()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
        )
        data = _json(resp, operation=operation)
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise RemoteCallError(operation, "response carried no token")
        return token


class GitHubClient:
    """GitHub REST client bound to one installation token.

    Owns its HTTP session; call ``close()`` (or use it as a context manager)
    once the request it serves is finished.
    """

    def __init__(
        self,
        *,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get(self, path: str, *, operation: str, params: dict | None = None) -> Any:
        resp = _request(
            self._session, "GET", f"{self._api_url}{path}",
            operation=operation, timeout=self._timeout, params=params,
        )
        return _json(resp, operation=operation)

    def get_deployment(self, *, owner: str, repo: str, deployment_id: int) -> Deployment:
        operation = "get_deployment"
        data = self._get(f"/repos/{owner}/{repo}/deployments/{deployment_id}", operation=operation)
        try:
            return Deployment(
                id=data["id"],
                sha=data["sha"],
                ref=data.get("ref"),
                environment=data.get("environment"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteCallError(operation, f"unexpected deployment payload: missing {e}") from e

    def list_workflow_runs(
        self,
        *,
        owner: str,
        repo: str,
        head_sha: str,
        per_page: int = 1,
    ) -> list[WorkflowRun]:
        operation = "list_workflow_runs"
        data = self._get(
            f"/repos/{owner}/{repo}/actions/runs",
            operation=operation,
            params={"head_sha": head_sha, "per_page": per_page},
        )
        try:
            return [
                WorkflowRun(id=run["id"], path=run["path"], head_sha=run["head_sha"], name=run.get("name"))
                for run in data.get("workflow_runs", [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteCallError(operation, f"unexpected workflow runs payload: missing {e}") from e

    def get_file_content(self, *, owner: str, repo: str, path: str, ref: str) -> str:
        data = self._get(
            f"/repos/{owner}/{repo}/contents/{path}",
            operation="get_file_content",
            params={"ref": ref},
        )
        if not isinstance(data, dict) or data.get("encoding") not in (None, "base64"):
            raise RemoteCallError("get_file_content", f"{path} is not a base64-encoded file")
        return data.get("content") or ""

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
        _request(
            self._session,
            "POST",
            f"{self._api_url}/repos/{owner}/{repo}/actions/runs/{run_id}/deployment_protection_rule",
            operation="submit_protection_rule_decision",
            timeout=self._timeout,
            json={"environment_name": environment_name, "state": state, "comment": comment},
        )


class GitHubClientFactory:
    """Creates installation-scoped clients from the app credentials.

    Shared by concurrent webhook tasks; app authentication is built once
    under a lock.
    """

    def __init__(
        self,
        *,
        app_id: str | None,
        private_key: str | None = None,
        private_key_path: Path | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float | None = None,
    ) -> None:
        self._app_id = app_id
        self._private_key = private_key
        self._private_key_path = private_key_path
        self._api_url = api_url
        self._timeout = timeout
        self._auth: GitHubAppAuth | None = None
        self._auth_lock = threading.Lock()

    def _app_auth(self) -> GitHubAppAuth:
        with self._auth_lock:
            if self._auth is None:
                if not self._app_id:
                    raise ValueError("GitHub App id required via LOCAL_ACTION_CHECKER_GITHUB__APP_ID")
                self._auth = GitHubAppAuth(
                    app_id=self._app_id,
                    private_key=load_private_key(
                        private_key=self._private_key,
                        private_key_path=self._private_key_path,
                    ),
                    api_url=self._api_url,
                    timeout=self._timeout,
                )
            return self._auth

    def for_installation(self, installation_id: int) -> GitHubClient:
        token = self._app_auth().installation_token(installation_id)
        logger.debug("installation_token_created", extra={"installation_id": installation_id})
        return GitHubClient(token=token, api_url=self._api_url, timeout=self._timeout)
