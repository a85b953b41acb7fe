from __future__ import annotations

import re
from typing import Callable, Optional

from ..domain.models import ProtectionRequest
from ..ports import LoggerPort

CALLBACK_RUN_ID = re.compile(r"/actions/runs/(\d+)/deployment_protection_rule")

RunIdStrategy = Callable[[ProtectionRequest, Optional[int]], Optional[int]]


def from_resolved_run(request: ProtectionRequest, resolved_run_id: int | None) -> int | None:
    return resolved_run_id


def from_callback_url(request: ProtectionRequest, resolved_run_id: int | None) -> int | None:
    if not request.callback_url:
        return None
    match = CALLBACK_RUN_ID.search(request.callback_url)
    return int(match.group(1)) if match else None


def from_deployment_id(request: ProtectionRequest, resolved_run_id: int | None) -> int | None:
    # Degraded: a deployment id is not a run id and GitHub may refuse it
    return request.deployment_id


class RunIdResolver:
    """Picks the workflow run id a verdict is attached to.

    Strategies are tried in order; the first one returning a value wins.
    """

    def __init__(self, *, logger: LoggerPort, allow_deployment_id_fallback: bool = True) -> None:
        self._logger = logger
        self._strategies: list[tuple[str, RunIdStrategy]] = [
            ("resolved_run", from_resolved_run),
            ("callback_url", from_callback_url),
        ]
        if allow_deployment_id_fallback:
            self._strategies.append(("deployment_id", from_deployment_id))

    def resolve(self, request: ProtectionRequest, resolved_run_id: int | None = None) -> int | None:
        for source, strategy in self._strategies:
            run_id = strategy(request, resolved_run_id)
            if run_id is None:
                continue
            if source == "deployment_id":
                self._logger.warning("run_id_fallback_to_deployment_id", run_id=run_id)
            else:
                self._logger.debug("run_id_resolved", source=source, run_id=run_id)
            return run_id

        self._logger.error("run_id_unresolved", callback_url=request.callback_url)
        return None
