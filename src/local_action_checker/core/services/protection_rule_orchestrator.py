from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum

from ..domain.exceptions import RemoteCallError
from ..domain.models import DecisionOutcome, ProtectionRequest, Verdict, WorkflowRun
from ..ports import GitHubClientFactoryPort, GitHubPort, LoggerPort
from .decision_engine import (
    COULD_NOT_ANALYZE,
    COULD_NOT_FETCH,
    DYNAMIC_WORKFLOW_IGNORED,
    INTERNAL_ERROR,
    NO_INSTALLATION_ID,
    DecisionEngine,
    approve,
    is_dynamic_workflow,
    reject,
)
from .run_id_resolver import RunIdResolver
from .workflow_analyzer import WorkflowAnalyzer


class OrchestratorState(str, Enum):
    RECEIVED = "received"
    RESOLVING_DEPLOYMENT = "resolving_deployment"
    RESOLVING_WORKFLOW_RUN = "resolving_workflow_run"
    FETCHING_CONTENT = "fetching_content"
    ANALYZING = "analyzing"
    DECIDING = "deciding"
    SUBMITTING = "submitting"
    DONE = "done"


@dataclass
class _RequestContext:
    """Per-request state; never shared between requests."""
    client: GitHubPort | None = None
    run_id: int | None = None
    submitted_run_id: int | None = None
    submitted: bool = False
    states: list[OrchestratorState] = field(default_factory=list)

    def enter(self, state: OrchestratorState) -> None:
        self.states.append(state)

    @property
    def state(self) -> OrchestratorState:
        return self.states[-1]


class ProtectionRuleOrchestrator:
    """Orchestrates one deployment protection rule decision.

    Resolves the deployment, its workflow run and workflow file, analyzes the
    workflow and submits exactly one verdict. Every failure ends in a
    rejection; remote calls are never retried.
    """

    def __init__(
        self,
        *,
        github_factory: GitHubClientFactoryPort,
        analyzer: WorkflowAnalyzer,
        decision_engine: DecisionEngine,
        run_id_resolver: RunIdResolver,
        logger: LoggerPort,
        allow_local_actions: bool = False,
    ) -> None:
        self._github_factory = github_factory
        self._analyzer = analyzer
        self._decision_engine = decision_engine
        self._run_id_resolver = run_id_resolver
        self._logger = logger
        self._allow_local_actions = allow_local_actions

    def handle(self, request: ProtectionRequest) -> DecisionOutcome:
        """Decide on a protection rule request and submit the verdict.

        Args:
            request: Parsed webhook delivery

        Returns:
            Outcome with the verdict, the run id it was submitted against and
            the states visited
        """
        ctx = _RequestContext()
        ctx.enter(OrchestratorState.RECEIVED)
        self._logger.info(
            "protection_rule_received",
            repository=request.slug,
            environment=request.environment_name,
            deployment_id=request.deployment_id,
            installation_id=request.installation_id,
            delivery_id=request.delivery_id,
        )

        try:
            verdict = self._decide(request, ctx)
        except Exception:
            self._logger.exception(
                "protection_rule_error",
                repository=request.slug,
                state=ctx.state.value,
            )
            verdict = reject(INTERNAL_ERROR)

        try:
            self._submit(request, ctx, verdict)
        finally:
            if ctx.client is not None:
                ctx.client.close()
        ctx.enter(OrchestratorState.DONE)

        return DecisionOutcome(
            verdict=verdict,
            run_id=ctx.submitted_run_id,
            submitted=ctx.submitted,
            states=[s.value for s in ctx.states],
        )

    def _decide(self, request: ProtectionRequest, ctx: _RequestContext) -> Verdict:
        owner, repo = request.repository_owner, request.repository_name

        # 1) Authenticate as the installation
        if request.installation_id is None:
            self._logger.error(
                "no_installation_id",
                repository=request.slug,
                detail="cannot authenticate; verdict will not be submitted",
            )
            return reject(NO_INSTALLATION_ID)

        try:
            ctx.client = self._github_factory.for_installation(request.installation_id)
        except RemoteCallError as e:
            self._logger.error(
                "installation_auth_failed",
                installation_id=request.installation_id,
                error=str(e),
            )
            return reject(COULD_NOT_ANALYZE)

        # 2) Resolve the deployment's commit
        ctx.enter(OrchestratorState.RESOLVING_DEPLOYMENT)
        if request.deployment_id is None:
            self._logger.error("no_deployment_id", repository=request.slug)
            return reject(COULD_NOT_ANALYZE)

        try:
            deployment = ctx.client.get_deployment(owner=owner, repo=repo, deployment_id=request.deployment_id)
        except RemoteCallError as e:
            self._logger.error("deployment_lookup_failed", deployment_id=request.deployment_id, error=str(e))
            return reject(COULD_NOT_ANALYZE)
        self._logger.info(
            "deployment_resolved",
            deployment_id=deployment.id,
            sha=deployment.sha,
            ref=deployment.ref,
            environment=deployment.environment,
        )

        # 3) Resolve the most recent workflow run for that commit
        ctx.enter(OrchestratorState.RESOLVING_WORKFLOW_RUN)
        try:
            runs = ctx.client.list_workflow_runs(owner=owner, repo=repo, head_sha=deployment.sha, per_page=1)
        except RemoteCallError as e:
            self._logger.error("workflow_run_lookup_failed", sha=deployment.sha, error=str(e))
            return reject(COULD_NOT_ANALYZE)
        if not runs:
            self._logger.warning("workflow_run_not_found", sha=deployment.sha)
            return reject(COULD_NOT_ANALYZE)

        run = runs[0]
        ctx.run_id = run.id
        self._logger.info(
            "workflow_run_resolved",
            run_id=run.id,
            run_name=run.name,
            path=run.path,
            head_sha=run.head_sha,
        )

        if is_dynamic_workflow(run.path):
            self._logger.info("dynamic_workflow_ignored", path=run.path)
            return approve(DYNAMIC_WORKFLOW_IGNORED)

        # 4) Fetch the workflow definition at the run's commit
        ctx.enter(OrchestratorState.FETCHING_CONTENT)
        workflow_text = self._fetch_workflow_text(ctx.client, request, run)
        if not workflow_text:
            return reject(COULD_NOT_FETCH)

        # 5) Analyze
        ctx.enter(OrchestratorState.ANALYZING)
        report = self._analyzer.analyze(workflow_text, workflow_path=run.path)
        self._logger.info(
            "workflow_analyzed",
            path=run.path,
            jobs=len(report.jobs),
            total_steps=report.total_steps,
            has_local_actions=report.has_local_actions,
            local_actions=list(report.distinct_local_actions),
            parse_error=report.parse_error,
        )

        # 6) Decide
        ctx.enter(OrchestratorState.DECIDING)
        verdict = self._decision_engine.decide(report, allow_local_actions=self._allow_local_actions)
        self._logger.info(
            "verdict_decided",
            state=verdict.state.value,
            rationale=verdict.rationale,
            allow_local_actions=self._allow_local_actions,
        )
        return verdict

    def _fetch_workflow_text(self, client: GitHubPort, request: ProtectionRequest, run: WorkflowRun) -> str | None:
        try:
            encoded = client.get_file_content(
                owner=request.repository_owner,
                repo=request.repository_name,
                path=run.path,
                ref=run.head_sha,
            )
            return base64.b64decode(encoded).decode("utf-8")
        except (RemoteCallError, binascii.Error, UnicodeDecodeError) as e:
            self._logger.error("workflow_fetch_failed", path=run.path, ref=run.head_sha, error=str(e))
            return None

    def _submit(self, request: ProtectionRequest, ctx: _RequestContext, verdict: Verdict) -> None:
        ctx.enter(OrchestratorState.SUBMITTING)

        if ctx.client is None:
            self._logger.error(
                "verdict_not_submitted",
                reason="no authenticated client",
                state=verdict.state.value,
                rationale=verdict.rationale,
            )
            return

        run_id = self._run_id_resolver.resolve(request, ctx.run_id)
        if run_id is None:
            self._logger.error(
                "verdict_not_submitted",
                reason="no workflow run id",
                state=verdict.state.value,
                rationale=verdict.rationale,
            )
            return

        ctx.submitted_run_id = run_id
        try:
            ctx.client.submit_protection_rule_decision(
                owner=request.repository_owner,
                repo=request.repository_name,
                run_id=run_id,
                environment_name=request.environment_name,
                state=verdict.state.value,
                comment=verdict.rationale,
            )
        except Exception:
            # Not retried; GitHub times the request out as undecided
            self._logger.exception(
                "verdict_submission_failed",
                run_id=run_id,
                state=verdict.state.value,
            )
            return

        ctx.submitted = True
        self._logger.info(
            "verdict_submitted",
            run_id=run_id,
            environment=request.environment_name,
            state=verdict.state.value,
            rationale=verdict.rationale,
        )
