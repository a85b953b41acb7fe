from __future__ import annotations

from ..domain.models import AnalysisReport, Verdict, VerdictState

DYNAMIC_WORKFLOW_MARKER = "dynamic/github-code-scanning/codeql"

DYNAMIC_WORKFLOW_IGNORED = "dynamic workflow ignored"
NO_INSTALLATION_ID = "no installation id found"
COULD_NOT_ANALYZE = "could not analyze workflow"
COULD_NOT_FETCH = "could not fetch workflow file"
INTERNAL_ERROR = "internal error occurred during analysis"
NO_LOCAL_ACTIONS = "Deployment approved: No local actions detected"
REJECTED_LOCAL_ACTIONS = "Deployment rejected: Workflow uses local actions: "
APPROVED_DESPITE_LOCAL_ACTIONS = "Deployment approved despite local actions: "


def is_dynamic_workflow(workflow_path: str | None) -> bool:
    """Return True for workflow runs synthesized by GitHub code scanning."""
    return workflow_path is not None and DYNAMIC_WORKFLOW_MARKER in workflow_path


def reject(rationale: str) -> Verdict:
    return Verdict(state=VerdictState.REJECTED, rationale=rationale)


def approve(rationale: str) -> Verdict:
    return Verdict(state=VerdictState.APPROVED, rationale=rationale)


class DecisionEngine:
    """Turns an analysis report into an approve/reject verdict."""

    def decide(self, report: AnalysisReport, *, allow_local_actions: bool) -> Verdict:
        """Decide on a deployment.

        Args:
            report: Analysis of the workflow that requested the deployment
            allow_local_actions: Policy flag; approve even when local actions are used

        Returns:
            Verdict with a human-readable rationale
        """
        if is_dynamic_workflow(report.workflow_path):
            return approve(DYNAMIC_WORKFLOW_IGNORED)

        # Unreadable definitions are never approved
        if report.parse_error:
            return reject(COULD_NOT_ANALYZE)

        if report.has_local_actions:
            listed = ", ".join(report.distinct_local_actions)
            if not allow_local_actions:
                return reject(REJECTED_LOCAL_ACTIONS + listed)
            return approve(APPROVED_DESPITE_LOCAL_ACTIONS + listed)

        return approve(NO_LOCAL_ACTIONS)
