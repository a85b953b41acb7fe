from __future__ import annotations

from ..domain.models import LocalAnalysis
from ..services import DecisionEngine, WorkflowAnalyzer


class AnalyzeWorkflowUseCase:
    """Use case for analyzing a workflow file offline.

    Runs the analyzer and decision engine without any network access.
    """

    def __init__(
        self,
        *,
        analyzer: WorkflowAnalyzer,
        decision_engine: DecisionEngine,
    ) -> None:
        self._analyzer = analyzer
        self._decision_engine = decision_engine

    def execute(
        self,
        *,
        workflow_text: str,
        allow_local_actions: bool = False,
        workflow_path: str | None = None,
    ) -> LocalAnalysis:
        """Execute local analysis.

        Args:
            workflow_text: Raw workflow YAML
            allow_local_actions: Policy flag passed to the decision engine
            workflow_path: Optional declared path (enables the dynamic workflow exemption)

        Returns:
            Report, action breakdown and verdict
        """
        report = self._analyzer.analyze(workflow_text, workflow_path=workflow_path)
        return LocalAnalysis(
            report=report,
            breakdown=self._analyzer.action_breakdown(report),
            verdict=self._decision_engine.decide(report, allow_local_actions=allow_local_actions),
        )
