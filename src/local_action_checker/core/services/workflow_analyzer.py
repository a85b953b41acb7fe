from __future__ import annotations

import logging
from typing import Any

import yaml

from ..domain.models import (
    ActionBreakdown,
    ActionKind,
    ActionUsage,
    AnalysisReport,
    JobRecord,
    StepRecord,
    WorkflowValidation,
)
from .action_classifier import classify

logger = logging.getLogger(__name__)


class WorkflowAnalyzer:
    """Domain service that inspects GitHub Actions workflow definitions.

    Parses the workflow YAML and records, per job and per step, which
    ``uses:`` references point at local actions.
    """

    def analyze(self, workflow_text: str, *, workflow_path: str | None = None) -> AnalysisReport:
        """Analyze workflow YAML for local action usage.

        Args:
            workflow_text: Raw workflow definition
            workflow_path: Declared path of the workflow (carried into the report)

        Returns:
            Analysis report. Malformed YAML, including nesting too deep for
            the parser, yields a report with ``parse_error`` set instead of
            raising.
        """
        try:
            document = yaml.safe_load(workflow_text)
        except (yaml.YAMLError, RecursionError) as e:
            logger.warning("workflow_parse_error", extra={"error": str(e), "workflow_path": workflow_path})
            return AnalysisReport(parse_error=str(e), workflow_path=workflow_path)

        jobs_data = document.get("jobs") if isinstance(document, dict) else None
        if not isinstance(jobs_data, dict):
            return AnalysisReport(workflow_path=workflow_path)

        jobs: list[JobRecord] = []
        local_actions: list[str] = []
        total_steps = 0

        for job_name, job in jobs_data.items():
            steps_data = job.get("steps") if isinstance(job, dict) else None
            if not isinstance(steps_data, list):
                steps_data = []

            steps: list[StepRecord] = []
            for index, step in enumerate(steps_data):
                record = self._step_record(index, step)
                if record.is_local and record.action_reference:
                    local_actions.append(record.action_reference)
                steps.append(record)

            total_steps += len(steps)
            jobs.append(JobRecord(name=str(job_name), steps=tuple(steps)))

        return AnalysisReport(
            jobs=tuple(jobs),
            total_steps=total_steps,
            has_local_actions=bool(local_actions),
            distinct_local_actions=tuple(dict.fromkeys(local_actions)),
            workflow_path=workflow_path,
        )

    def action_breakdown(self, report: AnalysisReport) -> ActionBreakdown:
        """Route every action-bearing step into exactly one bucket."""
        buckets: dict[ActionKind, list[ActionUsage]] = {kind: [] for kind in ActionKind}

        for job, step in report.steps:
            kind = classify(step.action_reference)
            if kind is None:
                continue
            buckets[kind].append(
                ActionUsage(
                    action_reference=step.action_reference,  # type: ignore[arg-type]
                    job_name=job.name,
                    step_name=step.display_name,
                    step_index=step.index,
                )
            )

        return ActionBreakdown(
            local=tuple(buckets[ActionKind.LOCAL]),
            external=tuple(buckets[ActionKind.EXTERNAL]),
            marketplace=tuple(buckets[ActionKind.MARKETPLACE]),
            docker=tuple(buckets[ActionKind.DOCKER]),
        )

    def validate(self, workflow_text: str) -> WorkflowValidation:
        """Check workflow YAML syntax only."""
        try:
            document = yaml.safe_load(workflow_text)
        except (yaml.YAMLError, RecursionError) as e:
            return WorkflowValidation(is_valid=False, error=str(e))
        return WorkflowValidation(is_valid=True, document=document)

    @staticmethod
    def _step_record(index: int, step: Any) -> StepRecord:
        name = step.get("name") if isinstance(step, dict) else None
        uses = step.get("uses") if isinstance(step, dict) else None

        # Non-string or empty references are not classified
        reference = uses if isinstance(uses, str) and uses else None

        return StepRecord(
            index=index,
            display_name=str(name) if name else f"Step {index + 1}",
            action_reference=reference,
            is_local=classify(reference) is ActionKind.LOCAL,
        )
