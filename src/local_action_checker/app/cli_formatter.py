"""CLI output formatting utilities for human-readable display."""

from __future__ import annotations

from ..core.domain.models import ActionUsage, LocalAnalysis


def format_local_analysis(analysis: LocalAnalysis, *, source: str) -> str:
    """Format an offline workflow analysis for human-readable CLI output.

    Args:
        analysis: Report, breakdown and verdict
        source: Name of the analyzed file

    Returns:
        Formatted string for display
    """
    report = analysis.report
    breakdown = analysis.breakdown
    summary = breakdown.summary

    lines = []
    lines.append("=" * 60)
    lines.append(f"Analysis Results for: {source}")
    lines.append("=" * 60)

    lines.append("Summary:")
    lines.append(f"   Total Jobs: {len(report.jobs)}")
    lines.append(f"   Total Steps: {report.total_steps}")
    lines.append(f"   Total Actions: {summary.total}")
    lines.append(f"   Local Actions: {summary.local}")
    lines.append(f"   External Actions: {summary.external}")
    lines.append(f"   Marketplace Actions: {summary.marketplace}")
    lines.append(f"   Docker Actions: {summary.docker}")
    lines.append("")

    if report.has_local_actions:
        lines.append("LOCAL ACTIONS DETECTED:")
        for action in report.distinct_local_actions:
            lines.append(f"   - {action}")
        lines.append("")

        lines.append("Local Action Details:")
        for usage in breakdown.local:
            lines.append(f"   Job: {usage.job_name}")
            lines.append(f"   Step: {usage.step_name}")
            lines.append(f"   Action: {usage.action_reference}")
            lines.append("   ---")
    else:
        lines.append("No local actions detected")

    lines.append("")
    lines.append("All Actions Used:")
    for title, usages in (
        ("Local Actions", breakdown.local),
        ("External Actions", breakdown.external),
        ("Marketplace Actions", breakdown.marketplace),
        ("Docker Actions", breakdown.docker),
    ):
        if usages:
            lines.append(f"   {title}:")
            lines.extend(f"     - {u.action_reference} ({u.job_name})" for u in usages)

    lines.append("")
    lines.append("Environment Protection Decision:")
    if analysis.verdict.approved:
        lines.append("   DEPLOYMENT WOULD BE APPROVED")
    else:
        lines.append("   DEPLOYMENT WOULD BE REJECTED")
    lines.append(f"   Reason: {analysis.verdict.rationale}")

    return "\n".join(lines)


def _usage_dict(usage: ActionUsage) -> dict[str, object]:
    return {
        "action": usage.action_reference,
        "job": usage.job_name,
        "step": usage.step_name,
        "step_index": usage.step_index,
    }


def local_analysis_to_dict(analysis: LocalAnalysis) -> dict[str, object]:
    """Convert an offline analysis to a JSON-serializable dict."""
    report = analysis.report
    breakdown = analysis.breakdown
    summary = breakdown.summary
    return {
        "workflow_path": report.workflow_path,
        "parse_error": report.parse_error,
        "has_local_actions": report.has_local_actions,
        "local_actions": list(report.distinct_local_actions),
        "total_steps": report.total_steps,
        "jobs": [
            {
                "name": job.name,
                "has_local_actions": job.has_local_actions,
                "steps": [
                    {
                        "index": step.index,
                        "name": step.display_name,
                        "action": step.action_reference,
                        "is_local": step.is_local,
                    }
                    for step in job.steps
                ],
            }
            for job in report.jobs
        ],
        "action_breakdown": {
            "local": [_usage_dict(u) for u in breakdown.local],
            "external": [_usage_dict(u) for u in breakdown.external],
            "marketplace": [_usage_dict(u) for u in breakdown.marketplace],
            "docker": [_usage_dict(u) for u in breakdown.docker],
        },
        "summary": {
            "total_actions": summary.total,
            "local": summary.local,
            "external": summary.external,
            "marketplace": summary.marketplace,
            "docker": summary.docker,
        },
        "verdict": {
            "state": analysis.verdict.state.value,
            "rationale": analysis.verdict.rationale,
        },
    }
