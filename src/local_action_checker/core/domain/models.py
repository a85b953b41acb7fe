from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionKind(str, Enum):
    """Category of a step's ``uses:`` reference."""

    LOCAL = "local"
    EXTERNAL = "external"
    MARKETPLACE = "marketplace"
    DOCKER = "docker"


class VerdictState(str, Enum):
    """Deployment protection rule states accepted by GitHub."""

    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class StepRecord:
    """One step of a job, as seen by the analyzer."""
    index: int
    display_name: str
    action_reference: str | None = None
    is_local: bool = False


@dataclass(frozen=True)
class JobRecord:
    name: str
    steps: tuple[StepRecord, ...] = ()

    @property
    def has_local_actions(self) -> bool:
        return any(step.is_local for step in self.steps)

    @property
    def local_actions(self) -> tuple[str, ...]:
        return tuple(s.action_reference for s in self.steps if s.is_local and s.action_reference)


@dataclass(frozen=True)
class AnalysisReport:
    """Result of analyzing one workflow definition.

    When ``parse_error`` is set every other field keeps its zero value,
    except ``workflow_path``: it is the path the workflow run declared, is
    known before parsing, and is kept so the dynamic workflow exemption
    still applies to unparsable files.
    """
    jobs: tuple[JobRecord, ...] = ()
    total_steps: int = 0
    has_local_actions: bool = False
    distinct_local_actions: tuple[str, ...] = ()
    parse_error: str | None = None
    workflow_path: str | None = None

    @property
    def steps(self) -> list[tuple[JobRecord, StepRecord]]:
        """All (job, step) pairs in declaration order."""
        return [(job, step) for job in self.jobs for step in job.steps]


@dataclass(frozen=True)
class ActionUsage:
    action_reference: str
    job_name: str
    step_name: str
    step_index: int


@dataclass(frozen=True)
class BreakdownSummary:
    total: int = 0
    local: int = 0
    external: int = 0
    marketplace: int = 0
    docker: int = 0


@dataclass(frozen=True)
class ActionBreakdown:
    """Disjoint buckets of every action-bearing step in a report."""
    local: tuple[ActionUsage, ...] = ()
    external: tuple[ActionUsage, ...] = ()
    marketplace: tuple[ActionUsage, ...] = ()
    docker: tuple[ActionUsage, ...] = ()

    @property
    def summary(self) -> BreakdownSummary:
        return BreakdownSummary(
            total=len(self.local) + len(self.external) + len(self.marketplace) + len(self.docker),
            local=len(self.local),
            external=len(self.external),
            marketplace=len(self.marketplace),
            docker=len(self.docker),
        )

    def bucket(self, kind: ActionKind) -> tuple[ActionUsage, ...]:
        return getattr(self, kind.value)


@dataclass(frozen=True)
class WorkflowValidation:
    is_valid: bool
    document: Any = None
    error: str | None = None


@dataclass(frozen=True)
class Verdict:
    state: VerdictState
    rationale: str

    @property
    def approved(self) -> bool:
        return self.state is VerdictState.APPROVED


@dataclass(frozen=True)
class LocalAnalysis:
    """Offline analysis bundle: report, breakdown and the verdict they imply."""
    report: AnalysisReport
    breakdown: ActionBreakdown
    verdict: Verdict


@dataclass(frozen=True)
class ProtectionRequest:
    """A ``deployment_protection_rule.requested`` delivery.

    Represents the minimal context needed to decide on one deployment.
    Optional identifiers may be missing from a delivery; the orchestrator
    turns their absence into a rejection.
    """
    repository_owner: str
    repository_name: str
    environment_name: str
    deployment_id: int | None = None
    installation_id: int | None = None
    callback_url: str | None = None
    delivery_id: str | None = None

    @property
    def slug(self) -> str:
        """Returns owner/name format."""
        return f"{self.repository_owner}/{self.repository_name}"


@dataclass(frozen=True)
class Deployment:
    id: int
    sha: str
    ref: str | None = None
    environment: str | None = None


@dataclass(frozen=True)
class WorkflowRun:
    id: int
    path: str
    head_sha: str
    name: str | None = None


@dataclass
class DecisionOutcome:
    """What happened while handling one protection rule request."""
    verdict: Verdict
    run_id: int | None = None
    submitted: bool = False
    states: list[str] = field(default_factory=list)
