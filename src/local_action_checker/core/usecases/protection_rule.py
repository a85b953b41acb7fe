from __future__ import annotations

from ..domain.models import DecisionOutcome, ProtectionRequest
from ..services import ProtectionRuleOrchestrator


class ProtectionRuleUseCase:
    """Use case for answering a deployment protection rule request.

    Thin orchestration layer that delegates to ProtectionRuleOrchestrator.
    """

    def __init__(
        self,
        *,
        orchestrator: ProtectionRuleOrchestrator,
    ) -> None:
        self._orchestrator = orchestrator

    def execute(self, *, request: ProtectionRequest) -> DecisionOutcome:
        return self._orchestrator.handle(request)
