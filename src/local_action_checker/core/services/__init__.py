from __future__ import annotations

from .action_classifier import classify, is_local_action
from .workflow_analyzer import WorkflowAnalyzer
from .decision_engine import DecisionEngine, is_dynamic_workflow
from .run_id_resolver import RunIdResolver
from .protection_rule_orchestrator import OrchestratorState, ProtectionRuleOrchestrator

__all__ = [
    "classify",
    "is_local_action",
    "WorkflowAnalyzer",
    "DecisionEngine",
    "is_dynamic_workflow",
    "RunIdResolver",
    "OrchestratorState",
    "ProtectionRuleOrchestrator",
]
