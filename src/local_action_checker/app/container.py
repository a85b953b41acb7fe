from __future__ import annotations

from dependency_injector import containers, providers

from .config import AppConfig
from ..core.services import DecisionEngine, ProtectionRuleOrchestrator, RunIdResolver, WorkflowAnalyzer
from ..core.usecases.analyze_workflow import AnalyzeWorkflowUseCase
from ..core.usecases.protection_rule import ProtectionRuleUseCase
from ..infra.github_client import GitHubClientFactory
from ..infra.logging import CheckerLogger


class Container(containers.DeclarativeContainer):
    """DI container with Pydantic BaseSettings support."""

    config = providers.Configuration(pydantic_settings=[AppConfig()])

    # Logger (Resource: manages lifecycle with init/shutdown)
    logger = providers.Resource(
        CheckerLogger,
        logs_dir=config.directories.logs_dir,
        logger_name=config.logging.logger_name,
        console_output=config.logging.console_output,
        file_output=config.logging.file_output,
        level=config.logging.level,
    )

    # GitHub App adapter; one authenticated client is created per installation
    github_factory = providers.Singleton(
        GitHubClientFactory,
        app_id=config.github.app_id,
        private_key=config.github.private_key,
        private_key_path=config.github.private_key_path,
        api_url=config.github.api_url,
        timeout=config.github.request_timeout,
    )

    # Domain services
    analyzer = providers.Singleton(WorkflowAnalyzer)

    decision_engine = providers.Singleton(DecisionEngine)

    run_id_resolver = providers.Factory(
        RunIdResolver,
        logger=logger,
        allow_deployment_id_fallback=config.policy.allow_deployment_id_fallback,
    )

    orchestrator = providers.Factory(
        ProtectionRuleOrchestrator,
        github_factory=github_factory,
        analyzer=analyzer,
        decision_engine=decision_engine,
        run_id_resolver=run_id_resolver,
        logger=logger,
        allow_local_actions=config.policy.allow_local_actions,
    )

    # Use cases
    analyze_workflow_uc = providers.Factory(
        AnalyzeWorkflowUseCase,
        analyzer=analyzer,
        decision_engine=decision_engine,
    )

    protection_rule_uc = providers.Factory(
        ProtectionRuleUseCase,
        orchestrator=orchestrator,
    )
