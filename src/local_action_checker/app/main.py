from __future__ import annotations

from .config import AppConfig
from .container import Container
from .models import parse_protection_payload
from ..core.domain.models import DecisionOutcome, LocalAnalysis


def _create_container(config: AppConfig | None = None) -> Container:
    """Create and initialize a container.

    Args:
        config: Optional config. If None, loads from environment variables.

    Returns:
        Initialized container instance
    """
    container = Container()

    if config is None:
        # Load from environment variables (BaseSettings default behavior)
        config = AppConfig()

    container.config.from_pydantic(config)
    container.init_resources()

    return container


def analyze_workflow(
    workflow_text: str,
    allow_local_actions: bool = False,
    *,
    workflow_path: str | None = None,
    config: AppConfig | None = None,
) -> LocalAnalysis:
    """Analyze workflow YAML offline.

    Args:
        workflow_text: Raw workflow definition
        allow_local_actions: Approve even when local actions are used
        workflow_path: Optional declared workflow path
        config: Optional config for testing. If None, loads from env vars.

    Returns:
        Analysis report, action breakdown and verdict
    """
    container = _create_container(config)
    try:
        uc = container.analyze_workflow_uc()
        return uc.execute(
            workflow_text=workflow_text,
            allow_local_actions=allow_local_actions,
            workflow_path=workflow_path,
        )
    finally:
        container.shutdown_resources()


def handle_protection_rule(
    payload: bytes,
    *,
    delivery_id: str | None = None,
    config: AppConfig | None = None,
) -> DecisionOutcome:
    """Decide on a deployment protection rule payload and submit the verdict.

    The payload must already be signature-verified.

    Args:
        payload: Raw ``deployment_protection_rule`` webhook body
        delivery_id: Optional ``X-GitHub-Delivery`` value for log correlation
        config: Optional config for testing. If None, loads from env vars.

    Returns:
        Decision outcome

    Raises:
        InvalidPayloadError: If required payload fields are missing
    """
    request = parse_protection_payload(payload).to_request(delivery_id=delivery_id)
    container = _create_container(config)
    try:
        return container.protection_rule_uc().execute(request=request)
    finally:
        container.shutdown_resources()
