"""Webhook payload schema for deployment protection rule deliveries."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError

from ..core.domain.exceptions import InvalidPayloadError
from ..core.domain.models import ProtectionRequest

PROTECTION_RULE_EVENT = "deployment_protection_rule"
REQUESTED_ACTION = "requested"


class _Payload(BaseModel):
    # GitHub sends many more fields than we read
    model_config = ConfigDict(extra="ignore")


class Owner(_Payload):
    login: str


class RepositoryPayload(_Payload):
    name: str
    owner: Owner
    full_name: str | None = None


class InstallationPayload(_Payload):
    id: int | None = None


class DeploymentPayload(_Payload):
    id: int | None = None


class ProtectionRulePayload(_Payload):
    action: str | None = None
    environment: str
    repository: RepositoryPayload
    installation: InstallationPayload | None = None
    deployment: DeploymentPayload | None = None
    deployment_callback_url: str | None = None

    def to_request(self, *, delivery_id: str | None = None) -> ProtectionRequest:
        return ProtectionRequest(
            repository_owner=self.repository.owner.login,
            repository_name=self.repository.name,
            environment_name=self.environment,
            deployment_id=self.deployment.id if self.deployment else None,
            installation_id=self.installation.id if self.installation else None,
            callback_url=self.deployment_callback_url,
            delivery_id=delivery_id,
        )


def parse_protection_payload(body: bytes) -> ProtectionRulePayload:
    """Validate a raw webhook body against the protection rule schema.

    Raises:
        InvalidPayloadError: If the body is not JSON or misses required fields
    """
    try:
        return ProtectionRulePayload.model_validate_json(body)
    except ValidationError as e:
        raise InvalidPayloadError(str(e)) from e
