"""Domain exceptions for local_action_checker."""

from __future__ import annotations


class RemoteCallError(Exception):
    """Raised when a call to the source-control API fails.

    Covers transport errors as well as non-success HTTP responses. The
    orchestrator treats any instance as final for the current request.
    """

    def __init__(self, operation: str, message: str, status: int | None = None) -> None:
        self.operation = operation
        self.status = status
        detail = f"{operation} failed"
        if status is not None:
            detail += f" (status={status})"
        super().__init__(f"{detail}: {message}")


class WebhookSignatureError(Exception):
    """Raised when a webhook body does not match its HMAC signature."""


class InvalidPayloadError(Exception):
    """Raised when a webhook payload is missing required fields."""
