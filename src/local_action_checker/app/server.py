"""Webhook server for GitHub deployment protection rules.

Run with: local-action-checker serve
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .container import Container
from .models import PROTECTION_RULE_EVENT, REQUESTED_ACTION, parse_protection_payload
from ..core.domain.exceptions import InvalidPayloadError, WebhookSignatureError
from ..core.domain.models import ProtectionRequest
from ..infra.webhook_signature import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

APP_TITLE = "Local Action Checker"
APP_DESCRIPTION = "GitHub App environment protection rule for local actions"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_app(container: Container) -> FastAPI:
    """Build the webhook app around an initialized container.

    Deliveries are acknowledged once verified; the protection rule itself is
    decided in a background task so GitHub's delivery timeout does not depend
    on API latency.
    """
    app = FastAPI(title=APP_TITLE, description=APP_DESCRIPTION)
    webhook_secret = container.config.github.webhook_secret() or ""

    def run_protection_rule(request: ProtectionRequest) -> None:
        container.protection_rule_uc().execute(request=request)

    async def receive(request: Request, background: BackgroundTasks) -> PlainTextResponse:
        event = request.headers.get("X-GitHub-Event")
        delivery_id = request.headers.get("X-GitHub-Delivery")
        # Raw bytes: the signature covers the body exactly as sent
        body = await request.body()

        try:
            verify_signature(body, request.headers.get(SIGNATURE_HEADER), webhook_secret)
            if event != PROTECTION_RULE_EVENT:
                logger.info("webhook_ignored", extra={"event": event, "delivery_id": delivery_id})
                return PlainTextResponse("OK")
            payload = parse_protection_payload(body)
        except (WebhookSignatureError, InvalidPayloadError) as e:
            logger.warning(
                "webhook_rejected",
                extra={"event": event, "delivery_id": delivery_id, "error": str(e), "body_length": len(body)},
            )
            return PlainTextResponse("Bad Request", status_code=400)

        if payload.action != REQUESTED_ACTION:
            logger.info(
                "webhook_ignored",
                extra={"event": event, "action": payload.action, "delivery_id": delivery_id},
            )
            return PlainTextResponse("OK")

        background.add_task(run_protection_rule, payload.to_request(delivery_id=delivery_id))
        return PlainTextResponse("OK")

    @app.get("/")
    async def info() -> JSONResponse:
        return JSONResponse({
            "name": APP_TITLE,
            "description": APP_DESCRIPTION,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "webhook": "/ (POST)",
            },
            "timestamp": _now(),
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "healthy", "timestamp": _now()})

    app.add_api_route("/", receive, methods=["POST"])
    # Legacy path kept for existing app registrations
    app.add_api_route("/webhook", receive, methods=["POST"])

    return app
