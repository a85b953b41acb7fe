from __future__ import annotations

import hashlib
import hmac

from ..core.domain.exceptions import WebhookSignatureError

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature GitHub sends for ``body``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature: str | None, secret: str) -> None:
    """Verify a webhook delivery against its signature header.

    ``body`` must be the raw request bytes; re-serialized JSON will not match.

    Raises:
        WebhookSignatureError: If the signature is missing or does not match
    """
    if not secret:
        raise WebhookSignatureError("webhook secret is not configured")
    if not signature:
        raise WebhookSignatureError(f"missing {SIGNATURE_HEADER} header")
    if not signature.startswith(SIGNATURE_PREFIX):
        raise WebhookSignatureError("unsupported signature format")
    if not hmac.compare_digest(compute_signature(body, secret), signature.strip()):
        raise WebhookSignatureError("signature does not match payload")
