"""Data models for the WhatsApp webhook endpoints."""

from __future__ import annotations

from dataclasses import dataclass

# POST /webhook acknowledgement tokens
EVENT_RECEIVED = "EVENT_RECEIVED"
SEND_FAILED = "SEND_FAILED"
HANDLER_ERROR = "error"
INVALID_JSON = "invalid_json"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of the Meta subscription handshake (GET /webhook)."""

    status_code: int
    content: str = ""
