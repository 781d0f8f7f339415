"""Shared Pydantic data models for order-relay."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class LookupOutcome(str, Enum):
    SKIPPED = "skipped"  # no order intent, no order number, or lookup disabled
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


# --- Webhook Models ---


class InboundEvent(BaseModel):
    """First message of an inbound WhatsApp webhook delivery."""

    model_config = ConfigDict(frozen=True)

    sender_id: str
    text: str = ""
    message_type: str = "unknown"
    message_id: str | None = None


class NoEvent(BaseModel):
    """Webhook delivery that carries no message (statuses, receipts, junk)."""

    model_config = ConfigDict(frozen=True)

    reason: str


# --- Order Models ---


class OrderSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int | None = None
    display_name: str
    fulfillment_status: str | None = None
    tracking_number: str | None = None
    shipping_carrier: str | None = None
    expected_delivery: str | None = None


# --- Reply Models ---


class ComposedReply(BaseModel):
    """Reply text plus how the composer arrived at it."""

    model_config = ConfigDict(frozen=True)

    text: str
    order_id: str | None = None
    lookup: LookupOutcome = LookupOutcome.SKIPPED
    responder_fallback: bool = False


# --- Turn Log Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class TurnRecord(BaseModel):
    """One handled inbound message. Never carries message or reply text."""

    timestamp: str = Field(default_factory=_now_iso)
    message_id: str | None = None
    sender_id: str
    message_type: str
    order_id: str | None = None
    lookup: LookupOutcome = LookupOutcome.SKIPPED
    responder_fallback: bool = False
    ack: str  # POST /webhook acknowledgement token, or "error"
    send_status: int | None = None
    duration_ms: int = Field(ge=0)
