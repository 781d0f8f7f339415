"""Reply composition pipeline.

Turns one inbound message into one reply text:
1. Base reply from the chat-completion responder
2. Order-intent detection over the raw text
3. Order lookup, overriding the reply with order facts or a clarification

Every external failure degrades to the apology text; compose() never raises
for a responder or order lookup failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.errors import OrderLookupError, ResponderError
from src.models import ComposedReply, LookupOutcome, OrderSummary
from src.pipeline.intent import extract_order_id, has_order_intent

if TYPE_CHECKING:
    from src.orders.shopify import ShopifyOrderResolver
    from src.responder.openai_chat import ChatResponder

logger = logging.getLogger(__name__)

APOLOGY_REPLY = "Sorry, I couldn't fetch your order right now. Try again in a bit."
FALLBACK_REPLY = "Sorry, I can't reply right now. Please try again in a bit."


def format_order_reply(order: OrderSummary) -> str:
    return (
        f"Order {order.display_name} is currently {order.fulfillment_status or 'processing'}. "
        f"Tracking: {order.tracking_number or 'Not available'}. "
        f"Shipping service: {order.shipping_carrier or 'N/A'}. "
        f"Expected delivery: {order.expected_delivery or 'N/A'}."
    )


def format_not_found_reply(order_id: str) -> str:
    return (
        f"I couldn't find order {order_id}. "
        "Could you please share the email or phone used for the order?"
    )


class ReplyComposer:
    """Composes the outbound reply text for a single inbound message."""

    def __init__(
        self,
        responder: ChatResponder,
        order_resolver: ShopifyOrderResolver | None = None,
        default_greeting: str = "Hi",
    ) -> None:
        self._responder = responder
        self._resolver = order_resolver
        self._default_greeting = default_greeting

    async def compose(self, sender_id: str, text: str | None) -> str:
        """Return a non-empty reply for text sent by sender_id."""
        return (await self.compose_turn(sender_id, text)).text

    async def compose_turn(self, sender_id: str, text: str | None) -> ComposedReply:
        """Like compose(), but also report the lookup outcome for the turn log."""
        text = text or self._default_greeting

        # Stage 1: base reply
        responder_fallback = False
        try:
            base_reply = await self._responder.reply(text)
        except ResponderError as exc:
            logger.warning("Responder failed for %s: %s", sender_id, exc)
            base_reply = FALLBACK_REPLY
            responder_fallback = True

        base = ComposedReply(text=base_reply, responder_fallback=responder_fallback)

        # Stage 2: order intent
        if self._resolver is None or not has_order_intent(text):
            return base

        order_id = extract_order_id(text)
        if order_id is None:
            return base

        # Stage 3: order lookup
        try:
            order = await self._resolver.find_by_name(order_id)
        except OrderLookupError as exc:
            logger.warning("Order lookup failed for %s: %s", order_id, exc)
            reply, outcome = APOLOGY_REPLY, LookupOutcome.FAILED
        else:
            if order is None:
                reply, outcome = format_not_found_reply(order_id), LookupOutcome.NOT_FOUND
            else:
                reply, outcome = format_order_reply(order), LookupOutcome.FOUND

        return base.model_copy(update={"text": reply, "order_id": order_id, "lookup": outcome})
