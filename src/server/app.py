"""FastAPI webhook application."""

from __future__ import annotations

import json
import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse

from src.audit.turns import TurnLog, build_turn_record
from src.config import RelayConfig
from src.errors import MessageSendError
from src.models import ComposedReply, NoEvent
from src.orders.shopify import ShopifyOrderResolver
from src.pipeline.composer import ReplyComposer
from src.responder.openai_chat import ChatResponder
from src.webhook.models import EVENT_RECEIVED, HANDLER_ERROR, INVALID_JSON, SEND_FAILED
from src.webhook.whatsapp import WhatsAppClient

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    return create_app(RelayConfig.from_env())


def build_composer(config: RelayConfig) -> ReplyComposer:
    resolver = ShopifyOrderResolver.from_config(config)
    if resolver is None:
        logger.info("Shopify not configured; order lookup disabled")
    return ReplyComposer(
        responder=ChatResponder.from_config(config),
        order_resolver=resolver,
        default_greeting=config.default_greeting,
    )


def create_app(
    config: RelayConfig,
    composer: ReplyComposer | None = None,
    whatsapp: WhatsAppClient | None = None,
    turn_log: TurnLog | None = None,
) -> FastAPI:
    """Create the webhook app. Collaborators default to ones built from config."""
    if turn_log is None and config.turn_log_path:
        turn_log = TurnLog(config.turn_log_path)
    if composer is None:
        composer = build_composer(config)
    if whatsapp is None:
        whatsapp = WhatsAppClient.from_config(config)

    app = FastAPI(docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook")
    async def verify_webhook(request: Request) -> Response:
        result = whatsapp.handle_verification(dict(request.query_params))
        if result.status_code != 200:
            logger.warning("Webhook verification rejected with %s", result.status_code)
        return PlainTextResponse(result.content, status_code=result.status_code)

    @app.post("/webhook")
    async def receive_webhook(request: Request) -> Response:
        try:
            payload = json.loads(await request.body())
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring webhook delivery with a non-JSON body")
            return PlainTextResponse(INVALID_JSON)

        event = whatsapp.extract_event(payload)
        if isinstance(event, NoEvent):
            logger.debug("No message in webhook delivery: %s", event.reason)
            return PlainTextResponse(event.reason)

        logger.info(
            "Incoming message %s from %s type %s",
            event.message_id, event.sender_id, event.message_type,
        )
        started = time.monotonic()
        composed: ComposedReply | None = None
        send_status: int | None = None

        try:
            composed = await composer.compose_turn(event.sender_id, event.text)
            await whatsapp.send_text(event.sender_id, composed.text)
            ack = EVENT_RECEIVED
        except MessageSendError as exc:
            # Still acknowledge so Meta does not redeliver the event
            logger.error("Failed to send reply to %s: %s", event.sender_id, exc)
            ack = SEND_FAILED
            send_status = exc.status_code
        except Exception:
            logger.exception("Webhook handler error")
            ack = HANDLER_ERROR

        if turn_log:
            turn_log.record(build_turn_record(event, composed, ack, started, send_status))

        if ack == HANDLER_ERROR:
            return PlainTextResponse("Internal Server Error", status_code=500)
        return PlainTextResponse(ack)

    return app
