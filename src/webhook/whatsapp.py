"""WhatsApp Cloud API webhook client.

Handles the Meta verification challenge, extracts the first inbound message
from a webhook delivery, and sends text replies through the Graph API.
"""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING, Any

import httpx

from src.errors import MessageSendError
from src.models import InboundEvent, NoEvent
from src.webhook.models import VerificationResult

if TYPE_CHECKING:
    from src.config import RelayConfig

logger = logging.getLogger(__name__)


def _first_item(container: Any, key: str) -> dict[str, Any] | None:
    """Return container[key][0] when it is a dict, else None."""
    if not isinstance(container, dict):
        return None
    items = container.get(key)
    if not isinstance(items, list) or not items:
        return None
    first = items[0]
    return first if isinstance(first, dict) else None


class WhatsAppClient:
    """Inbound parsing and outbound sending for one WhatsApp phone number."""

    def __init__(
        self,
        verify_token: str,
        phone_number_id: str,
        access_token: str,
        api_base: str = "https://graph.facebook.com",
        api_version: str = "v16.0",
        timeout: float = 10.0,
    ) -> None:
        self._verify_token = verify_token
        self._phone_number_id = phone_number_id
        self._access_token = access_token
        self._api_base = api_base.rstrip("/")
        self._api_version = api_version
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: RelayConfig) -> WhatsAppClient:
        return cls(
            verify_token=config.verify_token,
            phone_number_id=config.phone_number_id,
            access_token=config.access_token,
            api_base=config.graph_api_base,
            api_version=config.graph_api_version,
            timeout=config.http_timeout,
        )

    @property
    def messages_url(self) -> str:
        return f"{self._api_base}/{self._api_version}/{self._phone_number_id}/messages"

    def handle_verification(self, params: dict[str, str]) -> VerificationResult:
        """Answer the Meta webhook subscription handshake (GET).

        200 with the challenge verbatim on a valid subscribe, 403 on a wrong
        token or mode, 400 when mode or token is missing.
        """
        mode = params.get("hub.mode")
        token = params.get("hub.verify_token")
        if not mode or not token:
            return VerificationResult(status_code=400)

        if mode == "subscribe" and hmac.compare_digest(
            token.encode(), self._verify_token.encode(),
        ):
            logger.info("Webhook verified")
            return VerificationResult(
                status_code=200, content=params.get("hub.challenge", ""),
            )
        return VerificationResult(status_code=403)

    def extract_event(self, payload: Any) -> InboundEvent | NoEvent:
        """Project entry[0].changes[0].value.messages[0] into an InboundEvent.

        Never raises; every missing level maps to a NoEvent reason.
        """
        entry = _first_item(payload, "entry")
        if entry is None:
            return NoEvent(reason="no_entry")

        change = _first_item(entry, "changes")
        if change is None:
            return NoEvent(reason="no_changes")

        value = change.get("value")
        if not isinstance(value, dict):
            return NoEvent(reason="no_value")

        message = _first_item(value, "messages")
        if message is None:
            return NoEvent(reason="no_messages")

        sender = message.get("from")
        if not isinstance(sender, str) or not sender:
            return NoEvent(reason="no_sender")

        text_obj = message.get("text")
        body = text_obj.get("body") if isinstance(text_obj, dict) else None
        message_type = message.get("type")
        message_id = message.get("id")
        return InboundEvent(
            sender_id=sender,
            text=body if isinstance(body, str) else "",
            message_type=message_type if isinstance(message_type, str) else "unknown",
            message_id=message_id if isinstance(message_id, str) else None,
        )

    async def send_text(self, recipient_id: str, text: str) -> None:
        """Send a text reply via the WhatsApp Cloud API.

        One attempt only; raises MessageSendError on transport errors or
        non-2xx responses.
        """
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient_id,
            "text": {"body": text},
        }
        headers = {"Authorization": f"Bearer {self._access_token}"}

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    self.messages_url, json=payload, headers=headers,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise MessageSendError(f"WhatsApp send failed: {exc}") from exc

        if resp.status_code >= 300:
            raise MessageSendError(
                f"WhatsApp send returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
