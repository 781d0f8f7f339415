"""Errors raised by the relay's outbound collaborators."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for failures talking to an external service."""


class ResponderError(RelayError):
    """The chat-completion API failed or returned an unusable body."""


class OrderLookupError(RelayError):
    """The Shopify order lookup failed (transport, status, or body)."""


class MessageSendError(RelayError):
    """The WhatsApp send-message call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
