"""Shared test fixtures for order-relay."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit.turns import TurnLog
from src.config import RelayConfig
from src.models import OrderSummary


@pytest.fixture
def mock_turn_log() -> MagicMock:
    return MagicMock(spec=TurnLog)


# --- Factory functions for test data ---


def make_config(**kwargs: Any) -> RelayConfig:
    """Factory for RelayConfig with sensible defaults."""
    defaults: dict[str, Any] = {
        "verify_token": "verify-me",
        "access_token": "wa-access-token",
        "phone_number_id": "PHONE_ID",
        "openai_api_key": "sk-test-key",
        "shopify_store_domain": "test-shop.myshopify.com",
        "shopify_admin_token": "shpat_test",
    }
    defaults.update(kwargs)
    return RelayConfig(**defaults)


def make_order_summary(**kwargs: Any) -> OrderSummary:
    """Factory for OrderSummary with sensible defaults."""
    defaults: dict[str, Any] = {
        "order_id": 450789469,
        "display_name": "#1001",
        "fulfillment_status": "fulfilled",
        "tracking_number": "TRK1",
        "shipping_carrier": "DHL",
        "expected_delivery": None,
    }
    defaults.update(kwargs)
    return OrderSummary(**defaults)


def make_whatsapp_payload(
    text: str | None = "hello",
    phone: str = "15551234567",
    message_type: str = "text",
) -> dict[str, Any]:
    """Factory for a WhatsApp Cloud API message delivery."""
    message: dict[str, Any] = {
        "from": phone,
        "id": "wamid.TEST",
        "timestamp": "1700000000",
        "type": message_type,
    }
    if text is not None:
        message["text"] = {"body": text}
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "BUSINESS_ID",
                "changes": [
                    {
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {"phone_number_id": "PHONE_ID"},
                            "messages": [message],
                        },
                        "field": "messages",
                    }
                ],
            }
        ],
    }


def make_async_client(mock_client_cls: MagicMock) -> AsyncMock:
    """Wire a patched httpx.AsyncClient class to return an async context manager."""
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def make_response(status_code: int = 200, body: Any = None) -> MagicMock:
    """Fake httpx.Response with a JSON body."""
    resp = MagicMock(status_code=status_code)
    resp.json.return_value = body if body is not None else {}
    return resp
