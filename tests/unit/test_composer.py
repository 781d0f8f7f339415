"""Tests for the reply composition pipeline."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.errors import OrderLookupError, ResponderError
from src.models import LookupOutcome
from src.orders.shopify import ShopifyOrderResolver
from src.pipeline.composer import (
    APOLOGY_REPLY,
    FALLBACK_REPLY,
    ReplyComposer,
    format_not_found_reply,
    format_order_reply,
)
from tests.conftest import make_async_client, make_order_summary, make_response


def _make_responder(reply: str = "Hello from the store!") -> MagicMock:
    responder = MagicMock()
    responder.reply = AsyncMock(return_value=reply)
    return responder


def _make_resolver(result: Any = None, error: Exception | None = None) -> MagicMock:
    resolver = MagicMock()
    resolver.find_by_name = AsyncMock(return_value=result, side_effect=error)
    return resolver


def _make_composer(**kwargs: Any) -> ReplyComposer:
    defaults: dict[str, Any] = {
        "responder": _make_responder(),
        "order_resolver": _make_resolver(),
        "default_greeting": "Hi",
    }
    defaults.update(kwargs)
    return ReplyComposer(**defaults)


class TestFormatting:

    def test_order_reply_exact_text(self) -> None:
        reply = format_order_reply(make_order_summary())
        assert reply == (
            "Order #1001 is currently fulfilled. Tracking: TRK1. "
            "Shipping service: DHL. Expected delivery: N/A."
        )

    def test_order_reply_defaults_for_missing_fields(self) -> None:
        order = make_order_summary(
            fulfillment_status=None, tracking_number=None, shipping_carrier=None,
        )
        assert format_order_reply(order) == (
            "Order #1001 is currently processing. Tracking: Not available. "
            "Shipping service: N/A. Expected delivery: N/A."
        )

    def test_not_found_reply_names_order_and_asks_for_contact(self) -> None:
        reply = format_not_found_reply("99999")
        assert "99999" in reply
        assert "email or phone" in reply


class TestReplyComposer:

    @pytest.mark.asyncio
    async def test_non_order_text_returns_responder_output(self) -> None:
        resolver = _make_resolver()
        composer = _make_composer(
            responder=_make_responder("We have sarees in 12 colours."),
            order_resolver=resolver,
        )
        reply = await composer.compose("user1", "Do you have red sarees?")
        assert reply == "We have sarees in 12 colours."
        resolver.find_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_responder_called_with_raw_text(self) -> None:
        responder = _make_responder()
        composer = _make_composer(responder=responder)
        await composer.compose("user1", "Namaste!")
        responder.reply.assert_awaited_once_with("Namaste!")

    @pytest.mark.asyncio
    async def test_empty_text_uses_default_greeting(self) -> None:
        responder = _make_responder()
        composer = _make_composer(responder=responder, default_greeting="Hello")
        await composer.compose("user1", "")
        responder.reply.assert_awaited_once_with("Hello")

    @pytest.mark.asyncio
    async def test_none_text_uses_default_greeting(self) -> None:
        responder = _make_responder()
        composer = _make_composer(responder=responder)
        await composer.compose("user1", None)
        responder.reply.assert_awaited_once_with("Hi")

    @pytest.mark.asyncio
    async def test_found_order_overrides_reply(self) -> None:
        resolver = _make_resolver(result=make_order_summary())
        composer = _make_composer(order_resolver=resolver)
        reply = await composer.compose("user1", "Where is my order #12345?")
        assert reply == (
            "Order #1001 is currently fulfilled. Tracking: TRK1. "
            "Shipping service: DHL. Expected delivery: N/A."
        )
        resolver.find_by_name.assert_awaited_once_with("12345")

    @pytest.mark.asyncio
    async def test_missing_order_asks_for_contact(self) -> None:
        composer = _make_composer(order_resolver=_make_resolver(result=None))
        reply = await composer.compose("user1", "status of order 99999")
        assert "99999" in reply
        assert "email or phone" in reply

    @pytest.mark.asyncio
    async def test_lookup_failure_returns_apology(self) -> None:
        resolver = _make_resolver(error=OrderLookupError("boom"))
        composer = _make_composer(order_resolver=resolver)
        reply = await composer.compose("user1", "Where is my order #12345?")
        assert reply == APOLOGY_REPLY

    @pytest.mark.asyncio
    async def test_intent_without_number_keeps_base_reply(self) -> None:
        resolver = _make_resolver()
        composer = _make_composer(
            responder=_make_responder("Please share your order number."),
            order_resolver=resolver,
        )
        reply = await composer.compose("user1", "where is my order?")
        assert reply == "Please share your order number."
        resolver.find_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_number_without_intent_not_looked_up(self) -> None:
        resolver = _make_resolver()
        composer = _make_composer(order_resolver=resolver)
        await composer.compose("user1", "call me at 5551234")
        resolver.find_by_name.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_resolver_keeps_base_reply(self) -> None:
        composer = _make_composer(
            responder=_make_responder("base"), order_resolver=None,
        )
        reply = await composer.compose("user1", "Where is my order #12345?")
        assert reply == "base"

    @pytest.mark.asyncio
    async def test_responder_failure_degrades_to_fallback(self) -> None:
        responder = MagicMock()
        responder.reply = AsyncMock(side_effect=ResponderError("down"))
        composer = _make_composer(responder=responder)
        reply = await composer.compose("user1", "hello")
        assert reply == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_responder_failure_still_looks_up_order(self) -> None:
        responder = MagicMock()
        responder.reply = AsyncMock(side_effect=ResponderError("down"))
        composer = _make_composer(
            responder=responder,
            order_resolver=_make_resolver(result=make_order_summary()),
        )
        reply = await composer.compose("user1", "order #1001")
        assert reply.startswith("Order #1001 is currently fulfilled.")

    @pytest.mark.asyncio
    async def test_unexpected_resolver_error_propagates(self) -> None:
        """Only OrderLookupError is absorbed."""
        composer = _make_composer(order_resolver=_make_resolver(error=RuntimeError("bug")))
        with pytest.raises(RuntimeError):
            await composer.compose("user1", "order #1001")


class TestComposeTurn:

    @pytest.mark.asyncio
    async def test_found_order_outcome(self) -> None:
        composer = _make_composer(order_resolver=_make_resolver(result=make_order_summary()))
        turn = await composer.compose_turn("user1", "order #1001")
        assert turn.lookup == LookupOutcome.FOUND
        assert turn.order_id == "1001"
        assert turn.responder_fallback is False
        assert turn.text.startswith("Order #1001")

    @pytest.mark.asyncio
    async def test_not_found_outcome(self) -> None:
        composer = _make_composer(order_resolver=_make_resolver(result=None))
        turn = await composer.compose_turn("user1", "order #99999")
        assert turn.lookup == LookupOutcome.NOT_FOUND
        assert turn.order_id == "99999"

    @pytest.mark.asyncio
    async def test_failed_lookup_outcome(self) -> None:
        composer = _make_composer(order_resolver=_make_resolver(error=OrderLookupError("x")))
        turn = await composer.compose_turn("user1", "order #1001")
        assert turn.lookup == LookupOutcome.FAILED
        assert turn.text == APOLOGY_REPLY

    @pytest.mark.asyncio
    async def test_chat_turn_skips_lookup(self) -> None:
        composer = _make_composer(responder=_make_responder("hey"))
        turn = await composer.compose_turn("user1", "hello")
        assert turn.lookup == LookupOutcome.SKIPPED
        assert turn.order_id is None
        assert turn.text == "hey"

    @pytest.mark.asyncio
    async def test_responder_fallback_flagged(self) -> None:
        responder = MagicMock()
        responder.reply = AsyncMock(side_effect=ResponderError("down"))
        composer = _make_composer(responder=responder)
        turn = await composer.compose_turn("user1", "hello")
        assert turn.responder_fallback is True
        assert turn.text == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_malformed_shopify_order_degrades_to_apology(self) -> None:
        """A wrongly typed order field surfaces as a lookup failure, not a crash."""
        resolver = ShopifyOrderResolver(store_domain="shop.example.com", access_token="t")
        composer = _make_composer(order_resolver=resolver)
        with patch("src.orders.shopify.httpx.AsyncClient") as mock_client_cls:
            mock_client = make_async_client(mock_client_cls)
            mock_client.get.return_value = make_response(200, {
                "orders": [{"name": "#1001", "fulfillment_status": 5}],
            })
            reply = await composer.compose("user1", "where is order #1001")
        assert reply == APOLOGY_REPLY
