"""Shopify Admin REST order lookup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from src.errors import OrderLookupError
from src.models import OrderSummary

if TYPE_CHECKING:
    from src.config import RelayConfig

logger = logging.getLogger(__name__)


def summarize_order(order: dict[str, Any], fallback_name: str = "") -> OrderSummary:
    """Project a Shopify order record onto the fields a customer reply needs.

    Raises pydantic.ValidationError when a projected field has the wrong type.
    """
    fulfillments = order.get("fulfillments")
    first: dict[str, Any] = {}
    if isinstance(fulfillments, list) and fulfillments and isinstance(fulfillments[0], dict):
        first = fulfillments[0]
    tracking_numbers = first.get("tracking_numbers")
    if isinstance(tracking_numbers, list) and tracking_numbers:
        tracking = tracking_numbers[0]
    else:
        tracking = first.get("tracking_number")

    return OrderSummary(
        order_id=order.get("id"),
        display_name=order.get("name") or fallback_name,
        fulfillment_status=order.get("fulfillment_status"),
        tracking_number=tracking,
        shipping_carrier=first.get("tracking_company"),
        # Shopify has no reliable delivery estimate on the order record
        expected_delivery=None,
    )


class ShopifyOrderResolver:
    """Looks up a single order by its customer-facing name/number."""

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = "2024-10",
        timeout: float = 10.0,
    ) -> None:
        self._store_domain = (
            store_domain.replace("https://", "").replace("http://", "").rstrip("/")
        )
        self._access_token = access_token
        self._api_version = api_version
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: RelayConfig) -> ShopifyOrderResolver | None:
        """Build a resolver, or None when the store is not configured."""
        if not config.shopify_store_domain or not config.shopify_admin_token:
            return None
        return cls(
            store_domain=config.shopify_store_domain,
            access_token=config.shopify_admin_token,
            api_version=config.shopify_api_version,
            timeout=config.http_timeout,
        )

    @property
    def orders_url(self) -> str:
        return f"https://{self._store_domain}/admin/api/{self._api_version}/orders.json"

    async def find_by_name(self, order_id: str) -> OrderSummary | None:
        """Return the first order matching order_id, or None if there is none.

        Raises OrderLookupError on transport errors, non-2xx responses, or a
        malformed body.
        """
        logger.debug("Looking up Shopify order %s", order_id)
        params = {"limit": 10, "name": order_id, "status": "any"}
        headers = {
            "X-Shopify-Access-Token": self._access_token,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(
                    self.orders_url, params=params, headers=headers,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise OrderLookupError(f"Shopify request failed: {exc}") from exc

        if resp.status_code >= 300:
            raise OrderLookupError(f"Shopify returned HTTP {resp.status_code}")

        try:
            orders = resp.json().get("orders") or []
            if not isinstance(orders, list) or not orders:
                return None
            return summarize_order(orders[0], fallback_name=f"#{order_id}")
        except (ValueError, LookupError, AttributeError, TypeError) as exc:
            # ValueError covers JSON/UTF-8 decoding and pydantic ValidationError
            raise OrderLookupError("Shopify returned a malformed orders body") from exc
