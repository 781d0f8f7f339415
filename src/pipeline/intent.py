"""Order-status intent detection over free-form message text."""

from __future__ import annotations

import re

# Any one match triggers an order lookup attempt. Digits are ASCII only.
ORDER_INTENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"order\s*#?[0-9]+", re.IGNORECASE),
    re.compile(r"where.*order", re.IGNORECASE),
    re.compile(r"status.*order", re.IGNORECASE),
)

ORDER_ID_PATTERN = re.compile(r"#?([0-9]{3,20})")


def has_order_intent(text: str) -> bool:
    return any(pattern.search(text) for pattern in ORDER_INTENT_PATTERNS)


def extract_order_id(text: str) -> str | None:
    """Return the first 3-20 digit run in text, without any leading '#'.

    Only the first run is returned; messages naming several orders resolve
    to the first one.
    """
    match = ORDER_ID_PATTERN.search(text)
    return match.group(1) if match else None
