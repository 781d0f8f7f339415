"""Turn log: one JSON line per handled WhatsApp message, keyed by message id."""

from __future__ import annotations

import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

from src.models import ComposedReply, InboundEvent, LookupOutcome, TurnRecord


def build_turn_record(
    event: InboundEvent,
    composed: ComposedReply | None,
    ack: str,
    started: float,
    send_status: int | None = None,
) -> TurnRecord:
    """Summarize one webhook turn; started is a time.monotonic() reading.

    composed is None when the handler failed before a reply existed.
    """
    return TurnRecord(
        message_id=event.message_id,
        sender_id=event.sender_id,
        message_type=event.message_type,
        order_id=composed.order_id if composed else None,
        lookup=composed.lookup if composed else LookupOutcome.SKIPPED,
        responder_fallback=composed.responder_fallback if composed else False,
        ack=ack,
        send_status=send_status,
        duration_ms=max(0, int((time.monotonic() - started) * 1000)),
    )


class TurnLog:
    """Writes TurnRecords through a size-rotated file handler.

    The handler is private to this instance, so turn records never reach the
    root logger or its console output.
    """

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._handler = RotatingFileHandler(
            self.log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        self._handler.setFormatter(logging.Formatter("%(message)s"))

    def record(self, turn: TurnRecord) -> None:
        entry = logging.LogRecord(
            name=__name__,
            level=logging.INFO,
            pathname=__file__,
            lineno=0,
            msg=turn.model_dump_json(),
            args=None,
            exc_info=None,
        )
        self._handler.handle(entry)

    def close(self) -> None:
        self._handler.close()
