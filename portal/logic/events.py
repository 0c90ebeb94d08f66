"""Domain events emitted by the response store, upload service and submission.

Events are logged and kept in a bounded in-process buffer so tests and local
tooling can observe what the service did without a message broker.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, List

from portal.logic.clock import to_rfc3339, utc_now

logger = logging.getLogger(__name__)

RESPONSE_SAVED = "response.saved"
UPLOAD_STORED = "upload.stored"
APPLICATION_SUBMITTED = "application.submitted"

EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=1000)


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    event = {"type": event_type, "payload": dict(payload), "occurred_at": to_rfc3339(utc_now())}
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append(event)


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Snapshot of buffered events, oldest first."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "RESPONSE_SAVED",
    "UPLOAD_STORED",
    "APPLICATION_SUBMITTED",
    "EVENT_BUFFER",
    "publish",
    "get_buffered_events",
]
