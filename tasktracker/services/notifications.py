"""
Outbound notification requests.

The engine hands a NotificationRequest to a dispatcher and moves on; the
socket/e-mail delivery that consumes the queue lives elsewhere. A failing
dispatcher must never fail the operation that emitted the request.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Protocol

logger = logging.getLogger(__name__)


@dataclass
class NotificationRequest:
    user_id: int
    task_id: int
    kind: str
    message: str
    created_at: datetime = field(default_factory=datetime.utcnow)


class NotificationDispatcher(Protocol):
    def enqueue(self, request: NotificationRequest) -> None: ...


class NotificationOutbox:
    """In-process FIFO used as the default dispatcher."""

    def __init__(self, maxlen: int = 1000):
        self._queue = deque(maxlen=maxlen)

    def enqueue(self, request: NotificationRequest) -> None:
        if len(self._queue) == self._queue.maxlen:
            dropped = self._queue[0]
            logger.warning(
                "Outbox full (%d), dropping oldest %s notification for user=%s task=%s",
                self._queue.maxlen, dropped.kind, dropped.user_id, dropped.task_id,
            )
        self._queue.append(request)
        logger.info("Queued %s notification for user=%s task=%s", request.kind, request.user_id, request.task_id)

    def drain(self) -> List[NotificationRequest]:
        items = list(self._queue)
        self._queue.clear()
        return items

    def __len__(self):
        return len(self._queue)


outbox = NotificationOutbox()


def dispatch_safely(dispatcher: NotificationDispatcher, request: NotificationRequest) -> bool:
    """Enqueue, logging and discarding any failure. Returns True if queued."""
    try:
        dispatcher.enqueue(request)
        return True
    except Exception:
        logger.exception("Notification dispatch failed for user=%s task=%s", request.user_id, request.task_id)
        return False
