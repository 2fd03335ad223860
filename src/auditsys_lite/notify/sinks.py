"""Notification sinks.

QueueSink hands notifications to a bounded queue.Queue for some other
thread to consume; it never blocks, and drops (and counts) when full.
CallbackSink calls a function. NotificationInbox keeps the most recent
notifications with an unread counter, like a notification bell.
"""
from __future__ import annotations

import logging
import queue
import threading
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from auditsys_lite.notify.notifier import Notification

log = logging.getLogger(__name__)


class QueueSink:
    """Non-blocking publisher onto a queue.Queue."""

    def __init__(self, maxsize: int = 1_000) -> None:
        self._queue: queue.Queue[Notification] = queue.Queue(maxsize=maxsize)
        self._dropped = 0

    @property
    def queue(self) -> queue.Queue[Notification]:
        return self._queue

    @property
    def dropped(self) -> int:
        return self._dropped

    def publish(self, notification: Notification) -> None:
        try:
            self._queue.put_nowait(notification)
        except queue.Full:
            self._dropped += 1
            log.warning("Notification queue full, dropped %s", notification.kind.value)

    def drain(self) -> list[Notification]:
        """Take everything currently queued."""
        items: list[Notification] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items


class CallbackSink:
    """Forwards each notification to a callable."""

    def __init__(self, callback: Callable[[Notification], None]) -> None:
        self._callback = callback

    def publish(self, notification: Notification) -> None:
        self._callback(notification)


@dataclass(slots=True)
class InboxItem:
    notification_id: str
    notification: Notification
    received_at: datetime
    is_read: bool = False


class NotificationInbox:
    """Most recent notifications, newest first, with an unread count."""

    def __init__(self, capacity: int = 20) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._items: deque[InboxItem] = deque(maxlen=capacity)
        self._unread = 0
        self._lock = threading.Lock()

    def publish(self, notification: Notification) -> None:
        item = InboxItem(
            notification_id=str(uuid.uuid4()),
            notification=notification,
            received_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._items.appendleft(item)
            self._unread += 1

    @property
    def unread_count(self) -> int:
        """Notifications received since the last mark_all_read().

        Keeps counting past capacity: evicted items still count as unread.
        """
        with self._lock:
            return self._unread

    def items(self) -> list[InboxItem]:
        with self._lock:
            return list(self._items)

    def mark_all_read(self) -> None:
        with self._lock:
            for item in self._items:
                item.is_read = True
            self._unread = 0
