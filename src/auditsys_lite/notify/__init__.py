"""Post-append anomaly notifications and the sinks that receive them."""
from auditsys_lite.notify.notifier import (
    AnomalyNotifier,
    Notification,
    NotificationKind,
    NotificationSink,
)
from auditsys_lite.notify.sinks import (
    CallbackSink,
    InboxItem,
    NotificationInbox,
    QueueSink,
)

__all__ = [
    "AnomalyNotifier",
    "Notification",
    "NotificationKind",
    "NotificationSink",
    "CallbackSink",
    "InboxItem",
    "NotificationInbox",
    "QueueSink",
]
