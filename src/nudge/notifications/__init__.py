"""Local notifications."""

from nudge.notifications.scheduler import (
    LoopNotificationScheduler,
    NotificationScheduler,
    NullNotificationScheduler,
)

__all__ = ["LoopNotificationScheduler", "NotificationScheduler", "NullNotificationScheduler"]
