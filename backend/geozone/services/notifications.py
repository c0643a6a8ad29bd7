"""Notification sink contract and notification building."""

import logging
from typing import Protocol

from geozone.schemas.events import Notification, ZoneEvent
from geozone.schemas.zone import Zone
from geozone.services._registry import get_notification_config

logger = logging.getLogger(__name__)

__all__ = [
    "NotificationSink",
    "LoggingNotificationSink",
    "RecordingNotificationSink",
    "should_notify",
    "build_notification",
]


class NotificationSink(Protocol):
    """Fire-and-forget receiver of user-facing notifications."""

    def show_notification(self, notification: Notification) -> None: ...


class LoggingNotificationSink:
    """Default sink: writes notifications to the log."""

    def show_notification(self, notification: Notification) -> None:
        logger.info(
            f"[{notification.priority}] {notification.title}: {notification.message} "
            f"(zone={notification.zone_id}, device={notification.device_id})"
        )


class RecordingNotificationSink:
    """Keeps every notification in memory, for tests and demos."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def show_notification(self, notification: Notification) -> None:
        self.notifications.append(notification)


def should_notify(zone: Zone, event: ZoneEvent) -> bool:
    """Whether the zone's settings enable notifications for this event type."""
    config = get_notification_config(event.type)
    return config is not None and config.is_enabled(zone.settings)


def build_notification(zone: Zone, event: ZoneEvent) -> Notification:
    config = get_notification_config(event.type)
    if config is None:
        title = "Zone Event"
        default_message = f"Zone event in {zone.name}"
    else:
        title = config.title
        default_message = config.default_message(zone)

    return Notification(
        title=title,
        message=zone.settings.custom_message or default_message,
        zone_id=zone.id,
        device_id=event.device_id,
        priority="high" if zone.priority == "critical" else "medium",
    )
