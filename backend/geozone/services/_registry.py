"""Event type registry for notification titles, toggles and default messages."""

from collections.abc import Callable
from dataclasses import dataclass

from geozone.schemas.zone import Zone, ZoneSettings


@dataclass(frozen=True)
class EventNotificationConfig:
    """How one event type is announced."""

    title: str
    # ZoneSettings flag that enables notifications for this event type
    setting: str
    default_message: Callable[[Zone], str]

    def is_enabled(self, settings: ZoneSettings) -> bool:
        return bool(getattr(settings, self.setting, False))


def _dwell_message(zone: Zone) -> str:
    return f"Device has been in {zone.name} for {zone.settings.dwell_time_threshold} minutes"


EVENT_NOTIFICATION_REGISTRY: dict[str, EventNotificationConfig] = {
    "enter": EventNotificationConfig(
        title="Zone Entry",
        setting="notify_on_entry",
        default_message=lambda zone: f"Device entered {zone.name}",
    ),
    "exit": EventNotificationConfig(
        title="Zone Exit",
        setting="notify_on_exit",
        default_message=lambda zone: f"Device left {zone.name}",
    ),
    "dwell": EventNotificationConfig(
        title="Dwell Alert",
        setting="notify_on_dwell",
        default_message=_dwell_message,
    ),
    "breach": EventNotificationConfig(
        title="Zone Breach",
        setting="notify_on_breach",
        default_message=lambda zone: f"Zone breach detected in {zone.name}",
    ),
}


def get_notification_config(event_type: str) -> EventNotificationConfig | None:
    """Get notification configuration for an event type."""
    return EVENT_NOTIFICATION_REGISTRY.get(event_type)
