"""Service layer modules."""

from geozone.services.clock import Clock, ManualClock, SystemClock
from geozone.services.event_log import EventLog
from geozone.services.monitor import ZoneMonitor
from geozone.services.notifications import (
    LoggingNotificationSink,
    NotificationSink,
    RecordingNotificationSink,
)
from geozone.services.repository import InMemoryZoneRepository, ZoneRepository
from geozone.services.validation import validate_hierarchy, validate_zone_input
from geozone.services.zone_manager import ZoneManager

__all__ = [
    "ZoneManager",
    "ZoneMonitor",
    "EventLog",
    "ZoneRepository",
    "InMemoryZoneRepository",
    "NotificationSink",
    "LoggingNotificationSink",
    "RecordingNotificationSink",
    "Clock",
    "SystemClock",
    "ManualClock",
    "validate_zone_input",
    "validate_hierarchy",
]
