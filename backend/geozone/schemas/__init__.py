"""Pydantic schemas for zones, events and API payloads."""

from geozone.schemas.api import (
    AccessGrantRequest,
    DeviceZoneResponse,
    LocationCheck,
    LocationUpdate,
    LocationUpdateResponse,
    ZoneEventsResponse,
)
from geozone.schemas.events import (
    BreachEvent,
    DwellEvent,
    EnterEvent,
    EventLocation,
    ExitEvent,
    Notification,
    ProximityEvent,
    ZoneEvent,
    ZoneEventType,
)
from geozone.schemas.zone import (
    DevicePosition,
    Zone,
    ZoneAccessControl,
    ZoneBoundaryResult,
    ZoneErrorKind,
    ZoneHierarchyNode,
    ZoneInput,
    ZoneOperationResult,
    ZonePermission,
    ZonePriority,
    ZoneSettings,
    ZoneStats,
    ZoneStatus,
    ZoneType,
    ZoneValidationResult,
)

__all__ = [
    # API schemas
    "LocationUpdate",
    "LocationCheck",
    "LocationUpdateResponse",
    "DeviceZoneResponse",
    "AccessGrantRequest",
    "ZoneEventsResponse",
    # Zone schemas
    "Zone",
    "ZoneInput",
    "ZoneSettings",
    "ZoneStats",
    "ZoneAccessControl",
    "DevicePosition",
    "ZoneBoundaryResult",
    "ZoneValidationResult",
    "ZoneHierarchyNode",
    "ZoneOperationResult",
    "ZoneErrorKind",
    "ZoneType",
    "ZonePriority",
    "ZoneStatus",
    "ZonePermission",
    # Event schemas
    "ZoneEvent",
    "ZoneEventType",
    "EnterEvent",
    "ExitEvent",
    "DwellEvent",
    "BreachEvent",
    "ProximityEvent",
    "EventLocation",
    "Notification",
]
