"""Pydantic schemas for API request/response bodies."""

from datetime import datetime

from pydantic import Field

from geozone.schemas.events import ZoneEvent
from geozone.schemas.zone import CamelModel, DevicePosition, Zone, ZonePermission

# --- Location Schemas ---


class LocationUpdate(CamelModel):
    """A device position report."""

    device_id: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)  # meters


class LocationCheck(CamelModel):
    """Point to test against one zone or all active zones."""

    device_id: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    zone_id: str | None = None


class LocationUpdateResponse(CamelModel):
    device_id: str
    events: list[ZoneEvent]
    current_zone_id: str | None = None


class DeviceZoneResponse(CamelModel):
    """Current assignment and last known position of a device."""

    device_id: str
    zone: Zone | None = None
    position: DevicePosition | None = None


# --- Access Schemas ---


class AccessGrantRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    permission: ZonePermission
    expires_at: datetime | None = None


# --- Event Feed Schemas ---


class ZoneEventsResponse(CamelModel):
    """Recent events, newest first."""

    events: list[ZoneEvent]
    total_count: int
