"""Pydantic schemas for zone events and outgoing notifications."""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field

from geozone.schemas.zone import CamelModel

ZoneEventType = Literal["enter", "exit", "dwell", "breach", "proximity"]


class EventLocation(CamelModel):
    """Device location at event time."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    accuracy: float | None = None


# --- Zone Event Variants ---


class _ZoneEventBase(CamelModel):
    model_config = ConfigDict(frozen=True)

    zone_id: str
    device_id: str
    timestamp: datetime
    location: EventLocation
    metadata: dict[str, Any] | None = None


class EnterEvent(_ZoneEventBase):
    """Device crossed into a zone."""

    type: Literal["enter"] = "enter"


class ExitEvent(_ZoneEventBase):
    """Device left a zone; dwell_minutes is the time since its entry, if known."""

    type: Literal["exit"] = "exit"
    dwell_minutes: float | None = None


class DwellEvent(_ZoneEventBase):
    """Device has stayed in a zone for the configured threshold."""

    type: Literal["dwell"] = "dwell"
    threshold_minutes: int


class BreachEvent(_ZoneEventBase):
    type: Literal["breach"] = "breach"


class ProximityEvent(_ZoneEventBase):
    type: Literal["proximity"] = "proximity"
    distance_from_boundary: float


ZoneEvent = Annotated[
    EnterEvent | ExitEvent | DwellEvent | BreachEvent | ProximityEvent,
    Field(discriminator="type"),
]


# --- Notification Schemas ---


class Notification(CamelModel):
    """Payload handed to the notification sink."""

    type: Literal["zone"] = "zone"
    title: str
    message: str
    zone_id: str
    device_id: str
    priority: Literal["medium", "high"]
