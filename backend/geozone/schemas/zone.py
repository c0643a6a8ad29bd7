"""Pydantic models for zones, access control and operation results."""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Literal, TypeVar, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ZoneType = Literal["home", "office", "school", "custom", "no-alert", "safe"]
ZonePriority = Literal["low", "medium", "high", "critical"]
ZoneStatus = Literal["active", "inactive", "paused", "archived"]
ZonePermission = Literal["owner", "admin", "member", "viewer"]

ZONE_TYPES: tuple[str, ...] = get_args(ZoneType)
ZONE_PRIORITIES: tuple[str, ...] = get_args(ZonePriority)
ZONE_STATUSES: tuple[str, ...] = get_args(ZoneStatus)
ZONE_PERMISSIONS: tuple[str, ...] = get_args(ZonePermission)

MAX_DWELL_TIME_THRESHOLD = 7 * 24 * 60  # one week, in minutes

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# --- Zone Schemas ---


class ZoneSettings(CamelModel):
    """Per-zone notification and behaviour toggles.

    Field defaults are the documented zone defaults; a partial settings
    payload is merged over them (or over the stored settings on update).
    """

    notify_on_entry: bool = True
    notify_on_exit: bool = True
    notify_on_dwell: bool = False
    dwell_time_threshold: int = Field(default=30, ge=0, le=MAX_DWELL_TIME_THRESHOLD)  # minutes
    notify_on_breach: bool = False
    auto_activate_devices: bool = False
    is_shared: bool = False
    require_confirmation: bool = False
    custom_message: str | None = None


class ZoneStats(CamelModel):
    """Cumulative activity counters, written only by event derivation."""

    total_entries: int = 0
    total_exits: int = 0
    average_dwell_time: float = 0.0  # minutes
    last_activity: datetime | None = None
    most_active_device: str | None = None


class ZoneInput(CamelModel):
    """Zone creation payload, also used for partial updates.

    Fields are deliberately loose; range and enum checks are collected by
    ``validate_zone_input`` so every problem is reported at once.
    """

    name: str | None = None
    type: str | None = None
    description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius: float | None = None
    priority: str | None = None
    status: str | None = None
    parent_zone_id: str | None = None
    settings: ZoneSettings | None = None
    metadata: dict[str, Any] | None = None


class Zone(CamelModel):
    """A circular geographic region with membership and notification rules."""

    id: str
    name: str
    type: ZoneType
    description: str = ""
    latitude: float
    longitude: float
    radius: float  # meters
    priority: ZonePriority = "medium"
    status: ZoneStatus = "active"
    parent_zone_id: str | None = None
    created_at: datetime
    updated_at: datetime
    created_by: str
    device_ids: list[str] = Field(default_factory=list)
    child_zone_ids: list[str] = Field(default_factory=list)
    settings: ZoneSettings = Field(default_factory=ZoneSettings)
    metadata: dict[str, Any] = Field(default_factory=dict)
    stats: ZoneStats = Field(default_factory=ZoneStats)


class ZoneAccessControl(CamelModel):
    """One ACL grant on a zone."""

    user_id: str
    permission: ZonePermission
    granted_at: datetime
    granted_by: str
    expires_at: datetime | None = None


class DevicePosition(CamelModel):
    """Most recent reported position of a device."""

    latitude: float
    longitude: float
    timestamp: datetime


class ZoneBoundaryResult(CamelModel):
    """Outcome of testing one point against one zone."""

    is_inside: bool
    distance_from_center: float
    distance_from_boundary: float  # negative when inside
    zone: Zone


class ZoneValidationResult(CamelModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ZoneHierarchyNode(CamelModel):
    """A zone with its nested children; depth 0 is the requested root."""

    zone: Zone
    children: list["ZoneHierarchyNode"] = Field(default_factory=list)
    depth: int = 0


# --- Operation Results ---


class ZoneErrorKind(str, Enum):
    """Recognized failure kinds of zone-mutating operations."""

    VALIDATION_FAILED = "validation_failed"
    ZONE_NOT_FOUND = "zone_not_found"
    PARENT_ZONE_NOT_FOUND = "parent_zone_not_found"
    PERMISSION_DENIED = "permission_denied"
    QUOTA_EXCEEDED = "quota_exceeded"
    HIERARCHY_INVALID = "hierarchy_invalid"
    HAS_CHILDREN = "has_children"
    UNEXPECTED = "unexpected"


class ZoneOperationResult(CamelModel, Generic[T]):
    """Structured outcome of a zone-mutating operation."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_kind: ZoneErrorKind | None = None
    error_details: Any = None
    timestamp: datetime
    operation: str
