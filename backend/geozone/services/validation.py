"""Zone input and hierarchy validation.

Validation never touches state: it reads the zones it is given and reports
every problem it finds.
"""

from collections.abc import Callable, Iterable, Mapping
from numbers import Real
from typing import Any

from pydantic import BaseModel

from geozone.geo import haversine_distance
from geozone.schemas.zone import (
    ZONE_PRIORITIES,
    ZONE_STATUSES,
    ZONE_TYPES,
    Zone,
    ZoneInput,
    ZoneValidationResult,
)

__all__ = [
    "MIN_ZONE_RADIUS",
    "MAX_ZONE_RADIUS",
    "MAX_ZONE_NAME_LENGTH",
    "MAX_HIERARCHY_DEPTH",
    "normalize_zone_fields",
    "validate_zone_input",
    "validate_hierarchy",
]

MIN_ZONE_RADIUS = 5  # meters
MAX_ZONE_RADIUS = 10000  # meters
MAX_ZONE_NAME_LENGTH = 50
MAX_HIERARCHY_DEPTH = 5


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def normalize_zone_fields(data: ZoneInput | BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a zone payload to a snake_case dict.

    Models contribute only the fields that were explicitly set; mappings may
    use camelCase or snake_case keys.
    """
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)

    fields: dict[str, Any] = {}
    aliases = {field.alias: name for name, field in ZoneInput.model_fields.items()}
    for key, value in data.items():
        fields[aliases.get(key, key)] = value
    return fields


def validate_zone_input(
    data: ZoneInput | BaseModel | Mapping[str, Any],
    existing_zones: Iterable[Zone] = (),
) -> ZoneValidationResult:
    """Check a zone payload against the field rules and flag overlaps."""
    fields = normalize_zone_fields(data)
    errors: list[str] = []
    warnings: list[str] = []

    name = fields.get("name")
    if not name or not isinstance(name, str):
        errors.append("Zone name is required and must be a string")
    elif not name.strip():
        errors.append("Zone name cannot be empty")
    elif len(name.strip()) > MAX_ZONE_NAME_LENGTH:
        errors.append(f"Zone name must not exceed {MAX_ZONE_NAME_LENGTH} characters")

    if fields.get("type") not in ZONE_TYPES:
        errors.append("Invalid zone type")

    latitude = fields.get("latitude")
    longitude = fields.get("longitude")
    radius = fields.get("radius")

    if not _is_number(latitude) or not -90 <= latitude <= 90:
        errors.append("Latitude must be a number between -90 and 90")

    if not _is_number(longitude) or not -180 <= longitude <= 180:
        errors.append("Longitude must be a number between -180 and 180")

    if not _is_number(radius) or not MIN_ZONE_RADIUS <= radius <= MAX_ZONE_RADIUS:
        errors.append(f"Radius must be between {MIN_ZONE_RADIUS} and {MAX_ZONE_RADIUS} meters")

    priority = fields.get("priority")
    if priority is not None and priority not in ZONE_PRIORITIES:
        errors.append("Invalid zone priority")

    status = fields.get("status")
    if status is not None and status not in ZONE_STATUSES:
        errors.append("Invalid zone status")

    # Overlap is informational only
    if _is_number(latitude) and _is_number(longitude) and _is_number(radius):
        overlapping = [
            zone
            for zone in existing_zones
            if haversine_distance(latitude, longitude, zone.latitude, zone.longitude)
            < radius + zone.radius
        ]
        if overlapping:
            warnings.append(f"Zone overlaps with {len(overlapping)} existing zone(s)")

    return ZoneValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate_hierarchy(
    zone_id: str,
    parent_zone_id: str,
    get_zone: Callable[[str], Zone | None],
) -> bool:
    """Whether linking zone_id under parent_zone_id keeps the tree valid.

    Walks up from the prospective parent. Rejects a revisited id (existing
    cycle), reaching zone_id itself (new cycle), or a chain longer than
    MAX_HIERARCHY_DEPTH.
    """
    visited: set[str] = set()
    current_id: str | None = parent_zone_id

    while current_id:
        if current_id in visited:
            return False
        if current_id == zone_id:
            return False
        visited.add(current_id)
        current = get_zone(current_id)
        current_id = current.parent_zone_id if current else None

    return len(visited) <= MAX_HIERARCHY_DEPTH
