"""Zone API routes: CRUD, device assignment, access control."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from geozone.dependencies import get_acting_user, get_zone_manager
from geozone.routes._errors import raise_for_failure
from geozone.schemas import (
    AccessGrantRequest,
    Zone,
    ZoneAccessControl,
    ZoneHierarchyNode,
    ZoneInput,
    ZoneValidationResult,
)
from geozone.services.zone_manager import ZoneManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/zones", tags=["zones"])


@router.get("", response_model=list[Zone])
async def list_zones(
    zone_type: str | None = Query(None, alias="type", description="Filter by zone type"),
    status: str | None = Query(None, description="Filter by zone status"),
    user_id: str | None = Query(None, description="Only zones this user can view"),
    manager: ZoneManager = Depends(get_zone_manager),
) -> list[Zone]:
    """List zones in creation order."""
    zones = manager.get_user_zones(user_id) if user_id else manager.get_all_zones()
    if zone_type:
        zones = [zone for zone in zones if zone.type == zone_type]
    if status:
        zones = [zone for zone in zones if zone.status == status]
    return zones


@router.post("", response_model=Zone, status_code=201)
async def create_zone(
    zone_input: ZoneInput,
    user_id: str = Depends(get_acting_user),
    manager: ZoneManager = Depends(get_zone_manager),
) -> Zone:
    """Create a zone owned by the acting user."""
    result = manager.create_zone(zone_input, user_id)
    raise_for_failure(result)
    return result.data


@router.post("/validate", response_model=ZoneValidationResult)
async def validate_zone(
    zone_input: ZoneInput,
    manager: ZoneManager = Depends(get_zone_manager),
) -> ZoneValidationResult:
    """Dry-run validation, including the overlap warning."""
    return manager.validate_zone_input(zone_input)


@router.get("/hierarchy", response_model=list[ZoneHierarchyNode])
async def get_hierarchy(
    root_zone_id: str | None = Query(None, description="Start from this zone instead of all roots"),
    manager: ZoneManager = Depends(get_zone_manager),
) -> list[ZoneHierarchyNode]:
    """Zone trees with nesting depth."""
    if root_zone_id and manager.get_zone(root_zone_id) is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return manager.get_zone_hierarchy(root_zone_id)


@router.get("/{zone_id}", response_model=Zone)
async def get_zone(
    zone_id: str,
    manager: ZoneManager = Depends(get_zone_manager),
) -> Zone:
    zone = manager.get_zone(zone_id)
    if not zone:
        raise HTTPException(status_code=404, detail="Zone not found")
    return zone


@router.patch("/{zone_id}", response_model=Zone)
async def update_zone(
    zone_id: str,
    updates: ZoneInput,
    user_id: str = Depends(get_acting_user),
    manager: ZoneManager = Depends(get_zone_manager),
) -> Zone:
    """Partially update a zone; settings and metadata are merged. Requires admin."""
    result = manager.update_zone(zone_id, updates, user_id)
    raise_for_failure(result)
    return result.data


@router.delete("/{zone_id}", response_model=Zone)
async def delete_zone(
    zone_id: str,
    user_id: str = Depends(get_acting_user),
    manager: ZoneManager = Depends(get_zone_manager),
) -> Zone:
    """Delete a childless zone. Requires owner."""
    result = manager.delete_zone(zone_id, user_id)
    raise_for_failure(result)
    return result.data


# --- Device assignment ---


@router.post("/{zone_id}/devices/{device_id}", response_model=Zone)
async def add_device(
    zone_id: str,
    device_id: str,
    manager: ZoneManager = Depends(get_zone_manager),
) -> Zone:
    result = manager.add_device_to_zone(zone_id, device_id)
    raise_for_failure(result)
    return result.data


@router.delete("/{zone_id}/devices/{device_id}", response_model=Zone)
async def remove_device(
    zone_id: str,
    device_id: str,
    manager: ZoneManager = Depends(get_zone_manager),
) -> Zone:
    result = manager.remove_device_from_zone(zone_id, device_id)
    raise_for_failure(result)
    return result.data


# --- Access control ---


@router.get("/{zone_id}/access", response_model=list[ZoneAccessControl])
async def list_access(
    zone_id: str,
    manager: ZoneManager = Depends(get_zone_manager),
) -> list[ZoneAccessControl]:
    if manager.get_zone(zone_id) is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return manager.get_zone_access(zone_id)


@router.post("/{zone_id}/access", response_model=ZoneAccessControl, status_code=201)
async def grant_access(
    zone_id: str,
    grant: AccessGrantRequest,
    user_id: str = Depends(get_acting_user),
    manager: ZoneManager = Depends(get_zone_manager),
) -> ZoneAccessControl:
    """Grant a permission level. Requires admin, or owner to grant owner."""
    result = manager.grant_zone_access(
        zone_id, grant.user_id, grant.permission, user_id, grant.expires_at
    )
    raise_for_failure(result)
    return result.data


@router.delete("/{zone_id}/access/{target_user_id}", status_code=204)
async def revoke_access(
    zone_id: str,
    target_user_id: str,
    user_id: str = Depends(get_acting_user),
    manager: ZoneManager = Depends(get_zone_manager),
) -> None:
    result = manager.revoke_zone_access(zone_id, target_user_id, user_id)
    raise_for_failure(result)
