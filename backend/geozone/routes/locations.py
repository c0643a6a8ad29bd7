"""Location ingestion and device position routes."""

from fastapi import APIRouter, Depends, HTTPException

from geozone.dependencies import get_zone_manager
from geozone.schemas import (
    DeviceZoneResponse,
    LocationCheck,
    LocationUpdate,
    LocationUpdateResponse,
    ZoneBoundaryResult,
)
from geozone.services.zone_manager import ZoneManager

router = APIRouter(prefix="/api", tags=["locations"])


@router.post("/locations", response_model=LocationUpdateResponse)
async def report_location(
    update: LocationUpdate,
    manager: ZoneManager = Depends(get_zone_manager),
) -> LocationUpdateResponse:
    """Feed a device position into the engine and return the resulting events."""
    events = manager.process_location_update(
        update.device_id,
        update.latitude,
        update.longitude,
        update.accuracy,
    )
    current_zone = manager.get_device_zone(update.device_id)
    return LocationUpdateResponse(
        device_id=update.device_id,
        events=events,
        current_zone_id=current_zone.id if current_zone else None,
    )


@router.post("/locations/check", response_model=ZoneBoundaryResult | None)
async def check_location(
    check: LocationCheck,
    manager: ZoneManager = Depends(get_zone_manager),
) -> ZoneBoundaryResult | None:
    """Which zone contains the point, without recording anything."""
    if check.zone_id and manager.get_zone(check.zone_id) is None:
        raise HTTPException(status_code=404, detail="Zone not found")
    return manager.check_device_in_zone(
        check.device_id, check.latitude, check.longitude, check.zone_id
    )


@router.get("/devices/{device_id}/zone", response_model=DeviceZoneResponse)
async def get_device_zone(
    device_id: str,
    manager: ZoneManager = Depends(get_zone_manager),
) -> DeviceZoneResponse:
    return DeviceZoneResponse(
        device_id=device_id,
        zone=manager.get_device_zone(device_id),
        position=manager.get_last_known_position(device_id),
    )
