"""Recent zone event feed."""

from fastapi import APIRouter, Depends, Query

from geozone.dependencies import get_event_log
from geozone.schemas import ZoneEventsResponse
from geozone.services.event_log import EventLog

DEFAULT_LIMIT = 50
MAX_LIMIT = 500

router = APIRouter(prefix="/api", tags=["events"])


@router.get("/events", response_model=ZoneEventsResponse)
async def list_events(
    zone_id: str | None = Query(None, description="Filter by zone"),
    device_id: str | None = Query(None, description="Filter by device"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Max events to return"),
    event_log: EventLog = Depends(get_event_log),
) -> ZoneEventsResponse:
    """Most recent enter/exit/dwell events, newest first."""
    events = event_log.recent(limit=limit, zone_id=zone_id, device_id=device_id)
    return ZoneEventsResponse(events=events, total_count=len(events))
