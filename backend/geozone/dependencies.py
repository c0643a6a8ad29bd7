"""FastAPI dependencies for the zone engine."""

from fastapi import Header, Request

from geozone.services.event_log import EventLog
from geozone.services.zone_manager import DEFAULT_USER, ZoneManager


def get_zone_manager(request: Request) -> ZoneManager:
    """The ZoneManager owned by this app instance."""
    return request.app.state.zone_manager


def get_event_log(request: Request) -> EventLog:
    return request.app.state.event_log


def get_acting_user(x_user_id: str = Header(DEFAULT_USER, alias="X-User-Id")) -> str:
    """Caller identity; the header is trusted, not authenticated."""
    return x_user_id
