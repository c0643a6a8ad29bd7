"""Shared fixtures for zone engine tests."""

from datetime import UTC, datetime

import pytest

from geozone.schemas import Zone
from geozone.services import ManualClock, RecordingNotificationSink, ZoneManager

START = datetime(2025, 6, 1, 8, 0, tzinfo=UTC)

# Home zone in San Francisco
HOME = {
    "name": "Home",
    "type": "home",
    "latitude": 37.7749,
    "longitude": -122.4194,
    "radius": 50,
}

FAR_AWAY = (37.8, -122.5)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def manager(clock: ManualClock, sink: RecordingNotificationSink) -> ZoneManager:
    return ZoneManager(notification_sink=sink, clock=clock)


@pytest.fixture
def received(manager: ZoneManager) -> list:
    """Events seen by a listener registered on the manager."""
    events: list = []
    manager.add_event_listener(events.append)
    return events


def make_zone(
    zone_id: str,
    parent_zone_id: str | None = None,
    latitude: float = 0.0,
    longitude: float = 0.0,
    radius: float = 50,
) -> Zone:
    """Bare Zone record for tests that bypass the manager."""
    return Zone(
        id=zone_id,
        name=zone_id,
        type="custom",
        latitude=latitude,
        longitude=longitude,
        radius=radius,
        parent_zone_id=parent_zone_id,
        created_at=START,
        updated_at=START,
        created_by="tester",
    )
