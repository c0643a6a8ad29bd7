"""Demo zones around San Francisco."""

import logging

from geozone.schemas.zone import Zone, ZoneInput, ZoneSettings
from geozone.services.zone_manager import ZoneManager

logger = logging.getLogger(__name__)

SAMPLE_USER = "demo-user"

SAMPLE_ZONES = [
    ZoneInput(
        name="Home",
        type="home",
        description="Primary residence",
        latitude=37.7749,
        longitude=-122.4194,
        radius=50,
        priority="high",
        settings=ZoneSettings(
            notify_on_entry=False,
            notify_on_exit=True,
            auto_activate_devices=True,
        ),
    ),
    ZoneInput(
        name="Office",
        type="office",
        description="Workplace location",
        latitude=37.7849,
        longitude=-122.4094,
        radius=30,
        priority="medium",
        settings=ZoneSettings(
            notify_on_entry=True,
            notify_on_exit=True,
            notify_on_dwell=True,
            dwell_time_threshold=60,
        ),
    ),
    ZoneInput(
        name="School",
        type="school",
        description="Educational institution",
        latitude=37.7649,
        longitude=-122.4294,
        radius=100,
        priority="medium",
        settings=ZoneSettings(
            notify_on_entry=True,
            notify_on_exit=True,
            is_shared=True,
        ),
    ),
]


def initialize_with_sample_data(manager: ZoneManager, user_id: str = SAMPLE_USER) -> list[Zone]:
    """Create the sample zones, skipping any that fail."""
    logger.info("Initializing with sample zones")

    zones: list[Zone] = []
    for zone_input in SAMPLE_ZONES:
        result = manager.create_zone(zone_input, user_id)
        if result.success:
            zones.append(result.data)
        else:
            logger.warning(f"Sample zone {zone_input.name} not created: {result.error}")
    return zones
