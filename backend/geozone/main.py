import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geozone import __version__
from geozone.config import CORS_ORIGINS, DWELL_CHECK_INTERVAL, LOAD_SAMPLE_ZONES
from geozone.logging_config import setup_logging
from geozone.routes.events import router as events_router
from geozone.routes.locations import router as locations_router
from geozone.routes.zones import router as zones_router
from geozone.services.event_log import EventLog
from geozone.services.monitor import ZoneMonitor
from geozone.services.sample_data import initialize_with_sample_data
from geozone.services.zone_manager import ZoneManager

logger = logging.getLogger(__name__)


def create_app(
    manager: ZoneManager | None = None,
    load_sample_zones: bool = LOAD_SAMPLE_ZONES,
) -> FastAPI:
    """Build the API around one ZoneManager instance."""
    manager = manager if manager is not None else ZoneManager()
    event_log = EventLog()
    manager.add_event_listener(event_log)

    if load_sample_zones:
        initialize_with_sample_data(manager)

    monitor = ZoneMonitor(manager, interval=DWELL_CHECK_INTERVAL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Zone geofencing engine starting up")
        monitor.start()
        yield
        await monitor.stop()
        logger.info("Zone geofencing engine shut down")

    app = FastAPI(title="Zone Geofencing Engine", version=__version__, lifespan=lifespan)
    app.state.zone_manager = manager
    app.state.event_log = event_log
    app.state.monitor = monitor

    # Include routers
    app.include_router(zones_router)
    app.include_router(locations_router)
    app.include_router(events_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    return app


# Initialize logging before anything else
setup_logging()

app = create_app()
logger.info("FastAPI app created")
