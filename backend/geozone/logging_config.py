"""Logging configuration for the zone geofencing service."""

import logging
from datetime import datetime
from pathlib import Path

from geozone.config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that only report at WARNING and above
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_HANDLER_NAME = "geozone"


def resolve_log_dir(log_dir: str = LOG_DIR) -> Path:
    """LOG_DIR as an absolute path; relative values hang off backend/."""
    path = Path(log_dir)
    if not path.is_absolute():
        path = Path(__file__).parent.parent / path
    return path


def setup_logging(level: str = LOG_LEVEL, log_dir: str = LOG_DIR) -> Path:
    """Attach a daily log file and the console to the root logger.

    Calling it again replaces the handlers it added earlier. Returns the
    log file path.
    """
    logs_dir = resolve_log_dir(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"geozone-{datetime.now().strftime('%Y-%m-%d')}.log"

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers: list[logging.Handler] = [logging.FileHandler(log_file), logging.StreamHandler()]

    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(handler)
        handler.close()

    for handler in handlers:
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)
        handler.setLevel(logging.INFO)
        root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Zone events are logged at INFO even when the root level is stricter
    logging.getLogger("geozone").setLevel(logging.INFO)

    logging.info(f"Logging initialized - file: {log_file}")
    return log_file
