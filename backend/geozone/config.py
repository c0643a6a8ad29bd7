import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "../logs")

# How often the monitor drains due dwell timers, in seconds
DWELL_CHECK_INTERVAL = float(os.getenv("DWELL_CHECK_INTERVAL", "1.0"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

# Seed Home/Office/School demo zones on startup
LOAD_SAMPLE_ZONES = os.getenv("LOAD_SAMPLE_ZONES", "false").lower() in ("1", "true", "yes")
