"""Zone geofencing and event engine."""

__version__ = "0.1.0"
