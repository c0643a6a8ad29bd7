"""Bounded in-memory buffer of recent zone events."""

from collections import deque

from geozone.schemas.events import ZoneEvent

DEFAULT_EVENT_LOG_SIZE = 500


class EventLog:
    """Event listener that keeps the most recent events, oldest dropped first."""

    def __init__(self, maxlen: int = DEFAULT_EVENT_LOG_SIZE):
        self._events: deque[ZoneEvent] = deque(maxlen=maxlen)

    def __call__(self, event: ZoneEvent) -> None:
        self._events.append(event)

    def __len__(self) -> int:
        return len(self._events)

    def recent(
        self,
        limit: int = 50,
        zone_id: str | None = None,
        device_id: str | None = None,
    ) -> list[ZoneEvent]:
        """Newest-first events, optionally filtered by zone and/or device."""
        matches: list[ZoneEvent] = []
        for event in reversed(self._events):
            if zone_id and event.zone_id != zone_id:
                continue
            if device_id and event.device_id != device_id:
                continue
            matches.append(event)
            if len(matches) >= limit:
                break
        return matches
