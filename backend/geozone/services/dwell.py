"""Dwell-timer scheduling on a min-heap.

Timers are plain heap entries drained by the owner's step function rather
than callbacks registered on an event loop, so the zone engine stays
synchronous and can be driven by a virtual clock.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from datetime import datetime

__all__ = ["DwellTimer", "DwellScheduler", "dwell_timer_key"]

# Rebuild the heap once it holds this many entries and is mostly dead
COMPACT_MIN_HEAP_SIZE = 64


def dwell_timer_key(zone_id: str, device_id: str) -> str:
    """Timer key for a (zone, device) pair."""
    return f"{zone_id}-{device_id}"


@dataclass(order=True)
class DwellTimer:
    """A scheduled one-shot dwell check."""

    fire_at: datetime
    sequence: int
    zone_id: str = field(compare=False)
    device_id: str = field(compare=False)
    threshold_minutes: int = field(compare=False)

    @property
    def key(self) -> str:
        return dwell_timer_key(self.zone_id, self.device_id)


class DwellScheduler:
    """At most one live timer per (zone, device) key.

    Cancellation is lazy: the live map is the source of truth and heap
    entries whose sequence no longer matches it are skipped when popped. The
    heap is rebuilt from the live map when dead entries dominate it.
    """

    def __init__(self) -> None:
        self._heap: list[DwellTimer] = []
        self._live: dict[str, DwellTimer] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._live)

    def __contains__(self, key: str) -> bool:
        return key in self._live

    def schedule(
        self, zone_id: str, device_id: str, fire_at: datetime, threshold_minutes: int
    ) -> DwellTimer:
        """Schedule a timer, replacing any live timer for the same key."""
        timer = DwellTimer(
            fire_at=fire_at,
            sequence=next(self._counter),
            zone_id=zone_id,
            device_id=device_id,
            threshold_minutes=threshold_minutes,
        )
        self._live[timer.key] = timer
        heapq.heappush(self._heap, timer)
        self._compact_if_sparse()
        return timer

    def get(self, key: str) -> DwellTimer | None:
        return self._live.get(key)

    def cancel(self, key: str) -> bool:
        """Cancel the live timer for a key. Returns True if one existed."""
        cancelled = self._live.pop(key, None) is not None
        if cancelled:
            self._compact_if_sparse()
        return cancelled

    def cancel_zone(self, zone_id: str) -> int:
        """Cancel every live timer belonging to a zone."""
        keys = [key for key, timer in self._live.items() if timer.zone_id == zone_id]
        for key in keys:
            del self._live[key]
        self._compact_if_sparse()
        return len(keys)

    def clear(self) -> None:
        self._live.clear()
        self._heap.clear()

    def pop_due(self, now: datetime) -> list[DwellTimer]:
        """Remove and return live timers with fire_at <= now, earliest first."""
        due: list[DwellTimer] = []
        while self._heap and self._heap[0].fire_at <= now:
            timer = heapq.heappop(self._heap)
            if self._live.get(timer.key) is not timer:
                continue  # cancelled or superseded
            del self._live[timer.key]
            due.append(timer)
        return due

    def next_fire_at(self) -> datetime | None:
        """Earliest pending fire time, ignoring cancelled entries."""
        while self._heap and self._live.get(self._heap[0].key) is not self._heap[0]:
            heapq.heappop(self._heap)
        return self._heap[0].fire_at if self._heap else None

    @property
    def heap_size(self) -> int:
        """Heap entries, including cancelled ones not yet discarded."""
        return len(self._heap)

    def _compact_if_sparse(self) -> None:
        if len(self._heap) < COMPACT_MIN_HEAP_SIZE or len(self._heap) <= 2 * len(self._live):
            return
        self._heap = list(self._live.values())
        heapq.heapify(self._heap)
