"""Zone store abstraction and its in-memory implementation."""

from collections.abc import Iterator
from typing import Protocol

from geozone.schemas.zone import DevicePosition, Zone, ZoneAccessControl

__all__ = ["ZoneRepository", "InMemoryZoneRepository"]


class ZoneRepository(Protocol):
    """Storage used by ZoneManager.

    Zones iterate in insertion order; replacing an existing zone keeps its
    position.
    """

    def get_zone(self, zone_id: str) -> Zone | None: ...

    def save_zone(self, zone: Zone) -> None: ...

    def delete_zone(self, zone_id: str) -> None: ...

    def iter_zones(self) -> Iterator[Zone]: ...

    def get_access_list(self, zone_id: str) -> list[ZoneAccessControl] | None: ...

    def set_access_list(self, zone_id: str, entries: list[ZoneAccessControl]) -> None: ...

    def delete_access_list(self, zone_id: str) -> None: ...

    def get_device_zone_id(self, device_id: str) -> str | None: ...

    def set_device_zone_id(self, device_id: str, zone_id: str) -> None: ...

    def clear_device_zone_id(self, device_id: str) -> None: ...

    def get_position(self, device_id: str) -> DevicePosition | None: ...

    def set_position(self, device_id: str, position: DevicePosition) -> None: ...


class InMemoryZoneRepository:
    """Dict-backed store; state lives and dies with the instance."""

    def __init__(self) -> None:
        self._zones: dict[str, Zone] = {}
        self._access: dict[str, list[ZoneAccessControl]] = {}
        self._device_zones: dict[str, str] = {}
        self._positions: dict[str, DevicePosition] = {}

    # --- Zones ---

    def get_zone(self, zone_id: str) -> Zone | None:
        return self._zones.get(zone_id)

    def save_zone(self, zone: Zone) -> None:
        self._zones[zone.id] = zone

    def delete_zone(self, zone_id: str) -> None:
        self._zones.pop(zone_id, None)

    def iter_zones(self) -> Iterator[Zone]:
        # Snapshot so callers may mutate the store while iterating
        return iter(list(self._zones.values()))

    # --- Access control ---

    def get_access_list(self, zone_id: str) -> list[ZoneAccessControl] | None:
        return self._access.get(zone_id)

    def set_access_list(self, zone_id: str, entries: list[ZoneAccessControl]) -> None:
        self._access[zone_id] = entries

    def delete_access_list(self, zone_id: str) -> None:
        self._access.pop(zone_id, None)

    # --- Device assignment ---

    def get_device_zone_id(self, device_id: str) -> str | None:
        return self._device_zones.get(device_id)

    def set_device_zone_id(self, device_id: str, zone_id: str) -> None:
        self._device_zones[device_id] = zone_id

    def clear_device_zone_id(self, device_id: str) -> None:
        self._device_zones.pop(device_id, None)

    # --- Positions ---

    def get_position(self, device_id: str) -> DevicePosition | None:
        return self._positions.get(device_id)

    def set_position(self, device_id: str, position: DevicePosition) -> None:
        self._positions[device_id] = position
