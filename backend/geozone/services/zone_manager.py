"""Zone geofencing engine.

ZoneManager owns zone definitions, device-to-zone assignment, access control
and dwell timers, and turns a stream of device location updates into
enter/exit/dwell events:

- Zone CRUD is validated and guarded by a per-zone ACL
- Every location update is tested against every active zone; transitions
  relative to the device's assigned zone produce events
- Events go to registered listeners and, when the zone's settings allow it,
  to the notification sink
- Dwell timers are heap entries drained by ``run_due_timers()``

Mutating operations return a ZoneOperationResult instead of raising.
"""

import logging
import uuid
from collections import Counter
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ValidationError

from geozone.geo import haversine_distance
from geozone.schemas.events import DwellEvent, EnterEvent, EventLocation, ExitEvent, ZoneEvent
from geozone.schemas.zone import (
    ZONE_PERMISSIONS,
    DevicePosition,
    Zone,
    ZoneAccessControl,
    ZoneBoundaryResult,
    ZoneErrorKind,
    ZoneHierarchyNode,
    ZoneInput,
    ZoneOperationResult,
    ZonePermission,
    ZoneSettings,
    ZoneValidationResult,
)
from geozone.services.access import find_access_entry, grants_permission
from geozone.services.clock import Clock, SystemClock
from geozone.services.dwell import DwellScheduler, dwell_timer_key
from geozone.services.notifications import (
    LoggingNotificationSink,
    NotificationSink,
    build_notification,
    should_notify,
)
from geozone.services.repository import InMemoryZoneRepository, ZoneRepository
from geozone.services.validation import (
    normalize_zone_fields,
    validate_hierarchy,
    validate_zone_input,
)

logger = logging.getLogger(__name__)

__all__ = ["ZoneManager", "EventListener", "measure_boundary", "MAX_ZONES_PER_USER"]

MAX_ZONES_PER_USER = 50
DEFAULT_USER = "system"

# Zone fields an update may change
_EDITABLE_FIELDS = frozenset(ZoneInput.model_fields)

EventListener = Callable[[ZoneEvent], None]


def generate_zone_id() -> str:
    return f"zone-{uuid.uuid4().hex}"


def measure_boundary(zone: Zone, latitude: float, longitude: float) -> ZoneBoundaryResult:
    """Distance of a point from a zone's center and edge."""
    distance_from_center = haversine_distance(latitude, longitude, zone.latitude, zone.longitude)
    distance_from_boundary = distance_from_center - zone.radius
    return ZoneBoundaryResult(
        is_inside=distance_from_boundary <= 0,
        distance_from_center=distance_from_center,
        distance_from_boundary=distance_from_boundary,
        zone=zone,
    )


class ZoneManager:
    """In-process geofencing engine over a ZoneRepository."""

    def __init__(
        self,
        repository: ZoneRepository | None = None,
        notification_sink: NotificationSink | None = None,
        clock: Clock | None = None,
    ):
        self.repository = repository if repository is not None else InMemoryZoneRepository()
        self.notification_sink = notification_sink or LoggingNotificationSink()
        self.clock = clock or SystemClock()

        self._listeners: list[EventListener] = []
        self._dwell_timers = DwellScheduler()
        # Timer key -> time the device was added to the zone
        self._entered_at: dict[str, datetime] = {}
        # Zone id -> per-device entry counts
        self._entry_counts: dict[str, Counter[str]] = {}
        # Zone id -> number of exits contributing to averageDwellTime
        self._dwell_samples: Counter[str] = Counter()

    # --- Result helpers ---

    def _success(self, operation: str, data: Any = None) -> ZoneOperationResult:
        return ZoneOperationResult(
            success=True,
            data=data,
            timestamp=self.clock.now(),
            operation=operation,
        )

    def _failure(
        self,
        operation: str,
        kind: ZoneErrorKind,
        error: str,
        details: Any = None,
    ) -> ZoneOperationResult:
        logger.warning(f"{operation} rejected ({kind.value}): {error}")
        return ZoneOperationResult(
            success=False,
            error=error,
            error_kind=kind,
            error_details=details,
            timestamp=self.clock.now(),
            operation=operation,
        )

    def _unexpected(self, operation: str, exc: Exception) -> ZoneOperationResult:
        logger.exception(f"{operation} failed unexpectedly")
        return ZoneOperationResult(
            success=False,
            error=str(exc) or type(exc).__name__,
            error_kind=ZoneErrorKind.UNEXPECTED,
            error_details={"exception": type(exc).__name__, "message": str(exc)},
            timestamp=self.clock.now(),
            operation=operation,
        )

    def _validation_failure(
        self, operation: str, validation: ZoneValidationResult
    ) -> ZoneOperationResult:
        return self._failure(
            operation,
            ZoneErrorKind.VALIDATION_FAILED,
            f"Validation failed: {', '.join(validation.errors)}",
            validation,
        )

    @staticmethod
    def _coerce_input(fields: Mapping[str, Any]) -> ZoneInput | ZoneValidationResult:
        """Parse already rule-checked fields, reporting leftover type errors."""
        try:
            return ZoneInput.model_validate(dict(fields))
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
            return ZoneValidationResult(is_valid=False, errors=errors)

    # --- Validation ---

    def validate_zone_input(
        self, data: ZoneInput | BaseModel | Mapping[str, Any]
    ) -> ZoneValidationResult:
        """Validate a zone payload against the rules and the current zones."""
        return validate_zone_input(data, self.repository.iter_zones())

    def validate_hierarchy(self, zone_id: str, parent_zone_id: str) -> bool:
        """Whether zone_id may be linked under parent_zone_id."""
        return validate_hierarchy(zone_id, parent_zone_id, self.repository.get_zone)

    # --- Zone CRUD ---

    def create_zone(
        self,
        data: ZoneInput | Mapping[str, Any],
        created_by: str = DEFAULT_USER,
    ) -> ZoneOperationResult[Zone]:
        operation = "create_zone"
        try:
            logger.info(f"Creating zone for user {created_by}")

            validation = self.validate_zone_input(data)
            if not validation.is_valid:
                return self._validation_failure(operation, validation)

            zone_input = self._coerce_input(normalize_zone_fields(data))
            if isinstance(zone_input, ZoneValidationResult):
                return self._validation_failure(operation, zone_input)

            owned = sum(1 for zone in self.repository.iter_zones() if zone.created_by == created_by)
            if owned >= MAX_ZONES_PER_USER:
                return self._failure(
                    operation,
                    ZoneErrorKind.QUOTA_EXCEEDED,
                    f"Maximum zones limit reached ({MAX_ZONES_PER_USER})",
                )

            # Id exists before the hierarchy check so a self-reference is caught
            zone_id = generate_zone_id()
            parent_zone_id = zone_input.parent_zone_id or None
            parent = None
            if parent_zone_id:
                parent = self.repository.get_zone(parent_zone_id)
                if parent is None:
                    return self._failure(
                        operation,
                        ZoneErrorKind.PARENT_ZONE_NOT_FOUND,
                        "Parent zone not found",
                    )
                if not self.validate_hierarchy(zone_id, parent_zone_id):
                    return self._failure(
                        operation,
                        ZoneErrorKind.HIERARCHY_INVALID,
                        "Invalid hierarchy: would create cycle or exceed depth limit",
                    )

            now = self.clock.now()
            zone = Zone(
                id=zone_id,
                name=zone_input.name.strip(),
                type=zone_input.type,
                description=zone_input.description or "",
                latitude=zone_input.latitude,
                longitude=zone_input.longitude,
                radius=zone_input.radius,
                priority=zone_input.priority or "medium",
                status=zone_input.status or "active",
                parent_zone_id=parent_zone_id,
                created_at=now,
                updated_at=now,
                created_by=created_by,
                settings=zone_input.settings.model_copy() if zone_input.settings else ZoneSettings(),
                metadata=dict(zone_input.metadata or {}),
            )
            self.repository.save_zone(zone)

            if parent is not None:
                parent.child_zone_ids.append(zone.id)
                parent.updated_at = now
                self.repository.save_zone(parent)

            self.repository.set_access_list(
                zone.id,
                [
                    ZoneAccessControl(
                        user_id=created_by,
                        permission="owner",
                        granted_at=now,
                        granted_by=created_by,
                    )
                ],
            )

            logger.info(f"Zone created: {zone.id} ({zone.name})")
            return self._success(operation, zone)

        except Exception as exc:
            return self._unexpected(operation, exc)

    def update_zone(
        self,
        zone_id: str,
        updates: ZoneInput | Mapping[str, Any],
        updated_by: str = DEFAULT_USER,
    ) -> ZoneOperationResult[Zone]:
        operation = "update_zone"
        try:
            logger.info(f"Updating zone {zone_id} by user {updated_by}")

            existing = self.repository.get_zone(zone_id)
            if existing is None:
                return self._failure(operation, ZoneErrorKind.ZONE_NOT_FOUND, "Zone not found")

            if not self.has_zone_permission(zone_id, updated_by, "admin"):
                return self._failure(
                    operation,
                    ZoneErrorKind.PERMISSION_DENIED,
                    "Insufficient permissions to update zone",
                )

            changes = {
                key: value
                for key, value in normalize_zone_fields(updates).items()
                if key in _EDITABLE_FIELDS
            }

            merged = existing.model_dump()
            merged.update(
                {key: value for key, value in changes.items() if key not in ("settings", "metadata")}
            )
            others = (zone for zone in self.repository.iter_zones() if zone.id != zone_id)
            validation = validate_zone_input(merged, others)
            if not validation.is_valid:
                return self._validation_failure(operation, validation)

            update_input = self._coerce_input(changes)
            if isinstance(update_input, ZoneValidationResult):
                return self._validation_failure(operation, update_input)

            new_parent_id = update_input.parent_zone_id or None
            parent_changed = (
                "parent_zone_id" in update_input.model_fields_set
                and new_parent_id != existing.parent_zone_id
            )
            new_parent = None
            if parent_changed and new_parent_id:
                new_parent = self.repository.get_zone(new_parent_id)
                if new_parent is None:
                    return self._failure(
                        operation,
                        ZoneErrorKind.PARENT_ZONE_NOT_FOUND,
                        "Parent zone not found",
                    )
                if not self.validate_hierarchy(zone_id, new_parent_id):
                    return self._failure(
                        operation,
                        ZoneErrorKind.HIERARCHY_INVALID,
                        "Invalid hierarchy: would create cycle or exceed depth limit",
                    )

            now = self.clock.now()
            updated = existing.model_copy(deep=True)

            for field in update_input.model_fields_set - {"settings", "metadata", "parent_zone_id"}:
                value = getattr(update_input, field)
                if value is not None:
                    setattr(updated, field, value)
            updated.name = updated.name.strip()

            if update_input.settings is not None:
                updated.settings = existing.settings.model_copy(
                    update=update_input.settings.model_dump(exclude_unset=True)
                )
            if update_input.metadata is not None:
                updated.metadata = {**existing.metadata, **update_input.metadata}

            if parent_changed:
                if existing.parent_zone_id:
                    old_parent = self.repository.get_zone(existing.parent_zone_id)
                    if old_parent is not None:
                        old_parent.child_zone_ids = [
                            child_id for child_id in old_parent.child_zone_ids if child_id != zone_id
                        ]
                        old_parent.updated_at = now
                        self.repository.save_zone(old_parent)
                if new_parent is not None:
                    new_parent.child_zone_ids.append(zone_id)
                    new_parent.updated_at = now
                    self.repository.save_zone(new_parent)
                updated.parent_zone_id = new_parent_id

            updated.updated_at = now
            self.repository.save_zone(updated)

            logger.info(f"Zone updated: {zone_id}")
            return self._success(operation, updated)

        except Exception as exc:
            return self._unexpected(operation, exc)

    def delete_zone(self, zone_id: str, deleted_by: str = DEFAULT_USER) -> ZoneOperationResult[Zone]:
        operation = "delete_zone"
        try:
            logger.info(f"Deleting zone {zone_id} by user {deleted_by}")

            zone = self.repository.get_zone(zone_id)
            if zone is None:
                return self._failure(operation, ZoneErrorKind.ZONE_NOT_FOUND, "Zone not found")

            if not self.has_zone_permission(zone_id, deleted_by, "owner"):
                return self._failure(
                    operation,
                    ZoneErrorKind.PERMISSION_DENIED,
                    "Insufficient permissions to delete zone",
                )

            if zone.child_zone_ids:
                return self._failure(
                    operation,
                    ZoneErrorKind.HAS_CHILDREN,
                    "Cannot delete zone with child zones. Delete child zones first.",
                )

            for device_id in zone.device_ids:
                if self.repository.get_device_zone_id(device_id) == zone_id:
                    self.repository.clear_device_zone_id(device_id)
                self._entered_at.pop(dwell_timer_key(zone_id, device_id), None)

            if zone.parent_zone_id:
                parent = self.repository.get_zone(zone.parent_zone_id)
                if parent is not None:
                    parent.child_zone_ids = [
                        child_id for child_id in parent.child_zone_ids if child_id != zone_id
                    ]
                    parent.updated_at = self.clock.now()
                    self.repository.save_zone(parent)

            cancelled = self._dwell_timers.cancel_zone(zone_id)
            if cancelled:
                logger.info(f"Cancelled {cancelled} dwell timer(s) for zone {zone_id}")

            self.repository.delete_zone(zone_id)
            self.repository.delete_access_list(zone_id)
            self._entry_counts.pop(zone_id, None)
            self._dwell_samples.pop(zone_id, None)

            logger.info(f"Zone deleted: {zone_id}")
            return self._success(operation, zone)

        except Exception as exc:
            return self._unexpected(operation, exc)

    # --- Device assignment ---

    def add_device_to_zone(self, zone_id: str, device_id: str) -> ZoneOperationResult[Zone]:
        """Assign a device to a zone, moving it out of its previous zone."""
        operation = "add_device_to_zone"
        try:
            zone = self.repository.get_zone(zone_id)
            if zone is None:
                return self._failure(operation, ZoneErrorKind.ZONE_NOT_FOUND, "Zone not found")

            current_zone_id = self.repository.get_device_zone_id(device_id)
            if current_zone_id and current_zone_id != zone_id:
                self.remove_device_from_zone(current_zone_id, device_id)

            now = self.clock.now()
            if device_id not in zone.device_ids:
                zone.device_ids.append(device_id)
                self._entered_at[dwell_timer_key(zone_id, device_id)] = now
            zone.updated_at = now
            self.repository.save_zone(zone)
            self.repository.set_device_zone_id(device_id, zone_id)

            logger.info(f"Device {device_id} added to zone {zone_id}")
            return self._success(operation, zone)

        except Exception as exc:
            return self._unexpected(operation, exc)

    def remove_device_from_zone(self, zone_id: str, device_id: str) -> ZoneOperationResult[Zone]:
        """Unassign a device from a zone and cancel its dwell timer there."""
        operation = "remove_device_from_zone"
        try:
            zone = self.repository.get_zone(zone_id)
            if zone is None:
                return self._failure(operation, ZoneErrorKind.ZONE_NOT_FOUND, "Zone not found")

            zone.device_ids = [existing for existing in zone.device_ids if existing != device_id]
            zone.updated_at = self.clock.now()
            self.repository.save_zone(zone)

            if self.repository.get_device_zone_id(device_id) == zone_id:
                self.repository.clear_device_zone_id(device_id)

            key = dwell_timer_key(zone_id, device_id)
            self._dwell_timers.cancel(key)
            self._entered_at.pop(key, None)

            logger.info(f"Device {device_id} removed from zone {zone_id}")
            return self._success(operation, zone)

        except Exception as exc:
            return self._unexpected(operation, exc)

    # --- Boundary detection ---

    def check_device_in_zone(
        self,
        device_id: str,
        latitude: float,
        longitude: float,
        zone_id: str | None = None,
    ) -> ZoneBoundaryResult | None:
        """Find the zone containing a point.

        With zone_id only that zone is tested; otherwise every active zone is,
        and among the zones containing the point the one whose boundary is
        nearest (smallest |distanceFromBoundary|) wins. None when no tested
        zone contains the point.
        """
        if zone_id is not None:
            zone = self.repository.get_zone(zone_id)
            candidates = [zone] if zone is not None else []
        else:
            candidates = self.get_active_zones()

        closest: ZoneBoundaryResult | None = None
        for zone in candidates:
            result = measure_boundary(zone, latitude, longitude)
            if not result.is_inside:
                continue
            if closest is None or abs(result.distance_from_boundary) < abs(
                closest.distance_from_boundary
            ):
                closest = result

        return closest

    def process_location_update(
        self,
        device_id: str,
        latitude: float,
        longitude: float,
        accuracy: float | None = None,
    ) -> list[ZoneEvent]:
        """Record a device position and emit enter/exit events for every active zone."""
        now = self.clock.now()
        location = EventLocation(latitude=latitude, longitude=longitude, accuracy=accuracy)

        current_zone_id = self.repository.get_device_zone_id(device_id)
        # Read up front; entering another zone first unassigns the device
        entered_at = (
            self._entered_at.get(dwell_timer_key(current_zone_id, device_id))
            if current_zone_id
            else None
        )
        self.repository.set_position(
            device_id,
            DevicePosition(latitude=latitude, longitude=longitude, timestamp=now),
        )

        events: list[ZoneEvent] = []
        for zone in self.get_active_zones():
            # A listener may have deleted it earlier in this pass
            if self.repository.get_zone(zone.id) is None:
                continue

            is_inside = measure_boundary(zone, latitude, longitude).is_inside
            was_in_zone = current_zone_id == zone.id

            if not was_in_zone and is_inside:
                self.add_device_to_zone(zone.id, device_id)
                event = EnterEvent(
                    zone_id=zone.id,
                    device_id=device_id,
                    timestamp=now,
                    location=location,
                )
                events.append(event)
                self._dispatch(event)
                self._record_entry(zone.id, device_id, now)

                if zone.settings.notify_on_dwell and zone.settings.dwell_time_threshold > 0:
                    self.start_dwell_timer(zone.id, device_id, zone.settings.dwell_time_threshold)

            elif was_in_zone and not is_inside:
                self.remove_device_from_zone(zone.id, device_id)
                dwell_minutes = (
                    (now - entered_at).total_seconds() / 60 if entered_at is not None else None
                )
                event = ExitEvent(
                    zone_id=zone.id,
                    device_id=device_id,
                    timestamp=now,
                    location=location,
                    dwell_minutes=dwell_minutes,
                )
                events.append(event)
                self._dispatch(event)
                self._record_exit(zone.id, dwell_minutes, now)

        if events:
            logger.info(
                f"Location update for {device_id} produced "
                f"{', '.join(f'{event.type}:{event.zone_id}' for event in events)}"
            )
        return events

    def _record_entry(self, zone_id: str, device_id: str, now: datetime) -> None:
        zone = self.repository.get_zone(zone_id)
        if zone is None:
            return

        counts = self._entry_counts.setdefault(zone_id, Counter())
        counts[device_id] += 1

        zone.stats.total_entries += 1
        zone.stats.most_active_device = counts.most_common(1)[0][0]
        zone.stats.last_activity = now
        zone.updated_at = now
        self.repository.save_zone(zone)

    def _record_exit(self, zone_id: str, dwell_minutes: float | None, now: datetime) -> None:
        zone = self.repository.get_zone(zone_id)
        if zone is None:
            return

        zone.stats.total_exits += 1
        if dwell_minutes is not None:
            self._dwell_samples[zone_id] += 1
            average = zone.stats.average_dwell_time
            zone.stats.average_dwell_time = average + (dwell_minutes - average) / self._dwell_samples[zone_id]
        zone.stats.last_activity = now
        zone.updated_at = now
        self.repository.save_zone(zone)

    # --- Dwell timers ---

    def start_dwell_timer(self, zone_id: str, device_id: str, threshold_minutes: int) -> None:
        """(Re)start the one-shot dwell countdown for a device in a zone.

        A threshold too large to schedule is logged and leaves no timer.
        """
        try:
            fire_at = self.clock.now() + timedelta(minutes=threshold_minutes)
        except OverflowError:
            logger.exception(
                f"Dwell timer for {device_id} in {zone_id} not started: "
                f"threshold of {threshold_minutes} minutes is out of range"
            )
            self._dwell_timers.cancel(dwell_timer_key(zone_id, device_id))
            return
        self._dwell_timers.schedule(zone_id, device_id, fire_at, threshold_minutes)
        logger.debug(f"Dwell timer for {device_id} in {zone_id} fires at {fire_at.isoformat()}")

    def has_dwell_timer(self, zone_id: str, device_id: str) -> bool:
        return dwell_timer_key(zone_id, device_id) in self._dwell_timers

    @property
    def pending_dwell_timers(self) -> int:
        return len(self._dwell_timers)

    def next_dwell_fire_at(self) -> datetime | None:
        return self._dwell_timers.next_fire_at()

    def run_due_timers(self) -> list[DwellEvent]:
        """Fire every dwell timer that is due and return the dwell events.

        A firing timer does not re-check that the device is still inside; it
        reports elapsed time since entry, located at the last known position.
        """
        events: list[DwellEvent] = []
        for timer in self._dwell_timers.pop_due(self.clock.now()):
            position = self.repository.get_position(timer.device_id)
            if position is not None:
                location = EventLocation(latitude=position.latitude, longitude=position.longitude)
            else:
                location = EventLocation(latitude=0, longitude=0)

            event = DwellEvent(
                zone_id=timer.zone_id,
                device_id=timer.device_id,
                timestamp=timer.fire_at,
                location=location,
                threshold_minutes=timer.threshold_minutes,
            )
            events.append(event)
            logger.info(f"Dwell threshold reached for {timer.device_id} in zone {timer.zone_id}")
            self._dispatch(event)

        return events

    def cancel_all_dwell_timers(self) -> None:
        if len(self._dwell_timers):
            logger.info(f"Cancelling {len(self._dwell_timers)} dwell timer(s)")
        self._dwell_timers.clear()

    # --- Event dispatch ---

    def add_event_listener(self, listener: EventListener) -> Callable[[], None]:
        """Register a listener; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def _dispatch(self, event: ZoneEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener error on {event.type} event for zone {event.zone_id}")

        zone = self.repository.get_zone(event.zone_id)
        if zone is None or not should_notify(zone, event):
            return
        try:
            self.notification_sink.show_notification(build_notification(zone, event))
        except Exception:
            logger.exception(f"Notification failed for {event.type} event in zone {event.zone_id}")

    # --- Access control ---

    def has_zone_permission(
        self, zone_id: str, user_id: str, required_permission: ZonePermission
    ) -> bool:
        """Flat ACL check; child zones do not inherit their parent's grants."""
        entry = find_access_entry(self.repository.get_access_list(zone_id), user_id)
        return grants_permission(entry, required_permission, self.clock.now())

    def get_zone_access(self, zone_id: str) -> list[ZoneAccessControl]:
        return list(self.repository.get_access_list(zone_id) or [])

    def grant_zone_access(
        self,
        zone_id: str,
        user_id: str,
        permission: ZonePermission,
        granted_by: str = DEFAULT_USER,
        expires_at: datetime | None = None,
    ) -> ZoneOperationResult[ZoneAccessControl]:
        """Grant or replace a user's permission on a zone.

        Granters need admin; only owners may grant owner.
        """
        operation = "grant_zone_access"
        try:
            if self.repository.get_zone(zone_id) is None:
                return self._failure(operation, ZoneErrorKind.ZONE_NOT_FOUND, "Zone not found")

            if permission not in ZONE_PERMISSIONS:
                return self._failure(
                    operation,
                    ZoneErrorKind.VALIDATION_FAILED,
                    f"Invalid permission level: {permission}",
                )

            required = "owner" if permission == "owner" else "admin"
            if not self.has_zone_permission(zone_id, granted_by, required):
                return self._failure(
                    operation,
                    ZoneErrorKind.PERMISSION_DENIED,
                    "Insufficient permissions to grant zone access",
                )

            if expires_at is not None and expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=UTC)

            entry = ZoneAccessControl(
                user_id=user_id,
                permission=permission,
                granted_at=self.clock.now(),
                granted_by=granted_by,
                expires_at=expires_at,
            )
            entries = [existing for existing in self.get_zone_access(zone_id) if existing.user_id != user_id]
            entries.append(entry)
            self.repository.set_access_list(zone_id, entries)

            logger.info(f"Granted {permission} on zone {zone_id} to {user_id}")
            return self._success(operation, entry)

        except Exception as exc:
            return self._unexpected(operation, exc)

    def revoke_zone_access(
        self, zone_id: str, user_id: str, revoked_by: str = DEFAULT_USER
    ) -> ZoneOperationResult[ZoneAccessControl]:
        """Remove a user's grant. Revoking a missing grant is a no-op."""
        operation = "revoke_zone_access"
        try:
            if self.repository.get_zone(zone_id) is None:
                return self._failure(operation, ZoneErrorKind.ZONE_NOT_FOUND, "Zone not found")

            entries = self.get_zone_access(zone_id)
            entry = find_access_entry(entries, user_id)
            required = "owner" if entry is not None and entry.permission == "owner" else "admin"
            if not self.has_zone_permission(zone_id, revoked_by, required):
                return self._failure(
                    operation,
                    ZoneErrorKind.PERMISSION_DENIED,
                    "Insufficient permissions to revoke zone access",
                )

            if entry is None:
                return self._success(operation)

            owners = [existing for existing in entries if existing.permission == "owner"]
            if entry.permission == "owner" and len(owners) == 1:
                return self._failure(
                    operation,
                    ZoneErrorKind.PERMISSION_DENIED,
                    "Cannot revoke the last owner of a zone",
                )

            self.repository.set_access_list(
                zone_id, [existing for existing in entries if existing.user_id != user_id]
            )
            logger.info(f"Revoked {entry.permission} on zone {zone_id} from {user_id}")
            return self._success(operation, entry)

        except Exception as exc:
            return self._unexpected(operation, exc)

    # --- Queries ---

    def get_all_zones(self) -> list[Zone]:
        return list(self.repository.iter_zones())

    def get_zones_by_type(self, zone_type: str) -> list[Zone]:
        return [zone for zone in self.repository.iter_zones() if zone.type == zone_type]

    def get_active_zones(self) -> list[Zone]:
        return [zone for zone in self.repository.iter_zones() if zone.status == "active"]

    def get_zone(self, zone_id: str) -> Zone | None:
        return self.repository.get_zone(zone_id)

    def get_user_zones(self, user_id: str) -> list[Zone]:
        """Zones the user can at least view."""
        return [
            zone
            for zone in self.repository.iter_zones()
            if self.has_zone_permission(zone.id, user_id, "viewer")
        ]

    def get_device_zone(self, device_id: str) -> Zone | None:
        zone_id = self.repository.get_device_zone_id(device_id)
        return self.repository.get_zone(zone_id) if zone_id else None

    def get_last_known_position(self, device_id: str) -> DevicePosition | None:
        return self.repository.get_position(device_id)

    def get_zone_hierarchy(self, root_zone_id: str | None = None) -> list[ZoneHierarchyNode]:
        """Nested zone trees, from one root or from every parentless zone."""

        def build_node(zone: Zone, depth: int, seen: frozenset[str]) -> ZoneHierarchyNode:
            node = ZoneHierarchyNode(zone=zone, depth=depth)
            for child_id in zone.child_zone_ids:
                child = self.repository.get_zone(child_id)
                if child is not None and child_id not in seen:
                    node.children.append(build_node(child, depth + 1, seen | {child_id}))
            return node

        if root_zone_id is not None:
            root = self.repository.get_zone(root_zone_id)
            return [build_node(root, 0, frozenset({root.id}))] if root else []

        return [
            build_node(zone, 0, frozenset({zone.id}))
            for zone in self.repository.iter_zones()
            if not zone.parent_zone_id
        ]
