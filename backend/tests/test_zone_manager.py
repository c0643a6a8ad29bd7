"""Tests for zone CRUD, hierarchy, device assignment and queries."""

from conftest import HOME
from geozone.schemas import ZoneErrorKind, ZoneInput, ZoneSettings, ZoneStats
from geozone.services.zone_manager import MAX_ZONES_PER_USER

OTHER_PLACE = {
    "name": "Cabin",
    "type": "custom",
    "latitude": 37.80,
    "longitude": -122.45,
    "radius": 50,
}


def create(manager, user="alice", **overrides):
    result = manager.create_zone({**HOME, **overrides}, user)
    assert result.success, result.error
    return result.data


class TestCreateZone:
    """Zone creation, defaults and rejection paths."""

    def test_create_round_trip(self, manager, clock):
        """A created zone reads back with the documented defaults."""
        result = manager.create_zone(HOME, "alice")

        assert result.success
        assert result.operation == "create_zone"
        assert result.timestamp == clock.now()

        zone = manager.get_zone(result.data.id)
        assert zone.id.startswith("zone-")
        assert zone.created_at == zone.updated_at == clock.now()
        assert zone.model_dump(exclude={"id", "created_at", "updated_at"}) == {
            "name": "Home",
            "type": "home",
            "description": "",
            "latitude": 37.7749,
            "longitude": -122.4194,
            "radius": 50,
            "priority": "medium",
            "status": "active",
            "parent_zone_id": None,
            "created_by": "alice",
            "device_ids": [],
            "child_zone_ids": [],
            "settings": ZoneSettings().model_dump(),
            "metadata": {},
            "stats": ZoneStats().model_dump(),
        }

    def test_creator_becomes_owner(self, manager, clock):
        zone = create(manager)

        [entry] = manager.get_zone_access(zone.id)
        assert entry.user_id == "alice"
        assert entry.permission == "owner"
        assert entry.granted_by == "alice"
        assert entry.granted_at == clock.now()

    def test_name_is_trimmed(self, manager):
        zone = create(manager, name="  Home  ")

        assert zone.name == "Home"

    def test_partial_settings_merge_over_defaults(self, manager):
        """Unspecified settings keep their defaults."""
        zone = create(manager, settings={"notifyOnDwell": True, "dwellTimeThreshold": 1})

        assert zone.settings.notify_on_dwell
        assert zone.settings.dwell_time_threshold == 1
        assert zone.settings.notify_on_entry
        assert zone.settings.notify_on_exit
        assert not zone.settings.is_shared

    def test_accepts_zone_input_model(self, manager):
        result = manager.create_zone(ZoneInput(**HOME, priority="critical"), "alice")

        assert result.success
        assert result.data.priority == "critical"

    def test_invalid_input_inserts_nothing(self, manager):
        result = manager.create_zone({**HOME, "latitude": 200, "radius": 1}, "alice")

        assert not result.success
        assert result.error_kind == ZoneErrorKind.VALIDATION_FAILED
        assert result.error.startswith("Validation failed: ")
        assert "Radius must be between 5 and 10000 meters" in result.error
        assert not result.error_details.is_valid
        assert manager.get_all_zones() == []

    def test_invalid_settings_are_a_validation_failure(self, manager):
        result = manager.create_zone({**HOME, "settings": {"dwellTimeThreshold": -1}}, "alice")

        assert result.error_kind == ZoneErrorKind.VALIDATION_FAILED
        assert manager.get_all_zones() == []

    def test_quota_per_user(self, manager):
        """The 51st zone for one user is rejected; other users are unaffected."""
        for _ in range(MAX_ZONES_PER_USER):
            create(manager)

        result = manager.create_zone(HOME, "alice")

        assert result.error_kind == ZoneErrorKind.QUOTA_EXCEEDED
        assert result.error == "Maximum zones limit reached (50)"
        assert len(manager.get_all_zones()) == MAX_ZONES_PER_USER
        assert manager.create_zone(HOME, "bob").success

    def test_missing_parent(self, manager):
        result = manager.create_zone({**HOME, "parentZoneId": "zone-missing"}, "alice")

        assert result.error_kind == ZoneErrorKind.PARENT_ZONE_NOT_FOUND
        assert manager.get_all_zones() == []

    def test_links_parent(self, manager, clock):
        """The parent lists the new child and its updatedAt moves."""
        parent = create(manager)
        clock.advance(60)

        child = create(manager, **OTHER_PLACE, parent_zone_id=parent.id)

        assert child.parent_zone_id == parent.id
        stored_parent = manager.get_zone(parent.id)
        assert stored_parent.child_zone_ids == [child.id]
        assert stored_parent.updated_at == clock.now()

    def test_depth_limit(self, manager):
        """A sixth level is accepted below five ancestors; a seventh is not."""
        parent_id = None
        for _ in range(6):
            parent_id = create(manager, parent_zone_id=parent_id).id

        result = manager.create_zone({**HOME, "parentZoneId": parent_id}, "alice")

        assert result.error_kind == ZoneErrorKind.HIERARCHY_INVALID
        assert len(manager.get_all_zones()) == 6

    def test_corrupt_ancestor_cycle_is_rejected_before_insert(self, manager):
        zone_a = create(manager)
        zone_b = create(manager, parent_zone_id=zone_a.id)
        zone_a.parent_zone_id = zone_b.id
        manager.repository.save_zone(zone_a)

        result = manager.create_zone({**HOME, "parentZoneId": zone_b.id}, "alice")

        assert result.error_kind == ZoneErrorKind.HIERARCHY_INVALID
        assert len(manager.get_all_zones()) == 2
        assert manager.get_zone(zone_b.id).child_zone_ids == []


class TestUpdateZone:
    """Partial updates, merging and the permission gate."""

    def test_requires_admin(self, manager):
        zone = create(manager)

        denied = manager.update_zone(zone.id, {"name": "Mine"}, "bob")
        assert denied.error_kind == ZoneErrorKind.PERMISSION_DENIED

        manager.grant_zone_access(zone.id, "bob", "admin", "alice")
        assert manager.update_zone(zone.id, {"name": "Mine"}, "bob").success

    def test_member_cannot_update(self, manager):
        zone = create(manager)
        manager.grant_zone_access(zone.id, "bob", "member", "alice")

        result = manager.update_zone(zone.id, {"name": "Mine"}, "bob")

        assert result.error_kind == ZoneErrorKind.PERMISSION_DENIED

    def test_missing_zone(self, manager):
        result = manager.update_zone("zone-missing", {"name": "X"}, "alice")

        assert result.error_kind == ZoneErrorKind.ZONE_NOT_FOUND

    def test_merges_settings_and_metadata(self, manager):
        """Unmentioned settings and metadata keys survive an update."""
        zone = create(manager, settings={"notifyOnExit": False}, metadata={"color": "blue"})

        result = manager.update_zone(
            zone.id,
            {"settings": {"notifyOnDwell": True}, "metadata": {"icon": "house"}},
            "alice",
        )

        updated = result.data
        assert not updated.settings.notify_on_exit
        assert updated.settings.notify_on_dwell
        assert updated.metadata == {"color": "blue", "icon": "house"}

    def test_identity_fields_are_immutable(self, manager, clock):
        """id and createdAt are ignored; updatedAt moves."""
        zone = create(manager)
        created_at = zone.created_at
        clock.advance(120)

        result = manager.update_zone(
            zone.id,
            {"id": "zone-hacked", "createdAt": "2000-01-01T00:00:00Z", "name": " Renamed "},
            "alice",
        )

        updated = manager.get_zone(zone.id)
        assert result.success
        assert manager.get_zone("zone-hacked") is None
        assert updated.name == "Renamed"
        assert updated.created_at == created_at
        assert updated.updated_at == clock.now()

    def test_invalid_update_leaves_zone_unchanged(self, manager):
        zone = create(manager)
        before = manager.get_zone(zone.id).model_dump()

        result = manager.update_zone(zone.id, {"radius": 1}, "alice")

        assert result.error_kind == ZoneErrorKind.VALIDATION_FAILED
        assert manager.get_zone(zone.id).model_dump() == before

    def test_own_footprint_is_not_an_overlap(self, manager):
        zone = create(manager)

        validation = manager.validate_zone_input(
            {**manager.get_zone(zone.id).model_dump(), "name": "Other"}
        )
        result = manager.update_zone(zone.id, {"name": "Renamed"}, "alice")

        assert validation.warnings == ["Zone overlaps with 1 existing zone(s)"]
        assert result.success

    def test_moves_between_parents(self, manager, clock):
        first = create(manager)
        second = create(manager, **OTHER_PLACE)
        child = create(manager, parent_zone_id=first.id)
        clock.advance(30)

        result = manager.update_zone(child.id, {"parentZoneId": second.id}, "alice")

        assert result.data.parent_zone_id == second.id
        assert manager.get_zone(first.id).child_zone_ids == []
        assert manager.get_zone(second.id).child_zone_ids == [child.id]
        assert manager.get_zone(first.id).updated_at == clock.now()
        assert manager.get_zone(second.id).updated_at == clock.now()

    def test_detach_from_parent(self, manager):
        parent = create(manager)
        child = create(manager, parent_zone_id=parent.id)

        result = manager.update_zone(child.id, {"parentZoneId": None}, "alice")

        assert result.data.parent_zone_id is None
        assert manager.get_zone(parent.id).child_zone_ids == []

    def test_cycle_is_rejected(self, manager):
        """Moving a zone under its own child fails and changes nothing."""
        parent = create(manager)
        child = create(manager, parent_zone_id=parent.id)

        result = manager.update_zone(parent.id, {"parentZoneId": child.id}, "alice")

        assert result.error_kind == ZoneErrorKind.HIERARCHY_INVALID
        assert "would create cycle" in result.error
        assert manager.get_zone(parent.id).parent_zone_id is None
        assert manager.get_zone(child.id).child_zone_ids == []

    def test_self_parent_is_rejected(self, manager):
        zone = create(manager)

        result = manager.update_zone(zone.id, {"parentZoneId": zone.id}, "alice")

        assert result.error_kind == ZoneErrorKind.HIERARCHY_INVALID

    def test_missing_new_parent(self, manager):
        zone = create(manager)

        result = manager.update_zone(zone.id, {"parentZoneId": "zone-missing"}, "alice")

        assert result.error_kind == ZoneErrorKind.PARENT_ZONE_NOT_FOUND


class TestDeleteZone:
    """Deletion, its guards and cascades."""

    def test_delete(self, manager):
        zone = create(manager)

        result = manager.delete_zone(zone.id, "alice")

        assert result.success
        assert result.data.id == zone.id
        assert manager.get_zone(zone.id) is None
        assert manager.get_zone_access(zone.id) == []

    def test_requires_owner(self, manager):
        zone = create(manager)
        manager.grant_zone_access(zone.id, "bob", "admin", "alice")

        result = manager.delete_zone(zone.id, "bob")

        assert result.error_kind == ZoneErrorKind.PERMISSION_DENIED
        assert manager.get_zone(zone.id) is not None

    def test_missing_zone(self, manager):
        assert manager.delete_zone("zone-missing", "alice").error_kind == ZoneErrorKind.ZONE_NOT_FOUND

    def test_zone_with_children_is_left_untouched(self, manager):
        """A failed delete leaves the zone, its ACL, devices and timers as they were."""
        parent = create(manager, settings={"notifyOnDwell": True, "dwellTimeThreshold": 1})
        create(manager, **OTHER_PLACE, parent_zone_id=parent.id)
        manager.process_location_update("dev1", HOME["latitude"], HOME["longitude"])

        zone_before = manager.get_zone(parent.id).model_dump()
        access_before = manager.get_zone_access(parent.id)

        result = manager.delete_zone(parent.id, "alice")

        assert result.error_kind == ZoneErrorKind.HAS_CHILDREN
        assert result.error == "Cannot delete zone with child zones. Delete child zones first."
        assert manager.get_zone(parent.id).model_dump() == zone_before
        assert manager.get_zone_access(parent.id) == access_before
        assert manager.get_device_zone("dev1").id == parent.id
        assert manager.has_dwell_timer(parent.id, "dev1")

    def test_unlinks_parent(self, manager):
        parent = create(manager)
        child = create(manager, **OTHER_PLACE, parent_zone_id=parent.id)

        manager.delete_zone(child.id, "alice")

        assert manager.get_zone(parent.id).child_zone_ids == []
        assert manager.delete_zone(parent.id, "alice").success

    def test_cascades_devices_and_timers(self, manager):
        zone = create(manager, settings={"notifyOnDwell": True, "dwellTimeThreshold": 5})
        manager.process_location_update("dev1", HOME["latitude"], HOME["longitude"])
        assert manager.has_dwell_timer(zone.id, "dev1")

        manager.delete_zone(zone.id, "alice")

        assert manager.get_device_zone("dev1") is None
        assert not manager.has_dwell_timer(zone.id, "dev1")
        assert manager.pending_dwell_timers == 0


class TestDeviceAssignment:
    """Manual device-to-zone assignment."""

    def test_add_and_remove(self, manager):
        zone = create(manager)

        manager.add_device_to_zone(zone.id, "dev1")
        assert manager.get_zone(zone.id).device_ids == ["dev1"]
        assert manager.get_device_zone("dev1").id == zone.id

        manager.remove_device_from_zone(zone.id, "dev1")
        assert manager.get_zone(zone.id).device_ids == []
        assert manager.get_device_zone("dev1") is None

    def test_add_is_idempotent(self, manager, clock):
        zone = create(manager)
        manager.add_device_to_zone(zone.id, "dev1")
        clock.advance(10)

        manager.add_device_to_zone(zone.id, "dev1")

        stored = manager.get_zone(zone.id)
        assert stored.device_ids == ["dev1"]
        assert stored.updated_at == clock.now()

    def test_add_moves_device_between_zones(self, manager):
        """A device belongs to at most one zone."""
        first = create(manager)
        second = create(manager, **OTHER_PLACE)
        manager.add_device_to_zone(first.id, "dev1")

        manager.add_device_to_zone(second.id, "dev1")

        assert manager.get_zone(first.id).device_ids == []
        assert manager.get_zone(second.id).device_ids == ["dev1"]
        assert manager.get_device_zone("dev1").id == second.id

    def test_remove_cancels_dwell_timer(self, manager):
        zone = create(manager)
        manager.add_device_to_zone(zone.id, "dev1")
        manager.start_dwell_timer(zone.id, "dev1", 5)

        manager.remove_device_from_zone(zone.id, "dev1")

        assert not manager.has_dwell_timer(zone.id, "dev1")

    def test_remove_from_other_zone_keeps_assignment(self, manager):
        first = create(manager)
        second = create(manager, **OTHER_PLACE)
        manager.add_device_to_zone(first.id, "dev1")

        manager.remove_device_from_zone(second.id, "dev1")

        assert manager.get_device_zone("dev1").id == first.id

    def test_missing_zone(self, manager):
        assert manager.add_device_to_zone("zone-missing", "dev1").error_kind == ZoneErrorKind.ZONE_NOT_FOUND
        assert (
            manager.remove_device_from_zone("zone-missing", "dev1").error_kind
            == ZoneErrorKind.ZONE_NOT_FOUND
        )


class TestQueries:
    """Read-only views over the zone set."""

    def test_all_zones_in_creation_order(self, manager):
        first = create(manager)
        second = create(manager, **OTHER_PLACE)

        assert [zone.id for zone in manager.get_all_zones()] == [first.id, second.id]

    def test_by_type_and_active(self, manager):
        home = create(manager)
        cabin = create(manager, **OTHER_PLACE, status="paused")

        assert manager.get_zones_by_type("custom") == [cabin]
        assert manager.get_active_zones() == [home]

    def test_user_zones(self, manager):
        """Owners and grantees see a zone; strangers do not."""
        zone = create(manager)
        create(manager, "carol", **OTHER_PLACE)
        manager.grant_zone_access(zone.id, "bob", "viewer", "alice")

        assert [z.id for z in manager.get_user_zones("alice")] == [zone.id]
        assert [z.id for z in manager.get_user_zones("bob")] == [zone.id]
        assert manager.get_user_zones("mallory") == []

    def test_last_known_position(self, manager, clock):
        assert manager.get_last_known_position("dev1") is None

        manager.process_location_update("dev1", 1.5, 2.5)

        position = manager.get_last_known_position("dev1")
        assert (position.latitude, position.longitude) == (1.5, 2.5)
        assert position.timestamp == clock.now()

    def test_hierarchy(self, manager):
        root = create(manager)
        child = create(manager, parent_zone_id=root.id)
        grandchild = create(manager, parent_zone_id=child.id)
        lone = create(manager, **OTHER_PLACE)

        trees = manager.get_zone_hierarchy()

        assert [node.zone.id for node in trees] == [root.id, lone.id]
        [child_node] = trees[0].children
        assert child_node.zone.id == child.id
        assert child_node.depth == 1
        assert child_node.children[0].zone.id == grandchild.id
        assert child_node.children[0].depth == 2

    def test_hierarchy_from_root(self, manager):
        root = create(manager)
        child = create(manager, parent_zone_id=root.id)

        [node] = manager.get_zone_hierarchy(child.id)

        assert node.zone.id == child.id
        assert node.depth == 0
        assert manager.get_zone_hierarchy("zone-missing") == []
