"""Tests for location processing, boundary detection and event dispatch."""

from datetime import timedelta

import pytest

from conftest import FAR_AWAY, HOME
from geozone.schemas import EnterEvent, ExitEvent

HOME_POINT = (HOME["latitude"], HOME["longitude"])


@pytest.fixture
def home(manager):
    return manager.create_zone(HOME, "alice").data


class TestProcessLocationUpdate:
    """Enter/exit transitions relative to the device's assigned zone."""

    def test_enter(self, manager, home, clock, received):
        """A device reported at the zone center enters it."""
        events = manager.process_location_update("dev1", *HOME_POINT, accuracy=8)

        assert len(events) == 1
        [event] = events
        assert isinstance(event, EnterEvent)
        assert event.zone_id == home.id
        assert event.device_id == "dev1"
        assert event.timestamp == clock.now()
        assert event.location.accuracy == 8
        assert received == events
        assert manager.get_device_zone("dev1").name == "Home"

    def test_exit(self, manager, home, clock):
        """Moving outside emits exit with the minutes spent inside."""
        manager.process_location_update("dev1", *HOME_POINT)
        clock.advance(timedelta(minutes=5))

        events = manager.process_location_update("dev1", *FAR_AWAY)

        assert len(events) == 1
        [event] = events
        assert isinstance(event, ExitEvent)
        assert event.zone_id == home.id
        assert event.dwell_minutes == pytest.approx(5.0)
        assert manager.get_device_zone("dev1") is None
        assert manager.get_zone(home.id).device_ids == []

    def test_no_transition_no_events(self, manager, home):
        manager.process_location_update("dev1", *HOME_POINT)

        assert manager.process_location_update("dev1", *HOME_POINT) == []
        assert manager.process_location_update("dev2", *FAR_AWAY) == []

    def test_inactive_zones_are_ignored(self, manager):
        manager.create_zone({**HOME, "status": "inactive"}, "alice")

        assert manager.process_location_update("dev1", *HOME_POINT) == []
        assert manager.get_device_zone("dev1") is None

    def test_leave_and_enter_in_one_update(self, manager):
        """One update can leave one zone and enter another; events follow zone order."""
        east = manager.create_zone(
            {**HOME, "name": "East", "latitude": 0.01, "longitude": 0}, "alice"
        ).data
        west = manager.create_zone({**HOME, "name": "West", "latitude": 0, "longitude": 0}, "alice").data
        manager.process_location_update("dev1", 0, 0)
        now = manager.clock.advance(timedelta(minutes=2))

        events = manager.process_location_update("dev1", 0.01, 0)

        assert [(event.type, event.zone_id) for event in events] == [
            ("enter", east.id),
            ("exit", west.id),
        ]
        assert events[1].dwell_minutes == pytest.approx(2.0)
        assert events[0].timestamp == now
        assert manager.get_device_zone("dev1").id == east.id

    def test_stats(self, manager, home, clock):
        """Entries, exits, average dwell and the most active device are tracked."""
        manager.process_location_update("dev1", *HOME_POINT)
        clock.advance(timedelta(minutes=5))
        manager.process_location_update("dev1", *FAR_AWAY)
        manager.process_location_update("dev2", *HOME_POINT)
        manager.process_location_update("dev1", *HOME_POINT)
        clock.advance(timedelta(minutes=15))
        manager.process_location_update("dev1", *FAR_AWAY)

        stats = manager.get_zone(home.id).stats
        assert stats.total_entries == 3
        assert stats.total_exits == 2
        assert stats.average_dwell_time == pytest.approx(10.0)
        assert stats.most_active_device == "dev1"
        assert stats.last_activity == clock.now()

    def test_records_position(self, manager, clock):
        manager.process_location_update("dev1", 10.0, 20.0)

        position = manager.get_last_known_position("dev1")
        assert (position.latitude, position.longitude) == (10.0, 20.0)
        assert position.timestamp == clock.now()


class TestCheckDeviceInZone:
    """Boundary detection without side effects."""

    def test_inside(self, manager, home):
        result = manager.check_device_in_zone("dev1", *HOME_POINT)

        assert result.is_inside
        assert result.zone.id == home.id
        assert result.distance_from_center == pytest.approx(0)
        assert result.distance_from_boundary == pytest.approx(-50)
        assert manager.get_device_zone("dev1") is None

    def test_outside_every_zone(self, manager, home):
        assert manager.check_device_in_zone("dev1", *FAR_AWAY) is None

    def test_specific_zone(self, manager, home):
        """With a zone id only that zone is tested."""
        assert manager.check_device_in_zone("dev1", *HOME_POINT, zone_id=home.id).is_inside
        assert manager.check_device_in_zone("dev1", *FAR_AWAY, zone_id=home.id) is None
        assert manager.check_device_in_zone("dev1", *HOME_POINT, zone_id="zone-missing") is None

    def test_nearest_boundary_wins(self, manager):
        """Among containing zones the smallest |distanceFromBoundary| is chosen."""
        small = manager.create_zone({**HOME, "latitude": 0, "longitude": 0, "radius": 100}, "alice").data
        manager.create_zone({**HOME, "latitude": 0, "longitude": 0, "radius": 1000}, "alice")

        assert manager.check_device_in_zone("dev1", 0, 0).zone.id == small.id

    def test_edge_of_large_zone_beats_center_of_small_one(self, manager):
        """The tie-break is by boundary distance, not by zone size."""
        manager.create_zone({**HOME, "latitude": 0, "longitude": 0, "radius": 1000}, "alice")
        offset = manager.create_zone(
            {**HOME, "latitude": 0.008, "longitude": 0, "radius": 900}, "alice"
        ).data

        result = manager.check_device_in_zone("dev1", 0, 0)

        assert result.zone.id == offset.id
        assert result.distance_from_boundary == pytest.approx(-10.4, abs=0.5)

    def test_inactive_zones_are_skipped(self, manager):
        manager.create_zone({**HOME, "status": "paused"}, "alice")

        assert manager.check_device_in_zone("dev1", *HOME_POINT) is None


class TestEventDispatch:
    """Listeners and notifications."""

    def test_listener_errors_are_isolated(self, manager, home, sink):
        """A raising listener does not stop later listeners or the notification."""
        seen = []

        def broken(event):
            raise RuntimeError("listener failed")

        manager.add_event_listener(broken)
        manager.add_event_listener(seen.append)

        events = manager.process_location_update("dev1", *HOME_POINT)

        assert len(events) == 1
        assert seen == events
        assert len(sink.notifications) == 1

    def test_listener_errors_do_not_skip_remaining_zones(self, manager):
        """Leaving one zone and entering another both complete despite a raising listener."""
        west = manager.create_zone({**HOME, "name": "West", "latitude": 0, "longitude": 0}, "alice").data
        east = manager.create_zone(
            {**HOME, "name": "East", "latitude": 0.01, "longitude": 0}, "alice"
        ).data
        manager.process_location_update("dev1", 0, 0)

        def broken(event):
            raise RuntimeError("listener failed")

        manager.add_event_listener(broken)

        events = manager.process_location_update("dev1", 0.01, 0)

        assert [(event.type, event.zone_id) for event in events] == [
            ("exit", west.id),
            ("enter", east.id),
        ]
        assert manager.get_zone(west.id).stats.total_exits == 1
        assert manager.get_zone(east.id).stats.total_entries == 1
        assert manager.get_device_zone("dev1").id == east.id

    def test_unsubscribe(self, manager, home):
        seen = []
        unsubscribe = manager.add_event_listener(seen.append)
        unsubscribe()
        unsubscribe()

        manager.process_location_update("dev1", *HOME_POINT)

        assert seen == []

    def test_entry_and_exit_notifications(self, manager, home, sink):
        manager.process_location_update("dev1", *HOME_POINT)
        manager.process_location_update("dev1", *FAR_AWAY)

        entry, exit_ = sink.notifications
        assert (entry.title, entry.message) == ("Zone Entry", "Device entered Home")
        assert (exit_.title, exit_.message) == ("Zone Exit", "Device left Home")
        assert entry.zone_id == home.id
        assert entry.device_id == "dev1"
        assert entry.priority == "medium"

    def test_disabled_notifications(self, manager, sink):
        manager.create_zone({**HOME, "settings": {"notifyOnEntry": False}}, "alice")

        manager.process_location_update("dev1", *HOME_POINT)
        manager.process_location_update("dev1", *FAR_AWAY)

        assert [notification.title for notification in sink.notifications] == ["Zone Exit"]

    def test_custom_message_and_critical_priority(self, manager, sink):
        manager.create_zone(
            {**HOME, "priority": "critical", "settings": {"customMessage": "Welcome back"}},
            "alice",
        )

        manager.process_location_update("dev1", *HOME_POINT)

        [notification] = sink.notifications
        assert notification.message == "Welcome back"
        assert notification.priority == "high"

    def test_sink_errors_are_isolated(self, manager, home, received):
        class BrokenSink:
            def show_notification(self, notification):
                raise RuntimeError("sink down")

        manager.notification_sink = BrokenSink()

        events = manager.process_location_update("dev1", *HOME_POINT)

        assert len(events) == 1
        assert received == events
