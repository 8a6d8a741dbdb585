"""Tests for the in-memory transit simulation."""

import pytest

from transit_timetables.adapters.simulation import DelayLog, InMemoryTransitHost
from transit_timetables.application.services import TimetableSession
from transit_timetables.domain.models import LineConfiguration, Slot


def _line(line_id: int = 1, **overrides) -> LineConfiguration:
    values = {
        "line_id": line_id,
        "name": f"Line {line_id}",
        "stop_count": 3,
        "vehicle_count": 1,
        "leg_seconds": 120,
        "dwell_seconds": 30,
    }
    values.update(overrides)
    return LineConfiguration(**values)


class TestNetwork:
    """Tests for lines and vehicles."""

    def test_when_line_added_then_vehicles_are_spread_over_route(self) -> None:
        """Given four vehicles on eight stops, when added, then every other stop gets one."""
        host = InMemoryTransitHost()

        vehicles = host.add_line(_line(stop_count=8, vehicle_count=4))

        assert vehicles == [1, 2, 3, 4]
        assert [host.get_vehicle_state(v).stop_index for v in vehicles] == [0, 2, 4, 6]
        assert host.get_lines() == [1]
        assert host.get_stop_count(1) == 8

    def test_when_line_added_twice_then_rejected(self) -> None:
        """Given an existing line, when adding it again, then ValueError is raised."""
        host = InMemoryTransitHost([_line()])

        with pytest.raises(ValueError, match="already exists"):
            host.add_line(_line())

    def test_when_line_removed_then_its_vehicles_are_gone(self) -> None:
        """Given a line, when removing it, then its vehicles and stops disappear."""
        host = InMemoryTransitHost([_line(vehicle_count=2)])

        host.remove_line(1)

        assert not host.line_exists(1)
        assert host.get_vehicle_state(1) is None
        assert host.get_line_vehicles(1) == []
        assert host.get_stop_count(1) == 0

    def test_when_vehicle_removed_then_roster_shrinks(self) -> None:
        """Given two vehicles, when removing one, then the roster keeps the other."""
        host = InMemoryTransitHost([_line(vehicle_count=2)])

        host.remove_vehicle(1)

        assert host.get_line_vehicles(1) == [2]


class TestMovement:
    """Tests for simulated arrivals and departures."""

    def test_when_leg_time_passes_then_vehicle_arrives(self) -> None:
        """Given a vehicle heading to stop 1, when the leg time passes, then it stands there."""
        host = InMemoryTransitHost([_line()])

        host.advance(119)
        assert not host.get_vehicle_state(1).at_terminal

        host.advance(1)
        state = host.get_vehicle_state(1)
        assert state.at_terminal
        assert state.doors_open
        assert state.doors_time == 120
        assert host.get_vehicles_at_stop(1, 1) == [1]

    def test_when_dwell_passes_then_vehicle_leaves_for_next_stop(self) -> None:
        """Given a vehicle at a stop, when the dwell time passes, then it departs."""
        host = InMemoryTransitHost([_line()])
        host.place_at_stop(1, 2)

        host.advance(30)

        state = host.get_vehicle_state(1)
        assert not state.at_terminal
        assert state.stop_index == 0
        assert host.get_last_departure_times(1, 3) == [30.0]

    def test_when_auto_departure_stopped_then_vehicle_waits(self) -> None:
        """Given a held vehicle, when time passes, then it stays until released."""
        host = InMemoryTransitHost([_line()])
        host.place_at_stop(1, 0)
        host.stop_auto_departure(1)

        host.advance(300)
        assert host.get_vehicle_state(1).at_terminal

        host.restart_auto_departure(1)
        host.advance(1)
        assert not host.get_vehicle_state(1).at_terminal

    def test_when_departed_explicitly_then_vehicle_leaves_at_once(self) -> None:
        """Given a vehicle standing at a stop, when forced to depart, then it leaves now."""
        host = InMemoryTransitHost([_line()], start_time=50.0)
        host.place_at_stop(1, 0)

        host.depart_vehicle(1)

        assert host.get_last_departure_times(1, 1) == [50.0]

    def test_wait_limits_come_from_line_configuration(self) -> None:
        """Given configured wait limits, when asking the host, then they are returned."""
        host = InMemoryTransitHost([_line(min_wait_seconds=10, max_wait_seconds=90)])

        assert host.get_wait_limits(1, 2) == (10, 90)


class TestFrequency:
    """Tests for the frequency provider side of the host."""

    def test_when_frequency_configured_then_it_is_used(self) -> None:
        """Given a fixed frequency, when asked, then the configured value is returned."""
        host = InMemoryTransitHost([_line(frequency_seconds=600)])

        assert host.get_frequency_seconds(1) == 600

    def test_when_not_configured_then_round_trip_is_shared(self) -> None:
        """Given three vehicles on a 6 stop loop, when asked, then the round trip is split."""
        host = InMemoryTransitHost([_line(stop_count=6, vehicle_count=3)])

        assert host.get_frequency_seconds(1) == 6 * 150 // 3

    def test_when_line_has_no_vehicles_then_unknown(self) -> None:
        """Given an empty line, when asked, then the frequency is unknown."""
        host = InMemoryTransitHost([_line(vehicle_count=0)])

        assert host.get_frequency_seconds(1) is None
        assert host.get_frequency_seconds(9) is None


class TestSessionOnHost:
    """End-to-end runs of a session against the simulation."""

    def test_when_slot_is_configured_then_vehicle_leaves_at_slot_departure(self) -> None:
        """Given a 10:00/10:30 slot at stop 1, when running, then the vehicle leaves at 10:30."""
        host = InMemoryTransitHost([_line()])
        delay_log = DelayLog()
        session = TimetableSession(host, host, delay_recorder=delay_log)
        session.store.add_condition(1, 1, Slot(10, 0, 10, 30))
        session.store.set_has_timetable(1, True)
        host.place_at_stop(1, 0)

        for _ in range(600):
            host.advance(1.0)
            session.update()
        assert host.get_vehicle_state(1).at_terminal

        for _ in range(40):
            host.advance(1.0)
            session.update()

        departures = host.get_last_departure_times(1, 1)
        assert len(departures) == 1
        assert 630.0 <= departures[0] <= 632.0
        assert delay_log.average_delay(1, "departure") is not None

    def test_when_timetable_disabled_then_vehicle_keeps_dwell_time(self) -> None:
        """Given slots on a disabled line, when running, then the vehicle leaves after dwelling."""
        host = InMemoryTransitHost([_line()])
        session = TimetableSession(host, host)
        session.store.add_condition(1, 1, Slot(10, 0, 10, 30))
        host.place_at_stop(1, 0)

        for _ in range(40):
            host.advance(1.0)
            session.update()

        assert host.get_last_departure_times(1, 1) == [30.0]
