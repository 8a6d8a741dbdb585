"""Tests for TimetableReplica."""

from transit_timetables.application.services import ConstraintStore, TimetableReplica
from transit_timetables.application.services.timetable_codec import encode_snapshot
from transit_timetables.domain.models import Slot, TimetableSettings


def _snapshot() -> dict:
    store = ConstraintStore(TimetableSettings(default_max_delay_tolerance=42))
    store.add_condition(2, 3, Slot(20, 0, 20, 45))
    store.set_has_timetable(2, True)
    return encode_snapshot(store)


def test_replica_mirrors_received_snapshot() -> None:
    """Given a snapshot, when applying it, then the replica holds the same tree and settings."""
    replica = TimetableReplica()

    assert replica.apply(_snapshot())

    assert replica.store.get_conditions(2, 3, replica.store.get_condition_type(2, 3)) == [
        Slot(20, 0, 20, 45)
    ]
    assert replica.store.settings.default_max_delay_tolerance == 42
    assert not replica.store.dirty
    assert replica.updates_applied == 1


def test_replica_replaces_previous_state() -> None:
    """Given an earlier snapshot, when a newer one arrives, then old lines are dropped."""
    replica = TimetableReplica()
    replica.apply(_snapshot())
    store = ConstraintStore()
    store.add_condition(5, 1, Slot(0, 0, 0, 30))

    replica.apply(encode_snapshot(store))

    assert replica.store.get_line(2) is None
    assert replica.store.get_line(5) is not None
    assert replica.updates_applied == 2


def test_replica_ignores_malformed_snapshot() -> None:
    """Given a malformed snapshot, when applying it, then the previous state is kept."""
    replica = TimetableReplica()
    replica.apply(_snapshot())

    applied = replica.apply({"timetable": {"2": "broken"}})

    assert applied is False
    assert replica.store.get_line(2) is not None
    assert replica.updates_applied == 1
