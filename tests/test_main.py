"""Tests for application startup and shutdown helpers."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from transit_timetables.adapters.config import AppConfig
from transit_timetables.application.services import TimetableSession
from transit_timetables.application.services.timetable_codec import export_timetable
from transit_timetables.domain.models import (
    ConstraintType,
    LineConfiguration,
    Slot,
    SlotGenerationError,
)
from transit_timetables.main import restore_state, save_state, seed_timetables


@pytest.fixture
def session() -> TimetableSession:
    host = MagicMock()
    host.get_lines.return_value = [1]
    host.get_time.return_value = 0.0
    provider = MagicMock()
    provider.get_frequency_seconds.return_value = 600
    return TimetableSession(host, provider)


def test_seed_generates_first_stop_slots(session: TimetableSession) -> None:
    """Given a first slot and separation, when seeding, then stop 1 gets the whole hour."""
    line = LineConfiguration(
        line_id=1,
        name="Harbour Line",
        stop_count=6,
        vehicle_count=4,
        first_slot=(0, 0, 0, 30),
        separation_minutes=10,
        auto_debounce_stops=[3],
        has_timetable=True,
        force_departure=True,
    )

    seed_timetables(session, [line])

    slots = session.store.get_conditions(1, 1, ConstraintType.ARRIVAL_DEPARTURE)
    assert len(slots) == 6
    assert slots[1] == Slot(10, 0, 10, 30)
    assert session.store.get_condition_type(1, 3) is ConstraintType.AUTO_DEBOUNCE
    assert session.store.has_timetable(1)
    assert session.store.get_force_departure(1)


def test_seed_rejects_uneven_separation(session: TimetableSession) -> None:
    """Given a separation that does not tile the hour, when seeding, then it fails."""
    line = LineConfiguration(
        line_id=1,
        name="Harbour Line",
        stop_count=6,
        vehicle_count=4,
        first_slot=(0, 0, 0, 30),
        separation_minutes=7,
    )

    with pytest.raises(SlotGenerationError):
        seed_timetables(session, [line])


def test_save_then_restore_snapshot(session: TimetableSession, tmp_path: Path) -> None:
    """Given a snapshot file, when saving and restoring, then constraints survive."""
    config = AppConfig(snapshot_file=str(tmp_path / "snapshot.json"))
    session.store.add_condition(1, 2, Slot(5, 0, 5, 30))
    save_state(session, config)
    restored = TimetableSession(session.host, session.frequency_cache.provider)

    restore_state(restored, config)

    assert restored.store.lines == session.store.lines


def test_restore_imports_timetable_file(session: TimetableSession, tmp_path: Path) -> None:
    """Given an exported timetable file, when restoring, then its lines are imported."""
    source = TimetableSession(session.host, session.frequency_cache.provider)
    source.store.add_condition(4, 1, Slot(0, 0, 0, 30))
    path = tmp_path / "line4.json"
    path.write_text(export_timetable(source.store, 4), encoding="utf-8")

    restore_state(session, AppConfig(timetable_file=str(path)))

    assert session.store.get_line(4) == source.store.get_line(4)


def test_restore_without_files_changes_nothing(session: TimetableSession, tmp_path: Path) -> None:
    """Given a snapshot path that does not exist yet, when restoring, then nothing is loaded."""
    restore_state(session, AppConfig(snapshot_file=str(tmp_path / "missing.json")))

    assert session.store.lines == {}


def test_save_without_snapshot_file_writes_nothing(
    session: TimetableSession, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Given no snapshot file configured, when saving, then no file is written."""
    monkeypatch.chdir(tmp_path)

    save_state(session, AppConfig(snapshot_file=None))

    assert list(tmp_path.iterdir()) == []
    assert json.loads(json.dumps(session.save()))["timetable"] == {}
