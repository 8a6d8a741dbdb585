"""Tests for timetable export, import and snapshots."""

import json

import pytest

from transit_timetables.application.services import ConstraintStore, ImportMode
from transit_timetables.application.services.timetable_codec import (
    FORMAT_NAME,
    decode_snapshot,
    encode_snapshot,
    export_timetable,
    import_timetable,
    parse_export,
)
from transit_timetables.domain.models import (
    ConstraintType,
    RecoveryMode,
    SkipPatternKind,
    Slot,
    TimetableImportError,
    TimetableSettings,
)


@pytest.fixture
def store() -> ConstraintStore:
    """A store with a flat stop, a periodized stop and a debounce stop on line 3."""
    store = ConstraintStore()
    store.add_condition(3, 1, Slot(0, 0, 0, 30))
    store.add_condition(3, 1, Slot(15, 0, 15, 30))
    store.add_slot_skip(3, 1, Slot(15, 0, 15, 30))
    store.set_delay_tolerance(3, 1, enabled=True, threshold_seconds=90)
    store.set_delay_recovery_mode(3, 1, RecoveryMode.SKIP_TO_NEXT)
    store.add_condition(3, 2, Slot(5, 0, 5, 20))
    store.add_time_period(3, 2, 1800, 2700, [Slot(35, 0, 35, 20)])
    store.set_condition_type(3, 4, ConstraintType.DEBOUNCE)
    store.update_debounce(3, 4, 1, 2, ConstraintType.DEBOUNCE)
    store.set_skip_pattern(3, 4, SkipPatternKind.ALTERNATING, pattern="B-A")
    store.set_has_timetable(3, True)
    store.set_line_delay_recovery_mode(3, RecoveryMode.GRADUAL_RECOVERY)
    store.set_recovery_rate(3, None, 0.25)
    return store


class TestExport:
    """Tests for export_timetable."""

    def test_when_line_exported_then_document_is_tagged(self, store: ConstraintStore) -> None:
        """Given a line, when exporting, then the text carries the format and version."""
        document = json.loads(export_timetable(store, 3))

        assert document["format"] == FORMAT_NAME
        assert document["version"] == 1
        assert list(document["lines"]) == ["3"]

    def test_when_line_missing_then_none(self, store: ConstraintStore) -> None:
        """Given an unknown line, when exporting, then nothing is produced."""
        assert export_timetable(store, 99) is None

    def test_when_vehicles_wait_then_they_are_not_exported(self, store: ConstraintStore) -> None:
        """Given runtime waiting records, when exporting, then they are left out."""
        text_before = export_timetable(store, 3)
        store.get_stop(3, 1).vehicles_waiting[7] = object()  # type: ignore[assignment]

        assert export_timetable(store, 3) == text_before


class TestReplaceImport:
    """Tests for importing with ImportMode.REPLACE."""

    def test_when_exported_line_imported_then_tree_is_equal(
        self, store: ConstraintStore
    ) -> None:
        """Given an exported line, when importing into an empty store, then trees match."""
        target = ConstraintStore()

        changed = import_timetable(target, export_timetable(store, 3), 3)

        assert changed == [3]
        assert target.get_line(3) == store.get_line(3)
        assert target.has_time_periods(3, 2)
        assert target.get_skip_pattern(3, 1, SkipPatternKind.SLOT_BASED).skip_slots == {
            "15:0:15:30"
        }
        assert target.resolve_recovery_mode(3, 1) is RecoveryMode.GRADUAL_RECOVERY

    def test_when_replacing_then_existing_stops_are_dropped(
        self, store: ConstraintStore
    ) -> None:
        """Given a target with other stops, when replacing, then only imported stops remain."""
        target = ConstraintStore()
        target.add_condition(3, 6, Slot(1, 0, 1, 30))

        import_timetable(target, export_timetable(store, 3), 3)

        assert target.get_stop(3, 6) is None

    def test_when_target_differs_then_first_imported_line_is_used(
        self, store: ConstraintStore
    ) -> None:
        """Given text for line 3, when importing into line 8, then line 3's tree is copied."""
        target = ConstraintStore()

        changed = import_timetable(target, export_timetable(store, 3), 8)

        assert changed == [8]
        assert target.get_line(8) == store.get_line(3)
        assert target.get_line(3) is None

    def test_when_no_target_then_every_line_imported(self, store: ConstraintStore) -> None:
        """Given a full export, when importing without a target, then all lines are applied."""
        store.add_condition(5, 1, Slot(10, 0, 10, 30))
        target = ConstraintStore()
        target.add_condition(9, 1, Slot(1, 0, 1, 30))

        changed = import_timetable(target, export_timetable(store))

        assert changed == [3, 5]
        assert target.get_line(9) is not None

    def test_when_imported_then_store_is_dirty(self, store: ConstraintStore) -> None:
        """Given a clean store, when importing, then it is marked dirty."""
        target = ConstraintStore()

        import_timetable(target, export_timetable(store, 3), 3)

        assert target.dirty


class TestMergeImport:
    """Tests for importing with ImportMode.MERGE."""

    def test_when_merging_then_other_stops_are_kept(self, store: ConstraintStore) -> None:
        """Given a target with its own stop, when merging, then both sets of stops remain."""
        target = ConstraintStore()
        target.add_condition(3, 6, Slot(1, 0, 1, 30))
        target.add_condition(3, 1, Slot(59, 0, 59, 30))

        import_timetable(target, export_timetable(store, 3), 3, ImportMode.MERGE)

        assert target.get_conditions(3, 6, ConstraintType.ARRIVAL_DEPARTURE) == [
            Slot(1, 0, 1, 30)
        ]
        assert target.get_stop(3, 1) == store.get_stop(3, 1)
        assert target.has_timetable(3)

    def test_when_merging_into_missing_line_then_line_is_created(
        self, store: ConstraintStore
    ) -> None:
        """Given no existing line, when merging, then the imported tree is used as is."""
        target = ConstraintStore()

        import_timetable(target, export_timetable(store, 3), 3, ImportMode.MERGE)

        assert target.get_line(3) == store.get_line(3)


class TestImportErrors:
    """Tests for rejected import text."""

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("", "Empty import string"),
            ("   ", "Empty import string"),
            ("{not json", "Failed to parse"),
            ("[1, 2]", "expected an object"),
            ('{"format": "other", "version": 1, "lines": {}}', "Unknown format"),
            ('{"format": "transit-timetables", "version": 9, "lines": {}}', "version"),
        ],
    )
    def test_when_text_is_invalid_then_import_fails(self, text: str, message: str) -> None:
        """Given invalid text, when importing, then TimetableImportError is raised."""
        with pytest.raises(TimetableImportError, match=message):
            parse_export(text)

    def test_when_import_fails_then_store_is_untouched(self, store: ConstraintStore) -> None:
        """Given a malformed slot deep in the text, when importing, then nothing changes."""
        document = json.loads(export_timetable(store, 3))
        document["lines"]["3"]["stops"]["2"]["periods"][0]["slots"] = [[70, 0, 0, 0]]
        before = export_timetable(store, 3)
        store.mark_clean()

        with pytest.raises(TimetableImportError):
            import_timetable(store, json.dumps(document), 3)

        assert export_timetable(store, 3) == before
        assert not store.dirty

    def test_when_text_has_no_lines_then_targeted_import_fails(self) -> None:
        """Given an export without lines, when importing into a line, then it fails."""
        text = json.dumps({"format": FORMAT_NAME, "version": 1, "lines": {}})

        with pytest.raises(TimetableImportError, match="no line"):
            import_timetable(ConstraintStore(), text, 1)

    def test_when_skip_kind_is_unknown_then_import_fails(self, store: ConstraintStore) -> None:
        """Given an unknown skip pattern kind, when importing, then it is rejected."""
        document = json.loads(export_timetable(store, 3))
        document["lines"]["3"]["stops"]["4"]["skip_patterns"] = {"zone_based": {}}

        with pytest.raises(TimetableImportError, match="Invalid timetable data"):
            parse_export(json.dumps(document))


class TestSnapshot:
    """Tests for session snapshots."""

    def test_when_snapshot_decoded_then_lines_and_settings_restored(
        self, store: ConstraintStore
    ) -> None:
        """Given a snapshot, when decoding it, then the same tree and settings come back."""
        store.settings = TimetableSettings(default_max_delay_tolerance=45)

        lines, settings = decode_snapshot(encode_snapshot(store))

        assert lines == store.lines
        assert settings == store.settings

    @pytest.mark.parametrize("snapshot", [None, {}])
    def test_when_snapshot_empty_then_no_lines(self, snapshot: dict | None) -> None:
        """Given an empty snapshot, when decoding, then there is nothing to restore."""
        assert decode_snapshot(snapshot) == ({}, None)

    def test_when_snapshot_survives_json_then_equal(self, store: ConstraintStore) -> None:
        """Given a snapshot written as JSON, when reading it back, then it decodes equal."""
        text = json.dumps(encode_snapshot(store))

        lines, _ = decode_snapshot(json.loads(text))

        assert lines == store.lines
