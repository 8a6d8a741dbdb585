"""Versioned text serialization of constraint trees, and session snapshots."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from transit_timetables.domain.models.constraint_type import (
    ConstraintType,
    RecoveryMode,
    SkipPatternKind,
)
from transit_timetables.domain.models.debounce_config import DebounceConfig
from transit_timetables.domain.models.delay_tolerance import DelayTolerance
from transit_timetables.domain.models.errors import TimetableError, TimetableImportError
from transit_timetables.domain.models.schedule import FlatSchedule, PeriodSchedule
from transit_timetables.domain.models.skip_pattern import SkipPattern
from transit_timetables.domain.models.slot import Slot
from transit_timetables.domain.models.stop_constraints import LineConstraints, StopConstraints
from transit_timetables.domain.models.time_period import TimePeriod
from transit_timetables.domain.models.timetable_settings import TimetableSettings

if TYPE_CHECKING:
    from transit_timetables.application.services.constraint_store import ConstraintStore

logger = logging.getLogger(__name__)

FORMAT_NAME = "transit-timetables"
FORMAT_VERSION = 1
SNAPSHOT_VERSION = 1


class ImportMode(Enum):
    """How imported lines are combined with existing ones."""

    REPLACE = "replace"
    MERGE = "merge"


# -- encoding -----------------------------------------------------------------


def _encode_slots(slots: list[Slot]) -> list[list[int]]:
    return [list(slot.as_tuple()) for slot in slots]


def encode_stop(stop: StopConstraints) -> dict[str, Any]:
    data: dict[str, Any] = {"type": stop.constraint_type.value}
    if isinstance(stop.schedule, PeriodSchedule):
        data["periods"] = [
            {"start": p.start_time, "end": p.end_time, "slots": _encode_slots(p.slots)}
            for p in stop.schedule.periods
        ]
    else:
        data["slots"] = _encode_slots(stop.schedule.slots)
    data["debounce"] = [stop.debounce.minute, stop.debounce.second]
    data["auto_debounce"] = [stop.auto_debounce.minute, stop.auto_debounce.second]
    if stop.skip_patterns:
        data["skip_patterns"] = {
            kind.value: {
                "enabled": pattern.enabled,
                "pattern": pattern.pattern,
                "skip_slots": sorted(pattern.skip_slots),
            }
            for kind, pattern in stop.skip_patterns.items()
        }
    if stop.delay_tolerance is not None:
        data["delay_tolerance"] = {
            "enabled": stop.delay_tolerance.enabled,
            "threshold_seconds": stop.delay_tolerance.threshold_seconds,
        }
    if stop.recovery_mode is not None:
        data["recovery_mode"] = stop.recovery_mode.value
    if stop.recovery_rate is not None:
        data["recovery_rate"] = stop.recovery_rate
    return data


def encode_line(line: LineConstraints) -> dict[str, Any]:
    return {
        "has_timetable": line.has_timetable,
        "force_departure": line.force_departure,
        "min_wait_enabled": line.min_wait_enabled,
        "max_wait_enabled": line.max_wait_enabled,
        "recovery_mode": line.recovery_mode.value if line.recovery_mode else None,
        "recovery_rate": line.recovery_rate,
        "stops": {str(stop): encode_stop(entry) for stop, entry in sorted(line.stops.items())},
    }


def encode_lines(lines: dict[int, LineConstraints]) -> dict[str, Any]:
    return {str(line): encode_line(constraints) for line, constraints in sorted(lines.items())}


# -- decoding -----------------------------------------------------------------


def _require(data: Any, kind: type, what: str) -> Any:
    if not isinstance(data, kind):
        raise TimetableImportError(
            f"Expected {what} to be {kind.__name__}, got {type(data).__name__}"
        )
    return data


def _decode_slots(data: Any) -> list[Slot]:
    return [
        Slot.from_sequence(_require(values, list, "slot"))
        for values in _require(data, list, "slots")
    ]


def _decode_debounce(data: Any, default: DebounceConfig) -> DebounceConfig:
    if data is None:
        return default
    minute, second = _require(data, list, "debounce")
    return DebounceConfig(minute, second)


def decode_stop(data: Any) -> StopConstraints:
    data = _require(data, dict, "stop")
    stop = StopConstraints(constraint_type=ConstraintType(data.get("type", "none")))
    if "periods" in data:
        periods = [
            TimePeriod(
                _require(p, dict, "period")["start"],
                p["end"],
                _decode_slots(p.get("slots", [])),
            )
            for p in _require(data["periods"], list, "periods")
        ]
        stop.schedule = PeriodSchedule(periods)
        stop.schedule.sort()
    else:
        stop.schedule = FlatSchedule(_decode_slots(data.get("slots", [])))
    stop.debounce = _decode_debounce(data.get("debounce"), stop.debounce)
    stop.auto_debounce = _decode_debounce(data.get("auto_debounce"), stop.auto_debounce)
    skip_patterns = _require(data.get("skip_patterns", {}), dict, "skip_patterns")
    for kind_value, pattern_data in skip_patterns.items():
        kind = SkipPatternKind(kind_value)
        pattern_data = _require(pattern_data, dict, "skip pattern")
        stop.skip_patterns[kind] = SkipPattern(
            kind=kind,
            enabled=bool(pattern_data.get("enabled", False)),
            pattern=pattern_data.get("pattern", "A-B"),
            skip_slots=set(pattern_data.get("skip_slots", [])),
        )
    tolerance = data.get("delay_tolerance")
    if tolerance is not None:
        tolerance = _require(tolerance, dict, "delay_tolerance")
        stop.delay_tolerance = DelayTolerance(
            enabled=bool(tolerance["enabled"]),
            threshold_seconds=int(tolerance["threshold_seconds"]),
        )
    if data.get("recovery_mode") is not None:
        stop.recovery_mode = RecoveryMode(data["recovery_mode"])
    if data.get("recovery_rate") is not None:
        stop.recovery_rate = float(data["recovery_rate"])
    return stop


def decode_line(data: Any) -> LineConstraints:
    data = _require(data, dict, "line")
    line = LineConstraints(
        has_timetable=bool(data.get("has_timetable", False)),
        force_departure=bool(data.get("force_departure", False)),
        min_wait_enabled=bool(data.get("min_wait_enabled", True)),
        max_wait_enabled=bool(data.get("max_wait_enabled", False)),
    )
    if data.get("recovery_mode") is not None:
        line.recovery_mode = RecoveryMode(data["recovery_mode"])
    if data.get("recovery_rate") is not None:
        line.recovery_rate = float(data["recovery_rate"])
    for stop_key, stop_data in _require(data.get("stops", {}), dict, "stops").items():
        stop = decode_stop(stop_data)
        if stop.constraint_type is not ConstraintType.NONE:
            line.stops[int(stop_key)] = stop
    return line


def decode_lines(data: Any) -> dict[int, LineConstraints]:
    """Decode a mapping of line ID to constraint tree.

    Raises:
        TimetableImportError: If any part is malformed.
    """
    try:
        return {
            int(line_key): decode_line(line_data)
            for line_key, line_data in _require(data, dict, "lines").items()
        }
    except TimetableImportError:
        raise
    except (KeyError, TypeError, ValueError, TimetableError) as e:
        raise TimetableImportError(f"Invalid timetable data: {e}") from e


# -- export / import ----------------------------------------------------------


def export_timetable(store: ConstraintStore, line: int | None = None) -> str | None:
    """Serialize one line, or every line, to text.

    Returns:
        The exported text, or None if the requested line has no timetable.
    """
    if line is not None:
        constraints = store.get_line(line)
        if constraints is None:
            return None
        lines = {line: constraints}
    else:
        lines = store.lines
    document = {"format": FORMAT_NAME, "version": FORMAT_VERSION, "lines": encode_lines(lines)}
    return json.dumps(document, indent=2)


def parse_export(text: str) -> dict[int, LineConstraints]:
    """Parse exported text without touching any store.

    Raises:
        TimetableImportError: If the text is empty, malformed or of an
            unsupported format or version.
    """
    if not text or not text.strip():
        raise TimetableImportError("Empty import string")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise TimetableImportError(f"Failed to parse import data: {e}") from e
    if not isinstance(document, dict):
        raise TimetableImportError("Invalid data format: expected an object")
    if document.get("format") != FORMAT_NAME:
        raise TimetableImportError(f"Unknown format: {document.get('format')!r}")
    version = document.get("version")
    if not isinstance(version, int) or not 1 <= version <= FORMAT_VERSION:
        raise TimetableImportError(f"Unsupported version: {version!r}")
    return decode_lines(document.get("lines", {}))


def _merge_line(existing: LineConstraints, imported: LineConstraints) -> None:
    existing.stops.update(imported.stops)
    existing.has_timetable = imported.has_timetable


def import_timetable(
    store: ConstraintStore,
    text: str,
    line: int | None = None,
    mode: ImportMode = ImportMode.REPLACE,
) -> list[int]:
    """Apply exported text to a store.

    With a target line, the imported tree of that line is used, or the first
    imported line if the text holds a different one. Without a target line,
    every imported line is applied and lines absent from the text are left
    alone. REPLACE swaps a line's whole tree; MERGE overwrites only the
    imported stops and the line's enabled flag.

    The text is fully parsed before the store is changed.

    Returns:
        The IDs of the lines that were changed.

    Raises:
        TimetableImportError: If the text cannot be parsed, or holds no line
            to import into the target.
    """
    imported = parse_export(text)

    if line is not None:
        if line in imported:
            source = imported[line]
        elif imported:
            source = imported[min(imported)]
        else:
            raise TimetableImportError("Import data contains no line")
        targets = {line: source}
    else:
        targets = imported

    for target, source in targets.items():
        existing = store.get_line(target)
        if mode is ImportMode.MERGE and existing is not None:
            _merge_line(existing, source)
            store.mark_dirty()
        else:
            store.set_line_constraints(target, source)

    logger.info(f"Imported timetable for {len(targets)} line(s) ({mode.value})")
    return sorted(targets)


# -- snapshots ----------------------------------------------------------------


def encode_snapshot(store: ConstraintStore) -> dict[str, Any]:
    """Full persisted/replicated state: every line plus the relevant settings."""
    return {
        "version": SNAPSHOT_VERSION,
        "timetable": encode_lines(store.lines),
        "settings": store.settings.to_dict(),
    }


def decode_snapshot(
    snapshot: dict[str, Any] | None,
) -> tuple[dict[int, LineConstraints], TimetableSettings | None]:
    """Decode a snapshot; an empty or missing snapshot yields no lines.

    Returns:
        The lines, and the settings if the snapshot carried any.
    """
    if not snapshot:
        return {}, None
    lines = decode_lines(snapshot.get("timetable", {}))
    settings_data = snapshot.get("settings")
    if settings_data is None:
        return lines, None
    try:
        settings = TimetableSettings.from_dict(_require(settings_data, dict, "settings"))
    except (TypeError, ValueError) as e:
        raise TimetableImportError(f"Invalid settings in snapshot: {e}") from e
    return lines, settings
